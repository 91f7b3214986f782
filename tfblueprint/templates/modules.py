"""
Module catalog: variable and output declarations per provider and kind.

The declarations here are rendered into ``variables.tf`` and
``outputs.tf`` and are the same objects the validator checks .tfvars
values against.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..standards.catalog import (
    AWS_EKS_LOG_TYPES,
    AWS_LOG_RETENTION_DAYS,
    AZURE_LOG_RETENTION_RANGE,
    DEFAULT_REGIONS,
    ECS_LAUNCH_TYPES,
    EMAIL_PATTERN,
    ENVIRONMENTS,
    FARGATE_CPU_UNITS,
    GCP_LOG_RETENTION_RANGE,
    HEALTH_CHECK_PATH_PATTERN,
    KUBERNETES_VERSION_PATTERN,
    PROJECT_NAME_PATTERN,
    ModuleKind,
    Provider,
    module_catalog,
)
from ..validation.rules import (
    AllOneOf,
    InRange,
    MatchesPattern,
    NotBlank,
    OneOf,
    ValidationRule,
    ValidCidrBlocks,
)


class TemplateError(Exception):
    """Raised when a module template is unknown or cannot be rendered."""
    pass


@dataclass
class VariableSpec:
    """
    Declaration of a module input variable.

    A variable without a default (``default is None``) is required.
    """
    name: str
    type: str = "string"
    description: str = ""
    default: Optional[Any] = None
    sensitive: bool = False
    rules: List[ValidationRule] = field(default_factory=list)

    @property
    def required(self) -> bool:
        return self.default is None


@dataclass
class OutputSpec:
    """Declaration of a module output."""
    name: str
    value: str
    description: str = ""
    sensitive: bool = False


@dataclass
class ModuleSpec:
    """
    Full declaration of a generated module.

    Attributes:
        provider: Target cloud provider
        kind: Compute environment kind
        variables: Input variables in declaration order
        outputs: Outputs in declaration order
        bootstrap_file: File name of the VM bootstrap script, if any
    """
    provider: Provider
    kind: ModuleKind
    variables: List[VariableSpec]
    outputs: List[OutputSpec]
    bootstrap_file: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.provider.value}-{self.kind.value}-environment"

    @property
    def main_template(self) -> str:
        return f"{self.provider.value}/{self.kind.value}/main.tf.j2"

    def variable(self, name: str) -> Optional[VariableSpec]:
        for var in self.variables:
            if var.name == name:
                return var
        return None

    def variable_names(self) -> List[str]:
        return [var.name for var in self.variables]

    def sensitive_names(self) -> set:
        return {var.name for var in self.variables if var.sensitive}


# ---------------------------------------------------------------------------
# Shared rules
# ---------------------------------------------------------------------------

ENVIRONMENT_RULE = OneOf(
    list(ENVIRONMENTS),
    "Environment must be one of: dev, staging, prod, qa.",
)

PROJECT_NAME_RULE = MatchesPattern(
    PROJECT_NAME_PATTERN,
    "Project name must contain only lowercase letters, numbers, and hyphens.",
)

EMAIL_RULE = MatchesPattern(
    EMAIL_PATTERN,
    "Owner email must be a valid email address.",
)

PORT_RULE = InRange(1, 65535, "Port must be between 1 and 65535.")
HEALTH_CHECK_RULE = MatchesPattern(
    HEALTH_CHECK_PATH_PATTERN, "Health check path must start with '/'."
)
CIDR_RULE = ValidCidrBlocks("All entries must be valid CIDR blocks.")
PERCENT_RULE = InRange(1, 100, "Threshold must be between 1 and 100.")


def _retention_rule(provider: Provider) -> ValidationRule:
    if provider == Provider.AWS:
        return OneOf(
            list(AWS_LOG_RETENTION_DAYS),
            "Log retention must be one of the CloudWatch supported values: "
            + ", ".join(str(d) for d in AWS_LOG_RETENTION_DAYS) + ".",
        )
    if provider == Provider.AZURE:
        low, high = AZURE_LOG_RETENTION_RANGE
        return InRange(low, high, f"Log retention must be between {low} and {high} days.")
    low, high = GCP_LOG_RETENTION_RANGE
    return InRange(low, high, f"Log retention must be between {low} and {high} days.")


def _count(name: str, description: str, default: int, minimum: int = 0) -> VariableSpec:
    return VariableSpec(
        name, "number", description, default,
        rules=[InRange(minimum, None, f"{name} must be at least {minimum}.")],
    )


def _common_variables(provider: Provider) -> List[VariableSpec]:
    variables = [
        VariableSpec(
            "project_name", "string",
            "Project name used as the prefix of every resource name",
            rules=[PROJECT_NAME_RULE],
        ),
        VariableSpec(
            "environment", "string",
            "Deployment environment (dev, staging, prod, qa)",
            rules=[ENVIRONMENT_RULE],
        ),
        VariableSpec(
            "owner_email", "string",
            "Contact email of the owning team, applied as the Owner tag",
            rules=[EMAIL_RULE],
        ),
        VariableSpec(
            "cost_center", "string",
            "Cost allocation code applied as the CostCenter tag",
            "engineering", rules=[NotBlank("Cost center must not be empty.")],
        ),
        VariableSpec(
            "region", "string",
            "Region to deploy into",
            DEFAULT_REGIONS[provider], rules=[NotBlank("Region must not be empty.")],
        ),
    ]

    if provider == Provider.GCP:
        variables.append(VariableSpec(
            "gcp_project_id", "string", "GCP project ID that owns the resources",
            rules=[NotBlank("GCP project ID must not be empty.")],
        ))

    variables.extend([
        VariableSpec(
            "log_retention_days", "number",
            "Number of days to retain logs",
            30, rules=[_retention_rule(provider)],
        ),
        VariableSpec(
            "additional_tags", "map(string)",
            "Extra tags (labels on GCP) merged into the standard set",
            {},
        ),
    ])
    return variables


def _common_outputs(provider: Provider) -> List[OutputSpec]:
    tags_ref = "local.common_labels" if provider == Provider.GCP else "local.common_tags"
    return [
        OutputSpec("name_prefix", "local.name_prefix", "Prefix used for every resource name"),
        OutputSpec("common_tags", tags_ref, "Standard tags applied to resources"),
    ]


# ---------------------------------------------------------------------------
# VM / Auto-Scaling
# ---------------------------------------------------------------------------

def _vm_variables(provider: Provider) -> List[VariableSpec]:
    variables = _common_variables(provider)

    if provider == Provider.AWS:
        variables.extend([
            VariableSpec("vpc_id", "string", "VPC to deploy into",
                         rules=[MatchesPattern(r"^vpc-", "VPC ID must start with 'vpc-'.")]),
            VariableSpec("public_subnet_ids", "list(string)", "Subnets for the load balancer"),
            VariableSpec("private_subnet_ids", "list(string)", "Subnets for the instances"),
            VariableSpec("ami_id", "string",
                         "AMI for the instances; latest Amazon Linux 2 when empty", ""),
            VariableSpec("key_name", "string", "EC2 key pair for SSH access; none when empty", ""),
        ])
    elif provider == Provider.AZURE:
        variables.extend([
            VariableSpec("subnet_id", "string", "Subnet for the scale set instances",
                         rules=[NotBlank("Subnet ID must not be empty.")]),
            VariableSpec("admin_username", "string", "Admin user on the instances", "azureuser"),
            VariableSpec("admin_ssh_public_key", "string", "SSH public key for the admin user",
                         rules=[MatchesPattern(r"^ssh-", "Admin SSH public key must start with 'ssh-'.")]),
        ])
    else:
        variables.extend([
            VariableSpec("network", "string", "VPC network name", "default"),
            VariableSpec("subnetwork", "string", "Subnetwork name; network default when empty", ""),
            VariableSpec("source_image", "string", "Boot image for the instances",
                         "debian-cloud/debian-12"),
        ])

    variables.extend([
        VariableSpec("instance_type", "string", "Instance size",
                     rules=[NotBlank("Instance type must not be empty.")]),
        _count("min_size", "Minimum number of instances", 1),
        _count("max_size", "Maximum number of instances", 3, minimum=1),
        _count("desired_capacity", "Desired number of instances", 1),
        VariableSpec("root_volume_size", "number", "Root disk size in GB", 20,
                     rules=[InRange(8, 16384, "Root volume size must be between 8 and 16384 GB.")]),
        VariableSpec("application_port", "number", "Port the application listens on", 8080,
                     rules=[PORT_RULE]),
        VariableSpec("health_check_path", "string", "Load balancer health check path", "/health",
                     rules=[HEALTH_CHECK_RULE]),
        VariableSpec("allowed_cidr_blocks", "list(string)",
                     "CIDR blocks allowed to reach the load balancer", ["0.0.0.0/0"],
                     rules=[CIDR_RULE]),
        VariableSpec("enable_monitoring", "bool",
                     "Create CPU alarms and scaling policies", True),
        VariableSpec("cpu_high_threshold", "number", "CPU percentage that triggers scale-up", 80,
                     rules=[PERCENT_RULE]),
        VariableSpec("cpu_low_threshold", "number", "CPU percentage that triggers scale-down", 20,
                     rules=[PERCENT_RULE]),
        VariableSpec("custom_user_data", "string",
                     "Script fragment appended verbatim to the bootstrap script", ""),
    ])

    if provider == Provider.AWS:
        variables.extend([
            VariableSpec("enable_https", "bool", "Add an HTTPS listener", False),
            VariableSpec("certificate_arn", "string",
                         "ACM certificate for the HTTPS listener, required when enable_https is true", "",
                         rules=[MatchesPattern(r"^(?:arn:\S+)?$", "Certificate ARN must be empty or start with arn:.")]),
        ])

    return variables


def _vm_outputs(provider: Provider) -> List[OutputSpec]:
    outputs = _common_outputs(provider)
    if provider == Provider.AWS:
        outputs.extend([
            OutputSpec("autoscaling_group_name", "aws_autoscaling_group.main.name",
                       "Name of the auto-scaling group"),
            OutputSpec("autoscaling_group_arn", "aws_autoscaling_group.main.arn",
                       "ARN of the auto-scaling group"),
            OutputSpec("launch_template_id", "aws_launch_template.main.id",
                       "ID of the launch template"),
            OutputSpec("load_balancer_dns_name", "aws_lb.main.dns_name",
                       "DNS name of the load balancer"),
            OutputSpec("load_balancer_arn", "aws_lb.main.arn", "ARN of the load balancer"),
            OutputSpec("target_group_arn", "aws_lb_target_group.main.arn",
                       "ARN of the target group"),
            OutputSpec("instance_security_group_id", "aws_security_group.instance.id",
                       "Security group of the instances"),
            OutputSpec("alb_security_group_id", "aws_security_group.alb.id",
                       "Security group of the load balancer"),
            OutputSpec("iam_role_arn", "aws_iam_role.instance.arn",
                       "IAM role assumed by the instances"),
            OutputSpec("log_group_name", "aws_cloudwatch_log_group.main.name",
                       "CloudWatch log group"),
            OutputSpec("application_url", '"http://${aws_lb.main.dns_name}"',
                       "URL of the application"),
        ])
    elif provider == Provider.AZURE:
        outputs.extend([
            OutputSpec("resource_group_name", "azurerm_resource_group.main.name",
                       "Resource group holding the environment"),
            OutputSpec("scale_set_id", "azurerm_linux_virtual_machine_scale_set.main.id",
                       "ID of the VM scale set"),
            OutputSpec("load_balancer_public_ip", "azurerm_public_ip.lb.ip_address",
                       "Public IP of the load balancer"),
            OutputSpec("log_analytics_workspace_id", "azurerm_log_analytics_workspace.main.id",
                       "Log Analytics workspace"),
            OutputSpec("application_url", '"http://${azurerm_public_ip.lb.ip_address}"',
                       "URL of the application"),
        ])
    else:
        outputs.extend([
            OutputSpec("instance_group", "google_compute_region_instance_group_manager.main.instance_group",
                       "Managed instance group"),
            OutputSpec("instance_template_id", "google_compute_instance_template.main.id",
                       "Instance template"),
            OutputSpec("health_check_id", "google_compute_health_check.main.id",
                       "Health check used for autohealing"),
            OutputSpec("log_bucket_id", "google_logging_project_bucket_config.main.id",
                       "Log bucket"),
        ])
    return outputs


# ---------------------------------------------------------------------------
# Kubernetes
# ---------------------------------------------------------------------------

def _kubernetes_variables(provider: Provider) -> List[VariableSpec]:
    variables = _common_variables(provider)

    if provider == Provider.AWS:
        variables.extend([
            VariableSpec("subnet_ids", "list(string)", "Subnets for the cluster and nodes"),
            VariableSpec("endpoint_public_access", "bool",
                         "Expose the API server endpoint publicly", True),
            VariableSpec("public_access_cidrs", "list(string)",
                         "CIDR blocks allowed to reach the public endpoint", ["0.0.0.0/0"],
                         rules=[CIDR_RULE]),
            VariableSpec("cluster_log_types", "list(string)",
                         "Control plane log types to ship to CloudWatch", ["api", "audit"],
                         rules=[AllOneOf(
                             list(AWS_EKS_LOG_TYPES),
                             "Log types must be from: " + ", ".join(AWS_EKS_LOG_TYPES) + ".",
                         )]),
        ])
    elif provider == Provider.AZURE:
        variables.append(
            VariableSpec("subnet_id", "string", "Subnet for the node pool; kubenet default when empty", ""),
        )
    else:
        variables.extend([
            VariableSpec("network", "string", "VPC network name", "default"),
            VariableSpec("subnetwork", "string", "Subnetwork name; network default when empty", ""),
            VariableSpec("preemptible_nodes", "bool", "Use preemptible nodes", False),
        ])

    variables.extend([
        VariableSpec("kubernetes_version", "string", "Kubernetes minor version, e.g. 1.29", "1.29",
                     rules=[MatchesPattern(KUBERNETES_VERSION_PATTERN,
                                           "Kubernetes version must look like '1.29'.")]),
        VariableSpec("node_instance_type", "string", "Node size",
                     rules=[NotBlank("Node instance type must not be empty.")]),
        _count("node_min_size", "Minimum number of nodes", 1),
        _count("node_max_size", "Maximum number of nodes", 3, minimum=1),
        _count("node_desired_size", "Desired number of nodes", 2),
        VariableSpec("node_disk_size", "number", "Node disk size in GB", 50,
                     rules=[InRange(20, 2048, "Node disk size must be between 20 and 2048 GB.")]),
    ])
    return variables


def _kubernetes_outputs(provider: Provider) -> List[OutputSpec]:
    outputs = _common_outputs(provider)
    if provider == Provider.AWS:
        outputs.extend([
            OutputSpec("cluster_name", "aws_eks_cluster.main.name", "EKS cluster name"),
            OutputSpec("cluster_endpoint", "aws_eks_cluster.main.endpoint", "API server endpoint"),
            OutputSpec("cluster_certificate_authority",
                       "aws_eks_cluster.main.certificate_authority[0].data",
                       "Cluster CA certificate (base64)", sensitive=True),
            OutputSpec("cluster_security_group_id",
                       "aws_eks_cluster.main.vpc_config[0].cluster_security_group_id",
                       "Cluster security group"),
            OutputSpec("node_group_name", "aws_eks_node_group.main.node_group_name",
                       "Managed node group"),
            OutputSpec("node_role_arn", "aws_iam_role.node.arn", "IAM role of the nodes"),
            OutputSpec("log_group_name", "aws_cloudwatch_log_group.cluster.name",
                       "Control plane log group"),
        ])
    elif provider == Provider.AZURE:
        outputs.extend([
            OutputSpec("resource_group_name", "azurerm_resource_group.main.name",
                       "Resource group holding the cluster"),
            OutputSpec("cluster_name", "azurerm_kubernetes_cluster.main.name", "AKS cluster name"),
            OutputSpec("cluster_fqdn", "azurerm_kubernetes_cluster.main.fqdn", "API server FQDN"),
            OutputSpec("kube_config", "azurerm_kubernetes_cluster.main.kube_config_raw",
                       "Raw kubeconfig", sensitive=True),
            OutputSpec("log_analytics_workspace_id", "azurerm_log_analytics_workspace.main.id",
                       "Log Analytics workspace"),
        ])
    else:
        outputs.extend([
            OutputSpec("cluster_name", "google_container_cluster.main.name", "GKE cluster name"),
            OutputSpec("cluster_endpoint", "google_container_cluster.main.endpoint",
                       "API server endpoint"),
            OutputSpec("cluster_ca_certificate",
                       "google_container_cluster.main.master_auth[0].cluster_ca_certificate",
                       "Cluster CA certificate (base64)", sensitive=True),
            OutputSpec("node_pool_name", "google_container_node_pool.main.name", "Node pool"),
            OutputSpec("node_service_account", "google_service_account.nodes.email",
                       "Service account of the nodes"),
        ])
    return outputs


# ---------------------------------------------------------------------------
# Container service
# ---------------------------------------------------------------------------

def _container_variables(provider: Provider) -> List[VariableSpec]:
    variables = _common_variables(provider)

    if provider == Provider.AWS:
        variables.extend([
            VariableSpec("vpc_id", "string", "VPC to deploy into",
                         rules=[MatchesPattern(r"^vpc-", "VPC ID must start with 'vpc-'.")]),
            VariableSpec("public_subnet_ids", "list(string)", "Subnets for the load balancer"),
            VariableSpec("private_subnet_ids", "list(string)", "Subnets for the tasks"),
            VariableSpec("launch_type", "string", "ECS launch type: FARGATE or EC2", "FARGATE",
                         rules=[OneOf(list(ECS_LAUNCH_TYPES),
                                      "Launch type must be either FARGATE or EC2.")]),
            VariableSpec("ec2_capacity_provider", "string",
                         "Capacity provider backing the EC2 launch type; cluster default when empty",
                         ""),
            VariableSpec("enable_container_insights", "bool", "Enable CloudWatch Container Insights",
                         True),
            VariableSpec("health_check_path", "string", "Load balancer health check path", "/health",
                         rules=[HEALTH_CHECK_RULE]),
            VariableSpec("allowed_cidr_blocks", "list(string)",
                         "CIDR blocks allowed to reach the load balancer", ["0.0.0.0/0"],
                         rules=[CIDR_RULE]),
        ])
        cpu_rule = OneOf(list(FARGATE_CPU_UNITS),
                         "CPU must be one of: " + ", ".join(str(c) for c in FARGATE_CPU_UNITS) + ".")
    else:
        cpu_rule = OneOf([256, 512, 1024, 2048],
                         "CPU must be one of: 256, 512, 1024, 2048.")
        if provider == Provider.GCP:
            variables.append(VariableSpec(
                "allow_unauthenticated", "bool", "Allow public unauthenticated invocations", False,
            ))

    variables.extend([
        VariableSpec("container_image", "string", "Container image to run",
                     rules=[NotBlank("Container image must not be empty.")]),
        VariableSpec("container_port", "number", "Port the container listens on", 8080,
                     rules=[PORT_RULE]),
        VariableSpec("cpu", "number", "CPU units (1024 = 1 vCPU)", 256, rules=[cpu_rule]),
        VariableSpec("memory", "number", "Memory in MiB", 512,
                     rules=[InRange(512, 30720, "Memory must be between 512 and 30720 MiB.")]),
        _count("min_count", "Minimum number of running tasks or replicas", 1),
        _count("max_count", "Maximum number of running tasks or replicas", 3, minimum=1),
        _count("desired_count", "Desired number of running tasks or replicas", 1),
        VariableSpec("container_environment", "map(string)",
                     "Plain environment variables for the container", {}),
        VariableSpec("container_secrets", "map(string)",
                     "Secret environment variables for the container", {}, sensitive=True),
    ])
    return variables


def _container_outputs(provider: Provider) -> List[OutputSpec]:
    outputs = _common_outputs(provider)
    if provider == Provider.AWS:
        outputs.extend([
            OutputSpec("cluster_name", "aws_ecs_cluster.main.name", "ECS cluster name"),
            OutputSpec("service_name",
                       "var.launch_type == \"FARGATE\" ? aws_ecs_service.fargate[0].name : aws_ecs_service.ec2[0].name",
                       "ECS service name"),
            OutputSpec("task_definition_arn", "aws_ecs_task_definition.main.arn",
                       "Task definition"),
            OutputSpec("load_balancer_dns_name", "aws_lb.main.dns_name",
                       "DNS name of the load balancer"),
            OutputSpec("log_group_name", "aws_cloudwatch_log_group.main.name",
                       "CloudWatch log group"),
            OutputSpec("application_url", '"http://${aws_lb.main.dns_name}"',
                       "URL of the application"),
        ])
    elif provider == Provider.AZURE:
        outputs.extend([
            OutputSpec("resource_group_name", "azurerm_resource_group.main.name",
                       "Resource group holding the app"),
            OutputSpec("container_app_environment_id", "azurerm_container_app_environment.main.id",
                       "Container Apps environment"),
            OutputSpec("container_app_fqdn",
                       "azurerm_container_app.main.ingress[0].fqdn",
                       "Public FQDN of the container app"),
            OutputSpec("application_url", '"https://${azurerm_container_app.main.ingress[0].fqdn}"',
                       "URL of the application"),
        ])
    else:
        outputs.extend([
            OutputSpec("service_name", "google_cloud_run_v2_service.main.name",
                       "Cloud Run service name"),
            OutputSpec("application_url", "google_cloud_run_v2_service.main.uri",
                       "URL of the application"),
            OutputSpec("service_account_email", "google_service_account.run.email",
                       "Service account of the service"),
        ])
    return outputs


_BOOTSTRAP_FILES: Dict[Provider, str] = {
    Provider.AWS: "user_data.sh",
    Provider.AZURE: "custom_data.sh",
    Provider.GCP: "startup.sh",
}


def get_module_spec(provider: Provider, kind: ModuleKind) -> ModuleSpec:
    """
    Build the declaration of a module.

    Raises:
        TemplateError: If the pair has no template
    """
    try:
        provider = Provider(provider)
        kind = ModuleKind(kind)
    except ValueError as e:
        raise TemplateError(str(e))

    if kind == ModuleKind.VM:
        return ModuleSpec(provider, kind, _vm_variables(provider), _vm_outputs(provider),
                          bootstrap_file=_BOOTSTRAP_FILES[provider])
    if kind == ModuleKind.KUBERNETES:
        return ModuleSpec(provider, kind, _kubernetes_variables(provider),
                          _kubernetes_outputs(provider))
    if kind == ModuleKind.CONTAINER:
        return ModuleSpec(provider, kind, _container_variables(provider),
                          _container_outputs(provider))
    raise TemplateError(f"No template for {provider.value}/{kind.value}")


# Capacity triples (min, desired, max) per module kind
CAPACITY_VARIABLES: Dict[ModuleKind, Tuple[str, str, str]] = {
    ModuleKind.VM: ("min_size", "desired_capacity", "max_size"),
    ModuleKind.KUBERNETES: ("node_min_size", "node_desired_size", "node_max_size"),
    ModuleKind.CONTAINER: ("min_count", "desired_count", "max_count"),
}


def find_module_spec(variable_names: Iterable[str]) -> Optional[ModuleSpec]:
    """
    Identify a generated module from the variable names it declares.

    A module still counts as generated when variables were added to it.
    When several catalog modules fit, the one declaring the most variables wins.

    Returns:
        The matching ModuleSpec, or None for modules not generated here
    """
    names = set(variable_names)
    best: Optional[ModuleSpec] = None
    for provider, kind in module_catalog():
        spec = get_module_spec(provider, kind)
        declared = set(spec.variable_names())
        if declared <= names and (best is None or len(declared) > len(best.variables)):
            best = spec
    return best

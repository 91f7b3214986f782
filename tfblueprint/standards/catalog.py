"""
Catalog of the standard values shared by every generated module.

Providers, environments, module kinds, provider limits and the fixed
sets that variable validation checks against all live here so the
templates, the validator and the guides agree on one definition.
"""

from enum import Enum
from typing import Dict, List, Tuple


class Provider(str, Enum):
    """Supported cloud providers."""
    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"


class ModuleKind(str, Enum):
    """Kinds of compute environment a module can provision."""
    VM = "vm"
    KUBERNETES = "kubernetes"
    CONTAINER = "container"


ENVIRONMENTS: Tuple[str, ...] = ("dev", "staging", "prod", "qa")

PROVIDER_DISPLAY_NAMES: Dict[Provider, str] = {
    Provider.AWS: "Amazon Web Services",
    Provider.AZURE: "Microsoft Azure",
    Provider.GCP: "Google Cloud Platform",
}

MODULE_DISPLAY_NAMES: Dict[ModuleKind, str] = {
    ModuleKind.VM: "VM / Auto-Scaling Environment",
    ModuleKind.KUBERNETES: "Managed Kubernetes Cluster",
    ModuleKind.CONTAINER: "Container Service",
}

# Terraform provider source and version constraints
PROVIDER_SOURCES: Dict[Provider, Tuple[str, str, str]] = {
    Provider.AWS: ("aws", "hashicorp/aws", "~> 5.40"),
    Provider.AZURE: ("azurerm", "hashicorp/azurerm", "~> 3.100"),
    Provider.GCP: ("google", "hashicorp/google", "~> 5.20"),
}

TERRAFORM_REQUIRED_VERSION = ">= 1.5.0"

DEFAULT_REGIONS: Dict[Provider, str] = {
    Provider.AWS: "us-east-1",
    Provider.AZURE: "eastus",
    Provider.GCP: "us-central1",
}

# Naming patterns
PROJECT_NAME_PATTERN = r"^[a-z0-9-]+$"
EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
KUBERNETES_VERSION_PATTERN = r"^1\.[0-9]+$"
HEALTH_CHECK_PATH_PATTERN = r"^/"

# CloudWatch Logs only accepts these retention periods
AWS_LOG_RETENTION_DAYS: Tuple[int, ...] = (
    1, 3, 5, 7, 14, 30, 60, 90, 120, 150, 180, 365, 400, 545,
    731, 1096, 1827, 2192, 2557, 2922, 3288, 3653,
)

# Log Analytics workspace and GCP log bucket accept a range instead
AZURE_LOG_RETENTION_RANGE: Tuple[int, int] = (30, 730)
GCP_LOG_RETENTION_RANGE: Tuple[int, int] = (1, 3650)

AWS_EKS_LOG_TYPES: Tuple[str, ...] = (
    "api", "audit", "authenticator", "controllerManager", "scheduler",
)

ECS_LAUNCH_TYPES: Tuple[str, ...] = ("FARGATE", "EC2")
FARGATE_CPU_UNITS: Tuple[int, ...] = (256, 512, 1024, 2048, 4096)

# Maximum resource name lengths enforced by the providers
NAME_LENGTH_LIMITS: Dict[Provider, int] = {
    Provider.AWS: 64,
    Provider.AZURE: 80,
    Provider.GCP: 63,
}

# Some resources are stricter than the provider default
RESOURCE_NAME_LIMITS: Dict[Tuple[Provider, str], int] = {
    (Provider.AWS, "alb"): 32,
    (Provider.AWS, "target-group"): 32,
    (Provider.AWS, "iam-role"): 64,
    (Provider.AZURE, "vmss"): 64,
    (Provider.AZURE, "container-app"): 32,
    (Provider.GCP, "cloud-run"): 49,
}


def module_catalog() -> List[Tuple[Provider, ModuleKind]]:
    """Return every (provider, kind) pair that ships a template."""
    return [(provider, kind) for provider in Provider for kind in ModuleKind]


def parse_provider(value: str) -> Provider:
    """
    Convert a user supplied string to a Provider.

    Raises:
        ValueError: If the provider is not supported
    """
    try:
        return Provider(value.strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in Provider)
        raise ValueError(f"Unknown provider '{value}' (expected one of: {allowed})")


def parse_module_kind(value: str) -> ModuleKind:
    """
    Convert a user supplied string to a ModuleKind.

    Raises:
        ValueError: If the kind is not supported
    """
    try:
        return ModuleKind(value.strip().lower())
    except ValueError:
        allowed = ", ".join(k.value for k in ModuleKind)
        raise ValueError(f"Unknown module kind '{value}' (expected one of: {allowed})")

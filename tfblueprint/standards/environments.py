"""
Per-environment sizing profiles.

Profiles feed the example .tfvars files written next to every generated
module and the example section of the guides.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .catalog import AZURE_LOG_RETENTION_RANGE, ENVIRONMENTS, ModuleKind, Provider

INSTANCE_TYPES: Dict[Provider, Dict[str, str]] = {
    Provider.AWS: {"small": "t3.micro", "medium": "t3.small", "large": "t3.large"},
    Provider.AZURE: {"small": "Standard_B1s", "medium": "Standard_B2s", "large": "Standard_D2s_v3"},
    Provider.GCP: {"small": "e2-micro", "medium": "e2-small", "large": "e2-standard-2"},
}


@dataclass(frozen=True)
class EnvironmentProfile:
    """Sizing and retention defaults for one environment."""
    name: str
    size: str
    min_size: int
    desired_capacity: int
    max_size: int
    log_retention_days: int
    enable_monitoring: bool
    container_cpu: int = 256
    container_memory: int = 512

    def instance_type(self, provider: Provider) -> str:
        return INSTANCE_TYPES[provider][self.size]

    def retention_for(self, provider: Provider) -> int:
        """Retention in days, raised to the provider minimum when needed."""
        if provider == Provider.AZURE:
            low, high = AZURE_LOG_RETENTION_RANGE
            return min(max(self.log_retention_days, low), high)
        return self.log_retention_days

    def variable_values(self, provider: Provider, kind: ModuleKind) -> Dict[str, Any]:
        """
        Map the profile onto the variable names of a module kind.

        Returns:
            Dict of variable name to value
        """
        values: Dict[str, Any] = {
            "environment": self.name,
            "log_retention_days": self.retention_for(provider),
        }

        if kind == ModuleKind.VM:
            values.update({
                "instance_type": self.instance_type(provider),
                "min_size": self.min_size,
                "desired_capacity": self.desired_capacity,
                "max_size": self.max_size,
                "enable_monitoring": self.enable_monitoring,
            })
        elif kind == ModuleKind.KUBERNETES:
            values.update({
                "node_instance_type": self.instance_type(provider),
                "node_min_size": self.min_size,
                "node_desired_size": self.desired_capacity,
                "node_max_size": self.max_size,
            })
        elif kind == ModuleKind.CONTAINER:
            values.update({
                "min_count": self.min_size,
                "desired_count": self.desired_capacity,
                "max_count": self.max_size,
                "cpu": self.container_cpu,
                "memory": self.container_memory,
            })

        return values


PROFILES: Dict[str, EnvironmentProfile] = {
    "dev": EnvironmentProfile(
        name="dev", size="small", min_size=1, desired_capacity=1, max_size=2,
        log_retention_days=7, enable_monitoring=False,
    ),
    "qa": EnvironmentProfile(
        name="qa", size="small", min_size=1, desired_capacity=1, max_size=2,
        log_retention_days=14, enable_monitoring=False,
    ),
    "staging": EnvironmentProfile(
        name="staging", size="medium", min_size=1, desired_capacity=2, max_size=3,
        log_retention_days=30, enable_monitoring=True,
        container_cpu=512, container_memory=1024,
    ),
    "prod": EnvironmentProfile(
        name="prod", size="large", min_size=2, desired_capacity=3, max_size=6,
        log_retention_days=90, enable_monitoring=True,
        container_cpu=1024, container_memory=2048,
    ),
}


def get_profile(environment: str) -> EnvironmentProfile:
    """
    Look up the profile of an environment.

    Raises:
        ValueError: If the environment is not a standard one
    """
    if environment not in PROFILES:
        raise ValueError(
            f"Unknown environment '{environment}' (expected one of: {', '.join(ENVIRONMENTS)})"
        )
    return PROFILES[environment]

"""
Resource naming convention.

Every resource is named ``{project}-{environment}-{component}``. The
generated templates compute the same prefix in a ``locals`` block, and
this module reproduces it so names can be previewed and checked against
provider limits before anything is planned.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from .catalog import (
    ENVIRONMENTS,
    NAME_LENGTH_LIMITS,
    PROJECT_NAME_PATTERN,
    RESOURCE_NAME_LIMITS,
    Provider,
)

# Component suffixes per resource category, shared by templates and guides
COMPONENT_SUFFIXES: Dict[str, str] = {
    "auto-scaling group": "asg",
    "launch template": "lt",
    "load balancer": "alb",
    "target group": "tg",
    "security group": "sg",
    "iam role": "role",
    "instance profile": "profile",
    "log group": "logs",
    "kubernetes cluster": "cluster",
    "node pool": "nodes",
    "container cluster": "ecs",
    "container service": "svc",
    "task definition": "task",
    "scale-up alarm": "cpu-high",
    "scale-down alarm": "cpu-low",
}

# Categories with a stricter resource-specific length limit
RESOURCE_CATEGORIES: Dict[str, str] = {
    "load balancer": "alb",
    "target group": "target-group",
    "iam role": "iam-role",
}

_PROJECT_RE = re.compile(PROJECT_NAME_PATTERN)


@dataclass
class NamingConvention:
    """
    Builds standard resource names for one project/environment pair.

    Attributes:
        project: Project name (lowercase alphanumerics and hyphens)
        environment: One of the standard environments
        provider: Target cloud provider, used for length limits
    """
    project: str
    environment: str
    provider: Provider = Provider.AWS

    def __post_init__(self):
        if not _PROJECT_RE.match(self.project or ""):
            raise ValueError(
                f"Invalid project name '{self.project}': only lowercase letters, "
                "digits and hyphens are allowed"
            )
        if self.environment not in ENVIRONMENTS:
            raise ValueError(
                f"Invalid environment '{self.environment}': expected one of "
                f"{', '.join(ENVIRONMENTS)}"
            )

    @property
    def prefix(self) -> str:
        """Name prefix shared by every resource of the environment."""
        return f"{self.project}-{self.environment}"

    def limit_for(self, resource: Optional[str] = None) -> int:
        """Maximum name length for a resource category on this provider."""
        if resource is not None:
            specific = RESOURCE_NAME_LIMITS.get((self.provider, resource))
            if specific is not None:
                return specific
        return NAME_LENGTH_LIMITS[self.provider]

    def name(self, component: str, resource: Optional[str] = None) -> str:
        """
        Build the standard name for a component.

        Args:
            component: Component suffix (e.g. "asg", "alb")
            resource: Optional resource category with a stricter length limit

        Returns:
            ``{project}-{environment}-{component}``

        Raises:
            ValueError: If the name exceeds the provider limit
        """
        component = component.strip().lower()
        name = f"{self.prefix}-{component}" if component else self.prefix
        limit = self.limit_for(resource)
        if len(name) > limit:
            raise ValueError(
                f"Resource name '{name}' is {len(name)} characters, "
                f"limit for {self.provider.value} is {limit}"
            )
        return name

    def compact_name(self, component: str, max_length: int = 24) -> str:
        """
        Build a name without separators for resources that reject hyphens
        (Azure storage accounts, container registries).
        """
        name = re.sub(r"[^a-z0-9]", "", f"{self.project}{self.environment}{component}".lower())
        return name[:max_length]

    def standard_names(self) -> Dict[str, str]:
        """Return the standard name of every component category."""
        names = {}
        for category, suffix in COMPONENT_SUFFIXES.items():
            try:
                names[category] = self.name(suffix)
            except ValueError:
                names[category] = ""
        return names

    def check_names(self) -> List[str]:
        """
        List naming problems for every component category.

        Returns:
            Human-readable messages, empty when all names fit
        """
        problems = []
        for category, suffix in COMPONENT_SUFFIXES.items():
            resource = RESOURCE_CATEGORIES.get(category)
            try:
                self.name(suffix, resource)
            except ValueError as e:
                problems.append(f"{category}: {e}")
        return problems

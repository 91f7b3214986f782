"""
Standard tags (AWS, Azure) and labels (GCP).

Every taggable resource carries the same mandatory set. GCP labels have a
stricter charset than tags, so values are normalized the same way the
generated ``locals`` block does it.
"""

import re
from typing import Dict, List, Optional, Tuple

from .catalog import Provider

# (tag key, description, source variable)
MANDATORY_TAGS: List[Tuple[str, str, str]] = [
    ("Project", "Project the resource belongs to", "project_name"),
    ("Environment", "Deployment environment", "environment"),
    ("Owner", "Contact email of the owning team", "owner_email"),
    ("CostCenter", "Cost allocation code", "cost_center"),
    ("ManagedBy", "Always 'Terraform'", ""),
]

MANAGED_BY = "Terraform"

GCP_LABEL_MAX_LENGTH = 63
_GCP_LABEL_INVALID = re.compile(r"[^a-z0-9_-]")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def standard_tags(
    project_name: str,
    environment: str,
    owner_email: str,
    cost_center: str = "",
    additional: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """
    Build the tag map applied to AWS and Azure resources.

    Additional tags are merged last but can't override mandatory keys.
    """
    tags = dict(additional or {})
    tags.update({
        "Project": project_name,
        "Environment": environment,
        "Owner": owner_email,
        "CostCenter": cost_center,
        "ManagedBy": MANAGED_BY,
    })
    return tags


def gcp_label_key(key: str) -> str:
    """Convert a tag key like 'CostCenter' into a GCP label key 'cost_center'."""
    snake = _CAMEL_BOUNDARY.sub("_", key).lower()
    return _GCP_LABEL_INVALID.sub("_", snake)[:GCP_LABEL_MAX_LENGTH]


def gcp_label_value(value: str) -> str:
    """
    Normalize a value for use as a GCP label.

    Mirrors the template: lowercase, '@' becomes '_at_', dots become
    hyphens, anything else outside [a-z0-9_-] becomes an underscore.
    """
    normalized = value.lower().replace("@", "_at_").replace(".", "-")
    return _GCP_LABEL_INVALID.sub("_", normalized)[:GCP_LABEL_MAX_LENGTH]


def standard_labels(
    project_name: str,
    environment: str,
    owner_email: str,
    cost_center: str = "",
    additional: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """Build the label map applied to GCP resources."""
    tags = standard_tags(project_name, environment, owner_email, cost_center, additional)
    return {gcp_label_key(k): gcp_label_value(v) for k, v in tags.items()}


def tags_for(provider: Provider, **kwargs) -> Dict[str, str]:
    """Return tags or labels depending on the provider."""
    if provider == Provider.GCP:
        return standard_labels(**kwargs)
    return standard_tags(**kwargs)

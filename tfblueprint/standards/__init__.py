"""
Standardization rules shared by templates, validation and guides.

- Catalog of providers, environments and module kinds
- Naming convention
- Tagging standard
- Per-environment sizing profiles
"""

from .catalog import (
    ENVIRONMENTS,
    ModuleKind,
    Provider,
    module_catalog,
    parse_module_kind,
    parse_provider,
)
from .environments import PROFILES, EnvironmentProfile, get_profile
from .naming import COMPONENT_SUFFIXES, NamingConvention
from .tagging import MANDATORY_TAGS, standard_labels, standard_tags, tags_for

__all__ = [
    "ENVIRONMENTS",
    "ModuleKind",
    "Provider",
    "module_catalog",
    "parse_module_kind",
    "parse_provider",
    "PROFILES",
    "EnvironmentProfile",
    "get_profile",
    "COMPONENT_SUFFIXES",
    "NamingConvention",
    "MANDATORY_TAGS",
    "standard_labels",
    "standard_tags",
    "tags_for",
]

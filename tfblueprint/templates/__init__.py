"""
Terraform module templates.

This module renders the standard environment modules:
- Module catalog (variables and outputs per provider/kind)
- Jinja2 rendering of main.tf, variables.tf and outputs.tf
- VM bootstrap script
"""

from .modules import (
    CAPACITY_VARIABLES,
    ModuleSpec,
    OutputSpec,
    TemplateError,
    VariableSpec,
    find_module_spec,
    get_module_spec,
)
from .renderer import ModuleRenderer
from .bootstrap import BootstrapScript, TEMPLATE_VARIABLES, default_log_destination

__all__ = [
    "CAPACITY_VARIABLES",
    "ModuleSpec",
    "OutputSpec",
    "TemplateError",
    "VariableSpec",
    "find_module_spec",
    "get_module_spec",
    "ModuleRenderer",
    "BootstrapScript",
    "TEMPLATE_VARIABLES",
    "default_log_destination",
]

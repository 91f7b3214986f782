"""
Core Terraform functionality for tfblueprint.

This module provides the business logic for working with Terraform:
- Parsing Terraform configuration and .tfvars files
- Executing Terraform commands
- Managing workspaces
"""

from .terraform_parser import TerraformParser, TerraformVariable, TerraformOutput
from .terraform_runner import TerraformRunner, CommandResult, parse_output_json
from .workspace_manager import WorkspaceManager, WorkspaceInfo
from .tfvars_handler import TfvarsHandler

__all__ = [
    "TerraformParser",
    "TerraformVariable",
    "TerraformOutput",
    "TerraformRunner",
    "CommandResult",
    "parse_output_json",
    "WorkspaceManager",
    "WorkspaceInfo",
    "TfvarsHandler",
]

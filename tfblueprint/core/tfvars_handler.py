"""
Handler for .tfvars files.

Provides parsing and writing of Terraform variable definition files and
builds the example file for each standard environment.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..standards.catalog import DEFAULT_REGIONS, ENVIRONMENTS, Provider
from ..standards.environments import get_profile
from ..utils.hcl import to_hcl

logger = logging.getLogger(__name__)

# Values for required variables that have no sensible default.
# They satisfy validation but must be replaced before applying.
PLACEHOLDERS: Dict[str, Any] = {
    "vpc_id": "vpc-0123456789abcdef0",
    "public_subnet_ids": ["subnet-0aaaaaaaaaaaaaaa1", "subnet-0aaaaaaaaaaaaaaa2"],
    "private_subnet_ids": ["subnet-0bbbbbbbbbbbbbbb1", "subnet-0bbbbbbbbbbbbbbb2"],
    "subnet_ids": ["subnet-0bbbbbbbbbbbbbbb1", "subnet-0bbbbbbbbbbbbbbb2"],
    "subnet_id": "/subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/network-rg/providers/Microsoft.Network/virtualNetworks/main-vnet/subnets/app",
    "admin_ssh_public_key": "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIReplaceWithYourKey admin@example.com",
    "container_image": "nginx:1.27",
    "gcp_project_id": "my-gcp-project",
}


class TfvarsHandler:
    """Parse and write Terraform .tfvars files."""

    @staticmethod
    def parse_tfvars(file_path: str) -> Dict[str, Any]:
        """
        Parse a .tfvars file and return variable name-value pairs.

        Args:
            file_path: Path to the .tfvars file.

        Returns:
            Dict of variable name to value.

        Raises:
            FileNotFoundError: If file does not exist.
            ValueError: If file cannot be parsed.
        """
        import hcl2

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                parsed = hcl2.load(f)
        except FileNotFoundError:
            raise
        except Exception as e:
            raise ValueError(f"Failed to parse tfvars file {file_path}: {e}")

        logger.debug(f"Parsed {len(parsed)} values from {file_path}")
        return dict(parsed)

    @staticmethod
    def format_tfvars(
        values: Dict[str, Any],
        header: Optional[str] = None,
        order: Optional[Iterable[str]] = None,
        sensitive_names: Optional[set] = None,
    ) -> str:
        """
        Format variable values as .tfvars content.

        Args:
            values: Dict of variable name to value.
            header: Optional comment placed at the top.
            order: Variable names in output order; others follow sorted.
            sensitive_names: Variable names to leave out.

        Returns:
            File content ending with a newline.
        """
        sensitive_names = sensitive_names or set()
        names: List[str] = [n for n in (order or []) if n in values]
        names.extend(sorted(n for n in values if n not in names))
        names = [n for n in names if n not in sensitive_names]

        lines = []
        if header:
            lines.extend(f"# {line}".rstrip() for line in header.splitlines())
            lines.append("")

        width = max((len(n) for n in names), default=0)
        for name in names:
            lines.append(f"{name.ljust(width)} = {TfvarsHandler._format_value(values[name])}")

        return "\n".join(lines) + "\n" if lines else ""

    @staticmethod
    def write_tfvars(
        file_path: str,
        values: Dict[str, Any],
        sensitive_names: Optional[set] = None,
        header: Optional[str] = None,
        order: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Write variable values to a .tfvars file in HCL format.

        Sensitive variables are excluded from the output.

        Args:
            file_path: Path to write the .tfvars file.
            values: Dict of variable name to value.
            sensitive_names: Set of variable names to exclude.
            header: Optional comment placed at the top.
            order: Variable names in output order.
        """
        content = TfvarsHandler.format_tfvars(values, header, order, sensitive_names)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(content)

    @staticmethod
    def example_values(
        module_spec,
        environment: str,
        project_name: str,
        owner_email: str,
        cost_center: str = "engineering",
        region: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Build example values for a module and environment.

        Profile values are applied to the variables the module declares;
        remaining required variables get placeholders.

        Args:
            module_spec: ModuleSpec to build values for
            environment: One of the standard environments
            project_name: Project name
            owner_email: Owner email
            cost_center: Cost center tag value
            region: Region override, provider default when None

        Returns:
            Dict of variable name to value, in declaration order
        """
        provider = Provider(module_spec.provider)
        profile = get_profile(environment)
        candidates: Dict[str, Any] = {
            "project_name": project_name,
            "owner_email": owner_email,
            "cost_center": cost_center,
            "region": region or DEFAULT_REGIONS[provider],
        }
        candidates.update(profile.variable_values(provider, module_spec.kind))

        values: Dict[str, Any] = {}
        for var in module_spec.variables:
            if var.name in candidates:
                values[var.name] = candidates[var.name]
            elif var.required and var.name in PLACEHOLDERS:
                values[var.name] = PLACEHOLDERS[var.name]
            elif var.required:
                logger.warning(f"No example value for required variable '{var.name}'")
        return values

    @staticmethod
    def write_environment_files(
        module_spec,
        output_dir: str,
        project_name: str,
        owner_email: str,
        cost_center: str = "engineering",
        region: Optional[str] = None,
        environments: Iterable[str] = ENVIRONMENTS,
    ) -> List[Path]:
        """
        Write ``<output_dir>/<environment>.tfvars`` for each environment.

        Returns:
            Paths written
        """
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        written = []
        order = module_spec.variable_names()

        for environment in environments:
            values = TfvarsHandler.example_values(
                module_spec, environment, project_name, owner_email, cost_center, region,
            )
            path = out / f"{environment}.tfvars"
            header = (
                f"{module_spec.name}: {environment} environment\n"
                f"Usage: terraform plan -var-file=environments/{environment}.tfvars"
            )
            TfvarsHandler.write_tfvars(
                str(path), values, module_spec.sensitive_names(), header, order,
            )
            written.append(path)

        logger.info(f"Wrote {len(written)} environment files to {out}")
        return written

    @staticmethod
    def _format_value(value: Any) -> str:
        """Format a Python value as an HCL literal."""
        return to_hcl(value)

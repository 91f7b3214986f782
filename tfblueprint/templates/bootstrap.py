"""
VM bootstrap script.

The script is written next to the module and loaded by Terraform with
``templatefile()``, which substitutes four values (log destination,
application port, environment, project name) and appends the free-text
``custom_script`` fragment verbatim. ``BootstrapScript.render`` performs
the same substitution locally so a script can be previewed or tested
without Terraform.
"""

import logging
import re
from typing import Dict

from ..standards.catalog import PROVIDER_DISPLAY_NAMES, Provider
from ..standards.naming import COMPONENT_SUFFIXES
from .renderer import get_environment

logger = logging.getLogger(__name__)

TEMPLATE_VARIABLES = (
    "log_group_name",
    "application_port",
    "environment",
    "project_name",
    "custom_script",
)

# (os family, application user)
_OS_PROFILES: Dict[Provider, tuple] = {
    Provider.AWS: ("amazon", "ec2-user"),
    Provider.AZURE: ("debian", "app"),
    Provider.GCP: ("debian", "app"),
}

# Escaped sequences first, then interpolations
_TEMPLATE_RE = re.compile(r"\$\$\{|%%\{|\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class BootstrapScript:
    """Bootstrap script for one provider."""

    def __init__(self, provider: Provider):
        self.provider = Provider(provider)

    def source(self) -> str:
        """
        Return the templatefile() source written next to the module.

        Contains ``${...}`` placeholders for TEMPLATE_VARIABLES.
        """
        os_family, app_user = _OS_PROFILES[self.provider]
        template = get_environment().get_template("bootstrap.sh.j2")
        return template.render(
            provider=self.provider.value,
            provider_title=PROVIDER_DISPLAY_NAMES[self.provider],
            os_family=os_family,
            app_user=app_user,
        )

    def render(
        self,
        log_group_name: str,
        application_port: int,
        environment: str,
        project_name: str,
        custom_script: str = "",
    ) -> str:
        """
        Substitute the values the way Terraform's templatefile() does.

        Args:
            log_group_name: Log destination; empty disables the logging agent
            application_port: Port Nginx proxies to
            environment: Deployment environment
            project_name: Project name
            custom_script: Fragment appended verbatim before the final status

        Returns:
            The final shell script

        Raises:
            KeyError: If the source references an unknown placeholder
        """
        values = {
            "log_group_name": log_group_name,
            "application_port": str(application_port),
            "environment": environment,
            "project_name": project_name,
            "custom_script": custom_script or "",
        }
        logger.debug(f"Rendering {self.provider.value} bootstrap script for {project_name}-{environment}")
        return substitute(self.source(), values)


def substitute(source: str, values: Dict[str, str]) -> str:
    """
    Replace ``${name}`` placeholders and unescape ``$${`` / ``%%{``.

    Raises:
        KeyError: If a placeholder has no value
    """
    def _replace(match):
        token = match.group(0)
        if token == "$${":
            return "${"
        if token == "%%{":
            return "%{"
        name = match.group(1)
        if name not in values:
            raise KeyError(f"No value for template variable '{name}'")
        return values[name]

    return _TEMPLATE_RE.sub(_replace, source)


def default_log_destination(provider: Provider, project_name: str, environment: str) -> str:
    """
    Log destination name the generated VM module passes to the script.

    AWS uses a CloudWatch log group path, Azure and GCP a resource name.
    """
    if Provider(provider) == Provider.AWS:
        return f"/{project_name}/{environment}/application"
    return f"{project_name}-{environment}-{COMPONENT_SUFFIXES['log group']}"

"""
Markdown standardization guides.

Two guides are produced: a module guide (written as README.md next to a
generated module) and a multi-cloud standards guide covering naming,
tagging and environment profiles across AWS, Azure and GCP.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..core.tfvars_handler import TfvarsHandler
from ..standards.catalog import (
    DEFAULT_REGIONS,
    ENVIRONMENTS,
    MODULE_DISPLAY_NAMES,
    NAME_LENGTH_LIMITS,
    PROJECT_NAME_PATTERN,
    PROVIDER_DISPLAY_NAMES,
    ModuleKind,
    Provider,
    module_catalog,
)
from ..standards.environments import PROFILES
from ..standards.naming import COMPONENT_SUFFIXES, RESOURCE_CATEGORIES, NamingConvention
from ..standards.tagging import MANDATORY_TAGS, gcp_label_key, tags_for
from ..templates.modules import get_module_spec
from ..templates.renderer import get_environment
from ..utils.hcl import to_hcl

logger = logging.getLogger(__name__)

DEFAULT_OWNER = "platform-team@example.com"


def _cell(value: Any) -> str:
    """Make a value safe for a Markdown table cell."""
    text = str(value).replace("\n", " ")
    return text.replace("|", "\\|")


def _code(value: Any) -> str:
    return f"`{_cell(value)}`"


class GuideBuilder:
    """
    Builds the Markdown guide of one module.

    Example:
        >>> guide = GuideBuilder(Provider.AWS, ModuleKind.VM, project_name="webapp")
        >>> markdown = guide.render()
    """

    def __init__(
        self,
        provider: Union[Provider, str],
        kind: Union[ModuleKind, str],
        project_name: str = "myapp",
        owner_email: str = DEFAULT_OWNER,
        cost_center: str = "engineering",
        region: Optional[str] = None,
    ):
        self.spec = get_module_spec(provider, kind)
        self.project_name = project_name
        self.owner_email = owner_email
        self.cost_center = cost_center
        self.region = region or DEFAULT_REGIONS[self.spec.provider]

    def naming_rows(self, environment: str = "prod") -> List[Tuple[str, str, int]]:
        """
        Example names per resource category.

        Returns:
            (category, example name, length limit) tuples
        """
        convention = NamingConvention(self.project_name, environment, self.spec.provider)
        names = convention.standard_names()
        return [
            (category, names[category], convention.limit_for(RESOURCE_CATEGORIES.get(category)))
            for category in COMPONENT_SUFFIXES
        ]

    def tag_rows(self, environment: str = "prod") -> List[Tuple[str, str, str]]:
        """
        Mandatory tags (labels on GCP) with example values.

        Returns:
            (key, description, example value) tuples
        """
        tags = tags_for(
            self.spec.provider,
            project_name=self.project_name,
            environment=environment,
            owner_email=self.owner_email,
            cost_center=self.cost_center,
        )
        rows = []
        for key, description, _ in MANDATORY_TAGS:
            if self.spec.provider == Provider.GCP:
                key = gcp_label_key(key)
            rows.append((key, description, tags[key]))
        return rows

    def variable_rows(self) -> List[Dict[str, str]]:
        """Variable catalog rows, formatted for a Markdown table."""
        rows = []
        for var in self.spec.variables:
            if var.required:
                default = "-"
            elif var.sensitive:
                default = "(sensitive)"
            else:
                default = _code(to_hcl(var.default))
            rows.append({
                "name": _code(var.name),
                "type": _code(var.type),
                "default": default,
                "required": "yes" if var.required else "no",
                "description": _cell(var.description),
                "validation": _cell(" ".join(rule.error_message for rule in var.rules)),
            })
        return rows

    def output_rows(self) -> List[Dict[str, str]]:
        """Output catalog rows, formatted for a Markdown table."""
        return [
            {
                "name": _code(output.name),
                "description": _cell(output.description),
                "sensitive": "yes" if output.sensitive else "no",
            }
            for output in self.spec.outputs
        ]

    def tfvars_examples(self) -> Dict[str, str]:
        """Example .tfvars content per standard environment."""
        order = self.spec.variable_names()
        examples = {}
        for environment in ENVIRONMENTS:
            values = TfvarsHandler.example_values(
                self.spec, environment, self.project_name,
                self.owner_email, self.cost_center, self.region,
            )
            examples[environment] = TfvarsHandler.format_tfvars(
                values, order=order, sensitive_names=self.spec.sensitive_names(),
            )
        return examples

    def render(self) -> str:
        """Render the guide as Markdown."""
        template = get_environment().get_template("guide.md.j2")
        return template.render(
            spec=self.spec,
            provider_title=PROVIDER_DISPLAY_NAMES[self.spec.provider],
            module_title=MODULE_DISPLAY_NAMES[self.spec.kind],
            is_gcp=self.spec.provider == Provider.GCP,
            project_name=self.project_name,
            name_pattern=PROJECT_NAME_PATTERN,
            naming_rows=self.naming_rows(),
            tag_rows=self.tag_rows(),
            variable_rows=self.variable_rows(),
            output_rows=self.output_rows(),
            examples=self.tfvars_examples(),
            environments=ENVIRONMENTS,
        )

    def write(self, path: Union[str, Path]) -> Path:
        """Write the guide to a file, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(), encoding="utf-8")
        logger.info(f"Wrote {self.spec.name} guide to {path}")
        return path


def standards_guide(project_name: str = "myapp", owner_email: str = DEFAULT_OWNER,
                    cost_center: str = "engineering") -> str:
    """
    Render the multi-cloud standards guide.

    Args:
        project_name: Project used in the examples
        owner_email: Owner used in the tag examples
        cost_center: Cost center used in the tag examples

    Returns:
        Markdown text
    """
    providers = []
    for provider in Provider:
        convention = NamingConvention(project_name, "prod", provider)
        tags = tags_for(
            provider,
            project_name=project_name,
            environment="prod",
            owner_email=owner_email,
            cost_center=cost_center,
        )
        providers.append({
            "title": PROVIDER_DISPLAY_NAMES[provider],
            "limit": NAME_LENGTH_LIMITS[provider],
            "example": convention.name(COMPONENT_SUFFIXES["load balancer"]),
            "tags": ", ".join(f"{_code(k)} = {_code(v)}" for k, v in tags.items()),
            "metadata": "labels" if provider == Provider.GCP else "tags",
        })

    modules = []
    for provider, kind in module_catalog():
        spec = get_module_spec(provider, kind)
        modules.append({
            "name": _code(spec.name),
            "provider": PROVIDER_DISPLAY_NAMES[provider],
            "kind": MODULE_DISPLAY_NAMES[kind],
            "required": ", ".join(_code(v.name) for v in spec.variables if v.required),
        })

    template = get_environment().get_template("standards.md.j2")
    return template.render(
        project_name=project_name,
        name_pattern=PROJECT_NAME_PATTERN,
        suffixes=COMPONENT_SUFFIXES,
        mandatory_tags=MANDATORY_TAGS,
        providers=providers,
        modules=modules,
        profiles=[PROFILES[env] for env in ENVIRONMENTS],
    )

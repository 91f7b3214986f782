"""
Module rendering.

Renders ``main.tf``, ``variables.tf``, ``outputs.tf`` and the bootstrap
script of a module from the Jinja2 templates shipped in ``files/``.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from ..standards.catalog import (
    MODULE_DISPLAY_NAMES,
    PROVIDER_DISPLAY_NAMES,
    PROVIDER_SOURCES,
    TERRAFORM_REQUIRED_VERSION,
    ModuleKind,
    Provider,
)
from ..standards.naming import COMPONENT_SUFFIXES
from ..utils.hcl import escape_string, to_hcl
from .modules import ModuleSpec, TemplateError, get_module_spec

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "files"

GENERATED_HEADER = "# Generated by tfblueprint. Edit the tfvars files, not this module."


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    """Return the shared Jinja2 environment."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.filters["hcl"] = to_hcl
    env.filters["hcl_escape"] = escape_string
    return env


class ModuleRenderer:
    """
    Renders the files of one module.

    Example:
        >>> renderer = ModuleRenderer(Provider.AWS, ModuleKind.VM)
        >>> files = renderer.render()
        >>> sorted(files)
        ['main.tf', 'outputs.tf', 'user_data.sh', 'variables.tf']
    """

    def __init__(self, provider: Union[Provider, str], kind: Union[ModuleKind, str]):
        self.spec: ModuleSpec = get_module_spec(provider, kind)

    @property
    def provider(self) -> Provider:
        return self.spec.provider

    @property
    def kind(self) -> ModuleKind:
        return self.spec.kind

    def _context(self) -> dict:
        local_name, source, version = PROVIDER_SOURCES[self.provider]
        return {
            "spec": self.spec,
            "header": GENERATED_HEADER,
            "provider": self.provider.value,
            "provider_title": PROVIDER_DISPLAY_NAMES[self.provider],
            "module_title": MODULE_DISPLAY_NAMES[self.kind],
            "provider_local_name": local_name,
            "provider_source": source,
            "provider_version": version,
            "required_version": TERRAFORM_REQUIRED_VERSION,
            "suffix": COMPONENT_SUFFIXES,
            "bootstrap_file": self.spec.bootstrap_file,
        }

    def _render(self, template_name: str) -> str:
        try:
            template = get_environment().get_template(template_name)
        except TemplateNotFound:
            raise TemplateError(f"Template not found: {template_name}")
        return template.render(**self._context())

    def render_main(self) -> str:
        return self._render(self.spec.main_template)

    def render_variables(self) -> str:
        return self._render("variables.tf.j2")

    def render_outputs(self) -> str:
        return self._render("outputs.tf.j2")

    def render(self) -> Dict[str, str]:
        """
        Render every file of the module.

        Returns:
            Dict of file name to content
        """
        files = {
            "main.tf": self.render_main(),
            "variables.tf": self.render_variables(),
            "outputs.tf": self.render_outputs(),
        }
        if self.spec.bootstrap_file:
            # Imported here, bootstrap imports get_environment from this module
            from .bootstrap import BootstrapScript
            files[self.spec.bootstrap_file] = BootstrapScript(self.provider).source()
        return files

    def write(self, output_dir: Union[str, Path], overwrite: bool = False) -> List[Path]:
        """
        Render and write the module files.

        Args:
            output_dir: Directory to write into (created if missing)
            overwrite: Replace existing files

        Returns:
            Paths written

        Raises:
            FileExistsError: If a file exists and overwrite is False
        """
        output_dir = Path(output_dir)
        files = self.render()

        if not overwrite:
            existing = [name for name in files if (output_dir / name).exists()]
            if existing:
                raise FileExistsError(
                    f"Refusing to overwrite existing files in {output_dir}: {', '.join(existing)}"
                )

        output_dir.mkdir(parents=True, exist_ok=True)
        written = []
        for name, content in files.items():
            path = output_dir / name
            path.write_text(content, encoding="utf-8")
            if name.endswith(".sh"):
                path.chmod(0o755)
            written.append(path)

        logger.info(f"Wrote {self.spec.name} module to {output_dir} ({len(written)} files)")
        return written


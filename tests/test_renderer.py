"""Tests for module rendering."""

import os
import stat

import pytest

from tfblueprint.core.terraform_parser import TerraformParser
from tfblueprint.standards.catalog import ModuleKind, Provider, module_catalog
from tfblueprint.templates import (
    ModuleRenderer,
    TemplateError,
    find_module_spec,
    get_module_spec,
)
from tfblueprint.templates.renderer import GENERATED_HEADER


# ---------------------------------------------------------------------------
# Module specs
# ---------------------------------------------------------------------------

class TestModuleSpec:
    def test_name_and_template(self):
        spec = get_module_spec(Provider.AZURE, ModuleKind.KUBERNETES)
        assert spec.name == "azure-kubernetes-environment"
        assert spec.main_template == "azure/kubernetes/main.tf.j2"

    def test_accepts_strings(self):
        spec = get_module_spec("gcp", "container")
        assert spec.provider == Provider.GCP
        assert spec.kind == ModuleKind.CONTAINER

    def test_unknown_pair(self):
        with pytest.raises(TemplateError):
            get_module_spec("aws", "lambda")

    @pytest.mark.parametrize("provider,kind", module_catalog())
    def test_common_variables_present(self, provider, kind):
        names = get_module_spec(provider, kind).variable_names()
        for name in ("project_name", "environment", "owner_email", "cost_center",
                     "region", "log_retention_days", "additional_tags"):
            assert name in names

    def test_gcp_requires_project_id(self):
        spec = get_module_spec(Provider.GCP, ModuleKind.VM)
        assert spec.variable("gcp_project_id").required
        assert get_module_spec(Provider.AWS, ModuleKind.VM).variable("gcp_project_id") is None

    def test_bootstrap_only_for_vm(self):
        assert get_module_spec(Provider.AWS, ModuleKind.VM).bootstrap_file == "user_data.sh"
        assert get_module_spec(Provider.AZURE, ModuleKind.VM).bootstrap_file == "custom_data.sh"
        assert get_module_spec(Provider.GCP, ModuleKind.VM).bootstrap_file == "startup.sh"
        assert get_module_spec(Provider.AWS, ModuleKind.KUBERNETES).bootstrap_file is None

    def test_sensitive_names(self):
        spec = get_module_spec(Provider.AWS, ModuleKind.CONTAINER)
        assert spec.sensitive_names() == {"container_secrets"}

    @pytest.mark.parametrize("provider,kind", module_catalog())
    def test_find_module_spec(self, provider, kind):
        spec = get_module_spec(provider, kind)
        found = find_module_spec(spec.variable_names())
        assert found is not None
        assert found.name == spec.name

    def test_find_module_spec_unknown(self):
        assert find_module_spec(["region", "api_key"]) is None

    def test_find_module_spec_with_added_variables(self):
        names = get_module_spec("aws", "vm").variable_names() + ["team", "extra_tags"]
        assert find_module_spec(names).name == "aws-vm-environment"

    def test_find_module_spec_missing_variable(self):
        names = get_module_spec("aws", "vm").variable_names()
        names.remove("vpc_id")
        found = find_module_spec(names)
        assert found is None or found.name != "aws-vm-environment"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestModuleRenderer:
    @pytest.mark.parametrize("provider,kind", module_catalog())
    def test_renders_every_module(self, provider, kind):
        files = ModuleRenderer(provider, kind).render()
        assert {"main.tf", "variables.tf", "outputs.tf"} <= set(files)
        for name in ("main.tf", "variables.tf", "outputs.tf"):
            assert files[name].startswith(GENERATED_HEADER)
            assert files[name].endswith("\n")

    def test_vm_includes_bootstrap(self):
        files = ModuleRenderer(Provider.AWS, ModuleKind.VM).render()
        assert sorted(files) == ["main.tf", "outputs.tf", "user_data.sh", "variables.tf"]
        assert "templatefile(" in files["main.tf"]
        assert files["user_data.sh"].startswith("#!/bin/bash")

    def test_kubernetes_has_no_bootstrap(self):
        files = ModuleRenderer(Provider.GCP, ModuleKind.KUBERNETES).render()
        assert sorted(files) == ["main.tf", "outputs.tf", "variables.tf"]

    def test_variables_carry_validation_blocks(self):
        variables_tf = ModuleRenderer(Provider.AWS, ModuleKind.VM).render_variables()
        assert 'variable "environment" {' in variables_tf
        assert 'contains(["dev", "staging", "prod", "qa"], var.environment)' in variables_tf
        assert 'error_message = "Environment must be one of: dev, staging, prod, qa."' in variables_tf
        assert "can(regex(\"^[a-z0-9-]+$\", var.project_name))" in variables_tf
        assert 'can(regex("^(?:arn:\\\\S+)?$", var.certificate_arn))' in variables_tf

    def test_required_variables_have_no_default(self):
        variables_tf = ModuleRenderer(Provider.AWS, ModuleKind.VM).render_variables()
        block = variables_tf.split('variable "vpc_id" {', 1)[1].split("\n}\n", 1)[0]
        assert "default" not in block

    def test_sensitive_output(self):
        outputs_tf = ModuleRenderer(Provider.AZURE, ModuleKind.KUBERNETES).render_outputs()
        block = outputs_tf.split('output "kube_config" {', 1)[1].split("\n}\n", 1)[0]
        assert "sensitive   = true" in block

    def test_main_uses_provider_source(self):
        main_tf = ModuleRenderer(Provider.AZURE, ModuleKind.CONTAINER).render_main()
        assert "hashicorp/azurerm" in main_tf
        assert ">= 1.5.0" in main_tf


class TestWrite:
    def test_write_files(self, tmp_path):
        written = ModuleRenderer(Provider.AWS, ModuleKind.VM).write(tmp_path / "module")
        assert len(written) == 4
        assert (tmp_path / "module" / "main.tf").is_file()

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_bootstrap_is_executable(self, tmp_path):
        ModuleRenderer(Provider.GCP, ModuleKind.VM).write(tmp_path)
        mode = (tmp_path / "startup.sh").stat().st_mode
        assert mode & stat.S_IXUSR

    def test_refuses_to_overwrite(self, tmp_path):
        (tmp_path / "main.tf").write_text("# mine\n")
        with pytest.raises(FileExistsError, match="main.tf"):
            ModuleRenderer(Provider.AWS, ModuleKind.CONTAINER).write(tmp_path)
        assert (tmp_path / "main.tf").read_text() == "# mine\n"

    def test_overwrite(self, tmp_path):
        (tmp_path / "main.tf").write_text("# mine\n")
        ModuleRenderer(Provider.AWS, ModuleKind.CONTAINER).write(tmp_path, overwrite=True)
        assert (tmp_path / "main.tf").read_text().startswith(GENERATED_HEADER)

    def test_write_with_string_names(self, tmp_path):
        written = ModuleRenderer("azure", "vm").write(str(tmp_path))
        assert tmp_path / "custom_data.sh" in written
        assert (tmp_path / "custom_data.sh").exists()


class TestGeneratedModuleParses:
    """The generated files are read back by the same parser used for user modules."""

    @pytest.mark.parametrize("provider,kind", [
        (Provider.AWS, ModuleKind.VM),
        (Provider.AZURE, ModuleKind.KUBERNETES),
        (Provider.GCP, ModuleKind.CONTAINER),
    ])
    def test_variables_round_trip(self, tmp_path, provider, kind):
        renderer = ModuleRenderer(provider, kind)
        renderer.write(tmp_path)

        parser = TerraformParser(str(tmp_path))
        parsed = {var.name: var for var in parser.parse_variables()}
        spec = renderer.spec

        assert list(parsed) == spec.variable_names()
        for var in spec.variables:
            assert parsed[var.name].is_required() == var.required
        assert parsed["environment"].error_messages() == [
            "Environment must be one of: dev, staging, prod, qa."
        ]

    def test_outputs_round_trip(self, tmp_path):
        renderer = ModuleRenderer(Provider.AWS, ModuleKind.KUBERNETES)
        renderer.write(tmp_path)

        outputs = TerraformParser(str(tmp_path)).parse_outputs()
        assert [o.name for o in outputs] == [o.name for o in renderer.spec.outputs]

    def test_detected_as_generated_module(self, tmp_path):
        ModuleRenderer(Provider.GCP, ModuleKind.VM).write(tmp_path)
        names = [v.name for v in TerraformParser(str(tmp_path)).parse_variables()]
        spec = find_module_spec(names)
        assert spec is not None
        assert spec.name == "gcp-vm-environment"

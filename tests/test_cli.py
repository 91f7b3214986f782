"""Tests for the command-line interface."""

import json
import logging
import os
from unittest.mock import patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from tfblueprint import __version__, cli
from tfblueprint.core import TfvarsHandler, WorkspaceInfo
from tfblueprint.core.terraform_runner import CommandResult
from tfblueprint.templates import get_module_spec

SIMPLE_MODULE = os.path.join(os.path.dirname(__file__), "fixtures", "simple")


@pytest.fixture(autouse=True)
def cli_env(monkeypatch, tmp_path):
    """Isolate settings and logs, and give rich a wide console."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    monkeypatch.setattr(cli, "_console", Console(width=200))
    monkeypatch.setattr(cli, "_err_console", Console(stderr=True, width=200))

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, *args, **kwargs):
    return runner.invoke(cli.app, ["--no-log-file", *args], **kwargs)


@pytest.fixture
def module_dir(runner, tmp_path):
    """A generated AWS VM module."""
    out = tmp_path / "module"
    result = invoke(runner, "generate", "aws", "vm", "-o", str(out), "--project", "webapp",
                    "--owner", "team@example.com")
    assert result.exit_code == 0, result.output
    return out


def _ok(command):
    return CommandResult(exit_code=0, stdout="", stderr="", success=True, command=command)


def _write_tfvars(path, **overrides):
    spec = get_module_spec("aws", "vm")
    values = TfvarsHandler.example_values(spec, "prod", "webapp", "team@example.com")
    values.update(overrides)
    path.write_text(TfvarsHandler.format_tfvars(values), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# General
# ---------------------------------------------------------------------------

def test_version(runner):
    result = invoke(runner, "--version")
    assert result.exit_code == 0
    assert f"tfblueprint {__version__}" in result.output


def test_no_args_shows_help(runner):
    result = runner.invoke(cli.app, [])
    assert "generate" in result.output


def test_no_log_file_written(runner, tmp_path):
    invoke(runner, "catalog")
    assert not (tmp_path / "cache" / "tfblueprint" / "logs").exists()


# ---------------------------------------------------------------------------
# Catalog, generate, check
# ---------------------------------------------------------------------------

class TestCatalog:
    def test_lists_all_modules(self, runner):
        result = invoke(runner, "catalog")
        assert result.exit_code == 0
        for name in ("aws-vm-environment", "azure-kubernetes-environment", "gcp-container-environment"):
            assert name in result.output

    def test_filter_by_provider(self, runner):
        result = invoke(runner, "catalog", "--provider", "gcp")
        assert result.exit_code == 0
        assert "gcp-vm-environment" in result.output
        assert "aws-vm-environment" not in result.output

    def test_unknown_provider(self, runner):
        result = invoke(runner, "catalog", "--provider", "oracle")
        assert result.exit_code == 1
        assert "Unknown provider 'oracle'" in result.output


class TestGenerate:
    def test_writes_module(self, module_dir):
        for name in ("main.tf", "variables.tf", "outputs.tf", "user_data.sh", "README.md"):
            assert (module_dir / name).is_file()
        for env in ("dev", "staging", "prod", "qa"):
            assert (module_dir / "environments" / f"{env}.tfvars").is_file()

    def test_tfvars_use_project(self, module_dir):
        values = TfvarsHandler.parse_tfvars(str(module_dir / "environments" / "qa.tfvars"))
        assert values["project_name"] == "webapp"
        assert values["environment"] == "qa"
        assert values["owner_email"] == "team@example.com"

    def test_refuses_existing_module(self, runner, module_dir):
        result = invoke(runner, "generate", "aws", "vm", "-o", str(module_dir))
        assert result.exit_code == 1
        assert "--force" in result.output

    def test_force_overwrites(self, runner, module_dir):
        result = invoke(runner, "generate", "aws", "vm", "-o", str(module_dir), "--force")
        assert result.exit_code == 0

    def test_invalid_project_name(self, runner, tmp_path):
        result = invoke(runner, "generate", "aws", "vm", "-o", str(tmp_path / "m"),
                        "--project", "WebApp!")
        assert result.exit_code == 1
        assert "Project name must contain only lowercase letters, numbers, and hyphens." in result.output
        assert not (tmp_path / "m").exists()

    def test_invalid_owner(self, runner, tmp_path):
        result = invoke(runner, "generate", "gcp", "container", "-o", str(tmp_path / "m"),
                        "--owner", "nobody")
        assert result.exit_code == 1
        assert "Owner email must be a valid email address." in result.output

    def test_unknown_kind(self, runner, tmp_path):
        result = invoke(runner, "generate", "aws", "lambda", "-o", str(tmp_path / "m"))
        assert result.exit_code == 1
        assert "Unknown module kind 'lambda'" in result.output

    def test_long_project_name_warns(self, runner, tmp_path):
        result = invoke(runner, "generate", "aws", "container", "-o", str(tmp_path / "m"),
                        "--project", "a" * 30)
        assert result.exit_code == 0
        assert "WARNING load balancer:" in result.output


class TestCheck:
    def test_generated_file_passes(self, runner, module_dir):
        result = invoke(runner, "check", str(module_dir), str(module_dir / "environments" / "prod.tfvars"))
        assert result.exit_code == 0, result.output
        assert "OK prod.tfvars: 0 warning(s)" in result.output

    def test_invalid_environment(self, runner, module_dir, tmp_path):
        var_file = _write_tfvars(tmp_path / "bad.tfvars", environment="production")
        result = invoke(runner, "check", str(module_dir), str(var_file))
        assert result.exit_code == 1
        assert "ERROR environment: Environment must be one of: dev, staging, prod, qa." in result.output

    def test_invalid_retention(self, runner, module_dir, tmp_path):
        var_file = _write_tfvars(tmp_path / "bad.tfvars", log_retention_days=45)
        result = invoke(runner, "check", str(module_dir), str(var_file))
        assert result.exit_code == 1
        assert "ERROR log_retention_days:" in result.output

    def test_capacity_warning(self, runner, module_dir, tmp_path):
        var_file = _write_tfvars(tmp_path / "warn.tfvars", min_size=2, max_size=1, desired_capacity=1)
        result = invoke(runner, "check", str(module_dir), str(var_file))
        assert result.exit_code == 0
        assert "WARNING max_size:" in result.output

        strict = invoke(runner, "check", str(module_dir), str(var_file), "--strict")
        assert strict.exit_code == 1

    def test_user_module_checks_required(self, runner, tmp_path):
        var_file = tmp_path / "dev.tfvars"
        var_file.write_text('environment = "dev"\n')
        result = invoke(runner, "check", SIMPLE_MODULE, str(var_file))
        assert result.exit_code == 1
        assert "Required variable 'api_key' is not set." in result.output

    def test_added_variable_keeps_module_rules(self, runner, module_dir, tmp_path):
        (module_dir / "extra.tf").write_text('variable "team" {\n  default = "x"\n}\n')
        var_file = _write_tfvars(tmp_path / "bad.tfvars", project_name="WebApp!", environment="demo")

        result = invoke(runner, "check", str(module_dir), str(var_file))

        assert result.exit_code == 1
        assert "ERROR project_name: Project name must contain only lowercase letters" in result.output
        assert "ERROR environment: Environment must be one of: dev, staging, prod, qa." in result.output
        assert "WARNING team" not in result.output

    def test_added_required_variable(self, runner, module_dir):
        (module_dir / "extra.tf").write_text('variable "team" {\n  type = string\n}\n')
        var_file = module_dir / "environments" / "prod.tfvars"

        result = invoke(runner, "check", str(module_dir), str(var_file))

        assert result.exit_code == 1
        assert "Required variable 'team' is not set." in result.output

    def test_syntax_error_fails(self, runner, module_dir):
        with open(module_dir / "variables.tf", "a") as handle:
            handle.write('\nvariable "broken" {\n')
        var_file = module_dir / "environments" / "prod.tfvars"

        result = invoke(runner, "check", str(module_dir), str(var_file))

        assert result.exit_code == 1
        assert "Syntax error in variables.tf" in result.output


# ---------------------------------------------------------------------------
# Guides and bootstrap
# ---------------------------------------------------------------------------

class TestGuide:
    def test_standards_guide(self, runner):
        result = invoke(runner, "guide", "--project", "shop")
        assert result.exit_code == 0
        assert result.output.startswith("# Infrastructure standards")

    def test_module_guide_to_file(self, runner, tmp_path):
        target = tmp_path / "docs" / "aws-vm.md"
        result = invoke(runner, "guide", "aws", "vm", "-o", str(target))
        assert result.exit_code == 0
        assert target.read_text(encoding="utf-8").startswith("# aws-vm-environment")

    def test_needs_kind(self, runner):
        result = invoke(runner, "guide", "aws")
        assert result.exit_code == 1
        assert "needs both provider and kind" in result.output


class TestBootstrap:
    def test_render(self, runner):
        result = invoke(runner, "bootstrap", "aws", "--project", "webapp", "--env", "prod", "--port", "3000")
        assert result.exit_code == 0
        assert 'LOG_GROUP_NAME="/webapp/prod/application"' in result.output
        assert 'APPLICATION_PORT="3000"' in result.output

    def test_custom_script(self, runner, tmp_path):
        fragment = tmp_path / "extra.sh"
        fragment.write_text("echo custom-step\n")
        result = invoke(runner, "bootstrap", "gcp", "--custom-script", str(fragment),
                        "--log-group", "")
        assert result.exit_code == 0
        assert "echo custom-step" in result.output
        assert 'LOG_GROUP_NAME=""' in result.output

    def test_raw(self, runner):
        result = invoke(runner, "bootstrap", "azure", "--raw")
        assert result.exit_code == 0
        assert "${custom_script}" in result.output


# ---------------------------------------------------------------------------
# Terraform workflow
# ---------------------------------------------------------------------------

class TestWorkflow:
    def test_init_backend_config(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.init.return_value = _ok("init")
            result = invoke(runner, "init", str(module_dir), "--backend-config", "bucket=tf-state")

        assert result.exit_code == 0, result.output
        kwargs = mock_cls.return_value.init.call_args.kwargs
        assert kwargs["backend_config"] == {"bucket": "tf-state"}
        assert kwargs["upgrade"] is False

    def test_init_bad_backend_config(self, runner, module_dir):
        result = invoke(runner, "init", str(module_dir), "--backend-config", "bucket")
        assert result.exit_code == 1
        assert "expected key=value" in result.output

    def test_validate(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.validate.return_value = _ok("validate")
            result = invoke(runner, "validate", str(module_dir))

        assert result.exit_code == 0, result.output
        mock_cls.return_value.validate.assert_called_once()

    def test_plan_with_environment(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.plan.return_value = _ok("plan")
            result = invoke(runner, "plan", str(module_dir), "--env", "dev", "--out", "dev.tfplan")

        assert result.exit_code == 0, result.output
        kwargs = mock_cls.return_value.plan.call_args.kwargs
        assert kwargs["var_file"].endswith("dev.tfvars")
        assert kwargs["out_file"] == "dev.tfplan"
        assert kwargs["destroy"] is False
        mock_cls.return_value.set_redactor.assert_called_once()

    def test_plan_destroy(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.plan.return_value = _ok("plan")
            result = invoke(runner, "plan", str(module_dir), "--env", "qa", "--destroy")

        assert result.exit_code == 0, result.output
        assert mock_cls.return_value.plan.call_args.kwargs["destroy"] is True

    def test_plan_selects_workspace(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls, \
             patch("tfblueprint.cli.WorkspaceManager") as mock_ws:
            mock_cls.return_value.plan.return_value = _ok("plan")
            mock_ws.return_value.ensure_workspace.return_value = True
            result = invoke(runner, "plan", str(module_dir), "--env", "staging", "--workspace")

        assert result.exit_code == 0, result.output
        mock_ws.return_value.ensure_workspace.assert_called_once_with("staging")

    def test_plan_workspace_needs_env(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner"):
            result = invoke(runner, "plan", str(module_dir), "--workspace")
        assert result.exit_code == 1
        assert "--workspace needs --env" in result.output

    def test_plan_rejects_invalid_values(self, runner, module_dir, tmp_path):
        var_file = _write_tfvars(tmp_path / "bad.tfvars", project_name="WebApp!")
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            result = invoke(runner, "plan", str(module_dir), "--var-file", str(var_file))

        assert result.exit_code == 1
        assert "nothing was run" in result.output
        mock_cls.return_value.plan.assert_not_called()

    def test_plan_unknown_environment(self, runner, module_dir):
        result = invoke(runner, "plan", str(module_dir), "--env", "demo")
        assert result.exit_code == 1
        assert "Unknown environment 'demo'" in result.output

    def test_plan_failure_exit_code(self, runner, module_dir):
        failed = CommandResult(exit_code=1, stdout="", stderr="boom", success=False, command="plan")
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.plan.return_value = failed
            result = invoke(runner, "plan", str(module_dir), "--env", "dev")

        assert result.exit_code == 1
        assert "terraform plan failed" in result.output

    def test_apply_asks_for_confirmation(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            result = invoke(runner, "apply", str(module_dir), "--env", "dev", input="n\n")

        assert result.exit_code == 1
        mock_cls.return_value.apply.assert_not_called()

    def test_apply_auto_approve(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.apply.return_value = _ok("apply")
            result = invoke(runner, "apply", str(module_dir), "--env", "dev", "-y")

        assert result.exit_code == 0, result.output
        kwargs = mock_cls.return_value.apply.call_args.kwargs
        assert kwargs["auto_approve"] is True
        assert kwargs["plan_file"] is None

    def test_apply_saved_plan(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.apply.return_value = _ok("apply")
            result = invoke(runner, "apply", str(module_dir), "--plan", "dev.tfplan", input="y\n")

        assert result.exit_code == 0, result.output
        kwargs = mock_cls.return_value.apply.call_args.kwargs
        assert kwargs["plan_file"] == "dev.tfplan"
        assert kwargs["var_file"] is None

    def test_apply_plan_and_env_conflict(self, runner, module_dir):
        result = invoke(runner, "apply", str(module_dir), "--plan", "dev.tfplan", "--env", "dev")
        assert result.exit_code == 1
        assert "--plan can't be combined" in result.output

    def test_destroy_confirmed(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.destroy.return_value = _ok("destroy")
            result = invoke(runner, "destroy", str(module_dir), "--env", "qa", input="y\n")

        assert result.exit_code == 0, result.output
        assert mock_cls.return_value.destroy.call_args.kwargs["var_file"].endswith("qa.tfvars")

    def test_output_json(self, runner, module_dir):
        values = {"application_url": "http://example", "min": 1}
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.output_values.return_value = values
            result = invoke(runner, "output", str(module_dir), "--json")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == values
        mock_cls.return_value.output_values.assert_called_once_with(show_sensitive=False)

    def test_output_single_name(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.output_values.return_value = {"a": "1", "b": "2"}
            result = invoke(runner, "output", str(module_dir), "--name", "b", "--json")
        assert json.loads(result.output) == {"b": "2"}

    def test_output_unknown_name(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.output_values.return_value = {"a": "1"}
            result = invoke(runner, "output", str(module_dir), "--name", "zzz")
        assert result.exit_code == 1
        assert "No output named 'zzz'" in result.output

    def test_output_failure(self, runner, module_dir):
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.output_values.side_effect = RuntimeError("terraform output failed")
            result = invoke(runner, "output", str(module_dir))
        assert result.exit_code == 1
        assert "terraform output failed" in result.output


# ---------------------------------------------------------------------------
# Workspaces
# ---------------------------------------------------------------------------

class TestWorkspaceCommands:
    def test_list(self, runner, module_dir):
        with patch("tfblueprint.cli.WorkspaceManager") as mock_ws:
            mock_ws.return_value.list_workspaces.return_value = [
                WorkspaceInfo("default", False),
                WorkspaceInfo("prod", True),
            ]
            mock_ws.return_value.environment_workspaces.return_value = {
                "dev": False, "staging": False, "prod": True, "qa": False,
            }
            result = invoke(runner, "workspace", "list", str(module_dir))

        assert result.exit_code == 0
        assert "  default" in result.output
        assert "* prod" in result.output
        assert "No workspace yet for: dev, staging, qa" in result.output

    def test_show(self, runner, module_dir):
        with patch("tfblueprint.cli.WorkspaceManager") as mock_ws:
            mock_ws.return_value.get_current_workspace.return_value = "staging"
            result = invoke(runner, "workspace", "show", str(module_dir))

        assert result.exit_code == 0
        assert result.output.strip() == "staging"

    def test_select(self, runner, module_dir):
        with patch("tfblueprint.cli.WorkspaceManager") as mock_ws:
            mock_ws.return_value.switch_workspace.return_value = True
            result = invoke(runner, "workspace", "select", "prod", str(module_dir))

        assert result.exit_code == 0
        assert "Switched to workspace prod" in result.output

    def test_new_failure(self, runner, module_dir):
        with patch("tfblueprint.cli.WorkspaceManager") as mock_ws:
            mock_ws.return_value.create_workspace.return_value = False
            result = invoke(runner, "workspace", "new", "qa", str(module_dir))

        assert result.exit_code == 1
        assert "Could not create workspace qa" in result.output

    def test_delete_force(self, runner, module_dir):
        with patch("tfblueprint.cli.WorkspaceManager") as mock_ws:
            mock_ws.return_value.delete_workspace.return_value = True
            result = invoke(runner, "workspace", "delete", "qa", str(module_dir), "--force")

        assert result.exit_code == 0
        mock_ws.return_value.delete_workspace.assert_called_once_with("qa", force=True)


# ---------------------------------------------------------------------------
# Doctor
# ---------------------------------------------------------------------------

class TestDoctor:
    def test_all_ok(self, runner, module_dir):
        with patch("tfblueprint.cli.validate_terraform_installed", return_value=(True, "Terraform v1.7.5")):
            result = invoke(runner, "doctor", str(module_dir))

        assert result.exit_code == 0, result.output
        assert "Terraform v1.7.5" in result.output

    def test_terraform_missing(self, runner):
        with patch("tfblueprint.cli.validate_terraform_installed", return_value=(False, None)):
            result = invoke(runner, "doctor")

        assert result.exit_code == 1
        assert "'terraform' not found on PATH" in result.output

    def test_incomplete_module(self, runner, tmp_path):
        (tmp_path / "main.tf").write_text("")
        with patch("tfblueprint.cli.validate_terraform_installed", return_value=(True, "Terraform v1.7.5")):
            result = invoke(runner, "doctor", str(tmp_path))

        assert result.exit_code == 1
        assert "missing: variables.tf, outputs.tf" in result.output

    def test_module_report(self, runner, module_dir):
        with patch("tfblueprint.cli.validate_terraform_installed", return_value=(True, "Terraform v1.7.5")):
            result = invoke(runner, "doctor", str(module_dir))

        assert result.exit_code == 0, result.output
        assert "all .tf files parse" in result.output
        assert "with validation" in result.output
        assert "aws_launch_template" in result.output
        assert "aws-vm-environment" in result.output

    def test_module_syntax_error(self, runner, module_dir):
        with open(module_dir / "outputs.tf", "a") as handle:
            handle.write('\noutput "broken" {\n')
        with patch("tfblueprint.cli.validate_terraform_installed", return_value=(True, "Terraform v1.7.5")):
            result = invoke(runner, "doctor", str(module_dir))

        assert result.exit_code == 1
        assert "Syntax error in outputs.tf" in result.output


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestConfig:
    def test_show_defaults(self, runner):
        result = invoke(runner, "config", "show")
        assert result.exit_code == 0, result.output
        shown = json.loads(result.stdout)
        assert shown["terraform_binary"] == "terraform"
        assert shown["confirmations"]["destroy"] is True

    def test_get(self, runner):
        result = invoke(runner, "config", "get", "terraform_binary")
        assert result.exit_code == 0
        assert result.stdout.strip() == "terraform"

    def test_get_unknown(self, runner):
        result = invoke(runner, "config", "get", "regions.oracle")
        assert result.exit_code == 1
        assert "Unknown setting: regions.oracle" in result.output

    def test_set_string_is_saved(self, runner, tmp_path):
        result = invoke(runner, "config", "set", "regions.aws", "eu-west-1")
        assert result.exit_code == 0, result.output

        stored = json.loads((tmp_path / "config" / "tfblueprint" / "settings.json").read_text())
        assert stored["regions"]["aws"] == "eu-west-1"
        assert invoke(runner, "config", "get", "regions.aws").stdout.strip() == "eu-west-1"

    def test_set_json_value(self, runner):
        assert invoke(runner, "config", "set", "confirmations.apply", "false").exit_code == 0

        result = invoke(runner, "config", "get", "confirmations.apply")
        assert result.stdout.strip() == "false"

    def test_set_changes_apply_prompt(self, runner, module_dir):
        invoke(runner, "config", "set", "confirmations.apply", "false")
        with patch("tfblueprint.cli.TerraformRunner") as mock_cls:
            mock_cls.return_value.apply.return_value = _ok("apply")
            result = invoke(runner, "apply", str(module_dir), "--env", "prod")

        assert result.exit_code == 0, result.output
        mock_cls.return_value.apply.assert_called_once()

    def test_set_invalid_key(self, runner):
        result = invoke(runner, "config", "set", "regions..aws", "x")
        assert result.exit_code == 1
        assert "Invalid setting name" in result.output

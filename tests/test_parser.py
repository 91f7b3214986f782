"""Tests for TerraformParser against tests/fixtures/simple and ad-hoc modules."""

import os

import pytest

from tfblueprint.core import TerraformParser, TerraformVariable

SIMPLE_MODULE = os.path.join(os.path.dirname(__file__), "fixtures", "simple")


@pytest.fixture
def parser():
    return TerraformParser(SIMPLE_MODULE)


@pytest.fixture
def variables(parser):
    return {var.name: var for var in parser.parse_variables()}


class TestVariables:
    def test_declaration_order(self, parser):
        assert [v.name for v in parser.parse_variables()] == [
            "region", "environment", "enable_monitoring", "api_key",
        ]

    def test_required_means_no_default(self, variables):
        assert variables["api_key"].is_required()
        assert variables["environment"].is_required()
        assert not variables["region"].is_required()

    def test_defaults_keep_python_types(self, variables):
        assert variables["region"].default == "us-east-1"
        assert variables["enable_monitoring"].default is False

    def test_types_unwrapped(self, variables):
        assert variables["region"].type == "string"
        assert variables["enable_monitoring"].type == "bool"

    def test_sensitive(self, variables):
        assert variables["api_key"].sensitive is True
        assert variables["region"].sensitive is False

    def test_description(self, variables):
        assert variables["region"].description == "Region to deploy into"

    def test_validation_blocks(self, variables):
        env = variables["environment"]
        assert env.error_messages() == ["Environment must be one of: dev, staging, prod, qa."]
        condition = env.validations[0]["condition"]
        assert condition.startswith("contains(")
        assert "var.environment" in condition

    def test_collection_type(self, tmp_path):
        (tmp_path / "variables.tf").write_text(
            'variable "allowed_cidr_blocks" {\n'
            '  type    = list(string)\n'
            '  default = ["10.0.0.0/8"]\n'
            '}\n'
        )
        (var,) = TerraformParser(str(tmp_path)).parse_variables()
        assert var.type == "list(string)"
        assert var.default == ["10.0.0.0/8"]

    def test_repr(self):
        text = repr(TerraformVariable(name="max_size", type="number", default=3))
        assert "max_size" in text
        assert "required=False" in text


class TestOutputsAndResources:
    def test_outputs(self, parser):
        outputs = {o.name: o for o in parser.parse_outputs()}
        assert set(outputs) == {"name_prefix", "api_key"}
        assert outputs["name_prefix"].value == "local.name_prefix"
        assert outputs["name_prefix"].description == "Prefix used for resource names"
        assert outputs["api_key"].sensitive is True

    def test_resource_types(self, parser):
        assert parser.resource_types() == ["null_resource"]


class TestSyntax:
    def test_valid_module(self, parser):
        assert parser.validate_syntax() == (True, None)

    def test_empty_directory(self, tmp_path):
        parser = TerraformParser(str(tmp_path))
        assert parser.parse_variables() == []
        assert parser.parse_outputs() == []
        assert parser.validate_syntax() == (False, "No .tf files found in module")

    def test_broken_file_is_skipped_and_reported(self, tmp_path):
        (tmp_path / "good.tf").write_text('variable "a" {\n  type = string\n}\n')
        (tmp_path / "bad.tf").write_text('variable "b" {\n  type = \n')
        parser = TerraformParser(str(tmp_path))

        assert [v.name for v in parser.parse_variables()] == ["a"]
        valid, error = parser.validate_syntax()
        assert valid is False
        assert error.startswith("Syntax error in bad.tf")

    def test_files_parsed_once(self, tmp_path):
        (tmp_path / "main.tf").write_text('variable "a" {}\n')
        parser = TerraformParser(str(tmp_path))
        assert len(parser.parse_variables()) == 1

        (tmp_path / "extra.tf").write_text('variable "b" {}\n')
        assert len(parser.parse_variables()) == 1
        assert len(TerraformParser(str(tmp_path)).parse_variables()) == 2

"""
Variable value validation against a module declaration.

Reproduces the plan-time checks Terraform performs for the generated
``validation`` blocks, plus required/unknown variable and type checks.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .rules import failing_rules

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"


@dataclass
class ValidationIssue:
    """A single problem found in a set of variable values."""
    variable: str
    message: str
    severity: str = ERROR

    def __str__(self) -> str:
        return f"{self.severity.upper()}: {self.variable}: {self.message}"


@dataclass
class ValidationReport:
    """Result of validating a set of variable values."""
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == WARNING]

    @property
    def is_valid(self) -> bool:
        """True when there are no errors. Warnings don't reject."""
        return not self.errors

    def add(self, variable: str, message: str, severity: str = ERROR):
        self.issues.append(ValidationIssue(variable, message, severity))

    def messages_for(self, variable: str) -> List[str]:
        return [i.message for i in self.issues if i.variable == variable]


class ValidationError(Exception):
    """Raised when variable values fail validation."""

    def __init__(self, report: ValidationReport):
        self.report = report
        lines = [str(issue) for issue in report.errors]
        super().__init__("Invalid variable values:\n" + "\n".join(lines))


def _type_matches(tf_type: str, value: Any) -> bool:
    """Loose check that a Python value fits a Terraform type constraint."""
    base = tf_type.split("(", 1)[0].strip()
    if base == "string":
        return isinstance(value, str)
    if base == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if base == "bool":
        return isinstance(value, bool)
    if base in ("list", "set", "tuple"):
        return isinstance(value, (list, tuple))
    if base in ("map", "object"):
        return isinstance(value, dict)
    return True


class VariableValidator:
    """
    Validates variable values for one module.

    Example:
        >>> spec = get_module_spec(Provider.AWS, ModuleKind.VM)
        >>> report = VariableValidator(spec).validate({"environment": "demo"})
        >>> report.is_valid
        False
    """

    def __init__(self, module_spec):
        """
        Args:
            module_spec: ModuleSpec whose declarations are checked
        """
        self.module_spec = module_spec

    def validate(self, values: Dict[str, Any], extra_declared: Iterable = ()) -> ValidationReport:
        """
        Validate a complete set of variable values.

        Args:
            values: Variable name to value, e.g. parsed from a .tfvars file
            extra_declared: TerraformVariable objects a module declares on
                top of the generated ones; they only get required/unknown checks

        Returns:
            ValidationReport with errors and warnings
        """
        report = ValidationReport()
        declared = {var.name: var for var in self.module_spec.variables}
        extra = [var for var in extra_declared if var.name not in declared]
        known = set(declared) | {var.name for var in extra}

        for name in values:
            if name not in known:
                report.add(name, "Variable is not declared by this module", WARNING)

        for name, var in declared.items():
            if name not in values or values[name] is None:
                if var.required:
                    report.add(name, f"Required variable '{name}' is not set.")
                continue

            value = values[name]
            if not _type_matches(var.type, value):
                report.add(name, f"Value must be of type {var.type}.")
                continue

            for rule in failing_rules(var.rules, value):
                report.add(name, rule.error_message)

        for var in extra:
            if var.is_required() and values.get(var.name) is None:
                report.add(var.name, f"Required variable '{var.name}' is not set.")

        self._check_capacity(values, report)
        self._check_https(values, report)

        logger.debug(
            f"Validated {len(values)} values for {self.module_spec.name}: "
            f"{len(report.errors)} errors, {len(report.warnings)} warnings"
        )
        return report

    def validate_value(self, name: str, value: Any) -> List[str]:
        """
        Validate a single variable value.

        Returns:
            Error messages, empty when the value is accepted
        """
        var = self.module_spec.variable(name)
        if var is None:
            return [f"Variable '{name}' is not declared by this module."]
        if not _type_matches(var.type, value):
            return [f"Value must be of type {var.type}."]
        return [rule.error_message for rule in failing_rules(var.rules, value)]

    def enforce(self, values: Dict[str, Any]) -> ValidationReport:
        """
        Validate and raise if any error was found.

        Raises:
            ValidationError: If the values are rejected
        """
        report = self.validate(values)
        if not report.is_valid:
            raise ValidationError(report)
        return report

    def _check_capacity(self, values: Dict[str, Any], report: ValidationReport):
        """
        Compare min/desired/max capacity values.

        The generated templates carry no cross-variable validation, so an
        inconsistent triple is only a warning.
        """
        from ..templates.modules import CAPACITY_VARIABLES

        names = CAPACITY_VARIABLES.get(self.module_spec.kind)
        if not names:
            return
        low_name, desired_name, high_name = names
        low = self._effective(low_name, values)
        desired = self._effective(desired_name, values)
        high = self._effective(high_name, values)

        if low is not None and high is not None and low > high:
            report.add(high_name, f"{low_name} ({low}) is greater than {high_name} ({high})", WARNING)
        if desired is not None and low is not None and desired < low:
            report.add(desired_name, f"{desired_name} ({desired}) is below {low_name} ({low})", WARNING)
        if desired is not None and high is not None and desired > high:
            report.add(desired_name, f"{desired_name} ({desired}) is above {high_name} ({high})", WARNING)

    def _check_https(self, values: Dict[str, Any], report: ValidationReport):
        """An HTTPS listener can't be created without a certificate."""
        if self.module_spec.variable("certificate_arn") is None:
            return
        if values.get("enable_https") is True and not values.get("certificate_arn"):
            report.add("certificate_arn", "A certificate ARN is required when enable_https is true.")

    def _effective(self, name: str, values: Dict[str, Any]) -> Optional[float]:
        value = values.get(name)
        if value is None:
            var = self.module_spec.variable(name)
            value = var.default if var is not None else None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value


def check_declared(values: Dict[str, Any], declared: Iterable) -> ValidationReport:
    """
    Check values against variables parsed from an existing module.

    Only required/unknown checks are possible here because parsed
    validation conditions are HCL expressions.

    Args:
        values: Variable name to value
        declared: TerraformVariable objects from TerraformParser
    """
    report = ValidationReport()
    declared = list(declared)
    names = {var.name for var in declared}

    for name in values:
        if name not in names:
            report.add(name, "Variable is not declared by this module", WARNING)

    for var in declared:
        if var.is_required() and values.get(var.name) is None:
            report.add(var.name, f"Required variable '{var.name}' is not set.")

    return report

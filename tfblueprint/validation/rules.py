"""
Input validation rules.

Each rule renders the ``condition`` of a Terraform ``validation`` block
and evaluates the same predicate in Python, so a .tfvars file can be
checked before ``terraform plan`` ever runs. Error messages are fixed
strings and end with a period, as Terraform requires.
"""

import ipaddress
import re
from typing import Any, Iterable, Optional, Sequence

from ..utils.hcl import escape_string, to_hcl


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _re2_anchors(pattern: str) -> str:
    """
    Make a trailing ``$`` match only at the end of the text.

    In RE2, which Terraform's ``regex()`` uses, ``$`` matches only at the
    end of the text; Python's also matches before a final newline.
    """
    if pattern.endswith("$") and not pattern.endswith("\\$"):
        return pattern[:-1] + r"\Z"
    return pattern


class ValidationRule:
    """
    Base class for validation rules.

    Subclasses implement ``condition`` (HCL) and ``check`` (Python).
    """

    def __init__(self, error_message: str):
        if not error_message.endswith((".", "?", "!")):
            error_message += "."
        self.error_message = error_message

    def condition(self, ref: str) -> str:
        """
        Render the HCL condition for a variable reference.

        Args:
            ref: Variable reference, e.g. ``var.environment``
        """
        raise NotImplementedError

    def check(self, value: Any) -> bool:
        """Return True if the value satisfies the rule."""
        raise NotImplementedError

    def describe(self) -> str:
        """Short description for the variable catalog."""
        return self.error_message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()!r})"


class OneOf(ValidationRule):
    """Value must be a member of a fixed set."""

    def __init__(self, values: Sequence[Any], error_message: Optional[str] = None):
        self.values = list(values)
        if error_message is None:
            error_message = "Value must be one of: " + ", ".join(str(v) for v in self.values)
        super().__init__(error_message)

    def condition(self, ref: str) -> str:
        return f"contains({to_hcl(self.values)}, {ref})"

    def check(self, value: Any) -> bool:
        if isinstance(value, bool):
            return False
        return value in self.values

    def describe(self) -> str:
        return "one of " + ", ".join(str(v) for v in self.values)


class MatchesPattern(ValidationRule):
    """String must match a regular expression (RE2 compatible subset)."""

    def __init__(self, pattern: str, error_message: str):
        self.pattern = pattern
        self._compiled = re.compile(_re2_anchors(pattern))
        super().__init__(error_message)

    def condition(self, ref: str) -> str:
        return f'can(regex("{escape_string(self.pattern)}", {ref}))'

    def check(self, value: Any) -> bool:
        return isinstance(value, str) and self._compiled.search(value) is not None

    def describe(self) -> str:
        return f"matches `{self.pattern}`"


class InRange(ValidationRule):
    """Number must be within inclusive bounds. Either bound may be omitted."""

    def __init__(
        self,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
        error_message: Optional[str] = None,
    ):
        if minimum is None and maximum is None:
            raise ValueError("InRange needs at least one bound")
        self.minimum = minimum
        self.maximum = maximum
        if error_message is None:
            error_message = f"Value must be {self.describe()}"
        super().__init__(error_message)

    def condition(self, ref: str) -> str:
        parts = []
        if self.minimum is not None:
            parts.append(f"{ref} >= {to_hcl(self.minimum)}")
        if self.maximum is not None:
            parts.append(f"{ref} <= {to_hcl(self.maximum)}")
        return " && ".join(parts)

    def check(self, value: Any) -> bool:
        if not _is_number(value):
            return False
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True

    def describe(self) -> str:
        if self.minimum is not None and self.maximum is not None:
            return f"between {self.minimum} and {self.maximum}"
        if self.minimum is not None:
            return f"at least {self.minimum}"
        return f"at most {self.maximum}"


class AllOneOf(ValidationRule):
    """Every element of a list must be a member of a fixed set."""

    def __init__(self, values: Sequence[Any], error_message: Optional[str] = None):
        self.values = list(values)
        if error_message is None:
            error_message = "Each entry must be one of: " + ", ".join(str(v) for v in self.values)
        super().__init__(error_message)

    def condition(self, ref: str) -> str:
        return f"alltrue([for item in {ref} : contains({to_hcl(self.values)}, item)])"

    def check(self, value: Any) -> bool:
        if not isinstance(value, (list, tuple)):
            return False
        return all(item in self.values for item in value)

    def describe(self) -> str:
        return "each of " + ", ".join(str(v) for v in self.values)


class ValidCidrBlocks(ValidationRule):
    """Every element of a list must be a CIDR block."""

    def __init__(self, error_message: str = "All entries must be valid CIDR blocks."):
        super().__init__(error_message)

    def condition(self, ref: str) -> str:
        return f"alltrue([for cidr in {ref} : can(cidrhost(cidr, 0))])"

    def check(self, value: Any) -> bool:
        if not isinstance(value, (list, tuple)):
            return False
        return all(self._is_cidr(item) for item in value)

    @staticmethod
    def _is_cidr(item: Any) -> bool:
        if not isinstance(item, str) or "/" not in item:
            return False
        try:
            ipaddress.ip_network(item, strict=False)
        except ValueError:
            return False
        return True

    def describe(self) -> str:
        return "valid CIDR blocks"


class NotBlank(ValidationRule):
    """String must contain something other than whitespace."""

    def __init__(self, error_message: str = "Value must not be empty."):
        super().__init__(error_message)

    def condition(self, ref: str) -> str:
        return f"length(trimspace({ref})) > 0"

    def check(self, value: Any) -> bool:
        return isinstance(value, str) and value.strip() != ""

    def describe(self) -> str:
        return "not empty"


def failing_rules(rules: Iterable[ValidationRule], value: Any):
    """Return the rules that reject a value."""
    return [rule for rule in rules if not rule.check(value)]

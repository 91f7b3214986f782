"""
Validation of module input values.
"""

from .rules import (
    AllOneOf,
    InRange,
    MatchesPattern,
    NotBlank,
    OneOf,
    ValidationRule,
    ValidCidrBlocks,
)
from .validator import (
    ValidationError,
    ValidationIssue,
    ValidationReport,
    VariableValidator,
    check_declared,
)

__all__ = [
    "AllOneOf",
    "InRange",
    "MatchesPattern",
    "NotBlank",
    "OneOf",
    "ValidationRule",
    "ValidCidrBlocks",
    "ValidationError",
    "ValidationIssue",
    "ValidationReport",
    "VariableValidator",
    "check_declared",
]

"""
Security module for tfblueprint.

This module provides input validation for everything passed to the
terraform binary and redaction of sensitive values from its output.
"""

from .sanitizer import InputSanitizer, SecurityError
from .redaction import OutputRedactor, REDACTED

__all__ = ["InputSanitizer", "SecurityError", "OutputRedactor", "REDACTED"]

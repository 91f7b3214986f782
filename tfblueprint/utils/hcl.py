"""
Helpers for writing HCL literals.
"""

import json
from typing import Any


def escape_string(value: str) -> str:
    """
    Escape a Python string for use inside an HCL quoted string.

    Backslashes and quotes are escaped, and template sequences
    (``${`` and ``%{``) are doubled so Terraform reads them literally.
    """
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    return escaped.replace("${", "$${").replace("%{", "%%{")


def to_hcl(value: Any) -> str:
    """Format a Python value as an HCL literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return f'"{escape_string(value)}"'
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(to_hcl(v) for v in value) + "]"
    if isinstance(value, dict):
        if not value:
            return "{}"
        items = ", ".join(f"{_hcl_key(k)} = {to_hcl(v)}" for k, v in value.items())
        return "{ " + items + " }"
    # Anything else goes through JSON, which HCL also accepts
    return json.dumps(value)


def _hcl_key(key: Any) -> str:
    key = str(key)
    if key.replace("_", "a").replace("-", "a").isalnum() and not key[0].isdigit():
        return key
    return f'"{escape_string(key)}"'

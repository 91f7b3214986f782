"""
Input checks for everything handed to the terraform binary.

Commands always run with ``shell=False``; the checks here keep module
paths, variable files, plan files, variable names and workspace names
from smuggling options or control characters into the argument list.
"""

import json
import os
import re
from typing import Any, Pattern


class SecurityError(Exception):
    """Raised when an input is rejected."""
    pass


def _check_length(kind: str, value: str, limit: int):
    if len(value) > limit:
        raise SecurityError(f"{kind} too long (max {limit})")


def _check_pattern(kind: str, value: str, pattern: Pattern, rule: str):
    if not pattern.match(value):
        raise SecurityError(f"Invalid {kind.lower()} '{value}': {rule}")


class InputSanitizer:
    """Static validators; each returns the accepted value or raises SecurityError."""

    VARIABLE_NAME_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_-]*$')
    WORKSPACE_NAME_PATTERN = re.compile(r'^[a-zA-Z0-9_][a-zA-Z0-9_-]*$')

    MAX_VARIABLE_NAME_LENGTH = 255
    MAX_VARIABLE_VALUE_LENGTH = 4096
    MAX_WORKSPACE_NAME_LENGTH = 90
    MAX_ARG_LENGTH = 10000

    # Rejected in plain string -var values
    BLOCKED_VALUE_CHARS = set(';|&$`\\"\n\r')

    VAR_FILE_EXTENSIONS = (".tfvars", ".tfvars.json")

    @staticmethod
    def _resolve(path: str) -> str:
        if not path:
            raise SecurityError("Path cannot be empty")
        if '\x00' in path:
            raise SecurityError("Path contains a null byte")
        try:
            return os.path.realpath(os.path.expanduser(path))
        except (OSError, ValueError) as e:
            raise SecurityError(f"Invalid path: {e}")

    @staticmethod
    def sanitize_path(path: str) -> str:
        """
        Resolve a module directory.

        Returns:
            Absolute path with symlinks resolved

        Raises:
            SecurityError: If it is missing or not a directory
        """
        resolved = InputSanitizer._resolve(path)
        if not os.path.exists(resolved):
            raise SecurityError(f"Path does not exist: {path}")
        if not os.path.isdir(resolved):
            raise SecurityError(f"Path is not a directory: {path}")
        return resolved

    @staticmethod
    def sanitize_file_path(path: str, extensions: tuple = VAR_FILE_EXTENSIONS) -> str:
        """
        Resolve an existing variable file.

        Raises:
            SecurityError: If the file is missing or isn't a .tfvars file
        """
        resolved = InputSanitizer._resolve(path)
        if not os.path.isfile(resolved):
            raise SecurityError(f"File does not exist: {path}")
        if not resolved.endswith(extensions):
            raise SecurityError(
                f"Unexpected file type for {path}: expected {', '.join(extensions)}"
            )
        return resolved

    @staticmethod
    def sanitize_plan_path(path: str) -> str:
        """
        Check a saved-plan path given to ``plan -out`` or ``apply``.

        The file may not exist yet, so only the argument itself is checked.
        """
        if not path:
            raise SecurityError("Plan file path cannot be empty")
        if path.startswith("-"):
            raise SecurityError(f"Plan file path can't start with '-': {path}")
        if not InputSanitizer.is_safe_command_arg(path):
            raise SecurityError(f"Unsafe plan file path: {path!r}")
        return path

    @staticmethod
    def sanitize_variable_name(name: str) -> str:
        """Accept a Terraform identifier: letter or underscore, then letters, digits, '_' or '-'."""
        if not name:
            raise SecurityError("Variable name cannot be empty")
        _check_length("Variable name", name, InputSanitizer.MAX_VARIABLE_NAME_LENGTH)
        _check_pattern(
            "Variable name", name, InputSanitizer.VARIABLE_NAME_PATTERN,
            "must start with a letter or underscore and contain only letters, digits, '_' and '-'",
        )
        return name

    @staticmethod
    def sanitize_variable_value(value: Any, var_type: str = "string") -> str:
        """
        Render a value for a ``-var name=value`` argument.

        Bools become ``true``/``false``, numbers are checked, collection
        types are passed as JSON and plain strings may not contain shell
        metacharacters.

        Raises:
            SecurityError: If the value doesn't fit the type or is unsafe
        """
        if value is None:
            return ""

        text = str(value)
        _check_length("Variable value", text, InputSanitizer.MAX_VARIABLE_VALUE_LENGTH)
        base_type = var_type.split("(", 1)[0].strip()

        if base_type == "bool":
            if isinstance(value, bool):
                return "true" if value else "false"
            lowered = text.lower()
            if lowered not in ("true", "false", "1", "0"):
                raise SecurityError(f"Invalid boolean value: {value}")
            return "true" if lowered in ("true", "1") else "false"

        if base_type == "number":
            try:
                float(text)
            except ValueError:
                raise SecurityError(f"Invalid number value: {value}")
            return text

        if base_type in ("list", "set", "map", "object", "tuple"):
            try:
                if isinstance(value, str):
                    json.loads(value)
                    return value
                return json.dumps(value)
            except (TypeError, ValueError) as e:
                raise SecurityError(f"Invalid JSON for {var_type}: {e}")

        blocked = InputSanitizer.BLOCKED_VALUE_CHARS.intersection(text)
        if blocked:
            raise SecurityError(f"Value contains forbidden characters: {sorted(blocked)}")
        return text

    @staticmethod
    def sanitize_workspace_name(name: str) -> str:
        """Accept letters, digits, '_' and '-', not starting with '-', at most 90 characters."""
        if not name:
            raise SecurityError("Workspace name cannot be empty")
        _check_length("Workspace name", name, InputSanitizer.MAX_WORKSPACE_NAME_LENGTH)
        if name.startswith("-"):
            raise SecurityError("Workspace name cannot start with hyphen")
        _check_pattern(
            "Workspace name", name, InputSanitizer.WORKSPACE_NAME_PATTERN,
            "only letters, digits, '_' and '-' are allowed",
        )
        return name

    @staticmethod
    def is_safe_command_arg(arg: str) -> bool:
        """False for arguments with a null byte or over MAX_ARG_LENGTH characters."""
        return '\x00' not in arg and len(arg) <= InputSanitizer.MAX_ARG_LENGTH

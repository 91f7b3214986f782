"""
Redaction of sensitive values from command output.

Values of variables a module declares sensitive (container secrets, for
example) are read from the var file and replaced in everything streamed
back from terraform.
"""

from typing import Any, Dict, Iterable, List

REDACTED = "[REDACTED]"

# Short values would redact unrelated text ("1", "yes")
MIN_SECRET_LENGTH = 4


class OutputRedactor:
    """
    Redacts sensitive values from text output.

    Example:
        >>> redactor = OutputRedactor(["secret123"])
        >>> redactor.redact("Connecting with key: secret123")
        'Connecting with key: [REDACTED]'
    """

    def __init__(self, sensitive_values: Iterable[str] = ()):
        self.sensitive_values: List[str] = []
        self.add_values(sensitive_values)

    @classmethod
    def from_variables(cls, values: Dict[str, Any], sensitive_names: Iterable[str]) -> "OutputRedactor":
        """
        Build a redactor from variable values.

        Map and list values contribute each of their leaf values.
        """
        redactor = cls()
        for name in sensitive_names:
            if name in values:
                redactor.add_values(_leaf_strings(values[name]))
        return redactor

    def add_values(self, values: Iterable[str]):
        for value in values:
            if value and len(value) >= MIN_SECRET_LENGTH and value not in self.sensitive_values:
                self.sensitive_values.append(value)
        # Longest first so a secret containing another is fully replaced
        self.sensitive_values.sort(key=len, reverse=True)

    def redact(self, text: str) -> str:
        """
        Replace any occurrence of sensitive values with [REDACTED].

        Uses exact string matching, not regex.
        """
        if not text:
            return text

        for sensitive_value in self.sensitive_values:
            text = text.replace(sensitive_value, REDACTED)
        return text

    def clear(self):
        self.sensitive_values.clear()


def _leaf_strings(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, dict):
        leaves = []
        for item in value.values():
            leaves.extend(_leaf_strings(item))
        return leaves
    if isinstance(value, (list, tuple, set)):
        leaves = []
        for item in value:
            leaves.extend(_leaf_strings(item))
        return leaves
    return [str(value)]

"""
Redaction of sensitive values from captured engine output.
"""

from typing import Iterable, List, Union


class OutputRedactor:
    """
    Replaces known sensitive values in text with [REDACTED].

    TerraformLifecycle registers the session credentials here so that
    nothing terraform echoes back (error messages quoting the
    credentials path, debug output) leaks them to the caller's logs.

    Example:
        >>> redactor = OutputRedactor(["secret123"])
        >>> redactor.redact("Connecting with key: secret123")
        'Connecting with key: [REDACTED]'
    """

    PLACEHOLDER = "[REDACTED]"

    def __init__(self, sensitive_values: Iterable[Union[str, bytes]] = ()):
        self.sensitive_values: List[str] = []
        for value in sensitive_values:
            self.add_value(value)

    def add_value(self, value: Union[str, bytes]):
        """Register one more value to redact. Empty values are ignored."""
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        if value and value not in self.sensitive_values:
            self.sensitive_values.append(value)

    def redact(self, text: str) -> str:
        """
        Replace any occurrence of sensitive values with [REDACTED].

        Uses plain string replacement rather than regex, and replaces
        longer values first so overlapping secrets are fully covered.
        """
        if not text:
            return text

        redacted = text
        for sensitive_value in sorted(self.sensitive_values, key=len, reverse=True):
            redacted = redacted.replace(sensitive_value, self.PLACEHOLDER)

        return redacted

    def clear(self):
        """Forget all registered values."""
        self.sensitive_values.clear()

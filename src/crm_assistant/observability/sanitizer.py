"""Sensitive data sanitization for logging.

The session cookie carries the user identity and the model client sends an
API key header, so both are redacted before anything reaches the log.
"""

from typing import Any

from crm_assistant.observability.constants import (
    REDACTED_VALUE,
    SENSITIVE_FIELD_PATTERNS,
    SENSITIVE_FIELDS,
)

_SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "set-cookie", "x-goog-api-key"})


def _is_sensitive_field(field_name: str) -> bool:
    field_lower = field_name.lower()

    if field_lower in SENSITIVE_FIELDS:
        return True

    return any(pattern in field_lower for pattern in SENSITIVE_FIELD_PATTERNS)


def sanitize(data: Any, max_depth: int = 10) -> Any:
    """Recursively redact sensitive fields from a structure.

    Args:
        data: The data to sanitize (dict, list, or scalar).
        max_depth: Maximum recursion depth to prevent infinite loops.

    Returns:
        Sanitized copy of the data with sensitive fields redacted.
    """
    if max_depth <= 0:
        return REDACTED_VALUE

    if isinstance(data, dict):
        return {
            k: REDACTED_VALUE if _is_sensitive_field(str(k)) else sanitize(v, max_depth - 1)
            for k, v in data.items()
        }

    if isinstance(data, list):
        return [sanitize(item, max_depth - 1) for item in data]

    if isinstance(data, tuple):
        return tuple(sanitize(item, max_depth - 1) for item in data)

    return data


def sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of HTTP headers with credentials and cookies redacted."""
    return {
        k: REDACTED_VALUE if k.lower() in _SENSITIVE_HEADERS else v for k, v in headers.items()
    }

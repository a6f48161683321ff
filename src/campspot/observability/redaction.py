"""Redaction helpers for safe logging.

Cancellation reasons, payment details and guest contact data are free text
and pass through these before reaching a log line. Stay dates are kept.
"""

import re
from decimal import Decimal
from typing import Any

# Bearer tokens and bare JWTs (OIDC access tokens)
_TOKEN_PATTERN = re.compile(
    r"(?i)\bbearer\s+[\w\-.~+/]+=*|\beyJ[\w-]+\.[\w-]+\.[\w-]*"
)
# Payment card numbers: 13 to 19 digits, optionally grouped
_CARD_PATTERN = re.compile(r"\b\d(?:[ -]?\d){12,18}\b")
# Phone numbers; ISO dates (YYYY-MM-DD) are not phone numbers
_PHONE_PATTERN = re.compile(r"\+?(?!\d{4}-\d{2}-\d{2}\b)\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

_REDACTED = "[REDACTED]"


def redact_string(value: str) -> str:
    """Redact tokens, card numbers and contact details from a string."""
    result = _TOKEN_PATTERN.sub(_REDACTED, value)
    result = _CARD_PATTERN.sub(_REDACTED, result)
    result = _PHONE_PATTERN.sub(_REDACTED, result)
    result = _EMAIL_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        # Enum members (statuses) are safe identifiers
        return value.value
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # For dicts, only log keys (structure), never values
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    # For any other type, only log type name
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}

"""Human-readable ticket numbers for feedback records."""

import secrets
import string
import time
from typing import Optional

_BASE36_ALPHABET = string.digits + string.ascii_uppercase

TYPE_PREFIXES = {
    "bug": "BUG-",
    "suggestion": "SUG-",
}
DEFAULT_PREFIX = "SUP-"


def to_base36(value: int) -> str:
    """Encode a non-negative integer in upper-case base36."""
    if value < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if value == 0:
        return "0"

    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def ticket_prefix(feedback_type: Optional[str]) -> str:
    return TYPE_PREFIXES.get(feedback_type or "", DEFAULT_PREFIX)


def generate_ticket_number(feedback_type: Optional[str], now_ms: Optional[int] = None) -> str:
    """Generate a ticket number such as ``BUG-K3ZQ7XYA``.

    The code is the type prefix, the last four base36 digits of the epoch
    timestamp in milliseconds and four random base36 characters.

    Args:
        feedback_type: Feedback type ("bug", "suggestion", anything else)
        now_ms: Timestamp override in epoch milliseconds

    Returns:
        Ticket number string
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    timestamp = to_base36(now_ms)[-4:]
    random_chars = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(4))
    return f"{ticket_prefix(feedback_type)}{timestamp}{random_chars}"

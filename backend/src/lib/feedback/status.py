"""Feedback status values and the invalid-status policy.

The ``feedback_status`` Postgres enum is the source of truth at runtime; the
``FeedbackStatus`` enum below mirrors the labels created by schema
initialization.
"""

import enum
import logging
from typing import Optional

from src.lib.exceptions import InvalidStatusError

logger = logging.getLogger(__name__)


class FeedbackStatus(str, enum.Enum):
    """Lifecycle states of a feedback record.

    - Initial: PENDING, NEW
    - Review: IN_REVIEW, TRIAGED
    - Action: IN_PROGRESS, PLANNED, BLOCKED, NEEDS_INFO
    - Resolution: RESOLVED, COMPLETED, VERIFIED, DEPLOYED
    - Closing: CLOSED, DUPLICATE, WONT_FIX, INVALID
    - Other: MIGRATED, ARCHIVED, REOPENED, OK
    """

    PENDING = "pending"
    NEW = "new"
    IN_REVIEW = "inReview"
    TRIAGED = "triaged"
    IN_PROGRESS = "inProgress"
    PLANNED = "planned"
    BLOCKED = "blocked"
    NEEDS_INFO = "needsInfo"
    RESOLVED = "resolved"
    COMPLETED = "completed"
    VERIFIED = "verified"
    DEPLOYED = "deployed"
    CLOSED = "closed"
    DUPLICATE = "duplicate"
    WONT_FIX = "wontFix"
    INVALID = "invalid"
    MIGRATED = "migrated"
    ARCHIVED = "archived"
    REOPENED = "reopened"
    OK = "ok"


DEFAULT_STATUS = FeedbackStatus.PENDING.value


class InvalidStatusPolicy(str, enum.Enum):
    """What a write path does with a status the enum does not contain."""

    COERCE = "coerce"
    REJECT = "reject"


def apply_status_policy(
    status: str,
    is_valid: bool,
    policy: InvalidStatusPolicy,
) -> str:
    """Return the status to persist, or raise per ``policy``.

    Args:
        status: Candidate status supplied by the caller
        is_valid: Whether ``status`` is a label of the live enum
        policy: Policy configured for the calling write path

    Returns:
        ``status`` when valid, ``DEFAULT_STATUS`` when coerced

    Raises:
        InvalidStatusError: If the status is invalid and the policy is REJECT
    """
    if is_valid:
        return status

    if policy == InvalidStatusPolicy.REJECT:
        raise InvalidStatusError(status)

    logger.warning("Invalid status value: %s, defaulting to '%s'", status, DEFAULT_STATUS)
    return DEFAULT_STATUS


def parse_policy(value: Optional[str], default: InvalidStatusPolicy) -> InvalidStatusPolicy:
    if not value:
        return default
    try:
        return InvalidStatusPolicy(value.lower())
    except ValueError:
        logger.warning("Unknown status policy '%s', using '%s'", value, default.value)
        return default

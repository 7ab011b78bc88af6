"""API module for the Feedback Hub."""

from . import health
from . import support

__all__ = [
    "health",
    "support",
]

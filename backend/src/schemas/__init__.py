"""
Schema package - Re-exports the API request and response models.
"""

from .support import *  # noqa: F401, F403

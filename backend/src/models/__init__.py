"""Models package for the Feedback Hub database layer."""

from .sql import SessionLocal, engine, get_db

__all__ = [
    "SessionLocal",
    "engine",
    "get_db",
]

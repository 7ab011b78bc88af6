"""SQL models module."""

from .database import SessionLocal, engine, get_db

__all__ = [
    "SessionLocal",
    "engine",
    "get_db",
]

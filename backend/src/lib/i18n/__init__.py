"""Localized API messages."""

from .translator import (
    Translator,
    available_locales,
    get_translator,
    parse_accept_language,
    resolve_locale,
)

__all__ = [
    "Translator",
    "available_locales",
    "get_translator",
    "parse_accept_language",
    "resolve_locale",
]

"""Translation catalogs and locale resolution.

Locale resolution is a pure function of its inputs; the resulting
``Translator`` is passed explicitly to whatever renders messages. Nothing in
this module reads or writes process-wide locale state.

Usage:
    locale = resolve_locale(requested="es", stored=None,
                            accept_language="en-US,en;q=0.9",
                            available=available_locales(), default="en")
    t = Translator.for_locale(locale)
    t("support", "created")
"""

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml
from fastapi import Request

from src.config import get_default_locale

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"
FALLBACK_LOCALE = "en"
LOCALE_QUERY_PARAM = "locale"
STORED_LOCALE_HEADER = "X-Feedback-Language"

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


@lru_cache(maxsize=1)
def load_catalogs() -> Dict[str, Dict[str, Any]]:
    """Load every ``locales/<code>.yaml`` catalog, keyed by locale code."""
    catalogs = {}
    for path in sorted(LOCALES_DIR.glob("*.yaml")):
        with open(path, "r", encoding="utf-8") as f:
            catalogs[path.stem] = yaml.safe_load(f) or {}
    logger.debug("Loaded translation catalogs: %s", list(catalogs))
    return catalogs


def available_locales() -> List[str]:
    return list(load_catalogs().keys())


def parse_accept_language(header: Optional[str]) -> List[str]:
    """Primary language subtags from an Accept-Language header, best first."""
    if not header:
        return []

    weighted = []
    for position, part in enumerate(header.split(",")):
        pieces = part.strip().split(";")
        tag = pieces[0].strip()
        if not tag or tag == "*":
            continue
        quality = 1.0
        for param in pieces[1:]:
            name, _, value = param.strip().partition("=")
            if name == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0
        weighted.append((-quality, position, tag.split("-")[0].lower()))

    return [tag for _, _, tag in sorted(weighted)]


def resolve_locale(
    requested: Optional[str],
    stored: Optional[str],
    accept_language: Optional[str],
    available: Iterable[str],
    default: str,
) -> str:
    """Pick a locale: requested, then stored preference, then Accept-Language, then default."""
    available = set(available)
    candidates = [requested, stored, *parse_accept_language(accept_language)]
    for candidate in candidates:
        if candidate and candidate in available:
            return candidate
    return default if default in available else FALLBACK_LOCALE


class Translator:
    """Looks up dot-separated keys within a component of one catalog."""

    def __init__(self, locale: str, catalog: Mapping[str, Any]):
        self.locale = locale
        self.catalog = catalog

    @classmethod
    def for_locale(cls, locale: str) -> "Translator":
        catalogs = load_catalogs()
        catalog = catalogs.get(locale) or catalogs.get(get_default_locale()) or catalogs.get(FALLBACK_LOCALE, {})
        return cls(locale, catalog)

    def t(self, component: str, key: str, **params: Any) -> str:
        """Translate ``key`` under ``component``; unknown keys return ``key``.

        ``{name}`` placeholders are replaced by matching params and left as-is
        otherwise.
        """
        value: Any = self.catalog.get(component)
        for part in key.split("."):
            if isinstance(value, Mapping):
                value = value.get(part)
            else:
                return key

        if not isinstance(value, str):
            return key

        if params:
            return _PLACEHOLDER.sub(
                lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0),
                value,
            )
        return value

    __call__ = t


def get_translator(request: Request) -> Translator:
    """FastAPI dependency building the translator for this request."""
    locale = resolve_locale(
        requested=request.query_params.get(LOCALE_QUERY_PARAM),
        stored=request.headers.get(STORED_LOCALE_HEADER),
        accept_language=request.headers.get("Accept-Language"),
        available=available_locales(),
        default=get_default_locale(),
    )
    return Translator.for_locale(locale)

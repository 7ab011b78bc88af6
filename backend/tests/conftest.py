"""
Pytest configuration and fixtures for backend tests.
"""
import sys
from pathlib import Path

import pytest


# Make ``src`` and ``main`` importable when pytest is run from the repo root
backend_path = Path(__file__).resolve().parents[1]
if str(backend_path) not in sys.path:
    sys.path.insert(0, str(backend_path))


@pytest.fixture(autouse=True)
def isolated_integrations(monkeypatch):
    """Start every test without CRM or blob storage credentials."""
    for name in (
        "MONDAY_API_KEY",
        "MONDAY_BUG_BOARD",
        "BLOB_BUCKET",
        "BLOB_PUBLIC_BASE_URL",
        "BLOB_ENDPOINT_URL",
        "BLOB_REGION",
        "FEEDBACK_INSERT_STATUS_POLICY",
        "FEEDBACK_UPDATE_STATUS_POLICY",
        "DEFAULT_PAGE_LIMIT",
        "FEEDBACK_DEFAULT_LOCALE",
    ):
        monkeypatch.delenv(name, raising=False)

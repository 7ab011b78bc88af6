"""Shared configuration for contract tests.

Contract tests exercise the HTTP surface with the database dependency
overridden by a MagicMock session, so no Postgres is needed.
"""

import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient


@pytest.fixture
def mock_db():
    """Mock database session injected in place of get_db."""
    return MagicMock()


@pytest.fixture
def client(mock_db):
    """Create test client with the database dependency overridden."""
    from main import app
    from src.models.sql.database import get_db

    app.dependency_overrides[get_db] = lambda: mock_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

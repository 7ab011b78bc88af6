"""Contract tests for GET /health."""

from sqlalchemy.exc import OperationalError


def test_health_connected(client, mock_db):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["site"] == "Main 12"
    assert data["integrations"] == {"blob_storage": False, "monday": False}
    assert str(mock_db.execute.call_args.args[0]) == "SELECT 1"


def test_health_database_down(client, mock_db):
    mock_db.execute.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))

    response = client.get("/health")

    assert response.status_code == 503
    detail = response.json()["detail"]
    assert detail["status"] == "unhealthy"
    assert detail["database"] == "disconnected"


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/health"

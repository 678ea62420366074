"""Tests for main API endpoints."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from finance_automation import __version__


def test_health_check_with_db(client: TestClient) -> None:
    """Test health check endpoint returns healthy status with database."""
    with patch("finance_automation.main.check_database_health") as mock_db:
        mock_db.return_value = {"status": "connected"}
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["database"]["status"] == "connected"


def test_health_check_without_db(client: TestClient) -> None:
    """Test health check endpoint returns degraded status without database."""
    with patch("finance_automation.main.check_database_health") as mock_db:
        mock_db.return_value = {"status": "disconnected", "error": "Connection failed"}
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["database"]["status"] == "disconnected"


def test_root(client: TestClient) -> None:
    """Test root endpoint returns welcome message."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "Finance Automation API" in data["message"]
    assert data["version"] == __version__


def test_api_routes_registered(client: TestClient) -> None:
    """Test automation routes are mounted under /api/v1."""
    paths = {route.path for route in client.app.routes}
    assert "/api/v1/automation-rules" in paths
    assert "/api/v1/automation-rules/resolve" in paths
    assert "/api/v1/automation-rules/generate-account-rules" in paths
    assert "/api/v1/transactions" in paths

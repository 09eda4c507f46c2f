"""Tests for health endpoints."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from edustore.core.database import AsyncCassandraConnection


def test_liveness(client: TestClient) -> None:
    """Test the liveness endpoint."""
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness(client: TestClient) -> None:
    """Test the readiness endpoint with Cassandra connected."""
    with patch.object(AsyncCassandraConnection, "is_connected", return_value=True):
        response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["cassandra"] is True
    assert "environment" in data


def test_readiness_without_database(client: TestClient) -> None:
    """Readiness fails while Cassandra is unavailable."""
    with patch.object(AsyncCassandraConnection, "is_connected", return_value=False):
        response = client.get("/health/ready")
    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_health(client: TestClient) -> None:
    """Test the general health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["app_name"] == "edustore"
    assert "version" in data
    assert "environment" in data


def test_root(client: TestClient) -> None:
    """Test the root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "EduStore" in data["message"]
    assert "version" in data

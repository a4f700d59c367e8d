"""Tests for the healthcheck endpoint."""

from __future__ import annotations


def test_health_endpoint_returns_ok(client):
    """The healthcheck endpoint reports the database and engine configuration."""

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "database": "ok", "execution_engine": True}


def test_health_endpoint_does_not_require_token(client):
    response = client.get("/api/health", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 200

"""Tests for liveness and readiness probes."""

import app.infrastructure.database as db_module
from app.config import get_settings


async def test_liveness(client):
    resp = await client.get("/api/v1/health/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.json()["service"] == "user-journey-analytics-api"


async def test_liveness_reports_integrations(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "smtp_host", "smtp.example.com")
    resp = await client.get("/api/v1/health/")
    assert resp.json()["integrations"] == {"ai": True, "stripe": False, "smtp": True}


async def test_ready_with_database(client):
    resp = await client.get("/api/v1/health/ready")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ready", "checks": {"database": "healthy"}}


async def test_not_ready_without_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)
    resp = await client.get("/api/v1/health/ready")
    assert resp.status_code == 503
    assert resp.json()["reason"] == "database_unavailable"


async def test_not_ready_when_check_fails(client, monkeypatch):
    async def failing_check():
        return False

    monkeypatch.setattr(db_module.db_manager, "health_check", failing_check)
    resp = await client.get("/api/v1/health/ready")
    assert resp.status_code == 503

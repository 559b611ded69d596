"""Tests for the shared error envelope produced by the global handlers."""

import uuid

from app.api.error_handlers import field_path
from app.core.errors import AnthropicAPIError


def test_field_path_drops_location_prefix():
    assert field_path(("body", "goals", 0, "url")) == "goals.0.url"
    assert field_path(("query", "period")) == "period"
    assert field_path(("password",)) == "password"


async def test_validation_error_names_first_field(client):
    resp = await client.post("/api/v1/auth/register", json={
        "email": "a@example.com", "password": "123",
    })
    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["category"] == "validation"
    assert error["details"][0]["field"] == "password"
    assert error["message"].startswith("password: ")


async def test_domain_error_carries_code_and_status(client, user_headers):
    resp = await client.get(f"/api/v1/projects/{uuid.uuid4()}", headers=user_headers)
    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["code"] == "RESOURCE_NOT_FOUND"
    assert "timestamp" in error


async def test_rate_limited_ai_sets_retry_after(client, user_headers, mock_ai, monkeypatch):
    async def rate_limited(**kwargs):
        raise AnthropicAPIError(
            "Rate limit exceeded after retries", "rate_limit",
            retry_after_ms=2500, context=kwargs["context"],
        )

    monkeypatch.setattr(mock_ai, "create_message", rate_limited)
    resp = await client.post("/api/v1/ai/chat", headers=user_headers, json={"prompt": "Hello"})
    assert resp.status_code == 503
    assert resp.headers["retry-after"] == "3"
    error = resp.json()["error"]
    assert error["code"] == "ANTHROPIC_API_ERROR"
    assert error["context"]["feature"] == "ai-chat"
    assert error["context"]["retry_after_ms"] == 2500

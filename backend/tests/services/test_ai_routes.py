"""Tests for AI status, chat and the stored AI analyses."""

import pytest
from sqlalchemy import select

from app.config import get_settings
from app.models.ai_report import AIReport
from app.models.ai_usage_log import AIUsageLog
from app.services.ai_insights import get_ai_client
from app.main import app
from tests.services.event_rows import insert_events


@pytest.fixture
def ai_unconfigured(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "anthropic_api_key", "sk-ant-placeholder")
    app.dependency_overrides.pop(get_ai_client, None)


# ─── Status & chat ──────────────────────────────────────────────


async def test_status_reports_configured_model(client, user_headers):
    resp = await client.get("/api/v1/ai/status", headers=user_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["available"] is True
    assert body["provider"] == "anthropic"
    assert body["model"] == get_settings().ai_model


async def test_status_without_key(client, user_headers, ai_unconfigured):
    resp = await client.get("/api/v1/ai/status", headers=user_headers)
    assert resp.json() == {"available": False, "provider": None, "model": None}


async def test_status_requires_login(client):
    resp = await client.get("/api/v1/ai/status")
    assert resp.status_code == 401


async def test_chat_answers_and_logs_usage(client, user, user_headers, mock_ai, test_db):
    mock_ai.reply("Focus on your pricing page.")
    resp = await client.post("/api/v1/ai/chat", headers=user_headers, json={
        "prompt": "How do I grow signups?", "pageContext": "funnels",
    })
    assert resp.status_code == 200
    assert resp.json() == {"answer": "Focus on your pricing page."}
    assert mock_ai.last_prompt == "How do I grow signups?"
    assert "funnel analyst" in mock_ai.last_system

    log = (await test_db.execute(select(AIUsageLog))).scalar_one()
    assert log.feature == "ai-chat"
    assert log.user_id == user.id
    assert log.input_tokens == 1200
    assert log.output_tokens == 300


async def test_chat_with_project_adds_analytics_context(
    client, user_headers, project, mock_ai, test_db,
):
    await insert_events(test_db, project, {"visitor_id": "v1", "page": "/pricing"})
    resp = await client.post("/api/v1/ai/chat", headers=user_headers, json={
        "prompt": "Summarise my traffic", "projectId": str(project.id),
    })
    assert resp.status_code == 200
    assert "Project: Shop (shop.example.com)" in mock_ai.last_system
    assert "Analytics summary" in mock_ai.last_system


async def test_chat_on_foreign_project_denied(client, other_headers, project, mock_ai):
    resp = await client.post("/api/v1/ai/chat", headers=other_headers, json={
        "prompt": "Summarise", "projectId": str(project.id),
    })
    assert resp.status_code == 403
    assert mock_ai.calls == []


async def test_chat_rejects_blank_prompt(client, user_headers):
    resp = await client.post("/api/v1/ai/chat", headers=user_headers, json={"prompt": ""})
    assert resp.status_code == 400


async def test_chat_without_key_is_unavailable(client, user_headers, ai_unconfigured, test_db):
    resp = await client.post("/api/v1/ai/chat", headers=user_headers, json={"prompt": "Hi"})
    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "AI_UNAVAILABLE"
    assert (await test_db.execute(select(AIUsageLog))).first() is None


# ─── Stored analyses ────────────────────────────────────────────


@pytest.mark.parametrize("path,kind,feature", [
    ("predictive-analytics", "predictive", "predictive-analytics"),
    ("ux-audits", "ux_audit", "ux-audit"),
    ("marketing-copilot", "marketing_copilot", "marketing-copilot"),
    ("content-gap", "content_gap", "content-gap-analysis"),
])
async def test_run_analysis_stores_report(
    client, user_headers, project_url, mock_ai, test_db, path, kind, feature,
):
    mock_ai.json_reply({"summary": "All good"})
    resp = await client.post(f"{project_url}/{path}/run", headers=user_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["kind"] == kind
    assert body["status"] == "completed"
    assert "shop.example.com" in body["prompt"]

    log = (await test_db.execute(select(AIUsageLog))).scalar_one()
    assert log.feature == feature


async def test_predictive_result_keeps_full_shape(client, user_headers, project_url, mock_ai):
    mock_ai.json_reply({
        "churnRiskScore": 0.42,
        "churnDrivers": [{"factor": "Slow checkout", "impact": "high"}],
        "summary": "Churn risk is moderate.",
    })
    resp = await client.post(f"{project_url}/predictive-analytics/run", headers=user_headers)
    body = resp.json()
    assert body["summary"] == "Churn risk is moderate."
    result = body["result"]
    assert result["churnRiskScore"] == 0.42
    assert result["churnDrivers"][0]["factor"] == "Slow checkout"
    assert result["revenueTrend"] == {"current": 0, "projected": []}
    assert result["recommendations"] == []
    assert result["conversionProbability"] == 0


async def test_run_uses_custom_prompt_and_domain(client, user_headers, project_url, mock_ai):
    mock_ai.json_reply({"keywords": []})
    resp = await client.post(f"{project_url}/content-gap/run", headers=user_headers, json={
        "prompt": "Find gaps against competitors", "domain": "rival.example.net",
    })
    assert resp.status_code == 201
    assert resp.json()["prompt"] == "Find gaps against competitors"
    assert mock_ai.last_prompt == "Find gaps against competitors"
    assert "rival.example.net" in mock_ai.last_system


async def test_unparseable_reply_is_not_stored(client, user_headers, project_url, mock_ai, test_db):
    mock_ai.reply("I cannot help with that.")
    resp = await client.post(f"{project_url}/ux-audits/run", headers=user_headers)
    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "AI_RESPONSE_INVALID"
    assert (await test_db.execute(select(AIReport))).first() is None


async def test_list_get_and_delete_analysis(client, user_headers, project_url, mock_ai):
    mock_ai.json_reply({"score": 71, "summary": "Decent"})
    created = (await client.post(f"{project_url}/ux-audits/run", headers=user_headers)).json()

    listed = await client.get(f"{project_url}/ux-audits", headers=user_headers)
    assert [r["id"] for r in listed.json()] == [created["id"]]

    fetched = await client.get(f"{project_url}/ux-audits/{created['id']}", headers=user_headers)
    assert fetched.status_code == 200
    assert fetched.json()["result"]["score"] == 71

    deleted = await client.delete(f"{project_url}/ux-audits/{created['id']}", headers=user_headers)
    assert deleted.status_code == 200
    assert "deleted" in deleted.json()["message"]
    gone = await client.get(f"{project_url}/ux-audits/{created['id']}", headers=user_headers)
    assert gone.status_code == 404


async def test_report_of_other_kind_not_found(client, user_headers, project_url, mock_ai):
    mock_ai.json_reply({"score": 50})
    created = (await client.post(f"{project_url}/ux-audits/run", headers=user_headers)).json()

    resp = await client.get(
        f"{project_url}/predictive-analytics/{created['id']}", headers=user_headers,
    )
    assert resp.status_code == 404
    listed = await client.get(f"{project_url}/predictive-analytics", headers=user_headers)
    assert listed.json() == []


async def test_analysis_of_foreign_project_denied(client, other_headers, project_url, mock_ai):
    resp = await client.post(f"{project_url}/marketing-copilot/run", headers=other_headers)
    assert resp.status_code == 403
    assert mock_ai.calls == []


async def test_analysis_without_key_is_unavailable(
    client, user_headers, project_url, ai_unconfigured,
):
    resp = await client.post(f"{project_url}/predictive-analytics/run", headers=user_headers)
    assert resp.status_code == 503

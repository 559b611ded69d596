"""Tests for saved custom reports — CRUD, data, prompt-built reports and AI insights."""

import pytest
from sqlalchemy import select

from app.models.ai_usage_log import AIUsageLog
from tests.services.event_rows import insert_events, minutes_ago


@pytest.fixture
async def report_url(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/reports", headers=user_headers, json={
        "name": "Views by device",
        "metrics": ["pageViews", "visitors"],
        "dimensions": ["device"],
        "chartType": "bar",
        "filters": {"excludeBots": True},
    })
    assert resp.status_code == 201
    return f"{project_url}/reports/{resp.json()['id']}"


@pytest.fixture
async def device_events(test_db, project):
    return await insert_events(
        test_db, project,
        {"visitor_id": "v1", "device": "Desktop", "page": "/", "timestamp": minutes_ago(30)},
        {"visitor_id": "v1", "device": "Desktop", "page": "/a", "timestamp": minutes_ago(29)},
        {"visitor_id": "v2", "device": "Mobile", "page": "/", "timestamp": minutes_ago(20)},
        {"visitor_id": "crawler", "device": "Desktop", "page": "/", "is_bot": True,
         "timestamp": minutes_ago(10)},
    )


async def test_unknown_metric_rejected(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/reports", headers=user_headers, json={
        "name": "x", "metrics": ["revenue"],
    })
    assert resp.status_code == 400


async def test_defaults_applied(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/reports", headers=user_headers, json={
        "name": "Daily views", "metrics": ["pageViews"],
    })
    data = resp.json()
    assert data["dimensions"] == ["date"]
    assert data["chartType"] == "line"
    assert data["dateRange"] == "last_30_days"


async def test_report_data_honours_filters(client, user_headers, report_url, device_events):
    data = (await client.get(f"{report_url}/data", headers=user_headers)).json()
    assert data["dimension"] == "device"
    assert data["rows"] == [
        {"dimension": "Desktop", "pageViews": 2, "visitors": 1},
        {"dimension": "Mobile", "pageViews": 1, "visitors": 1},
    ]
    assert data["report"]["name"] == "Views by device"
    assert data["totalEvents"] == 4


async def test_report_data_explicit_range(client, user_headers, report_url, device_events):
    data = (await client.get(
        f"{report_url}/data", headers=user_headers,
        params={"from": "2020-01-01", "to": "2020-01-31"},
    )).json()
    assert data["rows"] == []
    assert data["dateRange"]["from"].startswith("2020-01-01")


async def test_patch_clears_filters(client, user_headers, report_url):
    resp = await client.patch(report_url, headers=user_headers, json={
        "filters": None, "chartType": "pie",
    })
    data = resp.json()
    assert data["filters"] is None
    assert data["chartType"] == "pie"
    assert data["metrics"] == ["pageViews", "visitors"]


async def test_delete(client, project_url, user_headers, report_url):
    assert (await client.delete(report_url, headers=user_headers)).status_code == 200
    assert (await client.get(f"{project_url}/reports", headers=user_headers)).json() == []


async def test_generate_from_prompt_is_not_billed(client, project_url, user_headers, mock_ai, test_db):
    resp = await client.post(
        f"{project_url}/ai-generate-report", headers=user_headers,
        json={"prompt": "Clicks by browser this year, no bots"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["metrics"] == ["clicks", "bots"]
    assert data["dimensions"] == ["browser"]
    assert data["dateRange"] == "this_year"
    assert data["filters"] == {"excludeBots": True}
    assert data["description"] == "Clicks by browser this year, no bots"
    assert mock_ai.calls == []
    assert (await test_db.execute(select(AIUsageLog))).first() is None


async def test_ai_insights_logs_usage(client, user_headers, report_url, device_events, mock_ai, test_db):
    mock_ai.reply("1. Mobile traffic is low.", input_tokens=2000, output_tokens=500)
    resp = await client.post(f"{report_url}/ai-insights", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["insights"] == "1. Mobile traffic is low."
    assert "Views by device" in mock_ai.last_prompt

    log = (await test_db.execute(select(AIUsageLog))).scalar_one()
    assert log.feature == "report-insights"
    assert log.input_tokens == 2000
    assert log.cost_usd == pytest.approx(2 * 0.001 + 0.5 * 0.005)

"""Tests for funnel routes — CRUD, analysis and AI generation."""

import pytest
from sqlalchemy import select

from app.models.ai_usage_log import AIUsageLog
from app.models.funnel import Funnel
from app.models.project import Project
from tests.services.event_rows import insert_events, minutes_ago

STEPS = [
    {"name": "Landing", "type": "pageview", "value": "/"},
    {"name": "Pricing", "type": "pageview", "value": "/pricing"},
    {"name": "Signup", "type": "event", "value": "form_submit"},
]


@pytest.fixture
async def funnel_url(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/funnels", headers=user_headers, json={
        "name": "Signup flow", "steps": STEPS,
    })
    assert resp.status_code == 201
    return f"{project_url}/funnels/{resp.json()['id']}"


async def test_create_and_list(client, project_url, user_headers, funnel_url):
    listed = (await client.get(f"{project_url}/funnels", headers=user_headers)).json()
    assert [f["name"] for f in listed] == ["Signup flow"]
    assert listed[0]["steps"] == STEPS


async def test_unknown_step_type_rejected(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/funnels", headers=user_headers, json={
        "name": "Bad", "steps": [{"name": "x", "type": "hover", "value": "/"}],
    })
    assert resp.status_code == 400


async def test_update_and_clear_description(client, user_headers, funnel_url):
    await client.patch(funnel_url, headers=user_headers, json={"description": "v1"})
    resp = await client.patch(funnel_url, headers=user_headers, json={
        "name": "Renamed", "description": None, "steps": STEPS[:1],
    })
    data = resp.json()
    assert data["name"] == "Renamed"
    assert data["description"] is None
    assert len(data["steps"]) == 1


async def test_delete(client, user_headers, funnel_url):
    assert (await client.delete(funnel_url, headers=user_headers)).status_code == 200
    assert (await client.get(funnel_url, headers=user_headers)).status_code == 404


async def test_funnel_of_other_project_is_404(client, funnel_url, test_db, user, user_headers):
    other = Project(user_id=user.id, name="Other", domain="other.com")
    test_db.add(other)
    await test_db.commit()
    foreign_url = funnel_url.replace(funnel_url.split("/")[4], str(other.id))
    assert (await client.get(foreign_url, headers=user_headers)).status_code == 404


async def test_analysis_counts_sequential_sessions(client, user_headers, funnel_url, test_db, project):
    await insert_events(
        test_db, project,
        {"session_id": "a", "page": "/", "timestamp": minutes_ago(30)},
        {"session_id": "a", "page": "/pricing", "timestamp": minutes_ago(29)},
        {"session_id": "a", "event_type": "form_submit", "page": "/pricing", "timestamp": minutes_ago(28)},
        {"session_id": "b", "page": "/", "timestamp": minutes_ago(20)},
        {"session_id": "b", "page": "/pricing", "timestamp": minutes_ago(19)},
        {"session_id": "c", "page": "/pricing", "timestamp": minutes_ago(10)},
    )
    data = (await client.get(f"{funnel_url}/analysis", headers=user_headers)).json()
    # "/" is a substring of every page, so session c matches the landing step too
    assert [s["users"] for s in data["steps"]] == [3, 2, 1]
    assert data["steps"][1]["dropOff"] == 1
    assert data["overallConversion"] == pytest.approx(33.3)
    assert data["funnel"]["name"] == "Signup flow"


async def test_ai_generated_funnel(client, project_url, user_headers, mock_ai, test_db):
    mock_ai.json_reply({
        "name": "Checkout",
        "steps": [
            {"name": "Cart", "type": "pageview", "value": "/cart"},
            {"name": "Bogus", "type": "teleport", "value": "x"},
            {"type": "click", "value": "Pay now"},
        ],
    })
    resp = await client.post(
        f"{project_url}/ai-generate-funnel", headers=user_headers,
        json={"prompt": "Track checkout"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Checkout"
    assert [s["type"] for s in data["steps"]] == ["pageview", "click"]
    assert data["steps"][1]["name"] == "Pay now"
    assert "shop.example.com" in mock_ai.last_system

    logs = (await test_db.execute(select(AIUsageLog))).scalars().all()
    assert [log.feature for log in logs] == ["ai-funnel-generation"]


async def test_ai_funnel_without_valid_steps_is_not_stored(client, project_url, user_headers, mock_ai, test_db):
    mock_ai.json_reply({"name": "Nothing", "steps": []})
    resp = await client.post(
        f"{project_url}/ai-generate-funnel", headers=user_headers, json={"prompt": "Anything"},
    )
    assert resp.status_code == 502
    assert (await test_db.execute(select(Funnel))).first() is None

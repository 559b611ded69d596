"""Tests for custom event definitions — CRUD, templates, matches, conversion analysis."""

import pytest

from tests.services.event_rows import insert_events, minutes_ago

PURCHASE_RULES = [
    {"field": "eventType", "operator": "equals", "value": "form_submit"},
    {"field": "page", "operator": "contains", "value": "checkout"},
]


@pytest.fixture
async def definition_url(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/custom-events", headers=user_headers, json={
        "name": "Checkout submit", "category": "purchase", "rules": PURCHASE_RULES,
    })
    assert resp.status_code == 201
    return f"{project_url}/custom-events/{resp.json()['id']}"


@pytest.fixture
async def shop_events(test_db, project):
    return await insert_events(
        test_db, project,
        {"session_id": "a", "visitor_id": "v1", "page": "/cart", "traffic_source": "social",
         "timestamp": minutes_ago(30)},
        {"session_id": "a", "visitor_id": "v1", "page": "/checkout", "timestamp": minutes_ago(29)},
        {"session_id": "a", "visitor_id": "v1", "event_type": "form_submit", "page": "/checkout",
         "timestamp": minutes_ago(28)},
        {"session_id": "b", "visitor_id": "v2", "page": "/cart", "timestamp": minutes_ago(10)},
        {"session_id": "b", "visitor_id": "v2", "event_type": "form_submit", "page": "/contact",
         "timestamp": minutes_ago(9)},
    )


async def test_create_and_list(client, project_url, user_headers, definition_url):
    listed = (await client.get(f"{project_url}/custom-events", headers=user_headers)).json()
    assert len(listed) == 1
    assert listed[0]["rules"] == PURCHASE_RULES
    assert listed[0]["isAiBuilt"] is False
    assert listed[0]["status"] == "active"


async def test_rules_required_and_validated(client, project_url, user_headers):
    empty = await client.post(f"{project_url}/custom-events", headers=user_headers, json={
        "name": "x", "rules": [],
    })
    bad_field = await client.post(f"{project_url}/custom-events", headers=user_headers, json={
        "name": "x", "rules": [{"field": "password", "operator": "equals", "value": "a"}],
    })
    bad_operator = await client.post(f"{project_url}/custom-events", headers=user_headers, json={
        "name": "x", "rules": [{"field": "page", "operator": "like", "value": "a"}],
    })
    assert empty.status_code == bad_field.status_code == bad_operator.status_code == 400


async def test_metadata_rule_field_allowed(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/custom-events", headers=user_headers, json={
        "name": "Plan chosen",
        "rules": [{"field": "metadata.plan", "operator": "equals", "value": "pro"}],
    })
    assert resp.status_code == 201


async def test_update_status_and_rules(client, user_headers, definition_url):
    resp = await client.patch(definition_url, headers=user_headers, json={
        "status": "paused",
        "rules": [{"field": "eventType", "operator": "equals", "value": "purchase"}],
    })
    data = resp.json()
    assert data["status"] == "paused"
    assert data["rules"][0]["value"] == "purchase"
    assert data["name"] == "Checkout submit"


async def test_delete(client, user_headers, definition_url):
    assert (await client.delete(definition_url, headers=user_headers)).status_code == 200
    assert (await client.get(definition_url, headers=user_headers)).status_code == 404


async def test_matches_newest_first(client, user_headers, definition_url, shop_events):
    data = (await client.get(f"{definition_url}/matches", headers=user_headers)).json()
    assert data["totalMatches"] == 1
    assert data["events"][0]["page"] == "/checkout"
    assert data["events"][0]["eventType"] == "form_submit"


async def test_conversion_analysis(client, user_headers, definition_url, shop_events):
    data = (await client.get(f"{definition_url}/conversion-analysis", headers=user_headers)).json()
    assert data["totalSessions"] == 2
    assert data["totalConversions"] == 1
    assert data["overallConversionRate"] == 50.0
    assert data["definition"]["name"] == "Checkout submit"
    social = next(row for row in data["sourceAnalysis"] if row["source"] == "social")
    assert social["conversions"] == 1
    cart = next(row for row in data["pageAnalysis"] if row["page"] == "/cart")
    assert cart["pageViews"] == 2
    assert cart["conversions"] == 1


async def test_template_creates_ai_built_definition(client, project_url, user_headers):
    resp = await client.post(
        f"{project_url}/custom-events/ai-templates", headers=user_headers, json={"template": "purchase"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Purchase"
    assert data["isAiBuilt"] is True
    assert data["rules"][1]["operator"] == "contains_any"

    again = await client.post(
        f"{project_url}/custom-events/ai-templates", headers=user_headers, json={"template": "purchase"},
    )
    assert again.status_code == 409


async def test_unknown_template(client, project_url, user_headers):
    resp = await client.post(
        f"{project_url}/custom-events/ai-templates", headers=user_headers, json={"template": "refund"},
    )
    assert resp.status_code == 400
    assert "lead" in resp.json()["error"]["message"]

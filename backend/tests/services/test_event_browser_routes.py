"""Tests for the event browser — latest events, filters, journeys, visitors, export."""

from datetime import datetime, timedelta, timezone

import pytest

from tests.services.event_rows import insert_events, minutes_ago


@pytest.fixture
async def events(test_db, project):
    return await insert_events(
        test_db, project,
        {"visitor_id": "v1", "session_id": "s1", "page": "/", "device": "Desktop",
         "timestamp": minutes_ago(30)},
        {"visitor_id": "v1", "session_id": "s1", "page": "/checkout?step=1", "device": "Desktop",
         "timestamp": minutes_ago(25)},
        {"visitor_id": "v2", "session_id": "s2", "page": "/", "device": "Mobile",
         "event_type": "click", "is_internal": True, "timestamp": minutes_ago(5)},
    )


async def test_latest_events_newest_first(client, project_url, user_headers, events):
    resp = await client.get(f"{project_url}/events", headers=user_headers, params={"limit": 2})
    data = resp.json()
    assert len(data) == 2
    assert data[0]["eventType"] == "click"


async def test_filtered_events(client, project_url, user_headers, events):
    resp = await client.get(
        f"{project_url}/events/filtered", headers=user_headers,
        params={"device": "Desktop", "page": "checkout"},
    )
    data = resp.json()
    assert data["total"] == 1
    assert data["events"][0]["page"] == "/checkout?step=1"


async def test_filtered_events_exclude_internal(client, project_url, user_headers, events):
    resp = await client.get(
        f"{project_url}/events/filtered", headers=user_headers, params={"excludeInternal": "true"},
    )
    assert resp.json()["total"] == 2


async def test_filtered_events_pagination(client, project_url, user_headers, events):
    resp = await client.get(
        f"{project_url}/events/filtered", headers=user_headers, params={"limit": 1, "offset": 1},
    )
    data = resp.json()
    assert data["total"] == 3
    assert len(data["events"]) == 1
    assert data["events"][0]["page"] == "/checkout?step=1"


@pytest.fixture
async def old_event(test_db, project):
    return await insert_events(test_db, project, {
        "visitor_id": "v0", "page": "/archive", "timestamp": minutes_ago(45 * 24 * 60),
    })


def _days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).date().isoformat()


async def _filtered_total(client, project_url, headers, **params) -> int:
    resp = await client.get(f"{project_url}/events/filtered", headers=headers, params=params)
    assert resp.status_code == 200
    return resp.json()["total"]


async def test_filtered_without_dates_is_unbounded(client, project_url, user_headers, events, old_event):
    assert await _filtered_total(client, project_url, user_headers) == 4


async def test_filtered_lone_from_is_lower_bound(client, project_url, user_headers, events, old_event):
    params = {"from": "2000-01-01"}
    assert await _filtered_total(client, project_url, user_headers, **params) == 4
    params = {"from": _days_ago(1)}
    assert await _filtered_total(client, project_url, user_headers, **params) == 3


async def test_filtered_lone_to_is_upper_bound(client, project_url, user_headers, events, old_event):
    params = {"to": _days_ago(40)}
    assert await _filtered_total(client, project_url, user_headers, **params) == 1


async def test_filtered_period_applies_without_dates(client, project_url, user_headers, events, old_event):
    params = {"period": "last_7_days"}
    assert await _filtered_total(client, project_url, user_headers, **params) == 3


async def test_filtered_inverted_bounds_rejected(client, project_url, user_headers):
    resp = await client.get(
        f"{project_url}/events/filtered", headers=user_headers,
        params={"from": "2025-02-01", "to": "2025-01-01"},
    )
    assert resp.status_code == 400


async def test_journeys(client, project_url, user_headers, events):
    data = (await client.get(f"{project_url}/journeys", headers=user_headers)).json()
    assert [j["sessionId"] for j in data] == ["s2", "s1"]
    assert data[1]["pages"] == ["/", "/checkout?step=1"]
    assert data[1]["duration"] == 300


async def test_visitors(client, project_url, user_headers, events):
    data = (await client.get(f"{project_url}/visitors", headers=user_headers)).json()
    assert {v["visitorId"] for v in data} == {"v1", "v2"}


async def test_export_json_and_csv(client, project_url, user_headers, events):
    as_json = await client.get(f"{project_url}/export", headers=user_headers)
    assert [row["eventType"] for row in as_json.json()] == ["click", "pageview", "pageview"]

    as_csv = await client.get(
        f"{project_url}/export", headers=user_headers, params={"format": "csv"},
    )
    assert as_csv.headers["content-type"].startswith("text/csv")
    assert "attachment" in as_csv.headers["content-disposition"]
    lines = as_csv.text.strip().split("\n")
    assert lines[0].startswith("id,visitorId,sessionId,eventType")
    assert len(lines) == 4


async def test_export_rejects_unknown_format(client, project_url, user_headers):
    resp = await client.get(f"{project_url}/export", headers=user_headers, params={"format": "xml"})
    assert resp.status_code == 400

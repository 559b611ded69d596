"""Tests for report routes — summary, compare, realtime and the GA4-style reports."""

import pytest

from tests.services.event_rows import insert_events, minutes_ago


@pytest.fixture
async def traffic(test_db, project):
    return await insert_events(
        test_db, project,
        {"visitor_id": "v1", "session_id": "s1", "page": "/", "device": "Desktop",
         "browser": "Chrome", "referrer": "https://www.google.com/", "traffic_source": "organic_search",
         "country": "United Kingdom", "timestamp": minutes_ago(10)},
        {"visitor_id": "v1", "session_id": "s1", "page": "/pricing", "device": "Desktop",
         "browser": "Chrome", "timestamp": minutes_ago(8)},
        {"visitor_id": "v1", "session_id": "s1", "event_type": "click", "page": "/pricing",
         "device": "Desktop", "browser": "Chrome", "timestamp": minutes_ago(7)},
        {"visitor_id": "v2", "session_id": "s2", "page": "/", "device": "Mobile",
         "browser": "Safari", "traffic_source": "direct", "timestamp": minutes_ago(60 * 24 * 3)},
        {"visitor_id": "bot", "session_id": "s3", "page": "/", "is_bot": True,
         "timestamp": minutes_ago(20)},
    )


async def test_summary_defaults_to_all_time(client, project_url, user_headers, traffic):
    resp = await client.get(f"{project_url}/analytics", headers=user_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["totalEvents"] == 5
    assert data["totalPageViews"] == 4
    assert data["totalClicks"] == 1
    assert data["botEvents"] == 1
    assert data["topPages"][0] == {"page": "/", "views": 3}
    assert data["dateRange"]["from"].startswith("1970-01-01")


async def test_summary_excludes_bots(client, project_url, user_headers, traffic):
    resp = await client.get(
        f"{project_url}/analytics", headers=user_headers, params={"excludeBots": "true"},
    )
    assert resp.json()["totalEvents"] == 4
    assert resp.json()["botEvents"] == 0


async def test_summary_period_window(client, project_url, user_headers, traffic):
    resp = await client.get(
        f"{project_url}/analytics", headers=user_headers, params={"period": "today"},
    )
    # events from three days ago fall outside today
    assert resp.json()["uniqueVisitors"] <= 2


async def test_reports_require_access(client, project_url, other_headers):
    resp = await client.get(f"{project_url}/analytics", headers=other_headers)
    assert resp.status_code == 403


async def test_compare_weekly(client, project_url, user_headers, traffic):
    resp = await client.get(
        f"{project_url}/analytics/compare", headers=user_headers, params={"period": "weekly"},
    )
    data = resp.json()
    assert data["period"] == "weekly"
    assert data["current"]["totalEvents"] == 5
    assert data["previous"]["totalEvents"] == 0
    assert data["changes"]["totalEvents"] == 100.0


async def test_compare_all_has_no_previous(client, project_url, user_headers, traffic):
    resp = await client.get(
        f"{project_url}/analytics/compare", headers=user_headers, params={"period": "all"},
    )
    data = resp.json()
    assert data["previous"] is None
    assert data["previousDateRange"] is None
    assert data["changes"]["pageViews"] is None


async def test_realtime_counts_last_thirty_minutes(client, project_url, user_headers, traffic):
    resp = await client.get(f"{project_url}/realtime", headers=user_headers)
    data = resp.json()
    assert data["activeUsers30"] == 2
    assert data["activeUsers5"] == 0
    assert len(data["perMinute"]) == 30


async def test_acquisition(client, project_url, user_headers, traffic):
    resp = await client.get(f"{project_url}/acquisition", headers=user_headers)
    data = resp.json()
    assert data["totalUsers"] == 3
    assert data["totalSessions"] == 3
    assert {row["source"] for row in data["sources"]} >= {"organic_search", "direct"}


async def test_traffic_sources_shape(client, project_url, user_headers, traffic):
    resp = await client.get(f"{project_url}/traffic-sources", headers=user_headers)
    assert set(resp.json()) == {
        "channels", "sources", "sourceMediums", "mediums", "sourcePlatforms", "campaigns",
    }


async def test_user_acquisition_new_vs_returning(client, project_url, user_headers, test_db, project, traffic):
    await insert_events(test_db, project, {
        "visitor_id": "v2", "session_id": "s-old", "page": "/", "timestamp": minutes_ago(60 * 24 * 60),
    })
    resp = await client.get(f"{project_url}/user-acquisition", headers=user_headers)
    data = resp.json()
    assert data["totalUsers"] == 3
    assert data["returningUsers"] == 1
    assert data["newUsers"] == 2


async def test_engagement(client, project_url, user_headers, traffic):
    data = (await client.get(f"{project_url}/engagement", headers=user_headers)).json()
    assert data["totalSessions"] == 3
    assert data["totalPageViews"] == 4
    assert data["avgSessionDuration"] >= 0


@pytest.mark.parametrize("path", ["pages-analysis", "geography", "tech"])
async def test_audience_reports_respond(client, project_url, user_headers, traffic, path):
    resp = await client.get(f"{project_url}/{path}", headers=user_headers)
    assert resp.status_code == 200
    assert isinstance(resp.json(), dict)


async def test_data_insight_topic_from_prompt(client, project_url, user_headers, traffic):
    resp = await client.post(
        f"{project_url}/ai-insights", headers=user_headers, json={"prompt": "How is my bounce rate?"},
    )
    data = resp.json()
    assert data["topic"] == "engagement"
    assert data["insight"]


async def test_data_insight_without_body(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/ai-insights", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["topic"] == "general"

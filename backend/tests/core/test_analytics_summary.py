"""Tests for build_summary — dashboard headline metrics from EventRecords."""

from datetime import timedelta

from app.core.analytics_summary import build_summary
from tests.core.event_factory import BASE_TIME, make_event, pageview


def test_empty_events_give_zeroes():
    summary = build_summary([])
    assert summary["totalEvents"] == 0
    assert summary["uniqueVisitors"] == 0
    assert summary["bounceRate"] == 0.0
    assert summary["avgTimeOnPage"] == 0
    assert summary["dailyViews"] == []


def test_counts_views_clicks_and_visitors():
    events = [
        pageview("/", session="s1", visitor="v1"),
        pageview("/pricing", session="s1", visitor="v1", minutes=1),
        make_event("click", 2, session_id="s1", visitor_id="v1"),
        pageview("/", session="s2", visitor="v2", minutes=3),
    ]
    summary = build_summary(events)
    assert summary["totalEvents"] == 4
    assert summary["totalPageViews"] == 3
    assert summary["totalClicks"] == 1
    assert summary["uniqueVisitors"] == 2
    assert summary["totalSessions"] == 2
    assert summary["topPages"][0] == {"page": "/", "views": 2}


def test_bounce_rate_counts_single_pageview_sessions():
    events = [
        pageview("/", session="a"),
        pageview("/docs", session="a", minutes=1),
        pageview("/", session="b"),
    ]
    assert build_summary(events)["bounceRate"] == 50.0


def test_avg_time_on_page_uses_gap_to_next_event():
    events = [
        pageview("/", session="a", minutes=0),
        pageview("/docs", session="a", minutes=2),
        make_event("click", 3, session_id="a"),
    ]
    # gaps: 120s after "/", 60s after "/docs"; the final click contributes nothing
    assert build_summary(events)["avgTimeOnPage"] == 90


def test_daily_views_sorted_chronologically():
    later = BASE_TIME + timedelta(days=1)
    events = [
        make_event("pageview", timestamp=later, page="/"),
        make_event("pageview", page="/"),
        make_event("click"),
    ]
    daily = build_summary(events)["dailyViews"]
    assert [d["date"] for d in daily] == ["03-10", "03-11"]
    assert daily[0] == {"date": "03-10", "views": 1, "clicks": 1}


def test_fingerprint_used_when_visitor_id_missing():
    events = [
        make_event(device="Mobile", browser="Safari", os="iOS", country="GB"),
        make_event(device="Mobile", browser="Safari", os="iOS", country="GB"),
        make_event(device="Desktop", browser="Chrome", os="Windows", country="GB"),
    ]
    assert build_summary(events)["uniqueVisitors"] == 2


def test_traffic_flags_counted():
    events = [make_event(is_bot=True), make_event(is_internal=True), make_event(is_server=True)]
    summary = build_summary(events)
    assert (summary["botEvents"], summary["internalEvents"], summary["serverEvents"]) == (1, 1, 1)

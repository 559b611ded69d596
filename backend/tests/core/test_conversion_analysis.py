"""Tests for conversion analysis — pages and sources leading to a custom event."""

from app.core.conversion_analysis import analyze_conversions, find_matches
from tests.core.event_factory import make_event, pageview

SIGNUP = [{"field": "eventType", "operator": "equals", "value": "signup"}]


def _events():
    return [
        pageview("/", session="a", visitor="va", traffic_source="organic_search"),
        pageview("/pricing", session="a", visitor="va", minutes=1),
        pageview("/pricing", session="a", visitor="va", minutes=2),
        make_event("signup", 3, session_id="a", visitor_id="va"),
        pageview("/", session="b", visitor="vb", traffic_source="social"),
        pageview("/blog", session="c", visitor="vc"),
    ]


def test_find_matches():
    assert [e.event_type for e in find_matches(_events(), SIGNUP)] == ["signup"]


def test_session_level_conversion_rates():
    result = analyze_conversions(_events(), SIGNUP)
    assert result["totalSessions"] == 3
    assert result["totalConversions"] == 1
    assert result["overallConversionRate"] == 33.33


def test_pages_counted_once_per_session():
    pages = {r["page"]: r for r in analyze_conversions(_events(), SIGNUP)["pageAnalysis"]}
    assert pages["/pricing"]["pageViews"] == 1
    assert pages["/pricing"]["conversions"] == 1
    assert pages["/pricing"]["uniqueConverters"] == 1
    assert pages["/"]["pageViews"] == 2
    assert pages["/"]["conversionRate"] == 50.0
    assert pages["/blog"]["conversions"] == 0


def test_source_is_first_event_source_or_direct():
    sources = {r["source"]: r for r in analyze_conversions(_events(), SIGNUP)["sourceAnalysis"]}
    assert sources["organic_search"]["conversions"] == 1
    assert sources["social"]["conversions"] == 0
    assert sources["direct"]["sessions"] == 1


def test_daily_trend_counts_matching_events():
    trend = analyze_conversions(_events(), SIGNUP)["dailyTrend"]
    assert trend == [{"date": "2025-03-10", "events": 6, "conversions": 1}]

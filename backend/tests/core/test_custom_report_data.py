"""Tests for custom report execution — filters, dimensions, metrics and ordering."""

from datetime import datetime, timezone

from app.core.custom_report_data import (
    MAX_ROWS, apply_report_filters, build_report_rows, dimension_key,
)
from tests.core.event_factory import make_event, pageview


def test_filters_apply_before_bucketing():
    events = [
        pageview("/a", device="Mobile"),
        pageview("/a", device="Desktop"),
        make_event("click", device="Mobile", is_bot=True),
    ]
    kept = apply_report_filters(events, {"device": "Mobile", "excludeBots": True})
    assert len(kept) == 1
    assert apply_report_filters(events, None) == events


def test_time_dimension_labels():
    evt = make_event(timestamp=datetime(2025, 3, 12, 7, 45, tzinfo=timezone.utc))
    assert dimension_key(evt, "date") == "2025-03-12"
    assert dimension_key(evt, "hour") == "2025-03-12 07:00"
    assert dimension_key(evt, "month") == "2025-03"
    # Wednesday belongs to the week starting the previous Sunday
    assert dimension_key(evt, "week") == "Week of 2025-03-09"


def test_missing_values_get_default_labels():
    evt = make_event()
    assert dimension_key(evt, "page") == "/"
    assert dimension_key(evt, "referrer") == "Direct"
    assert dimension_key(evt, "country") == "Unknown"


def test_rows_carry_exactly_the_requested_metrics():
    events = [pageview("/a"), make_event("click", page="/a")]
    rows = build_report_rows(events, ["page"], ["pageViews", "clicks"])
    assert rows == [{"dimension": "/a", "pageViews": 1, "clicks": 1}]


def test_non_time_dimensions_sort_by_first_metric_desc():
    events = [pageview("/a"), pageview("/b", session="s2"), pageview("/b", session="s3")]
    rows = build_report_rows(events, ["page"], ["pageViews"])
    assert [r["dimension"] for r in rows] == ["/b", "/a"]


def test_time_dimensions_sort_ascending():
    events = [
        make_event(timestamp=datetime(2025, 3, 12, tzinfo=timezone.utc)),
        make_event(timestamp=datetime(2025, 3, 10, tzinfo=timezone.utc)),
    ]
    rows = build_report_rows(events, ["date"], ["events"])
    assert [r["dimension"] for r in rows] == ["2025-03-10", "2025-03-12"]


def test_visitors_sessions_and_bounce_rate():
    events = [
        pageview("/", session="s1", visitor="v1"),
        pageview("/x", session="s1", visitor="v1", minutes=1),
        pageview("/", session="s2", visitor="v2"),
    ]
    row = build_report_rows(events, ["date"], ["visitors", "sessions", "bounceRate"])[0]
    assert row["visitors"] == 2
    assert row["sessions"] == 2
    assert row["bounceRate"] == 50


def test_row_limit():
    events = [pageview(f"/p{i}", session=f"s{i}") for i in range(MAX_ROWS + 20)]
    assert len(build_report_rows(events, ["page"], ["pageViews"])) == MAX_ROWS

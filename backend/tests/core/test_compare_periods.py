"""Tests for period comparison — windows, metrics, time series and changes."""

from datetime import datetime, timedelta, timezone

from app.core.compare_periods import (
    build_comparison, build_time_series, compare_windows, compute_metrics, parse_compare_period,
)
from app.core.domain_types import ComparePeriod
from tests.core.event_factory import make_event, pageview

NOW = datetime(2025, 3, 12, 12, 0, tzinfo=timezone.utc)


def test_unknown_period_defaults_to_daily():
    assert parse_compare_period(None) == ComparePeriod.DAILY
    assert parse_compare_period("fortnightly") == ComparePeriod.DAILY
    assert parse_compare_period("weekly") == ComparePeriod.WEEKLY


def test_weekly_windows_are_adjacent_and_equal_length():
    current, previous = compare_windows(ComparePeriod.WEEKLY, now=NOW)
    assert current.end == NOW
    assert current.duration == timedelta(days=7)
    assert previous.end == current.start
    assert previous.duration == current.duration


def test_all_has_no_previous_window():
    current, previous = compare_windows(ComparePeriod.ALL, now=NOW)
    assert previous is None
    assert current.start.year == 1970


def test_explicit_bounds_mirror_previous_window():
    current, previous = compare_windows(
        ComparePeriod.DAILY, "2025-03-01T00:00:00Z", "2025-03-03T00:00:00Z", now=NOW,
    )
    assert previous.end == current.start
    assert previous.start == datetime(2025, 2, 27, tzinfo=timezone.utc)


def test_metrics_bounce_counts_single_event_sessions():
    events = [
        pageview("/", session="a"), make_event("click", 1, session_id="a"),
        pageview("/", session="b"),
    ]
    metrics = compute_metrics(events)
    assert metrics["pageViews"] == 2
    assert metrics["clicks"] == 1
    assert metrics["sessions"] == 2
    assert metrics["bounceRate"] == 50


def test_time_series_is_chronological():
    events = [
        make_event(timestamp=NOW),
        make_event(timestamp=NOW - timedelta(days=20)),
        make_event(timestamp=NOW - timedelta(days=1)),
    ]
    labels = [b["label"] for b in build_time_series(events, ComparePeriod.DAILY)]
    assert labels == ["2/20", "3/11", "3/12"]


def test_hourly_labels_are_zero_padded():
    events = [
        make_event(timestamp=NOW.replace(hour=7)),
        make_event(timestamp=NOW.replace(hour=14)),
    ]
    labels = [b["label"] for b in build_time_series(events, ComparePeriod.HOURLY)]
    assert labels == ["3/12 07:00", "3/12 14:00"]


def test_changes_null_without_previous_window():
    current, previous = compare_windows(ComparePeriod.ALL, now=NOW)
    result = build_comparison(ComparePeriod.ALL, current, previous, [pageview("/")], [])
    assert result["previous"] is None
    assert all(v is None for v in result["changes"].values())


def test_changes_from_zero_baseline_report_growth():
    current, previous = compare_windows(ComparePeriod.DAILY, now=NOW)
    result = build_comparison(ComparePeriod.DAILY, current, previous, [pageview("/")], [])
    assert result["changes"]["pageViews"] == 100.0
    assert result["changes"]["clicks"] == 0.0
    assert result["breakdowns"]["page"] == [{"name": "/", "count": 1}]

"""Period Comparison — current vs previous window metrics, time series, and breakdowns.

Invariants:
    - hourly and daily compare the last 24 h, weekly 7 d, monthly 30 d against the
      window of equal length immediately before
    - Explicit from/to yields a previous window of the same length ending at `from`
    - period "all" spans epoch..now with no previous window and null changes
    - Bounce rate here counts single-event sessions (percent, rounded to int)
"""

from datetime import datetime, timedelta, timezone
from operator import attrgetter

from app.core.aggregation import pct_change, top_named
from app.core.date_ranges import DateRange, EPOCH, resolve_date_range, ensure_utc
from app.core.domain_types import ComparePeriod
from app.core.event_record import EventRecord

_WINDOWS = {
    ComparePeriod.HOURLY: timedelta(hours=24),
    ComparePeriod.DAILY: timedelta(hours=24),
    ComparePeriod.WEEKLY: timedelta(days=7),
    ComparePeriod.MONTHLY: timedelta(days=30),
}

# response key -> EventRecord attribute
BREAKDOWN_FIELDS = {
    "device": "device", "browser": "browser", "country": "country", "page": "page",
    "referrer": "referrer", "eventType": "event_type", "os": "os", "city": "city",
}

_CHANGE_KEYS = (
    "pageViews", "clicks", "uniqueVisitors", "sessions", "bounceRate", "totalEvents",
)


def parse_compare_period(value: str | None) -> ComparePeriod:
    try:
        return ComparePeriod(value or ComparePeriod.DAILY.value)
    except ValueError:
        return ComparePeriod.DAILY


def compare_windows(
    period: ComparePeriod,
    date_from: str | None = None,
    date_to: str | None = None,
    now: datetime | None = None,
) -> tuple[DateRange, DateRange | None]:
    """Current and previous windows; previous is None for period 'all'."""
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    if date_from and date_to:
        current = resolve_date_range(None, date_from, date_to, now)
        return current, DateRange(current.start - current.duration, current.start)
    if period == ComparePeriod.ALL:
        return DateRange(EPOCH, now), None
    length = _WINDOWS[period]
    current = DateRange(now - length, now)
    return current, DateRange(current.start - length, current.start)


def compute_metrics(events: list[EventRecord]) -> dict:
    session_sizes: dict[str, int] = {}
    for evt in events:
        key = evt.session_id or evt.id
        session_sizes[key] = session_sizes.get(key, 0) + 1
    sessions = len(session_sizes)
    single = sum(1 for n in session_sizes.values() if n == 1)
    return {
        "pageViews": sum(1 for e in events if e.event_type == "pageview"),
        "clicks": sum(1 for e in events if e.event_type == "click"),
        "uniqueVisitors": len({e.visitor_key for e in events}),
        "sessions": sessions,
        "bots": sum(1 for e in events if e.is_bot),
        "internal": sum(1 for e in events if e.is_internal),
        "bounceRate": round(single / sessions * 100) if sessions else 0,
        "totalEvents": len(events),
    }


def _bucket_label(ts: datetime, period: ComparePeriod) -> tuple[tuple, str]:
    """(sort key, display label) for a timestamp at the period's granularity."""
    if period == ComparePeriod.HOURLY:
        return (ts.year, ts.month, ts.day, ts.hour), f"{ts.month}/{ts.day} {ts.hour:02d}:00"
    if period == ComparePeriod.MONTHLY:
        return (ts.year, ts.month), f"{ts.year}-{ts.month:02d}"
    return (ts.year, ts.month, ts.day), f"{ts.month}/{ts.day}"


def build_time_series(events: list[EventRecord], period: ComparePeriod) -> list[dict]:
    buckets: dict[tuple, dict] = {}
    for evt in events:
        sort_key, label = _bucket_label(evt.timestamp, period)
        b = buckets.setdefault(sort_key, {
            "label": label, "pageViews": 0, "clicks": 0, "visitors": set(), "events": 0,
        })
        if evt.event_type == "pageview":
            b["pageViews"] += 1
        elif evt.event_type == "click":
            b["clicks"] += 1
        b["visitors"].add(evt.visitor_id or evt.id)
        b["events"] += 1
    return [
        {**b, "visitors": len(b["visitors"])}
        for _, b in sorted(buckets.items())
    ]


def build_breakdowns(events: list[EventRecord]) -> dict[str, list[dict]]:
    return {
        name: top_named(events, attrgetter(attr), 10)
        for name, attr in BREAKDOWN_FIELDS.items()
    }


def build_comparison(
    period: ComparePeriod,
    current_range: DateRange,
    previous_range: DateRange | None,
    current_events: list[EventRecord],
    previous_events: list[EventRecord],
) -> dict:
    current = compute_metrics(current_events)
    previous = compute_metrics(previous_events) if previous_range else None
    changes = {
        key: pct_change(current[key], previous[key]) if previous else None
        for key in _CHANGE_KEYS
    }
    return {
        "period": period.value,
        "dateRange": current_range.as_dict(),
        "previousDateRange": previous_range.as_dict() if previous_range else None,
        "current": current,
        "previous": previous,
        "changes": changes,
        "timeSeries": build_time_series(current_events, period),
        "breakdowns": build_breakdowns(current_events),
    }

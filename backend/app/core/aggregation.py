"""Aggregation Helpers — counting primitives shared by every report builder.

Invariants:
    - Ranked outputs are sorted by count descending; ties keep first-seen order
    - Missing dimension values are reported under an explicit default label
    - Percentages are rounded at the edge, never in intermediate sums
"""

from collections import Counter
from typing import Callable, Iterable

from app.core.event_record import EventRecord


def ranked(counter: Counter, limit: int | None = None) -> list[tuple[str, int]]:
    items = counter.most_common()
    return items[:limit] if limit is not None else items


def count_by(
    events: Iterable[EventRecord],
    key: Callable[[EventRecord], str | None],
    default: str = "Unknown",
) -> Counter:
    counter: Counter = Counter()
    for evt in events:
        counter[key(evt) or default] += 1
    return counter


def top_named(
    events: Iterable[EventRecord],
    key: Callable[[EventRecord], str | None],
    limit: int = 10,
    default: str = "Unknown",
    label: str = "name",
) -> list[dict]:
    """[{label: value, "count": n}] for the most frequent values."""
    return [
        {label: name, "count": count}
        for name, count in ranked(count_by(events, key, default), limit)
    ]


def pct_change(current: float, previous: float) -> float:
    """Percent change, 1 decimal; a zero baseline reports 100 (growth) or 0."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def safe_rate(numerator: float, denominator: float, digits: int = 1) -> float:
    """numerator / denominator as a percentage; 0 when the denominator is 0."""
    if not denominator:
        return 0.0
    return round(numerator / denominator * 100, digits)


def bounce_sessions(events: Iterable[EventRecord]) -> set[str]:
    """Session keys with at most one pageview across the whole session."""
    views: Counter = Counter()
    keys: set[str] = set()
    for evt in events:
        keys.add(evt.session_key)
        if evt.event_type == "pageview":
            views[evt.session_key] += 1
    return {k for k in keys if views[k] <= 1}


class DimensionBucket:
    """Users / sessions / events / pageviews tally for one dimension value."""

    __slots__ = ("users", "sessions", "events", "page_views")

    def __init__(self):
        self.users: set[str] = set()
        self.sessions: set[str] = set()
        self.events = 0
        self.page_views = 0

    def add(self, evt: EventRecord) -> None:
        self.users.add(evt.visitor_key)
        self.sessions.add(evt.session_key)
        self.events += 1
        if evt.event_type == "pageview":
            self.page_views += 1

    def as_dict(self, name: str, bounced: set[str] | None = None) -> dict:
        row = {
            "name": name,
            "users": len(self.users),
            "sessions": len(self.sessions),
            "events": self.events,
            "pageViews": self.page_views,
        }
        if bounced is not None:
            # fraction 0-1 of this bucket's sessions that bounced
            row["bounceRate"] = (
                round(len(self.sessions & bounced) / len(self.sessions), 4)
                if self.sessions else 0.0
            )
        return row


def bucket_by(
    events: Iterable[EventRecord],
    key: Callable[[EventRecord], str | None],
    default: str = "Unknown",
) -> dict[str, DimensionBucket]:
    buckets: dict[str, DimensionBucket] = {}
    for evt in events:
        name = key(evt) or default
        bucket = buckets.get(name)
        if bucket is None:
            bucket = buckets[name] = DimensionBucket()
        bucket.add(evt)
    return buckets


def ranked_buckets(
    buckets: dict[str, DimensionBucket],
    limit: int | None = None,
    bounced: set[str] | None = None,
) -> list[dict]:
    rows = [b.as_dict(name, bounced) for name, b in buckets.items()]
    rows.sort(key=lambda r: r["users"], reverse=True)
    return rows[:limit] if limit is not None else rows

"""Realtime Snapshot — who is on the site over the last 30 minutes.

Invariants:
    - Active user key: visitor id, else session id, else event id
    - perMinute has exactly 30 buckets, oldest first, labelled "-30 min" .. "-1 min";
      bucket i covers [now - (i+1) min, now - i min)
    - Events older than 30 minutes are ignored even if passed in
"""

from datetime import datetime, timedelta

from app.core.aggregation import count_by, ranked
from app.core.classify_traffic import classify_traffic_source
from app.core.event_record import EventRecord

WINDOW_MINUTES = 30


def _active_key(evt: EventRecord) -> str:
    return evt.visitor_id or evt.session_id or evt.id


def _users_by(events, key) -> list[tuple[str, int]]:
    groups: dict[str, set[str]] = {}
    for evt in events:
        groups.setdefault(key(evt), set()).add(_active_key(evt))
    return sorted(
        ((name, len(users)) for name, users in groups.items()),
        key=lambda item: item[1], reverse=True,
    )


def build_realtime(events: list[EventRecord], now: datetime) -> dict:
    window_start = now - timedelta(minutes=WINDOW_MINUTES)
    recent = [e for e in events if window_start <= e.timestamp <= now]
    five_ago = now - timedelta(minutes=5)

    per_minute = []
    for i in range(WINDOW_MINUTES - 1, -1, -1):
        start = now - timedelta(minutes=i + 1)
        end = now - timedelta(minutes=i)
        users = {_active_key(e) for e in recent if start <= e.timestamp < end}
        per_minute.append({"minute": f"-{i + 1} min", "users": len(users)})

    page_views = [e for e in recent if e.event_type == "pageview"]
    pages: dict[str, dict] = {}
    for evt in page_views:
        row = pages.setdefault(evt.page or "/", {"users": set(), "views": 0})
        row["users"].add(_active_key(evt))
        row["views"] += 1
    top_pages = sorted(
        (
            {"page": page, "activeUsers": len(d["users"]), "views": d["views"]}
            for page, d in pages.items()
        ),
        key=lambda r: r["activeUsers"], reverse=True,
    )[:20]

    def source_of(evt: EventRecord) -> str:
        return evt.traffic_source or classify_traffic_source(evt.referrer, evt.page, "")

    return {
        "activeUsers30": len({_active_key(e) for e in recent}),
        "activeUsers5": len({_active_key(e) for e in recent if e.timestamp >= five_ago}),
        "pageViews30": len(page_views),
        "perMinute": per_minute,
        "topPages": top_pages,
        "topSources": [
            {"source": name, "activeUsers": n} for name, n in _users_by(recent, source_of)
        ],
        "topCountries": [
            {"country": name, "activeUsers": n}
            for name, n in _users_by(recent, lambda e: e.country or "Unknown")
        ],
        "eventTypes": [
            {"name": name, "count": n}
            for name, n in ranked(count_by(recent, lambda e: e.event_type))
        ],
        "totalEvents": len(recent),
    }

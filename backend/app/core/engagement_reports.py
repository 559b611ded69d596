"""Engagement Report — session depth, duration, and what visitors do.

Invariants:
    - avgSessionDuration (seconds) only averages sessions with more than one event
    - Landing page = first event of a session, counted only when it is a pageview with a page
    - pagesPerSession = pageviews / sessions, 2 decimals
"""

from app.core.aggregation import count_by, ranked
from app.core.event_record import EventRecord, group_by_session


def boundary_pageview_pages(sessions: dict[str, list[EventRecord]], index: int) -> dict[str, dict]:
    """Per page: sessions whose event at `index` (0 first, -1 last) is a pageview of it."""
    pages: dict[str, dict] = {}
    for group in sessions.values():
        evt = group[index]
        if evt.event_type != "pageview" or not evt.page:
            continue
        row = pages.setdefault(evt.page, {"sessions": 0, "users": set()})
        row["sessions"] += 1
        row["users"].add(evt.visitor_key)
    return pages


def page_session_rows(pages: dict[str, dict], limit: int) -> list[dict]:
    rows = [
        {"page": page, "sessions": d["sessions"], "users": len(d["users"])}
        for page, d in pages.items()
    ]
    rows.sort(key=lambda r: r["sessions"], reverse=True)
    return rows[:limit]


def build_engagement(events: list[EventRecord]) -> dict:
    sessions = group_by_session(events)
    page_views = [e for e in events if e.event_type == "pageview"]

    durations = [
        (g[-1].timestamp - g[0].timestamp).total_seconds()
        for g in sessions.values() if len(g) > 1
    ]

    pages: dict[str, dict] = {}
    for evt in page_views:
        row = pages.setdefault(evt.page or "/", {"views": 0, "users": set()})
        row["views"] += 1
        row["users"].add(evt.visitor_key)
    page_rows = sorted(
        ({"page": p, "views": d["views"], "users": len(d["users"])} for p, d in pages.items()),
        key=lambda r: r["views"], reverse=True,
    )[:20]

    daily: dict[str, dict] = {}
    for evt in events:
        d = daily.setdefault(
            evt.timestamp.date().isoformat(),
            {"events": 0, "pageViews": 0, "users": set(), "sessions": set()},
        )
        d["events"] += 1
        d["users"].add(evt.visitor_key)
        d["sessions"].add(evt.session_key)
        if evt.event_type == "pageview":
            d["pageViews"] += 1

    return {
        "totalEvents": len(events),
        "totalPageViews": len(page_views),
        "totalUsers": len({e.visitor_key for e in events}),
        "totalSessions": len(sessions),
        "avgSessionDuration": round(sum(durations) / len(durations)) if durations else 0,
        "pagesPerSession": round(len(page_views) / len(sessions), 2) if sessions else 0,
        "eventTypes": [
            {"name": name, "count": n}
            for name, n in ranked(count_by(events, lambda e: e.event_type))
        ],
        "pages": page_rows,
        "landingPages": page_session_rows(boundary_pageview_pages(sessions, 0), 20),
        "daily": [
            {
                "date": day, "events": d["events"], "pageViews": d["pageViews"],
                "users": len(d["users"]), "sessions": len(d["sessions"]),
            }
            for day, d in sorted(daily.items())
        ],
    }

"""Analytics Summary — dashboard headline metrics over a set of events.

Invariants:
    - Unique visitors keyed by visitor id, else a device/browser/os/country fingerprint
    - bounceRate = sessions with at most one pageview / sessions with a pageview (percent, 1 decimal)
    - avgTimeOnPage = mean seconds between a pageview and the next event of the same session;
      the last event of a session contributes nothing
    - dailyViews sorted chronologically, labelled MM-DD
"""

from app.core.aggregation import top_named, count_by, ranked, safe_rate
from app.core.event_record import EventRecord, group_by_session


def _bounce_rate(sessions: dict[str, list[EventRecord]]) -> float:
    with_views = 0
    bounces = 0
    for group in sessions.values():
        views = sum(1 for e in group if e.event_type == "pageview")
        if views == 0:
            continue
        with_views += 1
        if views == 1:
            bounces += 1
    return safe_rate(bounces, with_views)


def _avg_time_on_page(sessions: dict[str, list[EventRecord]]) -> int:
    gaps: list[float] = []
    for group in sessions.values():
        for current, nxt in zip(group, group[1:]):
            if current.event_type == "pageview":
                gaps.append((nxt.timestamp - current.timestamp).total_seconds())
    if not gaps:
        return 0
    return round(sum(gaps) / len(gaps))


def build_summary(events: list[EventRecord]) -> dict:
    page_views = [e for e in events if e.event_type == "pageview"]
    clicks = [e for e in events if e.event_type == "click"]
    sessions = group_by_session(events)

    daily: dict = {}
    for evt in events:
        day = evt.timestamp.date()
        bucket = daily.setdefault(day, {"views": 0, "clicks": 0})
        if evt.event_type == "pageview":
            bucket["views"] += 1
        elif evt.event_type == "click":
            bucket["clicks"] += 1

    return {
        "totalEvents": len(events),
        "totalPageViews": len(page_views),
        "totalClicks": len(clicks),
        "uniqueVisitors": len({e.visitor_key for e in events}),
        "totalSessions": len(sessions),
        "topPages": [
            {"page": name, "views": n}
            for name, n in ranked(count_by(page_views, lambda e: e.page, "/"), 5)
        ],
        "deviceBreakdown": [
            {"device": name, "count": n}
            for name, n in ranked(count_by(events, lambda e: e.device))
        ],
        "browserBreakdown": [
            {"browser": name, "count": n}
            for name, n in ranked(count_by(events, lambda e: e.browser))
        ],
        "referrerBreakdown": top_named(
            events, lambda e: e.referrer, 5, "Direct", "referrer",
        ),
        "dailyViews": [
            {"date": day.strftime("%m-%d"), **counts}
            for day, counts in sorted(daily.items())
        ],
        "botEvents": sum(1 for e in events if e.is_bot),
        "internalEvents": sum(1 for e in events if e.is_internal),
        "serverEvents": sum(1 for e in events if e.is_server),
        "avgTimeOnPage": _avg_time_on_page(sessions),
        "bounceRate": _bounce_rate(sessions),
    }



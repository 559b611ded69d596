"""Conversion Analysis — which pages and sources lead to a custom event.

Invariants:
    - A session converts when any of its events matches all of the definition's rules
    - Page rows count sessions that viewed the page (once per session), not raw pageviews
    - Source of a session = traffic source of its first event, else "direct"
    - Rates are percentages with 2 decimals
"""

from app.core.aggregation import safe_rate
from app.core.event_record import EventRecord, group_by_session
from app.core.rule_matching import matches_rules


def find_matches(events: list[EventRecord], rules: list[dict]) -> list[EventRecord]:
    return [e for e in events if matches_rules(e, rules)]


def analyze_conversions(events: list[EventRecord], rules: list[dict]) -> dict:
    sessions = group_by_session(events)
    matched_ids = {e.id for e in find_matches(events, rules)}

    pages: dict[str, dict] = {}
    sources: dict[str, dict] = {}
    total_conversions = 0
    for key, group in sessions.items():
        converted = any(e.id in matched_ids for e in group)
        if converted:
            total_conversions += 1

        viewed = dict.fromkeys(
            e.page for e in group if e.event_type == "pageview" and e.page
        )
        for page in viewed:
            row = pages.setdefault(page, {"pageViews": 0, "conversions": 0, "visitors": set()})
            row["pageViews"] += 1
            if converted:
                row["conversions"] += 1
                row["visitors"].add(group[0].visitor_id or key)

        source = group[0].traffic_source or "direct"
        src = sources.setdefault(source, {"sessions": 0, "conversions": 0})
        src["sessions"] += 1
        if converted:
            src["conversions"] += 1

    daily: dict[str, dict] = {}
    for evt in events:
        d = daily.setdefault(evt.timestamp.date().isoformat(), {"events": 0, "conversions": 0})
        d["events"] += 1
        if evt.id in matched_ids:
            d["conversions"] += 1

    page_rows = sorted(
        (
            {
                "page": page,
                "pageViews": d["pageViews"],
                "conversions": d["conversions"],
                "conversionRate": safe_rate(d["conversions"], d["pageViews"], 2),
                "uniqueConverters": len(d["visitors"]),
            }
            for page, d in pages.items()
        ),
        key=lambda r: r["conversions"], reverse=True,
    )
    source_rows = sorted(
        (
            {
                "source": source,
                "sessions": d["sessions"],
                "conversions": d["conversions"],
                "conversionRate": safe_rate(d["conversions"], d["sessions"], 2),
            }
            for source, d in sources.items()
        ),
        key=lambda r: r["conversions"], reverse=True,
    )

    return {
        "totalSessions": len(sessions),
        "totalConversions": total_conversions,
        "overallConversionRate": safe_rate(total_conversions, len(sessions), 2),
        "pageAnalysis": page_rows,
        "sourceAnalysis": source_rows,
        "dailyTrend": [{"date": day, **d} for day, d in sorted(daily.items())],
    }

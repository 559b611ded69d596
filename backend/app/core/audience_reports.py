"""Audience Reports — pages, geography, and technology breakdowns.

Invariants:
    - Rankings by users (geo, tech) or views/sessions (pages), descending
    - Entry/exit pages use the first/last event of each session, only when that event is a pageview
    - possible404s flags page paths containing 404, not-found, notfound, or error
    - City rows are keyed "City, Country" and carry the country
"""

from app.core.aggregation import bucket_by, ranked_buckets
from app.core.engagement_reports import boundary_pageview_pages, page_session_rows
from app.core.event_record import EventRecord, group_by_session

_NOT_FOUND_MARKERS = ("404", "not-found", "notfound", "error")


def _without_pageviews(rows: list[dict]) -> list[dict]:
    return [{k: v for k, v in row.items() if k != "pageViews"} for row in rows]


def build_pages_analysis(events: list[EventRecord]) -> dict:
    page_views = [e for e in events if e.event_type == "pageview"]
    pages: dict[str, dict] = {}
    for evt in page_views:
        row = pages.setdefault(evt.page or "/", {"views": 0, "users": set(), "sessions": set()})
        row["views"] += 1
        row["users"].add(evt.visitor_key)
        row["sessions"].add(evt.session_key)

    rows = sorted(
        (
            {
                "page": p, "views": d["views"],
                "users": len(d["users"]), "sessions": len(d["sessions"]),
            }
            for p, d in pages.items()
        ),
        key=lambda r: r["views"], reverse=True,
    )
    sessions = group_by_session(events)
    return {
        "topPages": rows[:50],
        "entryPages": page_session_rows(boundary_pageview_pages(sessions, 0), 50),
        "exitPages": page_session_rows(boundary_pageview_pages(sessions, -1), 50),
        "possible404s": [
            {"page": r["page"], "views": r["views"], "users": r["users"]}
            for r in rows
            if any(m in r["page"].lower() for m in _NOT_FOUND_MARKERS)
        ],
    }


def build_geography(events: list[EventRecord]) -> dict:
    countries = bucket_by(events, lambda e: e.country)
    cities = bucket_by(events, lambda e: f"{e.city or 'Unknown'}, {e.country or 'Unknown'}")
    city_country = {
        f"{e.city or 'Unknown'}, {e.country or 'Unknown'}": e.country or "Unknown"
        for e in events
    }
    languages: dict[str, dict] = {}
    for evt in events:
        lang = evt.meta("language")
        if not lang:
            continue
        row = languages.setdefault(str(lang), {"users": set(), "events": 0})
        row["users"].add(evt.visitor_key)
        row["events"] += 1

    return {
        "countries": _without_pageviews(ranked_buckets(countries, 50)),
        "cities": [
            {**row, "country": city_country[row["name"]]}
            for row in _without_pageviews(ranked_buckets(cities, 50))
        ],
        "languages": sorted(
            (
                {"name": name, "users": len(d["users"]), "events": d["events"]}
                for name, d in languages.items()
            ),
            key=lambda r: r["users"], reverse=True,
        )[:30],
    }


def build_tech(events: list[EventRecord]) -> dict:
    return {
        "browsers": _without_pageviews(ranked_buckets(bucket_by(events, lambda e: e.browser))),
        "operatingSystems": _without_pageviews(ranked_buckets(bucket_by(events, lambda e: e.os))),
        "devices": _without_pageviews(ranked_buckets(bucket_by(events, lambda e: e.device))),
    }

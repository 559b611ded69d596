"""Journeys & Visitors — per-session paths and per-visitor profiles.

Invariants:
    - Journey key: session id, else visitor id, else event id (EventRecord.session_key)
    - Journey events are chronological; journeys sorted newest start first
    - Visitor key: visitor id, else "anon-{device}-{browser}-{os}"
    - A visitor with no session ids reports totalSessions = 1
"""

from app.core.event_record import EventRecord, group_by_session


def build_journeys(events: list[EventRecord]) -> list[dict]:
    journeys = []
    for key, group in group_by_session(events).items():
        first, last = group[0], group[-1]
        pages = [e.page for e in group if e.event_type == "pageview"]
        journeys.append({
            "sessionId": key,
            "visitorId": first.visitor_id or "anonymous",
            "device": first.device,
            "browser": first.browser,
            "os": first.os,
            "country": first.country,
            "city": first.city,
            "region": first.region,
            "isBot": first.is_bot,
            "isInternal": first.is_internal,
            "startTime": first.timestamp.isoformat(),
            "endTime": last.timestamp.isoformat(),
            "duration": round((last.timestamp - first.timestamp).total_seconds()),
            "pageCount": len(pages),
            "pages": pages,
            "eventCount": len(group),
            "events": [e.as_dict() for e in group],
            "referrer": first.referrer,
            "_start": first.timestamp,
        })
    journeys.sort(key=lambda j: j["_start"], reverse=True)
    for journey in journeys:
        del journey["_start"]
    return journeys


def visitor_id_of(evt: EventRecord) -> str:
    return evt.visitor_id or f"anon-{evt.device}-{evt.browser}-{evt.os}"


def build_visitors(events: list[EventRecord]) -> list[dict]:
    visitors: dict[str, dict] = {}
    for evt in events:
        vid = visitor_id_of(evt)
        v = visitors.get(vid)
        if v is None:
            v = visitors[vid] = {
                "visitorId": vid,
                "device": evt.device,
                "browser": evt.browser,
                "os": evt.os,
                "country": evt.country,
                "city": evt.city,
                "region": evt.region,
                "ip": evt.ip,
                "isBot": evt.is_bot,
                "isInternal": evt.is_internal,
                "firstSeen": evt.timestamp,
                "lastSeen": evt.timestamp,
                "totalEvents": 0,
                "totalPageViews": 0,
                "totalSessions": set(),
                "pages": {},
            }
        v["totalEvents"] += 1
        if evt.event_type == "pageview":
            v["totalPageViews"] += 1
        if evt.session_id:
            v["totalSessions"].add(evt.session_id)
        if evt.page:
            v["pages"][evt.page] = None
        v["firstSeen"] = min(v["firstSeen"], evt.timestamp)
        v["lastSeen"] = max(v["lastSeen"], evt.timestamp)

    rows = sorted(visitors.values(), key=lambda v: v["lastSeen"], reverse=True)
    return [
        {
            **v,
            "firstSeen": v["firstSeen"].isoformat(),
            "lastSeen": v["lastSeen"].isoformat(),
            "totalSessions": len(v["totalSessions"]) or 1,
            "pages": list(v["pages"]),
        }
        for v in rows
    ]

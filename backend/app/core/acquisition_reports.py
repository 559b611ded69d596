"""Acquisition Reports — channel, source, medium, platform, and campaign attribution.

Invariants:
    - Channel = stored traffic_source, else "direct"
    - Source = utm_source metadata, else referrer hostname, else "(direct)"
    - Medium = utm_medium metadata, else "(none)" for direct traffic, else the channel
    - Bounce rate on buckets is a 0–1 fraction of sessions with at most one pageview
    - user-acquisition: a visitor is new when their first-ever event for the project
      falls inside the window (first_seen supplied by the caller), returning otherwise

Design Decisions:
    - utm keys read in both snake_case and camelCase: snippets in the wild send either
    - avgEngagementTime is real mean session duration (seconds) of the channel's sessions
"""

from datetime import datetime

from app.core.aggregation import bucket_by, bounce_sessions, ranked_buckets
from app.core.classify_traffic import referrer_host
from app.core.date_ranges import DateRange
from app.core.event_record import EventRecord, group_by_session

# (substrings, platform) checked in order against the lowercased source
_PLATFORMS = (
    (("google",), "Google"),
    (("facebook", "instagram", "meta"), "Meta"),
    (("bing", "microsoft"), "Microsoft"),
    (("tiktok",), "TikTok"),
    (("twitter", "x.com"), "X (Twitter)"),
    (("linkedin",), "LinkedIn"),
    (("pinterest",), "Pinterest"),
    (("youtube",), "YouTube"),
)


def channel_of(evt: EventRecord) -> str:
    return evt.traffic_source or "direct"


def source_of(evt: EventRecord) -> str:
    utm = evt.meta("utm_source", "utmSource")
    if utm:
        return str(utm)
    if evt.referrer and evt.referrer != "Direct":
        return referrer_host(evt.referrer) or evt.referrer
    return "(direct)"


def medium_of(evt: EventRecord) -> str:
    utm = evt.meta("utm_medium", "utmMedium")
    if utm:
        return str(utm)
    channel = channel_of(evt)
    return "(none)" if channel == "direct" else channel


def platform_of(source: str) -> str:
    lower = source.lower()
    for needles, platform in _PLATFORMS:
        if any(n in lower for n in needles):
            return platform
    if lower == "(direct)":
        return "(direct)"
    return "Manual"


def build_acquisition(events: list[EventRecord]) -> dict:
    sources = bucket_by(events, channel_of, "direct")
    referrers = bucket_by(events, lambda e: e.referrer, "Direct")
    return {
        "totalUsers": len({e.visitor_key for e in events}),
        "totalSessions": len({e.session_key for e in events}),
        "sources": [
            {
                "source": row["name"], "users": row["users"], "sessions": row["sessions"],
                "events": row["events"], "pageViews": row["pageViews"],
            }
            for row in ranked_buckets(sources)
        ],
        "referrers": [
            {"referrer": row["name"], "users": row["users"], "sessions": row["sessions"]}
            for row in ranked_buckets(referrers, 20)
        ],
    }


def build_traffic_sources(events: list[EventRecord]) -> dict:
    bounced = bounce_sessions(events)
    campaigns = [e for e in events if e.meta("utm_campaign", "utmCampaign")]

    def source_medium(evt: EventRecord) -> str:
        return f"{source_of(evt)} / {medium_of(evt)}"

    return {
        "channels": ranked_buckets(bucket_by(events, channel_of), bounced=bounced),
        "sources": ranked_buckets(bucket_by(events, source_of), 50, bounced),
        "sourceMediums": ranked_buckets(bucket_by(events, source_medium), 50, bounced),
        "mediums": ranked_buckets(bucket_by(events, medium_of), bounced=bounced),
        "sourcePlatforms": ranked_buckets(
            bucket_by(events, lambda e: platform_of(source_of(e))), bounced=bounced,
        ),
        "campaigns": ranked_buckets(
            bucket_by(campaigns, lambda e: str(e.meta("utm_campaign", "utmCampaign"))),
            bounced=bounced,
        ),
    }


def _session_seconds(group: list[EventRecord]) -> float:
    return (group[-1].timestamp - group[0].timestamp).total_seconds()


def build_user_acquisition(
    events: list[EventRecord],
    window: DateRange,
    first_seen: dict[str, datetime],
) -> dict:
    """first_seen maps visitor_key -> earliest event time across the project's history."""
    visitors = {e.visitor_key for e in events}
    new_users = {
        v for v in visitors if window.contains(first_seen.get(v, window.start))
    }
    sessions = group_by_session(events)

    channels: dict[str, dict] = {}
    for evt in events:
        c = channels.setdefault(channel_of(evt), {"users": set(), "sessions": set(), "events": 0})
        c["users"].add(evt.visitor_key)
        c["sessions"].add(evt.session_key)
        c["events"] += 1

    channel_rows = []
    for name, c in channels.items():
        durations = [_session_seconds(sessions[s]) for s in c["sessions"]]
        channel_rows.append({
            "name": name,
            "totalUsers": len(c["users"]),
            "newUsers": len(c["users"] & new_users),
            "returningUsers": len(c["users"] - new_users),
            "sessions": len(c["sessions"]),
            "events": c["events"],
            "avgEngagementTime": round(sum(durations) / len(durations)) if durations else 0,
        })
    channel_rows.sort(key=lambda r: r["totalUsers"], reverse=True)

    days: dict[str, dict[str, set]] = {}
    for evt in events:
        d = days.setdefault(evt.timestamp.date().isoformat(), {"total": set(), "new": set()})
        d["total"].add(evt.visitor_key)
        if evt.visitor_key in new_users:
            d["new"].add(evt.visitor_key)

    return {
        "totalUsers": len(visitors),
        "newUsers": len(new_users),
        "returningUsers": len(visitors - new_users),
        "channels": channel_rows,
        "timeline": [
            {"date": day, "totalUsers": len(d["total"]), "newUsers": len(d["new"])}
            for day, d in sorted(days.items())
        ],
    }

"""Event Record — immutable, ORM-free view of a stored event for pure report functions.

Invariants:
    - timestamp is always timezone-aware UTC
    - metadata is never None (empty dict when absent)
    - Report modules in core/ take EventRecord sequences, never ORM rows

Design Decisions:
    - Frozen dataclass over passing ORM rows: core stays importable without a DB session
      (ADR: pure core, infrastructure at the edges)
    - as_dict() exposes the camelCase field names used by custom event rules and API payloads
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class EventRecord:
    id: str
    project_id: str
    event_type: str
    timestamp: datetime
    visitor_id: str | None = None
    session_id: str | None = None
    page: str | None = None
    referrer: str | None = None
    device: str | None = None
    browser: str | None = None
    os: str | None = None
    country: str | None = None
    city: str | None = None
    region: str | None = None
    ip: str | None = None
    is_bot: bool = False
    is_internal: bool = False
    is_server: bool = False
    traffic_source: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def session_key(self) -> str:
        """Session grouping key: session id, else visitor id, else the event itself."""
        return self.session_id or self.visitor_id or self.id

    @property
    def visitor_key(self) -> str:
        """Visitor identity for unique counts: visitor id, else device fingerprint."""
        if self.visitor_id:
            return self.visitor_id
        return f"{self.device}-{self.browser}-{self.os}-{self.country}"

    def meta(self, *keys: str) -> Any:
        """First non-empty metadata value among the given keys."""
        for key in keys:
            val = self.metadata.get(key)
            if val not in (None, ""):
                return val
        return None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "visitorId": self.visitor_id,
            "sessionId": self.session_id,
            "eventType": self.event_type,
            "page": self.page,
            "referrer": self.referrer,
            "device": self.device,
            "browser": self.browser,
            "os": self.os,
            "country": self.country,
            "city": self.city,
            "region": self.region,
            "ip": self.ip,
            "isBot": self.is_bot,
            "isInternal": self.is_internal,
            "isServer": self.is_server,
            "trafficSource": self.traffic_source,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


def group_by_session(events) -> dict[str, list[EventRecord]]:
    """Group events by session key, each group sorted by timestamp."""
    sessions: dict[str, list[EventRecord]] = {}
    for evt in events:
        sessions.setdefault(evt.session_key, []).append(evt)
    for group in sessions.values():
        group.sort(key=lambda e: e.timestamp)
    return sessions


def filter_traffic(
    events, exclude_bots: bool = False, exclude_internal: bool = False,
) -> list[EventRecord]:
    return [
        e for e in events
        if not (exclude_bots and e.is_bot)
        and not (exclude_internal and e.is_internal)
    ]

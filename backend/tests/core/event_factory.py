"""Event Factory — builds EventRecord fixtures for pure report tests.

Invariants:
    - Every record gets a unique id and a UTC timestamp
    - `minutes` offsets from BASE_TIME keep ordering explicit in each test
"""

import itertools
from datetime import datetime, timedelta, timezone

from app.core.event_record import EventRecord

BASE_TIME = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
_ids = itertools.count(1)


def make_event(event_type="pageview", minutes=0, **fields) -> EventRecord:
    fields.setdefault("project_id", "proj-1")
    fields.setdefault("timestamp", BASE_TIME + timedelta(minutes=minutes))
    return EventRecord(id=f"evt-{next(_ids)}", event_type=event_type, **fields)


def pageview(page, session="s1", visitor="v1", minutes=0, **fields) -> EventRecord:
    return make_event(
        "pageview", minutes, page=page, session_id=session, visitor_id=visitor, **fields,
    )

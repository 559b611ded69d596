"""Event Rows — inserts Event rows for route tests, timestamped relative to now."""

from datetime import datetime, timedelta, timezone

from app.models.event import Event


def minutes_ago(minutes: float) -> datetime:
    return datetime.now(timezone.utc) - timedelta(minutes=minutes)


async def insert_events(db, project, *rows: dict) -> list[Event]:
    """Each row is Event column values; timestamp defaults to one hour ago."""
    events = []
    for row in rows:
        fields = {"event_type": "pageview", "timestamp": minutes_ago(60), **row}
        events.append(Event(project_id=project.id, **fields))
    db.add_all(events)
    await db.commit()
    return events

"""Event Queries — load stored events as EventRecords for the pure report builders.

Invariants:
    - Every query is scoped by project_id
    - Returned records are chronological unless a function says otherwise
    - Timestamps are normalised to aware UTC (sqlite returns naive datetimes)

Design Decisions:
    - Reports aggregate in Python over one indexed (project_id, timestamp) scan
      (ADR: query simplicity; the pure builders stay testable without a database)
    - Bot/internal exclusion is a SQL predicate so excluded rows never load
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.date_ranges import DateRange, ensure_utc
from app.core.event_record import EventRecord
from app.models.event import Event

logger = logging.getLogger(__name__)

DEFAULT_FILTERED_LIMIT = 1000
MAX_FILTERED_LIMIT = 10_000


def to_record(evt: Event) -> EventRecord:
    return EventRecord(
        id=str(evt.id),
        project_id=str(evt.project_id),
        event_type=evt.event_type,
        timestamp=ensure_utc(evt.timestamp),
        visitor_id=evt.visitor_id,
        session_id=evt.session_id,
        page=evt.page,
        referrer=evt.referrer,
        device=evt.device,
        browser=evt.browser,
        os=evt.os,
        country=evt.country,
        city=evt.city,
        region=evt.region,
        ip=evt.ip,
        is_bot=bool(evt.is_bot),
        is_internal=bool(evt.is_internal),
        is_server=bool(evt.is_server),
        traffic_source=evt.traffic_source,
        metadata=evt.event_metadata or {},
    )


async def load_events(
    db: AsyncSession,
    project_id: uuid.UUID,
    window: DateRange | None = None,
    exclude_bots: bool = False,
    exclude_internal: bool = False,
) -> list[EventRecord]:
    query = select(Event).where(Event.project_id == project_id)
    if window is not None:
        query = query.where(Event.timestamp >= window.start, Event.timestamp <= window.end)
    if exclude_bots:
        query = query.where(Event.is_bot.is_(False))
    if exclude_internal:
        query = query.where(Event.is_internal.is_(False))
    result = await db.execute(query.order_by(Event.timestamp))
    return [to_record(e) for e in result.scalars().all()]


async def latest_events(
    db: AsyncSession, project_id: uuid.UUID, limit: int = 100,
) -> list[EventRecord]:
    result = await db.execute(
        select(Event)
        .where(Event.project_id == project_id)
        .order_by(Event.timestamp.desc())
        .limit(limit)
    )
    return [to_record(e) for e in result.scalars().all()]


@dataclass
class EventFilters:
    """Column filters for the event browser; None means "any"."""
    start: datetime | None = None
    end: datetime | None = None
    event_type: str | None = None
    device: str | None = None
    browser: str | None = None
    os: str | None = None
    country: str | None = None
    referrer: str | None = None
    traffic_source: str | None = None
    page: str | None = None
    visitor_id: str | None = None
    is_bot: bool | None = None
    is_internal: bool | None = None
    is_server: bool | None = None
    limit: int = DEFAULT_FILTERED_LIMIT
    offset: int = 0


_EXACT_FILTERS = (
    "event_type", "device", "browser", "os", "country",
    "referrer", "traffic_source", "visitor_id",
)
_FLAG_FILTERS = ("is_bot", "is_internal", "is_server")


async def filtered_events(
    db: AsyncSession, project_id: uuid.UUID, filters: EventFilters,
) -> tuple[list[EventRecord], int]:
    """(page of newest-first events, total matching count)."""
    conditions = [Event.project_id == project_id]
    if filters.start is not None:
        conditions.append(Event.timestamp >= filters.start)
    if filters.end is not None:
        conditions.append(Event.timestamp <= filters.end)
    for name in _EXACT_FILTERS:
        value = getattr(filters, name)
        if value:
            conditions.append(getattr(Event, name) == value)
    for name in _FLAG_FILTERS:
        value = getattr(filters, name)
        if value is not None:
            conditions.append(getattr(Event, name).is_(value))
    if filters.page:
        conditions.append(Event.page.ilike(f"%{filters.page}%"))

    total = await db.scalar(select(func.count()).select_from(Event).where(*conditions))
    limit = max(1, min(filters.limit, MAX_FILTERED_LIMIT))
    result = await db.execute(
        select(Event)
        .where(*conditions)
        .order_by(Event.timestamp.desc())
        .limit(limit)
        .offset(max(0, filters.offset))
    )
    return [to_record(e) for e in result.scalars().all()], int(total or 0)


async def first_seen_by_visitor(
    db: AsyncSession, project_id: uuid.UUID, until: datetime,
) -> dict[str, datetime]:
    """Earliest event time per visitor key across the project's whole history."""
    result = await db.execute(
        select(
            Event.visitor_id, Event.device, Event.browser,
            Event.os, Event.country, Event.timestamp,
        )
        .where(Event.project_id == project_id, Event.timestamp <= until)
    )
    first_seen: dict[str, datetime] = {}
    for visitor_id, device, browser, os_name, country, ts in result.all():
        key = visitor_id or f"{device}-{browser}-{os_name}-{country}"
        ts = ensure_utc(ts)
        if key not in first_seen or ts < first_seen[key]:
            first_seen[key] = ts
    return first_seen


async def visitor_events(
    db: AsyncSession, project_id: uuid.UUID, visitor_id: str,
) -> list[EventRecord]:
    result = await db.execute(
        select(Event)
        .where(Event.project_id == project_id, Event.visitor_id == visitor_id)
        .order_by(Event.timestamp)
    )
    return [to_record(e) for e in result.scalars().all()]


async def delete_events_before(
    db: AsyncSession, project_id: uuid.UUID, cutoff: datetime,
) -> int:
    result = await db.execute(
        delete(Event).where(Event.project_id == project_id, Event.timestamp < cutoff)
    )
    logger.info(
        f"Purged {result.rowcount} events before {cutoff.isoformat()}",
        extra={"project_id": str(project_id)},
    )
    return result.rowcount or 0

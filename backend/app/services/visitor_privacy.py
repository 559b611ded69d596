"""Visitor Privacy — GDPR erasure, subject-access export and retention purges.

Invariants:
    - Erasure removes the visitor's events and consent records for one project only
    - Purge deletes events strictly older than now - days
    - days defaults to the project's data_retention_days (365 without settings)
"""

import logging
import uuid
from datetime import timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.consent_defaults import effective_consent
from app.core.csv_export import VISITOR_EXPORT_HEADERS, rows_to_csv
from app.db.base import utcnow
from app.models.consent import ConsentRecord, ConsentSettings
from app.models.event import Event
from app.schemas.serialize import consent_record_out
from app.services.event_queries import delete_events_before, visitor_events

logger = logging.getLogger(__name__)


async def consent_settings_row(db: AsyncSession, project_id: uuid.UUID) -> ConsentSettings | None:
    result = await db.execute(
        select(ConsentSettings).where(ConsentSettings.project_id == project_id)
    )
    return result.scalar_one_or_none()


async def visitor_consents(db: AsyncSession, project_id: uuid.UUID, visitor_id: str) -> list[ConsentRecord]:
    result = await db.execute(
        select(ConsentRecord)
        .where(ConsentRecord.project_id == project_id)
        .where(ConsentRecord.visitor_id == visitor_id)
        .order_by(ConsentRecord.consent_timestamp)
    )
    return list(result.scalars().all())


async def erase_visitor(db: AsyncSession, project_id: uuid.UUID, visitor_id: str) -> dict:
    events = await db.execute(
        delete(Event)
        .where(Event.project_id == project_id)
        .where(Event.visitor_id == visitor_id)
    )
    consents = await db.execute(
        delete(ConsentRecord)
        .where(ConsentRecord.project_id == project_id)
        .where(ConsentRecord.visitor_id == visitor_id)
    )
    deleted_events, deleted_consents = events.rowcount or 0, consents.rowcount or 0
    logger.info(
        f"Visitor erased: {deleted_events} events, {deleted_consents} consent records",
        extra={"project_id": str(project_id)},
    )
    return {
        "visitorId": visitor_id,
        "deletedEvents": deleted_events,
        "deletedConsentRecords": deleted_consents,
    }


async def export_visitor(
    db: AsyncSession, project_id: uuid.UUID, visitor_id: str, fmt: str = "json",
) -> dict | str:
    """JSON document of everything held on a visitor, or the events as CSV."""
    events = await visitor_events(db, project_id, visitor_id)
    if fmt == "csv":
        return rows_to_csv([e.as_dict() for e in events], VISITOR_EXPORT_HEADERS)
    consents = await visitor_consents(db, project_id, visitor_id)
    return {
        "visitorId": visitor_id,
        "projectId": str(project_id),
        "exportedAt": utcnow().isoformat(),
        "events": [e.as_dict() for e in events],
        "consentRecords": [consent_record_out(c) for c in consents],
    }


async def purge_old_events(db: AsyncSession, project_id: uuid.UUID, days: int | None = None) -> dict:
    if days is None:
        days = effective_consent(await consent_settings_row(db, project_id))["data_retention_days"]
    cutoff = utcnow() - timedelta(days=days)
    deleted = await delete_events_before(db, project_id, cutoff)
    return {"deleted": deleted, "days": days, "cutoff": cutoff.isoformat()}

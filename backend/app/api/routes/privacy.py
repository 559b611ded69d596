"""Privacy Routes — consent settings, consent records, erasure, export and purges.

Invariants:
    - GET consent-settings returns stored values or the defaults when none are saved
    - PUT and PATCH both upsert; only fields sent are written
    - An explicit null clears an optional field and is ignored for required ones
    - Erasure and export are scoped to one project; other projects' data is untouched
    - purge-events defaults to the project's retention window
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_accessible_project
from app.core.consent_defaults import effective_consent
from app.infrastructure.database import get_db
from app.models.consent import ConsentRecord, ConsentSettings
from app.models.project import Project
from app.schemas.privacy import ConsentSettingsUpdate, PurgeRequest
from app.schemas.serialize import consent_record_out
from app.services.visitor_privacy import (
    consent_settings_row, erase_visitor, export_visitor, purge_old_events,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects/{project_id}", tags=["privacy"])

MAX_CONSENT_RECORDS = 1000


def _settings_out(project: Project, row: ConsentSettings | None) -> dict:
    data = {"projectId": str(project.id), "configured": row is not None}
    data.update(effective_consent(row))
    return data


@router.get("/consent-settings")
async def get_consent_settings(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return _settings_out(project, await consent_settings_row(db, project.id))


@router.put("/consent-settings")
@router.patch("/consent-settings")
async def save_consent_settings(
    body: ConsentSettingsUpdate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    row = await consent_settings_row(db, project.id)
    if row is None:
        row = ConsentSettings(project_id=project.id, **effective_consent(None))
        db.add(row)
    columns = ConsentSettings.__table__.columns
    for field, value in body.changes().items():
        # explicit null clears optional text; required switches keep their value
        if value is not None or columns[field].nullable:
            setattr(row, field, value)
    await db.commit()
    await db.refresh(row)
    logger.info("Consent settings saved", extra={"project_id": str(project.id)})
    return _settings_out(project, row)


@router.get("/consent-records")
async def list_consent_records(
    visitor_id: str | None = Query(None, alias="visitorId"),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    stmt = select(ConsentRecord).where(ConsentRecord.project_id == project.id)
    if visitor_id:
        stmt = stmt.where(ConsentRecord.visitor_id == visitor_id)
    result = await db.execute(
        stmt.order_by(ConsentRecord.consent_timestamp.desc()).limit(MAX_CONSENT_RECORDS)
    )
    return [consent_record_out(r) for r in result.scalars().all()]


@router.delete("/visitors/{visitor_id}")
async def delete_visitor_data(
    visitor_id: str,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    result = await erase_visitor(db, project.id, visitor_id)
    await db.commit()
    return result


@router.get("/visitors/{visitor_id}/export")
async def export_visitor_data(
    visitor_id: str,
    export_format: str = Query("json", alias="format", pattern="^(json|csv)$"),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    data = await export_visitor(db, project.id, visitor_id, export_format)
    if export_format == "csv":
        return Response(
            content=data,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="visitor-{visitor_id}.csv"'},
        )
    return data


@router.post("/purge-events")
async def purge_events(
    body: PurgeRequest | None = None,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    result = await purge_old_events(db, project.id, body.days if body else None)
    await db.commit()
    logger.info(
        f"Purged {result['deleted']} events older than {result['days']} days",
        extra={"project_id": str(project.id)},
    )
    return result

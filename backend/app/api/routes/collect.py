"""Collection Routes — public endpoints called by the tracking snippet.

Invariants:
    - No authentication: the project id in the payload is the only key
    - Skipped events (DNT, no consent) answer 200 with a message; stored events 201
    - Consent records store a hashed IP, never the raw address
    - Bodies are parsed as JSON whatever the Content-Type: navigator.sendBeacon posts text/plain

Design Decisions:
    - Payload validation errors are re-raised as RequestValidationError so the
      collector answers with the same 400 envelope as every other route
"""

import json
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.consent_defaults import consent_config
from app.core.ip_privacy import hash_ip
from app.infrastructure.database import get_db
from app.models.consent import ConsentRecord
from app.schemas.serialize import consent_record_out
from app.schemas.tracking import ConsentPayload, EventPayload
from app.services.event_queries import to_record
from app.services.ingest_event import client_ip, ingest_event, load_project
from app.services.visitor_privacy import consent_settings_row

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["collect"])


def _peer(request: Request) -> str | None:
    return request.client.host if request.client else None


async def _snippet_body(request: Request, model):
    raw = await request.body()
    try:
        data = json.loads(raw) if raw else {}
    except ValueError:
        raise RequestValidationError([{
            "type": "json_invalid", "loc": ("body",), "msg": "Body is not valid JSON",
        }])
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError([
            {**err, "loc": ("body", *err["loc"])} for err in e.errors(include_url=False)
        ])


async def event_payload(request: Request) -> EventPayload:
    return await _snippet_body(request, EventPayload)


async def consent_payload(request: Request) -> ConsentPayload:
    return await _snippet_body(request, ConsentPayload)


@router.post("/events")
async def collect_event(
    request: Request,
    body: EventPayload = Depends(event_payload),
    db: AsyncSession = Depends(get_db),
):
    outcome = await ingest_event(
        db,
        body,
        ip=client_ip(request.headers, _peer(request)),
        dnt_header=request.headers.get("dnt"),
        header_user_agent=request.headers.get("user-agent"),
    )
    if outcome.skipped:
        return {"message": outcome.skipped}
    await db.commit()
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=to_record(outcome.event).as_dict(),
    )


@router.post("/consent", status_code=status.HTTP_201_CREATED)
async def record_consent(
    request: Request,
    body: ConsentPayload = Depends(consent_payload),
    db: AsyncSession = Depends(get_db),
):
    project = await load_project(db, body.project_id)
    record = ConsentRecord(
        project_id=project.id,
        visitor_id=body.visitor_id,
        consent_given=body.given,
        ip_hash=hash_ip(client_ip(request.headers, _peer(request))) or None,
        user_agent=body.user_agent or request.headers.get("user-agent"),
        consent_version=body.consent_version,
        categories_accepted=body.categories_accepted,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    return consent_record_out(record)


@router.get("/consent-config/{project_id}")
async def get_consent_config(project_id: str, db: AsyncSession = Depends(get_db)):
    project = await load_project(db, project_id)
    return consent_config(await consent_settings_row(db, project.id))

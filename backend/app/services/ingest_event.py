"""Event Ingestion — consent gates, enrichment and classification for one tracked event.

Invariants:
    - Gates run before any enrichment: DNT, then opt-in consent
    - Geo lookup and internal-IP rules see the raw client IP; only the stored IP is anonymised
    - Cookieless mode never stores visitor_id or session_id
    - event_type defaults to "pageview"

Design Decisions:
    - One function owning the whole pipeline, each step a small pure helper from core/
      (ADR: the order of the rules is the behaviour, keep it readable top to bottom)
    - Skipped events return a reason instead of raising: the snippet expects 200 for them
"""

import logging
import uuid
from dataclasses import dataclass
from urllib.parse import urlparse

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.classify_traffic import classify_traffic_source, is_foreign_host
from app.core.consent_defaults import effective_consent
from app.core.detect_agents import is_bot_agent, is_server_agent
from app.core.domain_types import ConsentMode
from app.core.errors import ResourceNotFoundError, ValidationFailedError
from app.core.ip_privacy import anonymize_ip, is_internal_ip
from app.infrastructure.geo_lookup import lookup_geo
from app.models.consent import ConsentSettings
from app.models.event import Event
from app.models.project import InternalIpRule, Project
from app.schemas.tracking import EventPayload

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TYPE = "pageview"
DNT_SKIPPED = "DNT respected, event not recorded"
CONSENT_SKIPPED = "Consent not given, event not recorded"


@dataclass(frozen=True)
class IngestOutcome:
    event: Event | None = None
    skipped: str | None = None


def client_ip(headers, peer: str | None) -> str | None:
    """First x-forwarded-for hop, else x-real-ip, else the socket peer."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return peer


def page_host(payload: EventPayload) -> str | None:
    if payload.hostname:
        return payload.hostname
    if payload.page:
        try:
            return urlparse(payload.page).hostname
        except ValueError:
            return None
    return None


async def load_project(db: AsyncSession, project_id: str | None) -> Project:
    if not project_id:
        raise ValidationFailedError("projectId is required", field="projectId")
    try:
        pid = uuid.UUID(str(project_id))
    except ValueError:
        raise ResourceNotFoundError("Project", str(project_id))
    project = await db.get(Project, pid)
    if not project:
        raise ResourceNotFoundError("Project", str(project_id))
    return project


async def _ip_rules(db: AsyncSession, project_id: uuid.UUID) -> list[tuple[str, str]]:
    result = await db.execute(
        select(InternalIpRule.ip, InternalIpRule.rule_type)
        .where(InternalIpRule.project_id == project_id)
    )
    return [(ip, rule_type) for ip, rule_type in result.all()]


async def ingest_event(
    db: AsyncSession,
    payload: EventPayload,
    ip: str | None,
    dnt_header: str | None = None,
    header_user_agent: str | None = None,
) -> IngestOutcome:
    """Run the ingestion pipeline; the caller commits."""
    project = await load_project(db, payload.project_id)

    consent_row = (await db.execute(
        select(ConsentSettings).where(ConsentSettings.project_id == project.id)
    )).scalar_one_or_none()
    consent = effective_consent(consent_row)

    if consent["respect_dnt"] and (dnt_header == "1" or payload.wants_dnt):
        return IngestOutcome(skipped=DNT_SKIPPED)

    if consent["consent_mode"] == ConsentMode.OPT_IN.value and not payload.has_consent:
        return IngestOutcome(skipped=CONSENT_SKIPPED)

    geo = await lookup_geo(ip)
    user_agent = payload.user_agent or header_user_agent or ""
    rules = await _ip_rules(db, project.id)
    internal = (
        is_foreign_host(page_host(payload), project.domain)
        or is_internal_ip(ip, rules)
    )

    cookieless = consent["cookieless_mode"]
    event = Event(
        project_id=project.id,
        visitor_id=None if cookieless else payload.visitor_id,
        session_id=None if cookieless else payload.session_id,
        event_type=payload.event_type or DEFAULT_EVENT_TYPE,
        page=payload.page,
        referrer=payload.referrer,
        device=payload.device,
        browser=payload.browser,
        os=payload.os,
        country=geo.country or payload.country,
        city=geo.city or payload.city,
        region=geo.region or payload.region,
        ip=(anonymize_ip(ip) if consent["anonymize_ip"] else ip) or None,
        is_bot=is_bot_agent(user_agent),
        is_internal=internal,
        is_server=is_server_agent(user_agent),
        traffic_source=classify_traffic_source(payload.referrer, payload.page, project.domain),
        event_metadata=payload.metadata,
    )
    db.add(event)
    await db.flush()

    logger.debug(
        f"Event ingested: {event.event_type}",
        extra={"project_id": str(project.id)},
    )
    return IngestOutcome(event=event)

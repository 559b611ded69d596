"""Custom Event Routes — rule-based event definitions, matches and conversion analysis.

Invariants:
    - Definition names are unique per project when created from a template (409)
    - /matches returns at most MAX_MATCHES events, newest first
    - Rules are evaluated with core.rule_matching (all rules must match)
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    ReportQuery, get_accessible_project, get_project_child, report_query,
)
from app.core.conversion_analysis import analyze_conversions, find_matches
from app.core.custom_event_templates import available_templates, get_template
from app.core.errors import ConflictError, ValidationFailedError
from app.infrastructure.database import get_db
from app.models.custom_event_definition import CustomEventDefinition
from app.models.project import Project
from app.schemas.analytics import CustomEventCreate, CustomEventUpdate, TemplateRequest
from app.schemas.serialize import custom_event_out
from app.services.event_queries import load_events

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects/{project_id}", tags=["custom-events"])

MAX_MATCHES = 200


def _rules(rules) -> list[dict]:
    return [{"field": r.field, "operator": r.operator.value, "value": r.value} for r in rules]


async def _get_definition(db, definition_id: str, project: Project) -> CustomEventDefinition:
    return await get_project_child(
        db, CustomEventDefinition, definition_id, project, "Custom event",
    )


@router.get("/custom-events")
async def list_custom_events(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(CustomEventDefinition)
        .where(CustomEventDefinition.project_id == project.id)
        .order_by(CustomEventDefinition.created_at.desc())
    )
    return [custom_event_out(d) for d in result.scalars().all()]


@router.post("/custom-events", status_code=status.HTTP_201_CREATED)
async def create_custom_event(
    body: CustomEventCreate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    definition = CustomEventDefinition(
        project_id=project.id,
        name=body.name,
        description=body.description,
        category=body.category,
        rules=_rules(body.rules),
        color=body.color,
        status=body.status,
    )
    db.add(definition)
    await db.commit()
    await db.refresh(definition)
    return custom_event_out(definition)


@router.get("/custom-events/{definition_id}")
async def get_custom_event(
    definition_id: str,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return custom_event_out(await _get_definition(db, definition_id, project))


@router.patch("/custom-events/{definition_id}")
async def update_custom_event(
    definition_id: str,
    body: CustomEventUpdate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    definition = await _get_definition(db, definition_id, project)
    changes = body.changes()
    if body.rules is not None:
        changes["rules"] = _rules(body.rules)
    for field, value in changes.items():
        if value is not None or field in ("description", "color"):
            setattr(definition, field, value)
    await db.commit()
    await db.refresh(definition)
    return custom_event_out(definition)


@router.delete("/custom-events/{definition_id}")
async def delete_custom_event(
    definition_id: str,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    definition = await _get_definition(db, definition_id, project)
    await db.delete(definition)
    await db.commit()
    return {"message": "Custom event deleted"}


@router.get("/custom-events/{definition_id}/matches")
async def custom_event_matches(
    definition_id: str,
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    definition = await _get_definition(db, definition_id, project)
    events = await load_events(
        db, project.id, query.window(), query.exclude_bots, query.exclude_internal,
    )
    matches = find_matches(events, definition.rules or [])
    matches.reverse()
    return {
        "definitionId": str(definition.id),
        "totalMatches": len(matches),
        "events": [e.as_dict() for e in matches[:MAX_MATCHES]],
    }


@router.get("/custom-events/{definition_id}/conversion-analysis")
async def custom_event_conversions(
    definition_id: str,
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    definition = await _get_definition(db, definition_id, project)
    events = await load_events(
        db, project.id, query.window(), query.exclude_bots, query.exclude_internal,
    )
    return {
        "definition": custom_event_out(definition),
        **analyze_conversions(events, definition.rules or []),
    }


@router.post("/custom-events/ai-templates", status_code=status.HTTP_201_CREATED)
async def create_from_template(
    body: TemplateRequest,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    template = get_template(body.template)
    if not template:
        raise ValidationFailedError(
            f"Unknown template '{body.template}'. Available: {available_templates()}",
            field="template",
        )
    duplicate = (await db.execute(
        select(CustomEventDefinition.id)
        .where(CustomEventDefinition.project_id == project.id)
        .where(CustomEventDefinition.name == template["name"])
    )).first()
    if duplicate:
        raise ConflictError(f"A custom event named '{template['name']}' already exists")

    definition = CustomEventDefinition(
        project_id=project.id, is_ai_built=True, status="active", **template,
    )
    db.add(definition)
    await db.commit()
    await db.refresh(definition)
    return custom_event_out(definition)

"""Funnel Routes — CRUD, step analysis and AI-generated funnels.

Invariants:
    - Funnels belong to exactly one project; foreign ids are 404
    - Analysis matches steps sequentially within each session
    - AI generation stores the funnel only when at least one valid step came back
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    ReportQuery, get_accessible_project, get_current_user, get_project_child, report_query,
)
from app.core.funnel_analysis import analyze_funnel
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.infrastructure.database import get_db
from app.models.funnel import Funnel
from app.models.project import Project
from app.models.user import User
from app.schemas.analytics import FunnelCreate, FunnelUpdate, PromptRequest
from app.schemas.serialize import funnel_out
from app.services.ai_insights import AIService, get_ai_client
from app.services.event_queries import load_events

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects/{project_id}", tags=["funnels"])


def _steps(steps) -> list[dict]:
    return [
        {"name": s.name, "type": s.type.value, "value": s.value} for s in steps
    ]


@router.get("/funnels")
async def list_funnels(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Funnel).where(Funnel.project_id == project.id).order_by(Funnel.created_at.desc())
    )
    return [funnel_out(f) for f in result.scalars().all()]


@router.post("/funnels", status_code=status.HTTP_201_CREATED)
async def create_funnel(
    body: FunnelCreate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    funnel = Funnel(
        project_id=project.id, name=body.name,
        description=body.description, steps=_steps(body.steps),
    )
    db.add(funnel)
    await db.commit()
    await db.refresh(funnel)
    return funnel_out(funnel)


@router.get("/funnels/{funnel_id}")
async def get_funnel(
    funnel_id: str,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return funnel_out(await get_project_child(db, Funnel, funnel_id, project, "Funnel"))


@router.patch("/funnels/{funnel_id}")
async def update_funnel(
    funnel_id: str,
    body: FunnelUpdate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    funnel = await get_project_child(db, Funnel, funnel_id, project, "Funnel")
    changes = body.changes()
    if "steps" in changes and body.steps is not None:
        changes["steps"] = _steps(body.steps)
    for field, value in changes.items():
        if value is not None or field == "description":
            setattr(funnel, field, value)
    await db.commit()
    await db.refresh(funnel)
    return funnel_out(funnel)


@router.delete("/funnels/{funnel_id}")
async def delete_funnel(
    funnel_id: str,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    funnel = await get_project_child(db, Funnel, funnel_id, project, "Funnel")
    await db.delete(funnel)
    await db.commit()
    return {"message": "Funnel deleted"}


@router.get("/funnels/{funnel_id}/analysis")
async def funnel_analysis(
    funnel_id: str,
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    funnel = await get_project_child(db, Funnel, funnel_id, project, "Funnel")
    events = await load_events(
        db, project.id, query.window(), query.exclude_bots, query.exclude_internal,
    )
    return {
        "funnel": funnel_out(funnel),
        **analyze_funnel(events, funnel.steps or []),
    }


@router.post("/ai-generate-funnel", status_code=status.HTTP_201_CREATED)
async def ai_generate_funnel(
    body: PromptRequest,
    project: Project = Depends(get_accessible_project),
    user: User = Depends(get_current_user),
    client: ResilientAnthropicClient = Depends(get_ai_client),
    db: AsyncSession = Depends(get_db),
):
    funnel = await AIService(db, client, user).generate_funnel(project, body.prompt)
    await db.commit()
    await db.refresh(funnel)
    return funnel_out(funnel)

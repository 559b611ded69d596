"""AI Feature Routes — status, chat and the stored AI analyses.

Invariants:
    - ai/status never fails: it reports whether a model key is configured
    - Every other route answers 503 AI_UNAVAILABLE without a key
    - chat with a projectId is grounded in that project's metrics and checks access
    - Stored analyses share one table (ai_reports) keyed by kind

Design Decisions:
    - One route factory per analysis kind keeps the four URL families identical
      (ADR: predictive, ux-audits, marketing-copilot and content-gap differ only in prompt)
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import (
    ensure_project_access, get_accessible_project, get_current_user,
    get_project_child, get_project_or_404,
)
from app.config import get_settings
from app.core.domain_types import AIReportKind
from app.core.errors import ResourceNotFoundError
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.infrastructure.database import get_db
from app.models.ai_report import AIReport
from app.models.project import Project
from app.models.user import User
from app.schemas.analytics import ChatRequest, OptionalPromptRequest
from app.schemas.serialize import ai_report_out
from app.services.ai_insights import AIService, get_ai_client

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["ai"])

ANALYSIS_PATHS = {
    AIReportKind.PREDICTIVE: "predictive-analytics",
    AIReportKind.UX_AUDIT: "ux-audits",
    AIReportKind.MARKETING_COPILOT: "marketing-copilot",
    AIReportKind.CONTENT_GAP: "content-gap",
}


@router.get("/ai/status")
async def ai_status(user: User = Depends(get_current_user)):
    settings = get_settings()
    return {
        "available": settings.ai_available,
        "provider": "anthropic" if settings.ai_available else None,
        "model": settings.ai_model if settings.ai_available else None,
    }


@router.post("/ai/chat")
async def ai_chat(
    body: ChatRequest,
    user: User = Depends(get_current_user),
    client: ResilientAnthropicClient = Depends(get_ai_client),
    db: AsyncSession = Depends(get_db),
):
    project = None
    if body.project_id:
        project = await get_project_or_404(body.project_id, db)
        ensure_project_access(project, user)
    result = await AIService(db, client, user).chat(body.prompt, body.page_context, project)
    await db.commit()
    return result


async def _get_report(db, report_id: str, project: Project, kind: AIReportKind) -> AIReport:
    report = await get_project_child(db, AIReport, report_id, project, "AI report")
    if report.kind != kind.value:
        raise ResourceNotFoundError("AI report", report_id)
    return report


def _register_analysis_routes(kind: AIReportKind, path: str) -> None:
    base = f"/projects/{{project_id}}/{path}"
    label = kind.value.replace("_", " ")

    async def list_analyses(
        project: Project = Depends(get_accessible_project),
        db: AsyncSession = Depends(get_db),
    ):
        result = await db.execute(
            select(AIReport)
            .where(AIReport.project_id == project.id, AIReport.kind == kind.value)
            .order_by(AIReport.created_at.desc())
        )
        return [ai_report_out(r) for r in result.scalars().all()]

    async def run_analysis(
        body: OptionalPromptRequest | None = None,
        project: Project = Depends(get_accessible_project),
        user: User = Depends(get_current_user),
        client: ResilientAnthropicClient = Depends(get_ai_client),
        db: AsyncSession = Depends(get_db),
    ):
        report = await AIService(db, client, user).run_analysis(
            project, kind,
            prompt=body.prompt if body else None,
            domain=body.domain if body else None,
        )
        await db.commit()
        await db.refresh(report)
        return ai_report_out(report)

    async def get_analysis(
        report_id: str,
        project: Project = Depends(get_accessible_project),
        db: AsyncSession = Depends(get_db),
    ):
        return ai_report_out(await _get_report(db, report_id, project, kind))

    async def delete_analysis(
        report_id: str,
        project: Project = Depends(get_accessible_project),
        db: AsyncSession = Depends(get_db),
    ):
        report = await _get_report(db, report_id, project, kind)
        await db.delete(report)
        await db.commit()
        return {"message": f"{label.capitalize()} report deleted"}

    router.add_api_route(base, list_analyses, methods=["GET"], name=f"list_{kind.value}")
    router.add_api_route(
        f"{base}/run", run_analysis, methods=["POST"],
        status_code=status.HTTP_201_CREATED, name=f"run_{kind.value}",
    )
    router.add_api_route(
        f"{base}/{{report_id}}", get_analysis, methods=["GET"], name=f"get_{kind.value}",
    )
    router.add_api_route(
        f"{base}/{{report_id}}", delete_analysis, methods=["DELETE"], name=f"delete_{kind.value}",
    )


for _kind, _path in ANALYSIS_PATHS.items():
    _register_analysis_routes(_kind, _path)

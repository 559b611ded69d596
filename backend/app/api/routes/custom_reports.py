"""Custom Report Routes — saved report definitions, their data and AI insights.

Invariants:
    - Report data honours the saved filters, first dimension and metrics
    - from/to query parameters override the saved date range for one request
    - ai-generate-report is a keyword parser, not an LLM call, and is never billed
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_accessible_project, get_current_user, get_project_child
from app.core.report_prompt_parser import parse_report_prompt
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.infrastructure.database import get_db
from app.models.custom_report import CustomReport
from app.models.project import Project
from app.models.user import User
from app.schemas.analytics import CustomReportCreate, CustomReportUpdate, PromptRequest
from app.schemas.serialize import custom_report_out
from app.services.ai_insights import AIService, get_ai_client
from app.services.custom_report_runner import run_custom_report

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects/{project_id}", tags=["custom-reports"])


async def _get_report(db, report_id: str, project: Project) -> CustomReport:
    return await get_project_child(db, CustomReport, report_id, project, "Report")


@router.get("/reports")
async def list_reports(
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(CustomReport)
        .where(CustomReport.project_id == project.id)
        .order_by(CustomReport.created_at.desc())
    )
    return [custom_report_out(r) for r in result.scalars().all()]


@router.post("/reports", status_code=status.HTTP_201_CREATED)
async def create_report(
    body: CustomReportCreate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    report = CustomReport(project_id=project.id, **body.model_dump())
    db.add(report)
    await db.commit()
    await db.refresh(report)
    return custom_report_out(report)


@router.get("/reports/{report_id}")
async def get_report(
    report_id: str,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return custom_report_out(await _get_report(db, report_id, project))


@router.patch("/reports/{report_id}")
async def update_report(
    report_id: str,
    body: CustomReportUpdate,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    report = await _get_report(db, report_id, project)
    for field, value in body.changes().items():
        if value is not None or field in ("description", "filters"):
            setattr(report, field, value)
    await db.commit()
    await db.refresh(report)
    return custom_report_out(report)


@router.delete("/reports/{report_id}")
async def delete_report(
    report_id: str,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    report = await _get_report(db, report_id, project)
    await db.delete(report)
    await db.commit()
    return {"message": "Report deleted"}


@router.get("/reports/{report_id}/data")
async def report_data(
    report_id: str,
    date_from: str | None = Query(None, alias="from"),
    date_to: str | None = Query(None, alias="to"),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    report = await _get_report(db, report_id, project)
    return {
        "report": custom_report_out(report),
        **await run_custom_report(db, report, date_from, date_to),
    }


@router.post("/ai-generate-report", status_code=status.HTTP_201_CREATED)
async def ai_generate_report(
    body: PromptRequest,
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    spec = parse_report_prompt(body.prompt)
    report = CustomReport(
        project_id=project.id,
        name=spec["name"],
        description=body.prompt,
        metrics=spec["metrics"],
        dimensions=spec["dimensions"],
        chart_type=spec["chartType"],
        date_range=spec["dateRange"],
        filters=spec["filters"],
    )
    db.add(report)
    await db.commit()
    await db.refresh(report)
    logger.info(f"Report generated from prompt: {report.name}", extra={"project_id": str(project.id)})
    return custom_report_out(report)


@router.post("/reports/{report_id}/ai-insights")
async def report_ai_insights(
    report_id: str,
    project: Project = Depends(get_accessible_project),
    user: User = Depends(get_current_user),
    client: ResilientAnthropicClient = Depends(get_ai_client),
    db: AsyncSession = Depends(get_db),
):
    report = await _get_report(db, report_id, project)
    result = await AIService(db, client, user).report_insights(project, report)
    await db.commit()
    return result

"""Report Routes — GA4-style analytics reports over a project's events.

Invariants:
    - Every report accepts period, from, to, excludeBots, excludeInternal
    - Bot and internal traffic is reported as recorded unless excluded
    - Reports are pure functions in core/ over events loaded once per request

Design Decisions:
    - /analytics defaults to all_time, every other report to last_30_days
    - /ai-insights here is deterministic text from the summary, not an LLM call
"""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import ReportQuery, get_accessible_project, report_query
from app.core.acquisition_reports import (
    build_acquisition, build_traffic_sources, build_user_acquisition,
)
from app.core.analytics_summary import build_summary
from app.core.audience_reports import build_geography, build_pages_analysis, build_tech
from app.core.compare_periods import build_comparison, compare_windows, parse_compare_period
from app.core.data_insights import generate_data_insight, insight_topic
from app.core.engagement_reports import build_engagement
from app.core.realtime_snapshot import WINDOW_MINUTES, build_realtime
from app.core.date_ranges import DateRange
from app.infrastructure.database import get_db
from app.models.project import Project
from app.schemas.analytics import OptionalPromptRequest
from app.services.event_queries import first_seen_by_visitor, load_events

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects/{project_id}", tags=["reports"])


async def _events(db: AsyncSession, project: Project, query: ReportQuery, window: DateRange):
    return await load_events(
        db, project.id, window, query.exclude_bots, query.exclude_internal,
    )


@router.get("/analytics")
async def analytics_summary(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    window = query.window("all_time")
    summary = build_summary(await _events(db, project, query, window))
    return {**summary, "dateRange": window.as_dict()}


@router.get("/analytics/compare")
async def analytics_compare(
    period: str | None = Query(None),
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    compare_period = parse_compare_period(period)
    current_range, previous_range = compare_windows(
        compare_period, query.date_from, query.date_to,
    )
    current = await _events(db, project, query, current_range)
    previous = await _events(db, project, query, previous_range) if previous_range else []
    return build_comparison(compare_period, current_range, previous_range, current, previous)


@router.get("/realtime")
async def realtime(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    now = datetime.now(timezone.utc)
    window = DateRange(now - timedelta(minutes=WINDOW_MINUTES), now)
    return build_realtime(await _events(db, project, query, window), now)


@router.get("/acquisition")
async def acquisition(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return build_acquisition(await _events(db, project, query, query.window()))


@router.get("/traffic-sources")
async def traffic_sources(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return build_traffic_sources(await _events(db, project, query, query.window()))


@router.get("/user-acquisition")
async def user_acquisition(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    window = query.window()
    events = await _events(db, project, query, window)
    first_seen = await first_seen_by_visitor(db, project.id, window.end)
    return build_user_acquisition(events, window, first_seen)


@router.get("/engagement")
async def engagement(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return build_engagement(await _events(db, project, query, query.window()))


@router.get("/pages-analysis")
async def pages_analysis(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return build_pages_analysis(await _events(db, project, query, query.window()))


@router.get("/geography")
async def geography(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return build_geography(await _events(db, project, query, query.window()))


@router.get("/tech")
async def tech(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    return build_tech(await _events(db, project, query, query.window()))


@router.post("/ai-insights")
async def data_insights(
    body: OptionalPromptRequest | None = None,
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    prompt = body.prompt if body else None
    summary = build_summary(await _events(db, project, query, query.window()))
    return {
        "topic": insight_topic(prompt),
        "insight": generate_data_insight(
            prompt, project.name, (body.domain if body and body.domain else project.domain), summary,
        ),
    }

"""Event Browser Routes — raw events, filtered search, journeys, visitors and export.

Invariants:
    - Every query is scoped to one accessible project
    - /events returns the newest events first; limit is clamped to 1..1000
    - /events/filtered applies from and to independently; without either, only a period bounds it
    - Export is newest-first; csv downloads as an attachment
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import ReportQuery, get_accessible_project, report_query
from app.core.csv_export import EVENT_EXPORT_HEADERS, rows_to_csv
from app.core.date_ranges import resolve_bounds
from app.core.event_record import filter_traffic
from app.core.journeys import build_journeys, build_visitors
from app.infrastructure.database import get_db
from app.models.project import Project
from app.services.event_queries import EventFilters, filtered_events, latest_events, load_events

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/projects/{project_id}", tags=["events"])

MAX_LATEST = 1000


@router.get("/events")
async def list_events(
    limit: int = Query(100),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    events = await latest_events(db, project.id, max(1, min(limit, MAX_LATEST)))
    return [e.as_dict() for e in events]


@router.get("/events/filtered")
async def list_filtered_events(
    query: ReportQuery = Depends(report_query),
    event_type: str | None = Query(None, alias="eventType"),
    device: str | None = Query(None),
    browser: str | None = Query(None),
    os: str | None = Query(None),
    country: str | None = Query(None),
    referrer: str | None = Query(None),
    traffic_source: str | None = Query(None, alias="trafficSource"),
    page: str | None = Query(None),
    visitor_id: str | None = Query(None, alias="visitorId"),
    is_bot: bool | None = Query(None, alias="isBot"),
    is_internal: bool | None = Query(None, alias="isInternal"),
    is_server: bool | None = Query(None, alias="isServer"),
    limit: int = Query(100),
    offset: int = Query(0),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    start, end = resolve_bounds(query.period, query.date_from, query.date_to)
    filters = EventFilters(
        start=start, end=end,
        event_type=event_type, device=device, browser=browser, os=os,
        country=country, referrer=referrer, traffic_source=traffic_source,
        page=page, visitor_id=visitor_id,
        is_bot=False if query.exclude_bots else is_bot,
        is_internal=False if query.exclude_internal else is_internal,
        is_server=is_server,
        limit=limit, offset=offset,
    )
    events, total = await filtered_events(db, project.id, filters)
    return {
        "events": [e.as_dict() for e in events],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/journeys")
async def list_journeys(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    events = await load_events(
        db, project.id, query.window(),
        query.exclude_bots, query.exclude_internal,
    )
    return build_journeys(events)


@router.get("/visitors")
async def list_visitors(
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    events = await load_events(
        db, project.id, query.window(),
        query.exclude_bots, query.exclude_internal,
    )
    return build_visitors(events)


@router.get("/export")
async def export_events(
    export_format: str = Query("json", alias="format", pattern="^(json|csv)$"),
    query: ReportQuery = Depends(report_query),
    project: Project = Depends(get_accessible_project),
    db: AsyncSession = Depends(get_db),
):
    events = await load_events(db, project.id, query.window("all_time"))
    rows = [e.as_dict() for e in reversed(filter_traffic(
        events, query.exclude_bots, query.exclude_internal,
    ))]
    if export_format == "csv":
        return Response(
            content=rows_to_csv(rows, EVENT_EXPORT_HEADERS),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="events-{project.id}.csv"'},
        )
    return rows

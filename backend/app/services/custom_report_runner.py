"""Custom Report Runner — load the window a saved report covers and bucket it."""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.custom_report_data import apply_report_filters, build_report_rows
from app.core.date_ranges import resolve_date_range
from app.models.custom_report import CustomReport
from app.services.event_queries import load_events


async def run_custom_report(
    db: AsyncSession,
    report: CustomReport,
    date_from: str | None = None,
    date_to: str | None = None,
) -> dict:
    window = resolve_date_range(report.date_range, date_from, date_to)
    events = await load_events(db, report.project_id, window)
    rows = build_report_rows(
        apply_report_filters(events, report.filters),
        report.dimensions or ["date"],
        report.metrics or ["pageViews"],
    )
    return {
        "rows": rows,
        "dimension": (report.dimensions or ["date"])[0],
        "metrics": report.metrics or ["pageViews"],
        "chartType": report.chart_type,
        "dateRange": window.as_dict(),
        "totalEvents": len(events),
    }

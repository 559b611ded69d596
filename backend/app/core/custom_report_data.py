"""Custom Report Data — execute a saved report definition over a window of events.

Invariants:
    - Filters apply before bucketing; only the first dimension is used
    - Time dimensions (date, hour, week, month) sort ascending by label
    - Other dimensions sort by the first metric descending
    - Each row carries "dimension" plus exactly the requested metrics
    - At most MAX_ROWS rows are returned

Design Decisions:
    - Hour labels are zero-padded ("2024-01-05 09:00") so label order equals time order
    - Weeks start on Sunday ("Week of YYYY-MM-DD"), matching the dashboard's calendar
    - bounceRate is a whole percentage of single-event sessions within the bucket
"""

from dataclasses import dataclass, field
from datetime import timedelta

from app.core.event_record import EventRecord

MAX_ROWS = 100

DIMENSIONS = (
    "date", "hour", "month", "week", "page", "device", "browser",
    "country", "city", "referrer", "os", "eventType",
)
TIME_DIMENSIONS = ("date", "hour", "month", "week")
METRICS = (
    "pageViews", "clicks", "events", "visitors", "sessions",
    "scrolls", "formSubmits", "rageClicks", "bots", "bounceRate",
)

_EVENT_COUNTERS = {
    "pageview": "pageViews",
    "click": "clicks",
    "scroll": "scrolls",
    "form_submit": "formSubmits",
    "rage_click": "rageClicks",
}


def apply_report_filters(events: list[EventRecord], filters: dict | None) -> list[EventRecord]:
    if not filters:
        return list(events)
    out = []
    for e in events:
        if filters.get("excludeBots") and e.is_bot:
            continue
        if filters.get("excludeInternal") and e.is_internal:
            continue
        if filters.get("eventType") and e.event_type != filters["eventType"]:
            continue
        if filters.get("device") and e.device != filters["device"]:
            continue
        if filters.get("country") and e.country != filters["country"]:
            continue
        if filters.get("page") and filters["page"] not in (e.page or ""):
            continue
        out.append(e)
    return out


def dimension_key(evt: EventRecord, dimension: str) -> str:
    ts = evt.timestamp
    if dimension == "hour":
        return f"{ts.date().isoformat()} {ts.hour:02d}:00"
    if dimension == "month":
        return ts.strftime("%Y-%m")
    if dimension == "week":
        # isoweekday: Monday=1 .. Sunday=7
        week_start = ts.date() - timedelta(days=ts.isoweekday() % 7)
        return f"Week of {week_start.isoformat()}"
    if dimension == "page":
        return evt.page or "/"
    if dimension == "referrer":
        return evt.referrer or "Direct"
    if dimension == "eventType":
        return evt.event_type
    if dimension in ("device", "browser", "country", "city", "os"):
        return getattr(evt, dimension) or "Unknown"
    return ts.date().isoformat()


@dataclass
class _ReportBucket:
    counts: dict[str, int] = field(default_factory=lambda: dict.fromkeys(
        ("pageViews", "clicks", "events", "scrolls", "formSubmits", "rageClicks", "bots"), 0,
    ))
    visitors: set[str] = field(default_factory=set)
    sessions: set[str] = field(default_factory=set)

    def add(self, evt: EventRecord) -> None:
        self.counts["events"] += 1
        counter = _EVENT_COUNTERS.get(evt.event_type)
        if counter:
            self.counts[counter] += 1
        if evt.is_bot:
            self.counts["bots"] += 1
        self.visitors.add(evt.visitor_id or evt.id)
        self.sessions.add(evt.session_id or evt.id)


def build_report_rows(
    events: list[EventRecord], dimensions: list[str], metrics: list[str],
) -> list[dict]:
    dimension = dimensions[0] if dimensions else "date"
    buckets: dict[str, _ReportBucket] = {}
    session_sizes: dict[str, int] = {}
    for evt in events:
        buckets.setdefault(dimension_key(evt, dimension), _ReportBucket()).add(evt)
        sid = evt.session_id or evt.id
        session_sizes[sid] = session_sizes.get(sid, 0) + 1

    rows = []
    for key, bucket in buckets.items():
        row: dict = {"dimension": key}
        for metric in metrics:
            if metric == "visitors":
                row[metric] = len(bucket.visitors)
            elif metric == "sessions":
                row[metric] = len(bucket.sessions)
            elif metric == "bounceRate":
                single = sum(1 for sid in bucket.sessions if session_sizes[sid] == 1)
                row[metric] = round(single / len(bucket.sessions) * 100) if bucket.sessions else 0
            elif metric in bucket.counts:
                row[metric] = bucket.counts[metric]
        rows.append(row)

    if dimension in TIME_DIMENSIONS:
        rows.sort(key=lambda r: r["dimension"])
    else:
        sort_metric = metrics[0] if metrics else "events"
        rows.sort(key=lambda r: r.get(sort_metric) or 0, reverse=True)
    return rows[:MAX_ROWS]

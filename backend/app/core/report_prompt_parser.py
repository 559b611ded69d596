"""Report Prompt Parser — keyword rules turning a sentence into a report definition.

Invariants:
    - Deterministic: the same prompt always yields the same definition (no LLM call)
    - metrics is never empty (defaults to pageViews + visitors)
    - Exactly one dimension; chart type follows the dimension when not named
    - filters is None when no filter keyword matched
"""

_METRIC_KEYWORDS = (
    ("pageViews", ("page view", "pageview", "views")),
    ("clicks", ("click",)),
    ("visitors", ("visitor", "user", "unique")),
    ("sessions", ("session",)),
    ("bounceRate", ("bounce",)),
    ("scrolls", ("scroll",)),
    ("formSubmits", ("form", "submission", "submit")),
    ("rageClicks", ("rage",)),
    ("bots", ("bot",)),
    ("events", ("event", "all")),
)

# first match wins
_DIMENSION_KEYWORDS = (
    ("device", ("by device", "per device", "device breakdown")),
    ("browser", ("by browser", "per browser", "browser breakdown")),
    ("country", ("by country", "per country", "country breakdown", "geographic", "geo")),
    ("city", ("by city", "per city")),
    ("page", ("by page", "per page", "top page", "page breakdown")),
    ("referrer", ("by referrer", "per referrer", "referral", "source")),
    ("os", ("by os", "operating system")),
    ("eventType", ("by event", "event type")),
    ("hour", ("hourly", "by hour", "per hour")),
    ("week", ("weekly", "by week", "per week")),
    ("month", ("monthly", "by month", "per month")),
)

_CHART_KEYWORDS = (
    ("line", ("line chart", "line graph", "trend")),
    ("pie", ("pie", "donut", "distribution", "breakdown", "share")),
    ("area", ("area",)),
    ("table", ("table", "list", "tabular")),
)

_DATE_RANGE_KEYWORDS = (
    ("today", ("today",)),
    ("yesterday", ("yesterday",)),
    ("last_7_days", ("7 day", "last week", "this week", "past week")),
    ("last_90_days", ("90 day", "3 month", "quarter")),
    ("this_year", ("this year", "year to date", "ytd")),
    ("all_time", ("all time", "all data", "ever", "everything")),
)

METRIC_LABELS = {
    "pageViews": "Page Views", "clicks": "Clicks", "visitors": "Visitors",
    "sessions": "Sessions", "bounceRate": "Bounce Rate", "scrolls": "Scrolls",
    "formSubmits": "Form Submissions", "rageClicks": "Rage Clicks",
    "bots": "Bot Events", "events": "Events",
}
DIMENSION_LABELS = {
    "date": "Daily", "hour": "Hourly", "week": "Weekly", "month": "Monthly",
    "page": "by Page", "device": "by Device", "browser": "by Browser",
    "country": "by Country", "city": "by City", "referrer": "by Referrer",
    "os": "by OS", "eventType": "by Event Type",
}


def _first_match(text: str, table, default: str) -> str:
    for value, keywords in table:
        if any(k in text for k in keywords):
            return value
    return default


def parse_report_prompt(prompt: str) -> dict:
    p = prompt.lower()

    metrics = [m for m, keywords in _METRIC_KEYWORDS if any(k in p for k in keywords)]
    if not metrics:
        metrics = ["pageViews", "visitors"]

    dimension = _first_match(p, _DIMENSION_KEYWORDS, "date")
    chart_type = _first_match(p, _CHART_KEYWORDS, "")
    if not chart_type:
        chart_type = "line" if dimension in ("date", "hour", "week", "month") else "bar"

    filters: dict = {}
    if any(k in p for k in ("no bot", "exclude bot", "without bot", "human only", "real user")):
        filters["excludeBots"] = True
    if any(k in p for k in ("no internal", "exclude internal", "external only", "without internal")):
        filters["excludeInternal"] = True
    if "mobile only" in p or "mobile traffic" in p:
        filters["device"] = "Mobile"
    elif "desktop only" in p or "desktop traffic" in p:
        filters["device"] = "Desktop"

    metric_names = " & ".join(METRIC_LABELS.get(m, m) for m in metrics[:3])
    return {
        "name": f"{metric_names} {DIMENSION_LABELS.get(dimension, dimension)}",
        "metrics": metrics,
        "dimensions": [dimension],
        "chartType": chart_type,
        "dateRange": _first_match(p, _DATE_RANGE_KEYWORDS, "last_30_days"),
        "filters": filters or None,
    }

"""Date Ranges — resolve report period keys and explicit bounds into UTC windows.

Invariants:
    - Every returned datetime is timezone-aware UTC
    - Explicit from/to (both present) override the period key in report windows
    - resolve_bounds applies a lone from or to as a one-sided bound (event search)
    - Unknown or missing period falls back to last_30_days
    - from > to is rejected (ValidationFailedError)

Design Decisions:
    - `now` injectable on every function: deterministic tests without freezing the clock
    - Calendar periods (today, this_week, this_month...) start at UTC midnight
    - last_month ends at the last instant of the previous month, not at now
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from app.core.errors import ValidationFailedError

DEFAULT_PERIOD = "last_30_days"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_ROLLING_DAYS = {
    "last_7_days": 7,
    "last_28_days": 28,
    "last_30_days": 30,
    "last_90_days": 90,
    "last_12_months": 365,
}

PERIOD_KEYS = (
    "today", "yesterday", *_ROLLING_DAYS, "this_week", "this_month",
    "last_month", "this_year", "all_time",
)


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def contains(self, ts: datetime) -> bool:
        return self.start <= ensure_utc(ts) <= self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def as_dict(self) -> dict:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (sqlite drops tzinfo), convert aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: str, field: str) -> datetime:
    """Parse an ISO-8601 date or datetime query value."""
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationFailedError(f"Invalid date for '{field}': {value}", field=field)
    return ensure_utc(parsed)


def _midnight(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _period_start(period: str, now: datetime) -> datetime:
    if period in _ROLLING_DAYS:
        return now - timedelta(days=_ROLLING_DAYS[period])
    if period == "today":
        return _midnight(now)
    if period == "yesterday":
        return _midnight(now - timedelta(days=1))
    if period == "this_week":
        return _midnight(now - timedelta(days=now.weekday()))
    if period == "this_month":
        return _midnight(now.replace(day=1))
    if period == "this_year":
        return _midnight(now.replace(month=1, day=1))
    if period == "all_time":
        return EPOCH
    return now - timedelta(days=_ROLLING_DAYS[DEFAULT_PERIOD])


def previous_month_bounds(now: datetime) -> DateRange:
    """First instant to last instant of the calendar month before `now`."""
    first_this_month = _midnight(now.replace(day=1))
    last_prev = first_this_month - timedelta(microseconds=1)
    return DateRange(_midnight(last_prev.replace(day=1)), last_prev)


def month_bounds(now: datetime) -> DateRange:
    """First instant to last instant of the calendar month containing `now`."""
    start = _midnight(now.replace(day=1))
    if start.month == 12:
        next_start = start.replace(year=start.year + 1, month=1)
    else:
        next_start = start.replace(month=start.month + 1)
    return DateRange(start, next_start - timedelta(microseconds=1))


def _parse_upper(date_to: str) -> datetime:
    end = parse_timestamp(date_to, "to")
    if len(date_to.strip()) == 10:
        # date-only upper bound covers the whole day
        end = end + timedelta(days=1) - timedelta(microseconds=1)
    return end


def _check_order(start: datetime | None, end: datetime | None) -> None:
    if start and end and start > end:
        raise ValidationFailedError("'from' must be before 'to'", field="from")


def resolve_date_range(
    period: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    now: datetime | None = None,
) -> DateRange:
    """Resolve query parameters into a concrete [start, end] window."""
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    if date_from and date_to:
        start, end = parse_timestamp(date_from, "from"), _parse_upper(date_to)
        _check_order(start, end)
        return DateRange(start, end)

    key = period or DEFAULT_PERIOD
    if key == "yesterday":
        start = _period_start(key, now)
        return DateRange(start, _midnight(now) - timedelta(microseconds=1))
    if key == "last_month":
        return previous_month_bounds(now)
    return DateRange(_period_start(key, now), now)


def resolve_bounds(
    period: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    now: datetime | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Open-ended bounds for event search: each of from/to applies on its own.

    With neither bound given, a period key resolves to its window and no period
    means no time filter at all.
    """
    if not date_from and not date_to:
        if not period:
            return None, None
        window = resolve_date_range(period, now=now)
        return window.start, window.end
    start = parse_timestamp(date_from, "from") if date_from else None
    end = _parse_upper(date_to) if date_to else None
    _check_order(start, end)
    return start, end

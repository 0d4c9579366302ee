from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple, Union

DAYS_IN_WEEK = 7

Instant = Union[str, datetime]


def now_local() -> datetime:
    return datetime.now()


def to_local(value: datetime) -> datetime:
    """Return ``value`` as a naive datetime in local time."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_instant(value: Optional[Instant]) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        if value.endswith("Z"):
            return datetime.fromisoformat(value[:-1] + "+00:00")
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def format_instant(value: Optional[datetime] = None) -> str:
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is None:
        # naive values are local wall-clock time
        value = value.astimezone()
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def start_of_week(value: Optional[datetime] = None) -> datetime:
    local = to_local(value) if value is not None else now_local()
    monday = local - timedelta(days=local.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def week_bounds(start: datetime) -> Tuple[datetime, datetime]:
    start = to_local(start)
    return start, start + timedelta(days=DAYS_IN_WEEK)


def in_window(value: Optional[Instant], start: datetime) -> bool:
    parsed = parse_instant(value)
    if parsed is None:
        return False
    window_start, window_end = week_bounds(start)
    return window_start <= to_local(parsed) < window_end


def is_same_day(a: Optional[Instant], b: Optional[Instant]) -> bool:
    first = parse_instant(a)
    second = parse_instant(b)
    if first is None or second is None:
        return False
    return to_local(first).date() == to_local(second).date()

"""
Datetime utilities for clock times, calendar dates and the local zone.

Appointments live in a single implicit local zone: calendar dates and
clock times are naive and never derived from UTC-shifted timestamps.
Audit timestamps (updated_at) stay timezone-aware UTC.
"""

from datetime import date, datetime, time, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

MINUTES_PER_DAY = 24 * 60

ClockLike = Union[str, time]


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def local_now(tz_name: str) -> datetime:
    """
    Get the current wall-clock time in the given zone as a naive datetime.

    Availability checks compare naive local datetimes built from a
    calendar date and a clock time, so "now" is returned the same way.
    """
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def to_local_naive(dt: datetime, tz_name: str) -> datetime:
    """
    Wall-clock time of ``dt`` in the given zone, as a naive datetime.

    Naive values are taken to be local already and returned unchanged.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def parse_iso_datetime(iso_string: str) -> datetime:
    """
    Parse ISO format datetime string to timezone-aware datetime.
    Handles both 'Z' suffix and '+00:00' timezone formats.

    Args:
        iso_string: ISO format datetime string

    Returns:
        Timezone-aware datetime object

    Raises:
        ValueError: If datetime string cannot be parsed
    """
    normalized = iso_string.replace("Z", "+00:00")

    try:
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError as e:
        raise ValueError(f"Invalid datetime string: {iso_string}") from e


def to_iso_string(dt: datetime) -> str:
    """
    Convert datetime to ISO format string.
    Naive datetimes are treated as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.isoformat()


def parse_iso_date(value: Union[str, date]) -> date:
    """
    Parse a 'YYYY-MM-DD' calendar date.

    Only the date part is read, so a value such as '2024-01-01T23:30:00'
    keeps its local calendar day instead of shifting through UTC.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip()[:10])
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Invalid date string: {value!r}") from e


def to_iso_date(value: date) -> str:
    """Format a calendar date as 'YYYY-MM-DD'."""
    return value.isoformat()


def parse_clock(value: ClockLike) -> time:
    """
    Parse a clock time.

    Accepts 'HH:MM' and the data store's 'HH:MM:SS' format; seconds are
    dropped.

    Raises:
        ValueError: If the value is not a valid 00:00-23:59 clock time
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise ValueError(f"Invalid clock time: {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid clock time: {value!r}")

    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid clock time: {value!r}")
    return time(hours, minutes)


def format_clock(value: ClockLike) -> str:
    """Format a clock time as fixed-width 'HH:MM'."""
    t = parse_clock(value)
    return f"{t.hour:02d}:{t.minute:02d}"


def clock_to_minutes(value: ClockLike) -> int:
    """Minutes since midnight."""
    t = parse_clock(value)
    return t.hour * 60 + t.minute


def minutes_to_clock(minutes: int) -> time:
    """Clock time for a minute offset, wrapping modulo 24 hours."""
    minutes %= MINUTES_PER_DAY
    return time(minutes // 60, minutes % 60)


def add_minutes(value: ClockLike, minutes: int) -> time:
    """
    Add minutes to a clock time.

    The result wraps modulo 24 hours with no day rollover tracking:
    add_minutes("23:30", 60) is 00:30.
    """
    return minutes_to_clock(clock_to_minutes(value) + minutes)


def combine(day: date, clock: ClockLike, tzinfo: Optional[timezone] = None) -> datetime:
    """Combine a calendar date and a clock time into a datetime."""
    return datetime.combine(day, parse_clock(clock), tzinfo=tzinfo)


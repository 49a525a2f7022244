from __future__ import annotations

from datetime import date, datetime, time
from typing import Union

from ..core.exceptions import InvalidTimeRangeException, ValidationException

TimeLike = Union[time, str]
DateLike = Union[date, str]

MINUTES_PER_DAY = 24 * 60


def parse_time_of_day(value: TimeLike) -> time:
    """
    Parse a time-of-day flexibly.

    Accepts ``time`` objects and "HH:MM" / "HH:MM:SS" strings. "24:00[:00]"
    is the end-of-day sentinel and maps to ``time(0, 0)``.
    """
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if not isinstance(value, str):
        raise ValidationException(
            "Time must be a string in HH:MM format",
            code="INVALID_TIME",
            details={"value": repr(value)},
        )
    normalized = value.strip()
    if len(normalized) == 5:
        normalized += ":00"
    if normalized == "24:00:00":
        return time(0, 0)
    try:
        return datetime.strptime(normalized, "%H:%M:%S").time()
    except ValueError as exc:
        raise ValidationException(
            "Invalid time format. Expected HH:MM",
            code="INVALID_TIME",
            details={"value": value},
        ) from exc


def parse_calendar_date(value: DateLike) -> date:
    """Parse a calendar date given as ``date`` or "YYYY-MM-DD"."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError) as exc:
        raise ValidationException(
            "Invalid date format. Expected YYYY-MM-DD",
            code="INVALID_DATE",
            details={"value": str(value)},
        ) from exc


def time_to_minutes(t: time, *, is_end_time: bool = False) -> int:
    """
    Convert time to minutes since midnight.

    Args:
        t: Time object.
        is_end_time: If True, treat time(0, 0) as 1440 (end of day).

    Returns:
        Minutes since midnight (0-1440).
    """
    minutes = t.hour * 60 + t.minute
    if is_end_time and minutes == 0:
        return MINUTES_PER_DAY
    return minutes


def validate_time_range(start: TimeLike, end: TimeLike) -> tuple[time, time]:
    """
    Parse and validate a time window.

    Raises:
        InvalidTimeRangeException: If end is not strictly after start
    """
    start_time = parse_time_of_day(start)
    end_time = parse_time_of_day(end)
    if time_to_minutes(end_time, is_end_time=True) <= time_to_minutes(start_time):
        raise InvalidTimeRangeException(start, end)
    return start_time, end_time


def duration_minutes(start: TimeLike, end: TimeLike) -> int:
    """Length of a validated window in minutes."""
    start_time, end_time = validate_time_range(start, end)
    return time_to_minutes(end_time, is_end_time=True) - time_to_minutes(start_time)

"""
Timezone utilities for the gig booking engine.

Event dates and times-of-day are stored separately and interpreted in the
platform timezone; they are only combined into aware datetimes at
comparison time.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import pytz

from .config import settings


def get_platform_timezone(tz_name: Optional[str] = None) -> pytz.BaseTzInfo:
    """Return the pytz timezone event slots are expressed in."""
    return pytz.timezone(tz_name or settings.platform_timezone)


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(dt: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values (e.g. read back from SQLite) are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def combine_local(
    event_date: date,
    time_of_day: time,
    *,
    is_end_time: bool = False,
    tz_name: Optional[str] = None,
) -> datetime:
    """
    Combine a calendar date and time-of-day into an aware UTC datetime.

    Args:
        event_date: Calendar date in the platform timezone
        time_of_day: Time-of-day in the platform timezone
        is_end_time: If True, a 00:00 value means midnight at the end of the day
        tz_name: Optional timezone override

    Returns:
        Aware datetime in UTC
    """
    tz = get_platform_timezone(tz_name)
    day = event_date
    if is_end_time and time_of_day == time(0, 0):
        day = event_date + timedelta(days=1)
    local_dt = tz.localize(datetime.combine(day, time_of_day))
    return local_dt.astimezone(timezone.utc)

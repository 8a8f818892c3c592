"""
Timezone utilities for the studio platform.

Everything is stored in UTC. Business rules that talk about hours of the
day (opening hours, manual session windows, report periods) are evaluated
in the studio timezone.
"""

from datetime import date, datetime, time, timedelta, timezone

import pytz

from .config import settings


def get_studio_timezone() -> pytz.BaseTzInfo:
    """Return the studio timezone as a pytz timezone object."""
    return pytz.timezone(settings.studio_timezone)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are interpreted as studio local time, which is what the
    web client sends for calendar picks.
    """
    if dt.tzinfo is None:
        return get_studio_timezone().localize(dt).astimezone(timezone.utc)
    return dt.astimezone(timezone.utc)


def to_studio_time(dt: datetime) -> datetime:
    """Convert a UTC (or aware) datetime to studio local time."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(get_studio_timezone())


def studio_today() -> date:
    """Today's date in the studio timezone."""
    return datetime.now(get_studio_timezone()).date()


def studio_datetime(day: date, at: time) -> datetime:
    """Build an aware UTC datetime from a studio-local date and time."""
    local = get_studio_timezone().localize(datetime.combine(day, at))
    return local.astimezone(timezone.utc)


def studio_day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC bounds [start, end) of a studio-local calendar day."""
    start = studio_datetime(day, time(0, 0))
    end = studio_datetime(day + timedelta(days=1), time(0, 0))
    return start, end


def format_studio_date(dt: datetime) -> str:
    return to_studio_time(dt).strftime("%d/%m/%Y")


def format_studio_time(dt: datetime) -> str:
    return to_studio_time(dt).strftime("%H:%M")


def add_months(day: date, months: int) -> date:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return date(year, month, min(day.day, last_day))

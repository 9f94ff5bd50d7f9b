"""
UTC and local-date utilities for CaseDesk.

Timestamps are stored in UTC with timezone awareness. Deadlines are calendar
dates, so "today" is taken in the configured local timezone.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Use this for database timestamps, API responses and comparisons.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC timezone-aware datetime.

    - If naive: assumes UTC and adds timezone
    - If aware: converts to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_today(tz_name: str, now: Optional[datetime] = None) -> date:
    """Calendar date of ``now`` (default: current time) in ``tz_name``."""
    now = to_utc(now) if now is not None else utc_now()
    return now.astimezone(ZoneInfo(tz_name)).date()


def week_bounds(day: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def day_start_utc(day: date, tz_name: str) -> datetime:
    """Midnight of ``day`` in ``tz_name``, expressed in UTC."""
    local = datetime(day.year, day.month, day.day, tzinfo=ZoneInfo(tz_name))
    return local.astimezone(timezone.utc)

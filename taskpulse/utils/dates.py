"""Date helpers shared by the stores and the analytics engine.

Timestamps are stored in UTC. Calendar days (daily buckets, the streak walk)
are taken in the configured timezone.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from taskpulse.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_tz(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or settings.TIMEZONE)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return *value* as an aware UTC datetime.

    SQLite hands back naive values even for timezone-aware columns; those were
    written as UTC, so they are tagged rather than converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date(value: datetime, tz: ZoneInfo) -> date:
    return as_utc(value).astimezone(tz).date()


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def iter_days(first: date, last: date) -> Iterator[date]:
    """Yield every calendar day from *first* to *last*, both inclusive."""
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def day_label(day: date) -> str:
    # "Jan 05"
    return day.strftime("%b %d")

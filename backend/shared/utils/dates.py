"""
Datetime helpers.

Timestamps are stored in UTC. SQLite returns them without tzinfo, so values
read back from the database go through as_utc() before any arithmetic.
Calendar boundaries ("today", "this month") follow the business timezone.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from shared.config.settings import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def business_tz() -> ZoneInfo:
    return ZoneInfo(settings.business_timezone)


def start_of_day(now: datetime | None = None) -> datetime:
    """Midnight of the business day containing `now`, expressed in UTC."""
    local = as_utc(now or utcnow()).astimezone(business_tz())
    midnight = datetime.combine(local.date(), time.min, tzinfo=business_tz())
    return midnight.astimezone(timezone.utc)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a business calendar day, in UTC."""
    start = datetime.combine(day, time.min, tzinfo=business_tz())
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def start_of_month(now: datetime | None = None) -> datetime:
    local = as_utc(now or utcnow()).astimezone(business_tz())
    first = datetime.combine(local.date().replace(day=1), time.min, tzinfo=business_tz())
    return first.astimezone(timezone.utc)


def business_date(now: datetime | None = None) -> date:
    return as_utc(now or utcnow()).astimezone(business_tz()).date()


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping to the last day of the target month."""
    return value + relativedelta(months=months)

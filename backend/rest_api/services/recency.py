"""
Customer temperature: classification by days since the last visit.

Pure functions with no I/O. Every customer list, detail, dashboard count and
vendor alert goes through here so the thresholds live in one place.

    days <= 3   HOT
    days <= 7   WARM
    days <= 14  COLD
    otherwise   FROZEN (also when the customer was never visited)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from shared.config.constants import (
    FROZEN_DAYS,
    HOT_DAYS,
    VENDOR_ALERT_DAYS,
    WARM_DAYS,
    Temperature,
)
from shared.utils.dates import as_utc

SECONDS_PER_DAY = 86400


def days_since(last_visit_at: datetime | None, now: datetime) -> int | None:
    """Whole days elapsed (floor), or None when there was no visit."""
    if last_visit_at is None:
        return None
    elapsed = as_utc(now) - as_utc(last_visit_at)
    return int(elapsed.total_seconds() // SECONDS_PER_DAY)


def classify_days(days: int | None) -> str:
    if days is None:
        return Temperature.FROZEN
    if days <= HOT_DAYS:
        return Temperature.HOT
    if days <= WARM_DAYS:
        return Temperature.WARM
    if days <= FROZEN_DAYS:
        return Temperature.COLD
    return Temperature.FROZEN


def classify_recency(last_visit_at: datetime | None, now: datetime) -> str:
    """HOT, WARM, COLD or FROZEN for a last-visit timestamp."""
    return classify_days(days_since(last_visit_at, now))


def count_by_temperature(
    timestamps: Iterable[datetime | None], now: datetime
) -> dict[str, int]:
    """Bucket counts for the dashboard, every bucket present even when empty."""
    counts = {bucket: 0 for bucket in Temperature.ALL}
    for last_visit_at in timestamps:
        counts[classify_recency(last_visit_at, now)] += 1
    return counts


def alert_cutoff(now: datetime) -> datetime:
    """Customers last visited at or before this instant need attention."""
    return as_utc(now) - timedelta(days=VENDOR_ALERT_DAYS)


def needs_attention(last_visit_at: datetime | None, now: datetime) -> bool:
    """Vendor alert rule: never visited, or not visited for VENDOR_ALERT_DAYS."""
    if last_visit_at is None:
        return True
    return as_utc(last_visit_at) <= alert_cutoff(now)

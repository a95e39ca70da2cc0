"""
Shop Core Time: Temporal Helpers
==================================
Pure functions for record age logic.
All functions take explicit datetime arguments. No hidden clock access.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

SECONDS_PER_DAY = 86400


def ensure_aware(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def age_in_days(created_at: Optional[datetime], now: datetime) -> int:
    """
    Whole days elapsed since `created_at`, floored.

    A missing timestamp counts as age 0.
    """
    if created_at is None:
        return 0
    elapsed = (ensure_aware(now) - ensure_aware(created_at)).total_seconds()
    return int(elapsed // SECONDS_PER_DAY)


def window_start(now: datetime, days: int) -> datetime:
    """Start of the trailing window of `days` days ending at `now`."""
    return ensure_aware(now) - timedelta(days=days)


def is_within_trailing_days(
    created_at: Optional[datetime], now: datetime, days: int
) -> bool:
    """True if `created_at` falls inside the trailing window (inclusive)."""
    if created_at is None:
        return False
    return ensure_aware(created_at) >= window_start(now, days)

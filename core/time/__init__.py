"""
Shop Core Time: Public API
============================
Explicit clock protocol and temporal helpers.
Doctrine: NO datetime.now() in engine logic.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
)
from core.time.temporal import (
    SECONDS_PER_DAY,
    age_in_days,
    ensure_aware,
    is_within_trailing_days,
    window_start,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "SECONDS_PER_DAY",
    "age_in_days",
    "ensure_aware",
    "is_within_trailing_days",
    "window_start",
]

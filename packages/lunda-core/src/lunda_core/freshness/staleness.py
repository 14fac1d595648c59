"""Day arithmetic for branch staleness.

Days are exact elapsed time divided by 24h, never calendar days. Remaining
time rounds up and elapsed time rounds down, so a wake-up is never scheduled
after the real expiry and a report never overstates how old a branch is.
"""

from __future__ import annotations

import math
from datetime import datetime

SECONDS_PER_DAY = 24 * 60 * 60


def _require_aware(value: datetime, name: str) -> datetime:
    if not isinstance(value, datetime):
        raise TypeError(f"{name} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware, got naive {value.isoformat()}")
    return value


def _require_threshold(threshold: int) -> int:
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise TypeError(f"threshold must be an int, got {type(threshold).__name__}")
    if threshold <= 0:
        raise ValueError(f"threshold must be positive, got {threshold}")
    return threshold


def days_between(start: datetime, end: datetime) -> float:
    """Real-valued days from *start* to *end* (negative if *end* is earlier)."""
    start = _require_aware(start, "start")
    end = _require_aware(end, "end")
    return (end - start).total_seconds() / SECONDS_PER_DAY


def remaining_days(last_change_time: datetime, threshold: int, now: datetime) -> int:
    """Days left before a branch last changed at *last_change_time* goes stale."""
    threshold = _require_threshold(threshold)
    return math.ceil(threshold - days_between(last_change_time, now))


def days_since(last_change_time: datetime, now: datetime) -> int:
    """Whole days elapsed since *last_change_time*, for reports."""
    return math.floor(days_between(last_change_time, now))

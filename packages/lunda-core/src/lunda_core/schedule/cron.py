"""Cron expressions for the next wake-up."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from lunda_core.tracking.models import Snapshot


def next_wakeup_days(snapshot: Snapshot) -> int | None:
    """Days until the next run is needed, or None when nothing is tracked."""
    head = snapshot.head
    if head is None:
        return None
    return max(1, head.remaining_days)


def wakeup_date(days: int, now: datetime) -> datetime:
    """Midnight UTC on the day the next run should happen (at least tomorrow)."""
    target = now.astimezone(timezone.utc) + timedelta(days=max(1, days))
    return target.replace(hour=0, minute=0, second=0, microsecond=0)


def cron_for_delay(days: int, now: datetime) -> str:
    """GitHub cron (minute hour day month day-of-week) for midnight UTC on the target day."""
    target = wakeup_date(days, now)
    return f"0 0 {target.day} {target.month} *"

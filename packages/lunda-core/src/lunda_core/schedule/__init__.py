"""Self-rescheduling: when to wake up next and how to tell the workflow."""

from lunda_core.schedule.cron import cron_for_delay, next_wakeup_days, wakeup_date
from lunda_core.schedule.workflow import (
    CronUpdate,
    find_cron,
    rewrite_cron,
    update_workflow_cron,
)

__all__ = [
    "CronUpdate",
    "cron_for_delay",
    "find_cron",
    "next_wakeup_days",
    "rewrite_cron",
    "update_workflow_cron",
    "wakeup_date",
]

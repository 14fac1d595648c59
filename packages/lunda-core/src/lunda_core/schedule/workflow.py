"""Rewriting the schedule trigger of the workflow that runs Lunda."""

from __future__ import annotations

import logging
import re
from enum import Enum

from lunda_core.storage.base import DocumentStore
from lunda_core.storage.models import DocumentNotFound

logger = logging.getLogger(__name__)

# Matches `schedule:` followed by `- cron: '...'` or `- cron: "..."`
CRON_PATTERN = re.compile(r"""(schedule:\s*\n\s*-\s*cron:\s*)(['"])([^'"]+)\2""")


class CronUpdate(str, Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    PATTERN_MISSING = "pattern_missing"
    FILE_MISSING = "file_missing"


def find_cron(text: str) -> str | None:
    match = CRON_PATTERN.search(text)
    return match.group(3) if match else None


def rewrite_cron(text: str, cron: str) -> str | None:
    """Replace the first scheduled cron expression, keeping its quote style.

    Returns None if the workflow has no ``schedule: - cron:`` entry.
    """
    if not CRON_PATTERN.search(text):
        return None
    return CRON_PATTERN.sub(lambda m: f"{m.group(1)}{m.group(2)}{cron}{m.group(2)}", text, count=1)


async def update_workflow_cron(store: DocumentStore, path: str, cron: str) -> CronUpdate:
    """Point the workflow's schedule at *cron*.

    A missing workflow or cron entry only logs a warning; store failures
    propagate.
    """
    logger.info("Updating workflow cron to: %s", cron)
    result = await store.read(path)
    if isinstance(result, DocumentNotFound):
        logger.warning("Workflow file %s not found. Skipping cron update.", path)
        return CronUpdate.FILE_MISSING

    current = result.text
    updated = rewrite_cron(current, cron)
    if updated is None:
        logger.warning("Could not find cron schedule in %s. Skipping cron update.", path)
        return CronUpdate.PATTERN_MISSING
    if updated == current:
        logger.info("Cron schedule unchanged.")
        return CronUpdate.UNCHANGED

    await store.write(
        path,
        updated.encode("utf-8"),
        expected_version=result.version,
        message=f"chore(lunda): schedule next scan for {cron}",
    )
    logger.info("Workflow updated. Next run scheduled for cron: %s", cron)
    return CronUpdate.UPDATED

"""Full scan: fingerprint every branch and build a fresh snapshot."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, Field

from lunda_core.freshness.staleness import days_since, remaining_days
from lunda_core.tracking.models import BranchRecord, ForgottenBranch, Snapshot
from lunda_core.vcs.base import VCSBranchSource
from lunda_core.vcs.models import BranchChange

logger = logging.getLogger(__name__)


class ScanResult(BaseModel):
    """Outcome of a full scan."""

    snapshot: Snapshot
    forgotten: list[ForgottenBranch] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    lookups: int = 0


def filter_protected(names: Iterable[str], protected: Iterable[str]) -> list[str]:
    """Drop protected branch names, keeping the original order."""
    excluded = set(protected)
    return [name for name in names if name not in excluded]


def record_from_change(
    name: str, change: BranchChange, threshold: int, now: datetime
) -> BranchRecord:
    return BranchRecord(
        name=name,
        fingerprint=change.fingerprint,
        last_change_time=change.timestamp,
        remaining_days=remaining_days(change.timestamp, threshold, now),
        computed_at=now,
    )


def forgotten_from_record(record: BranchRecord, now: datetime) -> ForgottenBranch:
    return ForgottenBranch(
        name=record.name,
        last_change_time=record.last_change_time,
        days_elapsed=days_since(record.last_change_time, now),
    )


async def build_full_snapshot(
    source: VCSBranchSource,
    branch_names: Iterable[str],
    threshold: int,
    now: datetime,
) -> ScanResult:
    """Fingerprint every branch in *branch_names* and build a sorted snapshot.

    Branches already past the threshold are split out as forgotten and are
    not part of the returned snapshot.
    """
    records: list[BranchRecord] = []
    skipped: list[str] = []
    lookups = 0

    for name in branch_names:
        change = await source.latest_change(name)
        lookups += 1
        if change is None:
            logger.warning("Branch %s has no commits. Skipping.", name)
            skipped.append(name)
            continue
        records.append(record_from_change(name, change, threshold, now))

    records.sort(key=lambda r: r.sort_key)

    forgotten = [forgotten_from_record(r, now) for r in records if r.remaining_days <= 0]
    active = [r for r in records if r.remaining_days > 0]

    logger.info(
        "Full scan: %d tracked, %d forgotten, %d skipped (%d lookups)",
        len(active), len(forgotten), len(skipped), lookups,
    )
    return ScanResult(
        snapshot=Snapshot(threshold=threshold, last_full_scan_time=now, records=active),
        forgotten=forgotten,
        skipped=skipped,
        lookups=lookups,
    )

"""Incremental reconcile: bring a previous snapshot up to date with few lookups.

The snapshot is ordered soonest-to-stale first, so a scheduled run only has
to look at the head. If the head still has the fingerprint we recorded, it
got no commits and is now forgotten. If it changed, the repository is
active, and we walk forward re-checking records until the first one that is
unchanged.

That stopping rule is a heuristic bound. The list is ordered by predicted
expiry, not by when a branch was last pushed, so a branch further down can
have new commits even though an earlier one did not. Such a branch keeps its
old estimate until it reaches the head itself, where the fingerprint check
catches the change before anything is reported. The cost is an early
wake-up, never a false report.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, Field

from lunda_core.freshness.scanner import record_from_change
from lunda_core.freshness.staleness import days_since, remaining_days
from lunda_core.tracking.models import BranchRecord, ForgottenBranch, Snapshot
from lunda_core.vcs.base import VCSBranchSource
from lunda_core.vcs.models import BranchChange

logger = logging.getLogger(__name__)


class ReconcileResult(BaseModel):
    """Outcome of an incremental reconcile."""

    snapshot: Snapshot
    forgotten: list[ForgottenBranch] = Field(default_factory=list)
    updated: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    added: list[str] = Field(default_factory=list)
    lookups: int = 0


class _ReconcilePass:
    """State for a single reconcile run. Lookups are cached per branch."""

    def __init__(self, source: VCSBranchSource, threshold: int, now: datetime) -> None:
        self.source = source
        self.threshold = threshold
        self.now = now
        self.lookups = 0
        self.forgotten: list[ForgottenBranch] = []
        self.updated: list[str] = []
        self.removed: list[str] = []
        self.added: list[str] = []
        self._seen: dict[str, BranchChange | None] = {}

    async def lookup(self, name: str) -> BranchChange | None:
        if name not in self._seen:
            self._seen[name] = await self.source.latest_change(name)
            self.lookups += 1
            logger.debug("Looked up %s: %s", name, self._seen[name])
        return self._seen[name]

    def apply_change(self, record: BranchRecord, change: BranchChange) -> None:
        record.fingerprint = change.fingerprint
        record.last_change_time = change.timestamp
        record.remaining_days = remaining_days(change.timestamp, self.threshold, self.now)
        record.computed_at = self.now
        if record.name not in self.updated:
            self.updated.append(record.name)

    def age(self, records: list[BranchRecord]) -> None:
        """Recompute cached estimates against now, from stored change times only."""
        for record in records:
            record.remaining_days = remaining_days(
                record.last_change_time, self.threshold, self.now
            )
            record.computed_at = self.now

    async def sync_membership(self, snapshot: Snapshot, branch_names: Iterable[str]) -> None:
        current = list(dict.fromkeys(branch_names))
        current_set = set(current)
        kept: list[BranchRecord] = []
        for record in snapshot.records:
            if record.name in current_set:
                kept.append(record)
            else:
                self.removed.append(record.name)
        tracked = {r.name for r in kept}
        for name in current:
            if name in tracked:
                continue
            change = await self.lookup(name)
            if change is None:
                logger.warning("Branch %s has no commits. Skipping.", name)
                continue
            kept.append(record_from_change(name, change, self.threshold, self.now))
            self.added.append(name)
        snapshot.records[:] = kept
        if self.added:
            logger.info("Found %d new branch(es). Adding to tracking.", len(self.added))

    async def walk(self, records: list[BranchRecord]) -> None:
        """Re-check records after the head until the first unchanged one."""
        kept = records[:1]
        for index in range(1, len(records)):
            record = records[index]
            change = await self.lookup(record.name)
            if change is None:
                self.removed.append(record.name)
                continue
            if change.fingerprint == record.fingerprint:
                logger.debug("Branch %s unchanged. Stopping walk.", record.name)
                kept.extend(records[index:])
                break
            self.apply_change(record, change)
            kept.append(record)
        records[:] = kept

    async def check_head(self, snapshot: Snapshot) -> bool:
        """Re-check the head record. Returns False when it is fine as it is."""
        head = snapshot.records[0]
        change = await self.lookup(head.name)
        if change is None:
            logger.info("Branch %s no longer exists. Dropping it.", head.name)
            snapshot.records.pop(0)
            self.removed.append(head.name)
            return True

        if change.fingerprint == head.fingerprint:
            if head.remaining_days > 0:
                return False
            snapshot.records.pop(0)
            self.forgotten.append(
                ForgottenBranch(
                    name=head.name,
                    last_change_time=change.timestamp,
                    days_elapsed=days_since(change.timestamp, self.now),
                )
            )
            return True

        logger.info("Branch %s was updated. Walking forward through list...", head.name)
        first_update = not self.updated
        self.apply_change(head, change)
        if first_update:
            await self.walk(snapshot.records)
        snapshot.sort_records()
        return True


async def reconcile(
    snapshot: Snapshot,
    source: VCSBranchSource,
    now: datetime,
    *,
    threshold: int | None = None,
    branch_names: Iterable[str] | None = None,
) -> ReconcileResult:
    """Update *snapshot* using as few lookups as possible.

    The input snapshot is not modified. Pass *branch_names* (already filtered
    for protected branches) to also pick up new branches and drop deleted
    ones; otherwise only branches already tracked are considered.
    """
    threshold = snapshot.threshold if threshold is None else threshold
    if threshold != snapshot.threshold:
        raise ValueError(
            f"Snapshot threshold {snapshot.threshold} does not match configured {threshold}; "
            "a full scan is required"
        )

    working = snapshot.model_copy(deep=True)
    run = _ReconcilePass(source, threshold, now)

    if branch_names is not None:
        await run.sync_membership(working, branch_names)

    run.age(working.records)
    working.sort_records()

    # The scheduled head is always checked; anything else only once expired.
    checked_head = False
    while working.records:
        if checked_head and working.records[0].remaining_days > 0:
            break
        checked_head = True
        if not await run.check_head(working):
            break

    if not run.forgotten:
        logger.debug("Reconcile reported nothing after %d lookup(s)", run.lookups)

    return ReconcileResult(
        snapshot=working,
        forgotten=run.forgotten,
        updated=run.updated,
        removed=run.removed,
        added=run.added,
        lookups=run.lookups,
    )

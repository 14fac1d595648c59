"""Run orchestration: pick full scan or reconcile, persist, reschedule."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from lunda_core.config.models import LundaConfig
from lunda_core.freshness.reconciler import reconcile
from lunda_core.freshness.scanner import build_full_snapshot, filter_protected
from lunda_core.freshness.staleness import days_between
from lunda_core.schedule.cron import cron_for_delay, next_wakeup_days
from lunda_core.schedule.workflow import CronUpdate, update_workflow_cron
from lunda_core.storage.base import DocumentStore
from lunda_core.tracking.models import ForgottenBranch, Snapshot
from lunda_core.tracking.snapshot import load_snapshot, save_snapshot
from lunda_core.vcs.base import VCSBranchSource

logger = logging.getLogger(__name__)


class ScanMode(str, Enum):
    FULL_SCAN = "full_scan"
    INCREMENTAL = "incremental"


class RunResult(BaseModel):
    """Everything a single run did."""

    mode: ScanMode
    reason: str
    forgotten: list[ForgottenBranch] = Field(default_factory=list)
    snapshot: Snapshot
    lookups: int = 0
    next_wakeup_days: int | None = None
    next_cron: str | None = None
    cron_update: CronUpdate | None = None
    persisted: bool = False


def decide_mode(snapshot: Snapshot | None, threshold: int, now: datetime) -> tuple[ScanMode, str]:
    """First match wins: missing snapshot, changed threshold, overdue re-sync."""
    if snapshot is None:
        return ScanMode.FULL_SCAN, "no tracking data"
    if snapshot.threshold != threshold:
        return (
            ScanMode.FULL_SCAN,
            f"threshold changed from {snapshot.threshold} to {threshold}",
        )
    if days_between(snapshot.last_full_scan_time, now) >= threshold:
        return ScanMode.FULL_SCAN, f"last full scan is over {threshold} days old"
    return ScanMode.INCREMENTAL, "tracking data is current"


def report_forgotten(forgotten: list[ForgottenBranch]) -> None:
    if not forgotten:
        logger.info("No forgotten branches found. Your repo is clean!")
        return
    logger.warning("Forgotten branches detected:")
    for branch in forgotten:
        logger.warning(
            "%s - last commit %d days ago (%s)",
            branch.name,
            branch.days_elapsed,
            branch.last_change_time.isoformat(),
        )


class BranchMonitor:
    """One monitoring run against a repository.

    Holds no state between runs; everything that carries over lives in the
    tracking document.
    """

    def __init__(
        self,
        source: VCSBranchSource,
        store: DocumentStore,
        *,
        threshold: int,
        tracking_path: str,
        workflow_path: str | None = None,
        protected_branches: Iterable[str] = ("main", "master"),
        track_new_branches: bool = False,
        trigger_store: DocumentStore | None = None,
    ) -> None:
        if threshold <= 0:
            raise ValueError(f"threshold must be positive, got {threshold}")
        self.source = source
        self.store = store
        self.trigger_store = trigger_store or store
        self.threshold = threshold
        self.tracking_path = tracking_path
        self.workflow_path = workflow_path
        self.protected_branches = tuple(protected_branches)
        self.track_new_branches = track_new_branches

    @classmethod
    def from_config(
        cls, config: LundaConfig, source: VCSBranchSource, store: DocumentStore
    ) -> BranchMonitor:
        return cls(
            source,
            store,
            threshold=config.threshold_days,
            tracking_path=config.tracking.path,
            workflow_path=config.schedule.workflow_path if config.schedule.enabled else None,
            protected_branches=config.protected_branches,
            track_new_branches=config.tracking.track_new_branches,
        )

    async def _branch_names(self) -> list[str]:
        names = await self.source.list_branch_names()
        return filter_protected(names, self.protected_branches)

    async def run(self, now: datetime | None = None, dry_run: bool = False) -> RunResult:
        """Check the repository once. Nothing is written until everything succeeded."""
        now = now or datetime.now(timezone.utc)
        logger.info("Threshold: %d days", self.threshold)

        loaded = await load_snapshot(self.store, self.tracking_path)
        mode, reason = decide_mode(loaded.snapshot, self.threshold, now)
        logger.info("Mode: %s (%s)", mode.value, reason)

        if mode is ScanMode.FULL_SCAN:
            scan = await build_full_snapshot(
                self.source, await self._branch_names(), self.threshold, now
            )
            snapshot, forgotten, lookups = scan.snapshot, scan.forgotten, scan.lookups
        else:
            branch_names = await self._branch_names() if self.track_new_branches else None
            result = await reconcile(
                loaded.snapshot,
                self.source,
                now,
                threshold=self.threshold,
                branch_names=branch_names,
            )
            snapshot, forgotten, lookups = result.snapshot, result.forgotten, result.lookups

        report_forgotten(forgotten)

        run_result = RunResult(
            mode=mode,
            reason=reason,
            forgotten=forgotten,
            snapshot=snapshot,
            lookups=lookups,
            next_wakeup_days=next_wakeup_days(snapshot),
        )
        if run_result.next_wakeup_days is not None:
            run_result.next_cron = cron_for_delay(run_result.next_wakeup_days, now)
            logger.info("Next branch will become stale in %d day(s).", run_result.next_wakeup_days)
        else:
            logger.info("No branches to track. The next full scan will pick up new ones.")

        if dry_run:
            logger.info("Dry run: tracking data and schedule left untouched.")
            return run_result

        await save_snapshot(self.store, self.tracking_path, snapshot, loaded.version)
        run_result.persisted = True

        if run_result.next_cron is not None and self.workflow_path:
            run_result.cron_update = await update_workflow_cron(
                self.trigger_store, self.workflow_path, run_result.next_cron
            )
        return run_result

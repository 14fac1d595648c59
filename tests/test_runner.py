"""Tests for lunda_core.runner — mode selection and whole-run behavior."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from lunda_core.runner import BranchMonitor, ScanMode, decide_mode, report_forgotten
from lunda_core.schedule.workflow import CronUpdate, find_cron
from lunda_core.storage.models import DocumentStoreError
from lunda_core.tracking.models import ForgottenBranch, Snapshot
from lunda_core.tracking.snapshot import dump_snapshot, parse_snapshot
from lunda_core.vcs.models import FingerprintError

TRACKING_PATH = "lunda-tracking.json"
WORKFLOW_PATH = ".github/workflows/lunda.yml"

WORKFLOW = """\
name: Lunda
on:
  schedule:
    - cron: "0 0 1 1 *"
  workflow_dispatch:
"""


@pytest.fixture
def monitor(fake_source, memory_store):
    memory_store.put(WORKFLOW_PATH, WORKFLOW)
    return BranchMonitor(
        fake_source,
        memory_store,
        threshold=90,
        tracking_path=TRACKING_PATH,
        workflow_path=WORKFLOW_PATH,
    )


def _store_snapshot(memory_store, snapshot: Snapshot) -> str:
    return memory_store.put(TRACKING_PATH, dump_snapshot(snapshot))


def _stored(memory_store) -> Snapshot:
    return parse_snapshot(memory_store.docs[TRACKING_PATH][0])


# ── decide_mode ─────────────────────────────────────────────────────


class TestDecideMode:
    def test_no_snapshot(self, now):
        mode, reason = decide_mode(None, 90, now)
        assert mode is ScanMode.FULL_SCAN
        assert reason == "no tracking data"

    def test_threshold_changed(self, make_snapshot, now):
        mode, reason = decide_mode(make_snapshot([], threshold=60), 90, now)
        assert mode is ScanMode.FULL_SCAN
        assert "60 to 90" in reason

    def test_overdue_full_scan(self, now):
        snapshot = Snapshot(threshold=90, last_full_scan_time=now - timedelta(days=90))
        mode, _ = decide_mode(snapshot, 90, now)
        assert mode is ScanMode.FULL_SCAN

    def test_current(self, now):
        snapshot = Snapshot(threshold=90, last_full_scan_time=now - timedelta(days=89, hours=23))
        mode, reason = decide_mode(snapshot, 90, now)
        assert mode is ScanMode.INCREMENTAL
        assert reason == "tracking data is current"

    def test_threshold_checked_before_age(self, now):
        snapshot = Snapshot(threshold=30, last_full_scan_time=now - timedelta(days=400))
        _, reason = decide_mode(snapshot, 90, now)
        assert reason.startswith("threshold changed")


class TestReportForgotten:
    def test_clean(self, caplog):
        with caplog.at_level(logging.INFO):
            report_forgotten([])
        assert "Your repo is clean" in caplog.text

    def test_lists_each_branch(self, caplog, now):
        forgotten = [
            ForgottenBranch(name="feat-x", last_change_time=now - timedelta(days=95), days_elapsed=95),
        ]
        with caplog.at_level(logging.WARNING):
            report_forgotten(forgotten)
        assert "feat-x - last commit 95 days ago" in caplog.text


# ── First run ───────────────────────────────────────────────────────


class TestFullScanRun:
    async def test_first_run_reports_and_persists(self, monitor, fake_source, memory_store, now):
        fake_source.set_branch("main", "m1", 200)
        fake_source.set_branch("feat-x", "x1", 95)
        fake_source.set_branch("feat-a", "a1", 80)
        fake_source.set_branch("feat-b", "b1", 20)

        result = await monitor.run(now=now)

        assert result.mode is ScanMode.FULL_SCAN
        assert [(f.name, f.days_elapsed) for f in result.forgotten] == [("feat-x", 95)]
        stored = _stored(memory_store)
        assert [r.name for r in stored.records] == ["feat-a", "feat-b"]
        assert stored.last_full_scan_time == now
        assert result.persisted is True
        assert result.next_wakeup_days == 10
        assert result.next_cron == "0 0 29 10 *"
        assert result.cron_update is CronUpdate.UPDATED
        assert find_cron(memory_store.text(WORKFLOW_PATH)) == "0 0 29 10 *"

    async def test_protected_branches_never_looked_up(self, monitor, fake_source, now):
        fake_source.set_branch("main", "m1", 200)
        fake_source.set_branch("master", "m2", 200)
        fake_source.set_branch("feat-a", "a1", 10)

        result = await monitor.run(now=now)

        assert fake_source.lookups == ["feat-a"]
        assert result.forgotten == []

    async def test_snapshot_written_before_workflow(self, monitor, fake_source, memory_store, now):
        fake_source.set_branch("feat-a", "a1", 10)

        await monitor.run(now=now)

        assert [path for path, _ in memory_store.writes] == [TRACKING_PATH, WORKFLOW_PATH]

    async def test_nothing_to_track(self, monitor, fake_source, memory_store, now):
        fake_source.set_branch("feat-x", "x1", 120)

        result = await monitor.run(now=now)

        assert result.next_wakeup_days is None
        assert result.next_cron is None
        assert result.cron_update is None
        assert _stored(memory_store).records == []
        assert [path for path, _ in memory_store.writes] == [TRACKING_PATH]

    async def test_unreadable_tracking_data_is_replaced(self, monitor, fake_source, memory_store, now):
        memory_store.put(TRACKING_PATH, "{ broken")
        fake_source.set_branch("feat-a", "a1", 10)

        result = await monitor.run(now=now)

        assert result.mode is ScanMode.FULL_SCAN
        assert [r.name for r in _stored(memory_store).records] == ["feat-a"]


# ── Incremental runs ────────────────────────────────────────────────


class TestIncrementalRun:
    async def test_scheduled_run_reports_unchanged_head(
        self, monitor, make_snapshot, fake_source, memory_store, now
    ):
        _store_snapshot(memory_store, make_snapshot([
            ("feat-y", "abc", 80),
            ("feat-a", "a1", 30),
        ]))

        result = await monitor.run(now=now + timedelta(days=10))

        assert result.mode is ScanMode.INCREMENTAL
        assert [f.name for f in result.forgotten] == ["feat-y"]
        assert fake_source.lookups == ["feat-y"]
        assert fake_source.list_calls == 0
        assert [r.name for r in _stored(memory_store).records] == ["feat-a"]
        assert result.next_wakeup_days == 50

    async def test_changed_head_reschedules(self, monitor, make_snapshot, fake_source, memory_store, now):
        _store_snapshot(memory_store, make_snapshot([
            ("feat-y", "abc", 80),
            ("feat-a", "a1", 30),
        ]))
        fake_source.set_branch("feat-y", "xyz", -9)

        result = await monitor.run(now=now + timedelta(days=10))

        assert result.forgotten == []
        assert [r.name for r in _stored(memory_store).records] == ["feat-a", "feat-y"]
        assert result.next_wakeup_days == 50

    async def test_threshold_change_forces_full_scan(self, fake_source, memory_store, make_snapshot, now):
        _store_snapshot(memory_store, make_snapshot([("feat-a", "a1", 40)], threshold=60))
        monitor = BranchMonitor(
            fake_source, memory_store, threshold=90, tracking_path=TRACKING_PATH
        )

        result = await monitor.run(now=now)

        assert result.mode is ScanMode.FULL_SCAN
        assert _stored(memory_store).threshold == 90
        assert fake_source.list_calls == 1

    async def test_tracks_new_branches_when_enabled(self, fake_source, memory_store, make_snapshot, now):
        _store_snapshot(memory_store, make_snapshot([("feat-a", "a1", 40)]))
        fake_source.set_branch("main", "m1", 0)
        fake_source.set_branch("feat-new", "n1", 1)
        monitor = BranchMonitor(
            fake_source,
            memory_store,
            threshold=90,
            tracking_path=TRACKING_PATH,
            track_new_branches=True,
        )

        await monitor.run(now=now)

        assert fake_source.list_calls == 1
        assert _stored(memory_store).names() == {"feat-a", "feat-new"}

    async def test_uses_version_from_read(self, monitor, make_snapshot, memory_store, now):
        version = _store_snapshot(memory_store, make_snapshot([("feat-a", "a1", 40)]))

        await monitor.run(now=now)

        assert memory_store.docs[TRACKING_PATH][1] != version


# ── Failure handling ────────────────────────────────────────────────


class TestFailures:
    async def test_dry_run_writes_nothing(self, monitor, fake_source, memory_store, now):
        fake_source.set_branch("feat-a", "a1", 10)

        result = await monitor.run(now=now, dry_run=True)

        assert result.persisted is False
        assert result.next_cron == "0 0 7 1 *"
        assert memory_store.writes == []

    async def test_lookup_failure_writes_nothing(
        self, monitor, make_snapshot, fake_source, memory_store, now
    ):
        _store_snapshot(memory_store, make_snapshot([("feat-y", "abc", 80)]))
        before = memory_store.text(TRACKING_PATH)
        fake_source.failing.add("feat-y")

        with pytest.raises(FingerprintError):
            await monitor.run(now=now + timedelta(days=10))

        assert memory_store.writes == []
        assert memory_store.text(TRACKING_PATH) == before

    async def test_concurrent_update_is_rejected(
        self, monitor, make_snapshot, fake_source, memory_store, now
    ):
        _store_snapshot(memory_store, make_snapshot([("feat-a", "a1", 40)]))
        original_latest = fake_source.latest_change

        async def racing_latest(branch):
            # Another run commits new tracking data mid-flight
            memory_store.put(TRACKING_PATH, "{}")
            return await original_latest(branch)

        fake_source.latest_change = racing_latest

        with pytest.raises(DocumentStoreError):
            await monitor.run(now=now)

    async def test_separate_trigger_store(self, fake_source, memory_store, now):
        trigger = type(memory_store)()
        trigger.put(WORKFLOW_PATH, WORKFLOW)
        fake_source.set_branch("feat-a", "a1", 10)
        monitor = BranchMonitor(
            fake_source,
            memory_store,
            threshold=90,
            tracking_path=TRACKING_PATH,
            workflow_path=WORKFLOW_PATH,
            trigger_store=trigger,
        )

        await monitor.run(now=now)

        assert [path for path, _ in memory_store.writes] == [TRACKING_PATH]
        assert [path for path, _ in trigger.writes] == [WORKFLOW_PATH]

    def test_rejects_non_positive_threshold(self, fake_source, memory_store):
        with pytest.raises(ValueError):
            BranchMonitor(fake_source, memory_store, threshold=0, tracking_path=TRACKING_PATH)


# ── from_config ─────────────────────────────────────────────────────


class TestFromConfig:
    def test_maps_settings(self, sample_config, fake_source, memory_store):
        sample_config.threshold_days = 30
        sample_config.protected_branches = ["trunk"]

        monitor = BranchMonitor.from_config(sample_config, fake_source, memory_store)

        assert monitor.threshold == 30
        assert monitor.protected_branches == ("trunk",)
        assert monitor.tracking_path == "lunda-tracking.json"
        assert monitor.workflow_path == ".github/workflows/lunda.yml"

    def test_schedule_disabled(self, sample_config, fake_source, memory_store):
        sample_config.schedule.enabled = False
        monitor = BranchMonitor.from_config(sample_config, fake_source, memory_store)
        assert monitor.workflow_path is None


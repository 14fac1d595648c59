"""Shared test fixtures for Lunda."""

from datetime import datetime, timedelta, timezone

import pytest

from lunda_core.config.models import LundaConfig
from lunda_core.freshness.staleness import remaining_days
from lunda_core.storage.base import DocumentStore
from lunda_core.storage.models import DocumentFound, DocumentNotFound, DocumentStoreError
from lunda_core.tracking.models import BranchRecord, Snapshot
from lunda_core.vcs.base import VCSBranchSource
from lunda_core.vcs.models import BranchChange, FingerprintError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeBranchSource(VCSBranchSource):
    """In-memory branch source that records every lookup."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now
        self.branches: dict[str, BranchChange] = {}
        self.lookups: list[str] = []
        self.list_calls = 0
        self.failing: set[str] = set()

    def set_branch(self, name: str, sha: str, days_ago: float) -> BranchChange:
        change = BranchChange(fingerprint=sha, timestamp=self.now - timedelta(days=days_ago))
        self.branches[name] = change
        return change

    def delete_branch(self, name: str) -> None:
        self.branches.pop(name, None)

    async def list_branch_names(self) -> list[str]:
        self.list_calls += 1
        return list(self.branches)

    async def latest_change(self, branch: str) -> BranchChange | None:
        self.lookups.append(branch)
        if branch in self.failing:
            raise FingerprintError("latest change", branch, RuntimeError("502 Bad Gateway"))
        return self.branches.get(branch)


class MemoryDocumentStore(DocumentStore):
    """Dict-backed store with integer version tokens."""

    def __init__(self) -> None:
        self.docs: dict[str, tuple[bytes, str]] = {}
        self.writes: list[tuple[str, str]] = []
        self.fail_writes = False
        self._counter = 0

    def put(self, path: str, content: str | bytes) -> str:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._counter += 1
        version = f"v{self._counter}"
        self.docs[path] = (content, version)
        return version

    def text(self, path: str) -> str:
        return self.docs[path][0].decode("utf-8")

    async def read(self, path: str):
        if path not in self.docs:
            return DocumentNotFound(path=path)
        content, version = self.docs[path]
        return DocumentFound(path=path, content=content, version=version)

    async def write(self, path, content, *, expected_version=None, message=""):
        if self.fail_writes:
            raise DocumentStoreError("write", path, RuntimeError("401 Bad credentials"))
        current = self.docs.get(path)
        if (current[1] if current else None) != expected_version:
            raise DocumentStoreError("write", path, RuntimeError("409 Conflict"))
        self.writes.append((path, message))
        return self.put(path, content)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fake_source():
    return FakeBranchSource()


@pytest.fixture
def memory_store():
    return MemoryDocumentStore()


@pytest.fixture
def make_record():
    """Build a BranchRecord whose estimate is current as of NOW."""

    def _make(name: str, sha: str, days_ago: float, threshold: int = 90) -> BranchRecord:
        changed = NOW - timedelta(days=days_ago)
        return BranchRecord(
            name=name,
            fingerprint=sha,
            last_change_time=changed,
            remaining_days=remaining_days(changed, threshold, NOW),
            computed_at=NOW,
        )

    return _make


@pytest.fixture
def make_snapshot(make_record, fake_source):
    """Snapshot plus matching branches in the fake source.

    Each entry is (name, sha, days_ago). The full scan is dated one day ago.
    """

    def _make(entries, threshold: int = 90) -> Snapshot:
        records = []
        for name, sha, days_ago in entries:
            fake_source.set_branch(name, sha, days_ago)
            records.append(make_record(name, sha, days_ago, threshold))
        snapshot = Snapshot(
            threshold=threshold,
            last_full_scan_time=NOW - timedelta(days=1),
            records=records,
        )
        snapshot.sort_records()
        return snapshot

    return _make


@pytest.fixture
def sample_config():
    return LundaConfig(repository="acme/widget-api")

"""Persisted tracking snapshot."""

from lunda_core.tracking.models import (
    BranchRecord,
    ForgottenBranch,
    Snapshot,
    SnapshotFormatError,
)
from lunda_core.tracking.snapshot import (
    LoadedSnapshot,
    dump_snapshot,
    load_snapshot,
    parse_snapshot,
    save_snapshot,
)

__all__ = [
    "BranchRecord",
    "ForgottenBranch",
    "LoadedSnapshot",
    "Snapshot",
    "SnapshotFormatError",
    "dump_snapshot",
    "load_snapshot",
    "parse_snapshot",
    "save_snapshot",
]

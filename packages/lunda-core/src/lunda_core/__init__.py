"""Lunda Core - forgotten-branch tracking with incremental, self-rescheduling checks."""

from lunda_core.config import LundaConfig, load_config
from lunda_core.freshness import build_full_snapshot, reconcile, remaining_days
from lunda_core.runner import BranchMonitor, RunResult, ScanMode, decide_mode
from lunda_core.storage import DocumentStore, GitHubDocumentStore, LocalDocumentStore
from lunda_core.tracking import BranchRecord, ForgottenBranch, Snapshot
from lunda_core.vcs import GitHubBranchSource, VCSBranchSource, create_branch_source

__version__ = "0.1.0"

__all__ = [
    "BranchMonitor",
    "BranchRecord",
    "DocumentStore",
    "ForgottenBranch",
    "GitHubBranchSource",
    "GitHubDocumentStore",
    "LocalDocumentStore",
    "LundaConfig",
    "RunResult",
    "ScanMode",
    "Snapshot",
    "VCSBranchSource",
    "build_full_snapshot",
    "create_branch_source",
    "decide_mode",
    "load_config",
    "reconcile",
    "remaining_days",
]

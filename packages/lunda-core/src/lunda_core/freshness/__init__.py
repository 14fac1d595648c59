"""Freshness tracking: staleness arithmetic, full scans, and incremental reconcile."""

from lunda_core.freshness.reconciler import ReconcileResult, reconcile
from lunda_core.freshness.scanner import ScanResult, build_full_snapshot, filter_protected
from lunda_core.freshness.staleness import days_between, days_since, remaining_days

__all__ = [
    "ReconcileResult",
    "ScanResult",
    "build_full_snapshot",
    "days_between",
    "days_since",
    "filter_protected",
    "reconcile",
    "remaining_days",
]

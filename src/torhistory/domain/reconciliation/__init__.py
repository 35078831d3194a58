"""Reconciliation core: persist only what changed between consensus snapshots.

Layered flow per snapshot:
1) cache refresh policy decides between full rebuild and freshness refresh
2) batch delta drops relays identical to the previous snapshot (bulk runs)
3) change detection classifies each relay against the latest-state cache
4) effects append rows, advance freshness and synchronize address history
"""

from __future__ import annotations

from .addresses import AddressSynchronizer, AddressSyncOutcome
from .classify import classify, mismatched_fields, records_match
from .contracts import Classification, ReconcileResult, ReconciliationError
from .delta import extract_new_and_updated
from .engine import SnapshotReconciler
from .refresh import DEFAULT_REFRESH_INTERVAL, CacheRefreshScheduler
from .state_cache import LatestStateCache
from .value_cache import ValueDictionary

__all__ = [
    "DEFAULT_REFRESH_INTERVAL",
    "AddressSyncOutcome",
    "AddressSynchronizer",
    "CacheRefreshScheduler",
    "Classification",
    "LatestStateCache",
    "ReconcileResult",
    "ReconciliationError",
    "SnapshotReconciler",
    "ValueDictionary",
    "classify",
    "extract_new_and_updated",
    "mismatched_fields",
    "records_match",
]

"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import AcquiredSnapshot, SnapshotSource, SnapshotSourceError
from .persistence import ImportLogRepository, RelayStore, ValueStore
from .unit_of_work import RelayHistoryRepositories, RelayHistoryUnitOfWork

__all__ = [
    "AcquiredSnapshot",
    "ImportLogRepository",
    "RelayHistoryRepositories",
    "RelayHistoryUnitOfWork",
    "RelayStore",
    "SnapshotSource",
    "SnapshotSourceError",
    "ValueStore",
]

"""Cache refresh policy for multi-snapshot runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

DEFAULT_REFRESH_INTERVAL: Final[int] = 100


@dataclass(slots=True)
class CacheRefreshScheduler:
    """Rebuild the latest-state cache every ``interval`` snapshots.

    ``interval=1`` rebuilds before every snapshot.
    """

    interval: int = DEFAULT_REFRESH_INTERVAL

    def __post_init__(self) -> None:
        self._validate(self.interval)

    def set_interval(self, interval: int) -> None:
        self._validate(interval)
        self.interval = interval

    def should_fully_rebuild(self, snapshot_index: int) -> bool:
        if snapshot_index < 0:
            raise ValueError(f"Snapshot index must be non-negative, got {snapshot_index}")
        return snapshot_index % self.interval == 0

    @staticmethod
    def _validate(interval: int) -> None:
        if interval < 1:
            raise ValueError(f"Cache refresh interval must be at least 1, got {interval}")

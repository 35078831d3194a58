"""In-memory view of the latest persisted state per fingerprint."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from time import perf_counter
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from torhistory.domain.model import Dlts, LatestState
    from torhistory.domain.ports.persistence import RelayStore

log = getLogger(__name__)


@dataclass(slots=True)
class LatestStateCache:
    """Fingerprint -> latest persisted comparable state.

    Built wholesale by :meth:`rebuild` and kept consistent with the store by
    :meth:`apply` and :meth:`advance` after every successful write. Entries
    whose write failed midway are marked with :meth:`invalidate` and reloaded
    by :meth:`refresh_stale` between full rebuilds.
    """

    store: RelayStore
    _entries: dict[str, LatestState] = field(default_factory=dict[str, "LatestState"])
    _stale: set[str] = field(default_factory=set[str])
    as_of: Dlts | None = None

    def rebuild(self, as_of: Dlts) -> None:
        started = perf_counter()
        self._entries = self.store.load_latest_states(as_of=as_of)
        self._stale.clear()
        self.as_of = as_of
        log.info(
            "Latest-state cache rebuilt as of %s: %s relays in %.3fs",
            as_of,
            len(self._entries),
            perf_counter() - started,
        )

    def invalidate(self, fingerprint: str) -> None:
        """Mark an entry as possibly out of step with the store."""

        self._stale.add(fingerprint)

    def refresh_stale(self, as_of: Dlts) -> int:
        """Reload invalidated entries from the store; return how many were reloaded."""

        if not self._stale:
            return 0
        for fingerprint in self._stale:
            state = self.store.find_latest_state(fingerprint, as_of=as_of)
            if state is None:
                self._entries.pop(fingerprint, None)
            else:
                self._entries[fingerprint] = state
        reloaded = len(self._stale)
        self._stale.clear()
        log.debug("Reloaded %s stale latest-state entries", reloaded)
        return reloaded

    def lookup(self, fingerprint: str) -> LatestState | None:
        return self._entries.get(fingerprint)

    def apply(self, fingerprint: str, entry: LatestState) -> None:
        self._entries[fingerprint] = entry

    def advance(self, fingerprint: str, record_last_seen: Dlts) -> None:
        """Record a freshness-only update for an existing entry."""

        entry = self._entries[fingerprint]
        self._entries[fingerprint] = replace(entry, record_last_seen=record_last_seen)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

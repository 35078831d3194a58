"""Shared reconciliation contract components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from torhistory.domain.model import Dlts


class Classification(StrEnum):
    """Outcome of comparing an incoming relay against its cached state."""

    NEW = "new"
    UNCHANGED_FRESH = "unchanged_fresh"
    UNCHANGED_STALE = "unchanged_stale"
    REFRESH = "refresh"
    CHANGED = "changed"

    @property
    def creates_row(self) -> bool:
        return self in {Classification.NEW, Classification.CHANGED}

    @property
    def touches_store(self) -> bool:
        return self not in {Classification.UNCHANGED_FRESH, Classification.UNCHANGED_STALE}


@dataclass(slots=True)
class ReconcileResult:
    """Summary of one snapshot reconciliation."""

    snapshot_index: int
    dlts: Dlts
    received: int = 0
    considered: int = 0
    created: int = 0
    changed: int = 0
    refreshed: int = 0
    unchanged: int = 0
    stale: int = 0
    addresses_inserted: int = 0
    addresses_advanced: int = 0
    full_rebuild: bool = False

    @property
    def written(self) -> int:
        """Rows created plus rows whose freshness marker advanced."""

        return self.created + self.changed + self.refreshed

    def count(self, classification: Classification) -> None:
        match classification:
            case Classification.NEW:
                self.created += 1
            case Classification.CHANGED:
                self.changed += 1
            case Classification.REFRESH:
                self.refreshed += 1
            case Classification.UNCHANGED_FRESH:
                self.unchanged += 1
            case Classification.UNCHANGED_STALE:
                self.stale += 1


class ReconciliationError(RuntimeError):
    """Raised when persisting one relay fails; the run must not continue.

    ``last_reconciled`` names the last relay written within the failing
    snapshot, and is ``None`` once that snapshot has been rolled back.
    ``last_committed_dlts`` is the DLTS of the last snapshot known to be
    persisted, from which a run can safely resume.
    """

    def __init__(
        self,
        message: str,
        *,
        snapshot_index: int,
        dlts: Dlts,
        fingerprint: str,
        last_reconciled: str | None,
        last_committed_dlts: Dlts | None = None,
    ) -> None:
        self.snapshot_index = snapshot_index
        self.dlts = dlts
        self.fingerprint = fingerprint
        self.last_reconciled = last_reconciled
        self.last_committed_dlts = last_committed_dlts
        super().__init__(
            f"{message} (snapshot_index={snapshot_index}, dlts={dlts}, "
            f"fingerprint={fingerprint}, last_reconciled={last_reconciled}, "
            f"last_committed_dlts={last_committed_dlts})"
        )

    def rolled_back(self, *, last_committed_dlts: Dlts | None) -> ReconciliationError:
        """Return a copy reporting that the failing snapshot's writes were discarded."""

        return ReconciliationError(
            "Snapshot rolled back after relay failure",
            snapshot_index=self.snapshot_index,
            dlts=self.dlts,
            fingerprint=self.fingerprint,
            last_reconciled=None,
            last_committed_dlts=last_committed_dlts,
        )

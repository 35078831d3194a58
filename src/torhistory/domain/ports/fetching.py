"""Ports for acquiring consensus snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from torhistory.domain.model import ConsensusSnapshot, Dlts


class SnapshotSourceError(RuntimeError):
    """Raised when a snapshot cannot be acquired or decoded."""


@dataclass(frozen=True, slots=True)
class AcquiredSnapshot:
    """A decoded snapshot together with where it came from and its DLTS."""

    location: str
    dlts: Dlts
    snapshot: ConsensusSnapshot


@runtime_checkable
class SnapshotSource(Protocol):
    """Yield snapshots lazily, in the order they should be reconciled."""

    def __call__(self) -> Iterator[AcquiredSnapshot]: ...


__all__ = ["AcquiredSnapshot", "SnapshotSource", "SnapshotSourceError"]

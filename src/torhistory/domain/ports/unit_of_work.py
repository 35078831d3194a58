"""Transaction boundary around the relay history repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from torhistory.domain.ports.persistence import ImportLogRepository, RelayStore


@dataclass(slots=True)
class RelayHistoryRepositories:
    """Repositories sharing one transaction during a consensus import."""

    relays: RelayStore
    imports: ImportLogRepository


@runtime_checkable
class RelayHistoryUnitOfWork(Protocol):
    """Context manager owning one transaction; leaving it with an error rolls back."""

    @property
    def repositories(self) -> RelayHistoryRepositories: ...

    def __enter__(self) -> RelayHistoryUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

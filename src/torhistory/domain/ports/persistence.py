"""Ports for persisting relay history."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from torhistory.domain.model import (
        AddressHistory,
        AddressRole,
        Dlts,
        LatestState,
        RelayRow,
        ValueClass,
    )


@runtime_checkable
class ValueStore(Protocol):
    """Dictionary tables mapping repeated free text to surrogate ids."""

    def get_or_create_value_id(self, value_class: ValueClass, text: str) -> int: ...

    def get_or_create_country_id(self, code: str, name: str) -> int: ...


@runtime_checkable
class RelayStore(ValueStore, Protocol):
    """Keyed read/write primitives used by the reconciliation engine."""

    def find_latest_state(self, fingerprint: str, *, as_of: Dlts) -> LatestState | None: ...

    def load_latest_states(self, *, as_of: Dlts) -> dict[str, LatestState]: ...

    def insert_relay(self, row: RelayRow) -> int: ...

    def advance_relay_freshness(self, row_id: int, dlts: Dlts) -> None: ...

    def find_address(
        self, fingerprint_id: int, role: AddressRole, address: str
    ) -> AddressHistory | None: ...

    def insert_address(
        self, fingerprint_id: int, role: AddressRole, address: str, dlts: Dlts
    ) -> int: ...

    def advance_address_freshness(self, history_id: int, dlts: Dlts) -> None: ...


@runtime_checkable
class ImportLogRepository(Protocol):
    """Audit trail of processed snapshots."""

    def record_import(
        self,
        *,
        version: str,
        build_revision: str,
        relays_published: str,
        bridges_published: str,
        dlts: Dlts,
    ) -> None: ...

    def latest_dlts(self) -> Dlts | None: ...

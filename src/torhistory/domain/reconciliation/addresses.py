"""Append/advance-only history for relay addresses.

An address that disappears from a snapshot is not deleted; its absence is only
visible as a ``record_last_seen`` older than the relay's own.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from torhistory.domain.model import AddressRole

if TYPE_CHECKING:
    from collections.abc import Iterable

    from torhistory.domain.model import Dlts, RelayDetails
    from torhistory.domain.ports.persistence import RelayStore

log = getLogger(__name__)


@dataclass(slots=True)
class AddressSyncOutcome:
    inserted: int = 0
    advanced: int = 0

    def __iadd__(self, other: AddressSyncOutcome) -> AddressSyncOutcome:
        self.inserted += other.inserted
        self.advanced += other.advanced
        return self


def addresses_by_role(relay: RelayDetails) -> dict[AddressRole, tuple[str, ...]]:
    return {
        AddressRole.OR: relay.or_addresses,
        AddressRole.EXIT: relay.exit_addresses,
        AddressRole.DIR: (relay.dir_address,) if relay.dir_address else (),
    }


@dataclass(slots=True)
class AddressSynchronizer:
    store: RelayStore

    def sync(
        self,
        role: AddressRole,
        fingerprint_id: int,
        addresses: Iterable[str],
        dlts: Dlts,
    ) -> AddressSyncOutcome:
        outcome = AddressSyncOutcome()
        for address in dict.fromkeys(addresses):
            if not address:
                continue
            history = self.store.find_address(fingerprint_id, role, address)
            if history is None:
                self.store.insert_address(fingerprint_id, role, address, dlts)
                log.debug("Address %s %s inserted for relay %s", role, address, fingerprint_id)
                outcome.inserted += 1
            elif dlts > history.record_last_seen:
                self.store.advance_address_freshness(history.id, dlts)
                outcome.advanced += 1
        return outcome

    def sync_relay(self, relay: RelayDetails, fingerprint_id: int, dlts: Dlts) -> AddressSyncOutcome:
        """Synchronize all three address roles of ``relay``."""

        total = AddressSyncOutcome()
        for role, addresses in addresses_by_role(relay).items():
            total += self.sync(role, fingerprint_id, addresses, dlts)
        return total

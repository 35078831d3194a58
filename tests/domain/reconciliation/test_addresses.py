from __future__ import annotations

from torhistory.domain.model import AddressRole
from torhistory.domain.reconciliation import AddressSynchronizer
from tests.helpers.relays import FakeRelayStore, make_relay


def test_new_addresses_are_inserted_per_role() -> None:
    store = FakeRelayStore()
    relay = make_relay(
        or_addresses=("192.0.2.1:9001", "[2001:db8::1]:9001"),
        exit_addresses=("192.0.2.1",),
        dir_address="192.0.2.1:9030",
    )

    outcome = AddressSynchronizer(store).sync_relay(relay, 7, "20230101000000")

    assert outcome.inserted == 4
    assert outcome.advanced == 0
    assert len(store.address_rows(AddressRole.OR)) == 2
    assert len(store.address_rows(AddressRole.EXIT)) == 1
    assert len(store.address_rows(AddressRole.DIR)) == 1
    assert {history.fingerprint_id for history in store.address_rows()} == {7}


def test_known_address_is_advanced_only_forward() -> None:
    store = FakeRelayStore()
    synchronizer = AddressSynchronizer(store)
    synchronizer.sync(AddressRole.OR, 1, ["192.0.2.1:9001"], "20230102000000")

    older = synchronizer.sync(AddressRole.OR, 1, ["192.0.2.1:9001"], "20230101000000")
    same = synchronizer.sync(AddressRole.OR, 1, ["192.0.2.1:9001"], "20230102000000")
    newer = synchronizer.sync(AddressRole.OR, 1, ["192.0.2.1:9001"], "20230103000000")

    assert (older.inserted, older.advanced) == (0, 0)
    assert (same.inserted, same.advanced) == (0, 0)
    assert (newer.inserted, newer.advanced) == (0, 1)
    (history,) = store.address_rows()
    assert history.record_time_inserted == "20230102000000"
    assert history.record_last_seen == "20230103000000"


def test_absent_address_is_left_untouched() -> None:
    store = FakeRelayStore()
    synchronizer = AddressSynchronizer(store)
    synchronizer.sync(AddressRole.OR, 1, ["192.0.2.1:9001", "192.0.2.2:9001"], "20230101000000")

    synchronizer.sync(AddressRole.OR, 1, ["192.0.2.1:9001"], "20230102000000")

    last_seen = {history.address: history.record_last_seen for history in store.address_rows()}
    assert last_seen == {
        "192.0.2.1:9001": "20230102000000",
        "192.0.2.2:9001": "20230101000000",
    }


def test_same_address_in_different_roles_is_tracked_separately() -> None:
    store = FakeRelayStore()
    synchronizer = AddressSynchronizer(store)

    synchronizer.sync(AddressRole.OR, 1, ["192.0.2.1"], "20230101000000")
    synchronizer.sync(AddressRole.EXIT, 1, ["192.0.2.1"], "20230101000000")

    assert len(store.address_rows()) == 2


def test_duplicate_and_empty_addresses_are_ignored() -> None:
    store = FakeRelayStore()

    outcome = AddressSynchronizer(store).sync(
        AddressRole.OR, 1, ["192.0.2.1:9001", "", "192.0.2.1:9001"], "20230101000000"
    )

    assert outcome.inserted == 1
    assert len(store.address_rows()) == 1


def test_last_seen_equals_latest_dlts_across_irregular_snapshots() -> None:
    store = FakeRelayStore()
    synchronizer = AddressSynchronizer(store)
    observations = ["20230105000000", "20230101000000", "20230109000000", "20230103000000"]

    for dlts in observations:
        synchronizer.sync(AddressRole.OR, 1, ["192.0.2.1:9001"], dlts)

    (history,) = store.address_rows()
    assert history.record_last_seen == max(observations)

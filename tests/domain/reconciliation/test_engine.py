from __future__ import annotations

import pytest

from torhistory.domain.model import AddressRole
from torhistory.domain.reconciliation import ReconciliationError, SnapshotReconciler
from tests.helpers.relays import FP_A, FP_B, FP_C, FakeRelayStore, make_relay

DAY_1 = "20230101000000"
DAY_2 = "20230102000000"
DAY_3 = "20230103000000"


def _reconciler(store: FakeRelayStore, interval: int = 100) -> SnapshotReconciler:
    return SnapshotReconciler.for_store(store, refresh_interval=interval)


def test_unseen_relay_is_inserted_with_freshness_marker() -> None:
    store = FakeRelayStore()

    result = _reconciler(store).reconcile([make_relay()], DAY_1, first_in_run=True)

    assert result.created == 1
    assert result.full_rebuild
    (row,) = store.rows_for(FP_A)
    assert row.record_time_inserted == DAY_1
    assert row.record_last_seen == DAY_1
    assert row.nickname == "n1"
    assert row.flags == '["Fast", "Running", "Valid"]'
    assert result.addresses_inserted == 1


def test_relay_lifecycle_across_snapshots() -> None:
    store = FakeRelayStore()
    reconciler = _reconciler(store)
    reconciler.reconcile([make_relay()], DAY_1, first_in_run=True)

    same = reconciler.reconcile([make_relay()], DAY_1)
    assert same.unchanged == 1
    assert len(store.rows_for(FP_A)) == 1

    moved = reconciler.reconcile(
        [make_relay(or_addresses=("192.0.2.1:9001", "192.0.2.2:9001"))], DAY_2
    )
    assert moved.refreshed == 1
    assert moved.addresses_inserted == 1
    assert moved.addresses_advanced == 1
    (row,) = store.rows_for(FP_A)
    assert row.record_last_seen == DAY_2
    assert len(store.address_rows(AddressRole.OR)) == 2

    renamed = reconciler.reconcile([make_relay(nickname="n2")], DAY_3)
    assert renamed.changed == 1
    first, second = store.rows_for(FP_A)
    assert (first.nickname, first.record_last_seen) == ("n1", DAY_2)
    assert (second.nickname, second.record_time_inserted, second.record_last_seen) == (
        "n2",
        DAY_3,
        DAY_3,
    )
    assert first.fingerprint_id == second.fingerprint_id


def test_older_snapshot_does_not_mutate_history() -> None:
    store = FakeRelayStore()
    reconciler = _reconciler(store)
    reconciler.reconcile([make_relay()], DAY_2, first_in_run=True)

    result = reconciler.reconcile([make_relay()], DAY_1)

    assert result.stale == 1
    (row,) = store.rows_for(FP_A)
    assert row.record_last_seen == DAY_2
    (history,) = store.address_rows()
    assert history.record_last_seen == DAY_2


def test_contact_case_change_does_not_create_row() -> None:
    store = FakeRelayStore()
    reconciler = _reconciler(store)
    reconciler.reconcile([make_relay(contact="Ops@Example.org")], DAY_1, first_in_run=True)

    result = reconciler.reconcile([make_relay(contact="OPS@EXAMPLE.ORG")], DAY_2)

    assert result.refreshed == 1
    assert len(store.rows_for(FP_A)) == 1


def test_previous_snapshot_limits_reconciled_relays() -> None:
    store = FakeRelayStore()
    reconciler = _reconciler(store)
    first = [make_relay(FP_A), make_relay(FP_B)]
    reconciler.reconcile(first, DAY_1, first_in_run=True)

    second = [make_relay(FP_A), make_relay(FP_B), make_relay(FP_C)]
    result = reconciler.reconcile(second, DAY_2, previous=first)

    assert result.received == 3
    assert result.considered == 1
    assert result.created == 1
    assert store.rows_for(FP_A)[0].record_last_seen == DAY_1
    assert store.rows_for(FP_C)[0].record_time_inserted == DAY_2


def test_previous_snapshot_is_ignored_for_first_in_run() -> None:
    store = FakeRelayStore()
    relays = [make_relay(FP_A)]

    result = _reconciler(store).reconcile(relays, DAY_1, first_in_run=True, previous=relays)

    assert result.considered == 1
    assert result.created == 1


def test_full_rebuild_follows_refresh_interval() -> None:
    store = FakeRelayStore()
    reconciler = _reconciler(store, interval=2)
    relays = [make_relay()]

    results = [
        reconciler.reconcile(relays, f"2023010{day}000000", first_in_run=day == 1)
        for day in range(1, 6)
    ]

    assert [result.full_rebuild for result in results] == [True, False, True, False, True]
    assert [result.snapshot_index for result in results] == [0, 1, 2, 3, 4]
    assert [result.refreshed for result in results] == [0, 1, 1, 1, 1]


def test_first_in_run_resets_snapshot_index() -> None:
    store = FakeRelayStore()
    reconciler = _reconciler(store, interval=10)
    reconciler.reconcile([make_relay()], DAY_1, first_in_run=True)
    reconciler.reconcile([make_relay()], DAY_2)

    result = reconciler.reconcile([make_relay()], DAY_3, first_in_run=True)

    assert result.snapshot_index == 0
    assert result.full_rebuild


def test_relays_sharing_values_reuse_dictionary_rows() -> None:
    store = FakeRelayStore()
    relays = [make_relay(FP_A), make_relay(FP_B), make_relay(FP_C)]

    _reconciler(store).reconcile(relays, DAY_1, first_in_run=True)

    platform_ids = {stored.row.platform_id for stored in store.rows}
    assert len(platform_ids) == 1
    assert len(store.countries) == 1


def test_empty_values_are_stored_as_missing_references() -> None:
    store = FakeRelayStore()

    _reconciler(store).reconcile(
        [make_relay(country="", country_name="", contact="", platform="")],
        DAY_1,
        first_in_run=True,
    )

    (row,) = store.rows_for(FP_A)
    assert row.country_id is None
    assert row.contact_id is None
    assert row.platform_id is None
    assert row.region_id is None


def test_store_failure_reports_relay_and_last_success() -> None:
    store = FakeRelayStore(fail_on_insert={FP_B})
    relays = [make_relay(FP_A), make_relay(FP_B), make_relay(FP_C)]

    with pytest.raises(ReconciliationError) as excinfo:
        _reconciler(store).reconcile(relays, DAY_1, first_in_run=True)

    error = excinfo.value
    assert error.fingerprint == FP_B
    assert error.last_reconciled == FP_A
    assert error.dlts == DAY_1
    assert error.snapshot_index == 0
    assert error.last_committed_dlts is None
    assert isinstance(error.__cause__, RuntimeError)
    assert len(store.rows) == 1


def test_partially_written_relay_is_reloaded_before_next_snapshot(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    store = FakeRelayStore()
    reconciler = _reconciler(store)
    reconciler.reconcile([make_relay()], DAY_1, first_in_run=True)
    changed = make_relay(nickname="n2", or_addresses=("192.0.2.9:9001",))

    def fail_insert_address(*_args: object) -> int:
        raise RuntimeError("address table unavailable")

    with monkeypatch.context() as patch:
        patch.setattr(store, "insert_address", fail_insert_address)
        with pytest.raises(ReconciliationError):
            reconciler.reconcile([changed], DAY_2)

    result = reconciler.reconcile([changed], DAY_2)

    assert not result.full_rebuild
    assert result.changed == 0
    assert result.unchanged == 1
    assert len(store.rows_for(FP_A)) == 2

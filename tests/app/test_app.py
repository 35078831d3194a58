from __future__ import annotations

from torhistory.app import import_consensus
from torhistory.config import ConsensusConfig, SyncConfig
from tests.helpers.relays import (
    FP_A,
    FP_B,
    FakeUnitOfWork,
    StaticSnapshotSource,
    make_relay,
    make_snapshot,
)


def _source() -> StaticSnapshotSource:
    relays = [make_relay(FP_A, flags=("Exit", "Running")), make_relay(FP_B)]
    return StaticSnapshotSource(
        [
            ("20230101000000", make_snapshot(relays)),
            ("20230102000000", make_snapshot(relays)),
        ]
    )


def test_import_consensus_reconciles_through_unit_of_work() -> None:
    uow = FakeUnitOfWork()

    result = import_consensus(
        consensus=ConsensusConfig(),
        sync=SyncConfig(reinit_caches_every=1),
        source=_source(),
        unit_of_work_factory=lambda: uow,
    )

    assert result.snapshots == 2
    assert result.created == 2
    assert uow.commits == 2
    assert all(snapshot.full_rebuild for snapshot in result.results)


def test_import_consensus_without_store_only_observes() -> None:
    observed: list[str] = []

    def unexpected_unit_of_work() -> FakeUnitOfWork:
        raise AssertionError("no unit of work expected")

    result = import_consensus(
        consensus=ConsensusConfig(),
        sync=SyncConfig(store=False),
        source=_source(),
        unit_of_work_factory=unexpected_unit_of_work,
        flag_filter=("Exit",),
        observer=lambda relay: observed.append(relay.fingerprint),
    )

    assert result.snapshots == 2
    assert observed == [FP_A, FP_A]

"""Application service importing consensus snapshots into the relay history."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from time import perf_counter
from typing import TYPE_CHECKING

from torhistory.domain.filters import filter_relays
from torhistory.domain.reconciliation import (
    DEFAULT_REFRESH_INTERVAL,
    ReconciliationError,
    SnapshotReconciler,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from torhistory.domain.model import Dlts, RelayDetails
    from torhistory.domain.ports.fetching import AcquiredSnapshot, SnapshotSource
    from torhistory.domain.ports.unit_of_work import RelayHistoryUnitOfWork
    from torhistory.domain.reconciliation import ReconcileResult

type RelayObserver = Callable[[RelayDetails], None]

log = getLogger(__name__)


@dataclass(slots=True)
class ImportSnapshotsResult:
    """Outcome of importing a sequence of snapshots."""

    snapshots: int = 0
    relays_received: int = 0
    results: list[ReconcileResult] = field(default_factory=list["ReconcileResult"])
    latest_dlts: Dlts | None = None

    @property
    def created(self) -> int:
        return sum(result.created for result in self.results)

    @property
    def changed(self) -> int:
        return sum(result.changed for result in self.results)

    @property
    def refreshed(self) -> int:
        return sum(result.refreshed for result in self.results)


def import_snapshots(
    *,
    source: SnapshotSource,
    unit_of_work_factory: Callable[[], RelayHistoryUnitOfWork],
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL,
    flag_filter: Sequence[str] = (),
    observer: RelayObserver | None = None,
) -> ImportSnapshotsResult:
    """Reconcile every snapshot of ``source`` in order, committing once per snapshot.

    A failure rolls back the snapshot being processed; snapshots committed
    before it stay persisted, and the raised ``ReconciliationError`` reports
    the DLTS of the last committed snapshot as the resume point.
    """

    summary = ImportSnapshotsResult()
    started = perf_counter()

    with unit_of_work_factory() as uow:
        reconciler = SnapshotReconciler.for_store(
            uow.repositories.relays, refresh_interval=refresh_interval
        )
        previous: list[RelayDetails] | None = None

        for index, acquired in enumerate(source()):
            snapshot_started = perf_counter()
            relays = _observe(acquired, flag_filter, observer)
            _warn_if_out_of_order(summary.latest_dlts, acquired)

            try:
                result = reconciler.reconcile(
                    relays,
                    acquired.dlts,
                    first_in_run=index == 0,
                    previous=previous,
                )
            except ReconciliationError as exc:
                raise exc.rolled_back(last_committed_dlts=summary.latest_dlts) from exc
            snapshot = acquired.snapshot
            uow.repositories.imports.record_import(
                version=snapshot.version,
                build_revision=snapshot.build_revision,
                relays_published=snapshot.relays_published,
                bridges_published=snapshot.bridges_published,
                dlts=acquired.dlts,
            )
            uow.commit()

            previous = relays
            summary.snapshots += 1
            summary.relays_received += len(relays)
            summary.results.append(result)
            summary.latest_dlts = acquired.dlts
            log.info(
                "Snapshot %s from %s committed in %.3fs",
                index,
                acquired.location,
                perf_counter() - snapshot_started,
            )

    if summary.snapshots > 1:
        log.info(
            "Bulk import of %s snapshots in %.3fs", summary.snapshots, perf_counter() - started
        )
    return summary


def preview_snapshots(
    *,
    source: SnapshotSource,
    flag_filter: Sequence[str] = (),
    observer: RelayObserver | None = None,
) -> ImportSnapshotsResult:
    """Acquire, filter and observe snapshots without touching the store."""

    summary = ImportSnapshotsResult()
    for acquired in source():
        relays = _observe(acquired, flag_filter, observer)
        summary.snapshots += 1
        summary.relays_received += len(relays)
        summary.latest_dlts = acquired.dlts
    return summary


def _observe(
    acquired: AcquiredSnapshot,
    flag_filter: Sequence[str],
    observer: RelayObserver | None,
) -> list[RelayDetails]:
    relays = filter_relays(acquired.snapshot.relays, flag_filter)
    if flag_filter:
        log.info(
            "Flag filter %s kept %s of %s relays",
            ",".join(flag_filter),
            len(relays),
            len(acquired.snapshot.relays),
        )
    if observer is not None:
        for relay in relays:
            observer(relay)
    return relays


def _warn_if_out_of_order(previous_dlts: Dlts | None, acquired: AcquiredSnapshot) -> None:
    if previous_dlts is not None and acquired.dlts < previous_dlts:
        log.warning(
            "Snapshot %s has DLTS %s earlier than the previous snapshot's %s; "
            "input is processed in the given order",
            acquired.location,
            acquired.dlts,
            previous_dlts,
        )

"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from torhistory.adapters.onionoo import OnionooSnapshotSource
from torhistory.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from torhistory.config import get_consensus_config, get_sync_config
from torhistory.domain.data_integration import (
    ImportSnapshotsResult,
    import_snapshots,
    preview_snapshots,
)
from torhistory.domain.ports.unit_of_work import RelayHistoryUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Sequence

    from torhistory.config import ConsensusConfig, SyncConfig
    from torhistory.domain.data_integration import RelayObserver
    from torhistory.domain.ports.fetching import SnapshotSource

UnitOfWorkFactory = Callable[[], RelayHistoryUnitOfWork]


log = getLogger(__name__)


def import_consensus(
    *,
    consensus: ConsensusConfig | None = None,
    sync: SyncConfig | None = None,
    source: SnapshotSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    flag_filter: Sequence[str] = (),
    observer: RelayObserver | None = None,
) -> ImportSnapshotsResult:
    """Acquire consensus snapshots and reconcile them into the relay history."""

    consensus_config = consensus or get_consensus_config()
    sync_config = sync or get_sync_config()
    effective_source = source or OnionooSnapshotSource(config=consensus_config)

    log.info(
        "Starting consensus import: source=%s, reinit_caches_every=%s, store=%s, filter=%s",
        consensus_config.filename or consensus_config.url,
        sync_config.reinit_caches_every,
        sync_config.store,
        ",".join(flag_filter) or "none",
    )

    if not sync_config.store:
        result = preview_snapshots(
            source=effective_source, flag_filter=flag_filter, observer=observer
        )
        log.info("Processed %s snapshots without storing them", result.snapshots)
        return result

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyUnitOfWork

    result = import_snapshots(
        source=effective_source,
        unit_of_work_factory=unit_of_work_factory,
        refresh_interval=sync_config.reinit_caches_every,
        flag_filter=flag_filter,
        observer=observer,
    )

    log.info(
        "Finished consensus import: snapshots=%s, relays=%s, created=%s, changed=%s, "
        "refreshed=%s, latest=%s",
        result.snapshots,
        result.relays_received,
        result.created,
        result.changed,
        result.refreshed,
        result.latest_dlts,
    )
    return result

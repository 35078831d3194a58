"""Snapshot reconciliation engine.

One call to :meth:`SnapshotReconciler.reconcile` processes one snapshot:

1) refresh the latest-state cache (full rebuild every K snapshots)
2) optionally shrink the batch to relays that differ from the previous snapshot
3) classify every remaining relay against the cache
4) append rows, advance freshness markers and synchronize addresses
5) keep the cache consistent with each successful write

Store failures are fatal: the engine stops at the failing relay and reports
the last fingerprint it fully reconciled.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from torhistory.domain.model import LatestState, RelayRow, ValueClass

from .addresses import AddressSynchronizer
from .classify import classify
from .contracts import Classification, ReconcileResult, ReconciliationError
from .delta import extract_new_and_updated
from .refresh import DEFAULT_REFRESH_INTERVAL, CacheRefreshScheduler
from .state_cache import LatestStateCache
from .value_cache import ValueDictionary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from torhistory.domain.model import Dlts, RelayDetails
    from torhistory.domain.ports.persistence import RelayStore

log = getLogger(__name__)


@dataclass(slots=True)
class SnapshotReconciler:
    """Persist only the effective changes of consecutive snapshots."""

    store: RelayStore
    values: ValueDictionary
    states: LatestStateCache
    addresses: AddressSynchronizer
    scheduler: CacheRefreshScheduler = field(default_factory=CacheRefreshScheduler)
    _next_index: int = field(default=0, init=False)

    @classmethod
    def for_store(
        cls,
        store: RelayStore,
        *,
        refresh_interval: int = DEFAULT_REFRESH_INTERVAL,
    ) -> SnapshotReconciler:
        return cls(
            store=store,
            values=ValueDictionary(store),
            states=LatestStateCache(store),
            addresses=AddressSynchronizer(store),
            scheduler=CacheRefreshScheduler(refresh_interval),
        )

    def set_refresh_interval(self, interval: int) -> None:
        self.scheduler.set_interval(interval)

    def reconcile(
        self,
        relays: Sequence[RelayDetails],
        dlts: Dlts,
        *,
        first_in_run: bool = False,
        previous: Sequence[RelayDetails] | None = None,
    ) -> ReconcileResult:
        """Reconcile one snapshot observed at ``dlts``.

        ``previous`` is the full relay list of the preceding snapshot of the
        same run; when given, only relays that differ from it are reconciled.
        """

        if first_in_run:
            self._next_index = 0
        index = self._next_index
        result = ReconcileResult(snapshot_index=index, dlts=dlts, received=len(relays))

        result.full_rebuild = (
            self.scheduler.should_fully_rebuild(index) or self.states.as_of is None
        )
        if result.full_rebuild:
            self.states.rebuild(dlts)
        else:
            self.states.refresh_stale(dlts)

        candidates = relays
        if previous is not None and not first_in_run:
            candidates = extract_new_and_updated(previous, relays)
        result.considered = len(candidates)

        last_reconciled: str | None = None
        for relay in candidates:
            try:
                self._reconcile_relay(relay, dlts, result)
            except Exception as exc:
                self.states.invalidate(relay.fingerprint)
                raise ReconciliationError(
                    f"Failed to reconcile relay: {exc}",
                    snapshot_index=index,
                    dlts=dlts,
                    fingerprint=relay.fingerprint,
                    last_reconciled=last_reconciled,
                ) from exc
            last_reconciled = relay.fingerprint

        self._next_index = index + 1
        log.info(
            "Snapshot %s (%s): received=%s considered=%s new=%s changed=%s refreshed=%s "
            "unchanged=%s stale=%s",
            index,
            dlts,
            result.received,
            result.considered,
            result.created,
            result.changed,
            result.refreshed,
            result.unchanged,
            result.stale,
        )
        return result

    def _reconcile_relay(self, relay: RelayDetails, dlts: Dlts, result: ReconcileResult) -> None:
        cached = self.states.lookup(relay.fingerprint)
        classification = classify(relay, cached, dlts)
        log.debug("Relay %s/%s: %s", relay.nickname, relay.fingerprint, classification)
        result.count(classification)

        if classification.creates_row:
            entry = self._append_row(relay, dlts)
            outcome = self.addresses.sync_relay(relay, entry.fingerprint_id, dlts)
            self.states.apply(relay.fingerprint, entry)
        elif classification is Classification.REFRESH and cached is not None:
            outcome = self.addresses.sync_relay(relay, cached.fingerprint_id, dlts)
            log.debug(
                "Advancing %s row %s: %s -> %s",
                relay.fingerprint,
                cached.row_id,
                cached.record_last_seen,
                dlts,
            )
            self.store.advance_relay_freshness(cached.row_id, dlts)
            self.states.advance(relay.fingerprint, dlts)
        else:
            return

        result.addresses_inserted += outcome.inserted
        result.addresses_advanced += outcome.advanced

    def _append_row(self, relay: RelayDetails, dlts: Dlts) -> LatestState:
        values = self.values
        row = RelayRow(
            fingerprint_id=values.resolve_fingerprint(relay.fingerprint),
            country_id=values.resolve_country(relay.country, relay.country_name),
            region_id=values.resolve(ValueClass.REGION, relay.region_name),
            city_id=values.resolve(ValueClass.CITY, relay.city_name),
            platform_id=values.resolve(ValueClass.PLATFORM, relay.platform),
            version_id=values.resolve(ValueClass.VERSION, relay.version),
            contact_id=values.resolve(ValueClass.CONTACT, relay.contact),
            exit_policy_id=values.resolve(ValueClass.EXIT_POLICY, relay.exit_policy_json),
            exit_policy_summary_id=values.resolve(
                ValueClass.EXIT_POLICY_SUMMARY, relay.exit_policy_summary_json
            ),
            exit_policy_v6_summary_id=values.resolve(
                ValueClass.EXIT_POLICY_V6_SUMMARY, relay.exit_policy_v6_summary_json
            ),
            nickname=relay.nickname,
            last_changed_address_or_port=relay.last_changed_address_or_port,
            first_seen=relay.first_seen,
            record_time_inserted=dlts,
            record_last_seen=dlts,
            flags=json.dumps(list(relay.flags)),
            details=relay.details_json(),
        )
        row_id = self.store.insert_relay(row)
        log.debug("Inserted relay row %s for %s", row_id, relay.fingerprint)
        return LatestState(
            row_id=row_id,
            fingerprint_id=row.fingerprint_id,
            fingerprint=relay.fingerprint,
            nickname=relay.nickname,
            country=relay.country,
            city_name=relay.city_name,
            platform=relay.platform,
            version=relay.version,
            contact=relay.contact,
            last_changed_address_or_port=relay.last_changed_address_or_port,
            first_seen=relay.first_seen,
            exit_policy=relay.exit_policy_json,
            exit_policy_summary=relay.exit_policy_summary_json,
            exit_policy_v6_summary=relay.exit_policy_v6_summary_json,
            record_last_seen=dlts,
        )

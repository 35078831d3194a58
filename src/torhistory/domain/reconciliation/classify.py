"""Change detection for incoming relays.

Everything here is pure: no store access, no cache mutation. The engine
turns a :class:`Classification` into persistence effects.
"""

from __future__ import annotations

from collections.abc import Callable
from logging import DEBUG, getLogger
from typing import TYPE_CHECKING, Final

from .contracts import Classification

if TYPE_CHECKING:
    from torhistory.domain.model import Dlts, LatestState, RelayDetails

log = getLogger(__name__)

type FieldProbe = tuple[str, Callable[[RelayDetails], str], Callable[[LatestState], str]]

COMPARABLE_FIELDS: Final[tuple[FieldProbe, ...]] = (
    ("nickname", lambda relay: relay.nickname, lambda state: state.nickname),
    ("country", lambda relay: relay.country, lambda state: state.country),
    ("city_name", lambda relay: relay.city_name, lambda state: state.city_name),
    ("platform", lambda relay: relay.platform, lambda state: state.platform),
    ("version", lambda relay: relay.version, lambda state: state.version),
    (
        "contact",
        lambda relay: relay.contact.lower(),
        lambda state: state.contact.lower(),
    ),
    (
        "last_changed_address_or_port",
        lambda relay: relay.last_changed_address_or_port,
        lambda state: state.last_changed_address_or_port,
    ),
    ("first_seen", lambda relay: relay.first_seen, lambda state: state.first_seen),
    (
        "exit_policy",
        lambda relay: relay.exit_policy_json,
        lambda state: state.exit_policy,
    ),
    (
        "exit_policy_summary",
        lambda relay: relay.exit_policy_summary_json,
        lambda state: state.exit_policy_summary,
    ),
    (
        "exit_policy_v6_summary",
        lambda relay: relay.exit_policy_v6_summary_json,
        lambda state: state.exit_policy_v6_summary,
    ),
)


def mismatched_fields(relay: RelayDetails, state: LatestState) -> tuple[str, ...]:
    """Return the names of comparable fields that differ, in a stable order."""

    return tuple(
        name for name, incoming, cached in COMPARABLE_FIELDS if incoming(relay) != cached(state)
    )


def records_match(relay: RelayDetails, state: LatestState) -> bool:
    return all(incoming(relay) == cached(state) for _, incoming, cached in COMPARABLE_FIELDS)


def classify(relay: RelayDetails, cached: LatestState | None, dlts: Dlts) -> Classification:
    """Classify ``relay`` observed at ``dlts`` against its cached state."""

    if cached is None:
        return Classification.NEW

    mismatches = mismatched_fields(relay, cached)
    if mismatches:
        if log.isEnabledFor(DEBUG):
            for name, incoming, stored in COMPARABLE_FIELDS:
                if name in mismatches:
                    log.debug(
                        "Mismatch %s for %s: %r => %r",
                        name,
                        relay.fingerprint,
                        incoming(relay),
                        stored(cached),
                    )
        return Classification.CHANGED

    if dlts == cached.record_last_seen:
        return Classification.UNCHANGED_FRESH
    if dlts < cached.record_last_seen:
        return Classification.UNCHANGED_STALE
    return Classification.REFRESH

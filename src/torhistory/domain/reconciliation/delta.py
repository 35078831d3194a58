"""Cross-snapshot pre-filter for bulk imports.

Only relays that are new or not structurally identical to their entry in the
previous snapshot are forwarded to per-record reconciliation. Forwarding an
unchanged relay costs work; dropping a changed one would lose history, so the
comparison is full equality over every decoded field.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from torhistory.domain.model import RelayDetails

log = getLogger(__name__)


def extract_new_and_updated(
    previous: Sequence[RelayDetails],
    current: Sequence[RelayDetails],
) -> list[RelayDetails]:
    """Return the relays of ``current`` that are absent from or differ from ``previous``."""

    index_by_fingerprint = {relay.fingerprint: index for index, relay in enumerate(previous)}
    result: list[RelayDetails] = []
    for relay in current:
        index = index_by_fingerprint.get(relay.fingerprint)
        if index is not None and previous[index] == relay:
            continue
        result.append(relay)

    log.info(
        "Delta against previous snapshot: %s of %s relays forwarded", len(result), len(current)
    )
    for relay in result:
        log.debug("Forwarding relay %s/%s", relay.nickname, relay.fingerprint)
    return result

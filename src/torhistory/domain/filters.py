"""Relay flag filter applied before printing and reconciliation."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from torhistory.domain.model import RelayDetails

log = getLogger(__name__)

KNOWN_FLAGS = frozenset(
    {
        "Authority",
        "BadExit",
        "Exit",
        "Fast",
        "Guard",
        "HSDir",
        "MiddleOnly",
        "NoEdConsensus",
        "Running",
        "Stable",
        "StaleDesc",
        "Sybil",
        "V2Dir",
        "Valid",
    }
)


def parse_flag_filter(text: str | None) -> tuple[str, ...]:
    """Split a comma-separated flag list such as ``"Exit,Guard"``."""

    if not text:
        return ()
    flags = tuple(flag.strip() for flag in text.split(",") if flag.strip())
    unknown = [flag for flag in flags if flag not in KNOWN_FLAGS]
    if unknown:
        log.warning("Unknown relay flags in filter: %s", ", ".join(unknown))
    log.debug("Relay flag filter: %s", flags)
    return flags


def filter_relays(
    relays: Iterable[RelayDetails], required: Sequence[str]
) -> list[RelayDetails]:
    """Keep the relays carrying every flag in ``required``; an empty filter keeps all."""

    if not required:
        return list(relays)
    return [relay for relay in relays if relay.has_flags(required)]

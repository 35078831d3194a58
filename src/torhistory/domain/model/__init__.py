"""Domain model for relay consensus history."""

from __future__ import annotations

from .enums import AddressRole, ValueClass
from .relay import ConsensusSnapshot, RelayDetails, canonical_json
from .state import AddressHistory, Dlts, LatestState, RelayRow

__all__ = [
    "AddressHistory",
    "AddressRole",
    "ConsensusSnapshot",
    "Dlts",
    "LatestState",
    "RelayDetails",
    "RelayRow",
    "ValueClass",
    "canonical_json",
]

"""Persisted-state views used by the reconciliation engine.

``Dlts`` values are canonical ``YYYYMMDDhhmmss`` strings; lexicographic order is
chronological order, so they are compared as plain strings throughout.
"""

from __future__ import annotations

from dataclasses import dataclass

from .enums import AddressRole

type Dlts = str


@dataclass(slots=True, kw_only=True)
class LatestState:
    """Comparable fields of the latest persisted row for one fingerprint."""

    row_id: int
    fingerprint_id: int
    fingerprint: str
    nickname: str = ""
    country: str = ""
    city_name: str = ""
    platform: str = ""
    version: str = ""
    contact: str = ""
    last_changed_address_or_port: str = ""
    first_seen: str = ""
    exit_policy: str = "null"
    exit_policy_summary: str = "null"
    exit_policy_v6_summary: str = "null"
    record_last_seen: Dlts = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class RelayRow:
    """Row to append to the relay history, with dictionary values as surrogate ids."""

    fingerprint_id: int
    country_id: int | None
    region_id: int | None
    city_id: int | None
    platform_id: int | None
    version_id: int | None
    contact_id: int | None
    exit_policy_id: int | None
    exit_policy_summary_id: int | None
    exit_policy_v6_summary_id: int | None
    nickname: str
    last_changed_address_or_port: str
    first_seen: str
    record_time_inserted: Dlts
    record_last_seen: Dlts
    flags: str
    details: str


@dataclass(frozen=True, slots=True, kw_only=True)
class AddressHistory:
    """History row for one (relay, role, address) tuple."""

    id: int
    fingerprint_id: int
    role: AddressRole
    address: str
    record_time_inserted: Dlts
    record_last_seen: Dlts

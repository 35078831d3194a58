"""Relay records as decoded from one consensus details document."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


def canonical_json(value: object) -> str:
    """Serialize a policy blob the same way every time it is compared or stored."""

    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class RelayDetails:
    """One relay entry of a consensus snapshot.

    Equality is structural over every decoded field, including the ``extra``
    mapping that carries the fields the reconciliation engine does not inspect.
    """

    fingerprint: str
    nickname: str = ""
    or_addresses: tuple[str, ...] = ()
    exit_addresses: tuple[str, ...] = ()
    dir_address: str = ""
    last_seen: str = ""
    last_changed_address_or_port: str = ""
    first_seen: str = ""
    running: bool = False
    hibernating: bool = False
    flags: tuple[str, ...] = ()
    country: str = ""
    country_name: str = ""
    region_name: str = ""
    city_name: str = ""
    host_name: str = ""
    as_number: str = ""
    contact: str = ""
    platform: str = ""
    version: str = ""
    exit_policy: tuple[str, ...] | None = None
    exit_policy_summary: Mapping[str, object] | None = None
    exit_policy_v6_summary: Mapping[str, object] | None = None
    extra: Mapping[str, object] = field(default_factory=dict[str, object])

    @property
    def exit_policy_json(self) -> str:
        return canonical_json(list(self.exit_policy) if self.exit_policy is not None else None)

    @property
    def exit_policy_summary_json(self) -> str:
        return canonical_json(self.exit_policy_summary)

    @property
    def exit_policy_v6_summary_json(self) -> str:
        return canonical_json(self.exit_policy_v6_summary)

    def has_flags(self, required: Iterable[str]) -> bool:
        """Return whether the relay carries every flag in ``required``."""

        return set(required).issubset(self.flags)

    def details_json(self) -> str:
        """Serialize the fields that are not stored in dedicated columns."""

        payload: dict[str, object] = {
            "or_addresses": list(self.or_addresses),
            "exit_addresses": list(self.exit_addresses),
            "dir_address": self.dir_address,
            "last_seen": self.last_seen,
            "running": self.running,
            "hibernating": self.hibernating,
            "host_name": self.host_name,
            "as": self.as_number,
        }
        payload.update(self.extra)
        return canonical_json(payload)


@dataclass(frozen=True, slots=True, kw_only=True)
class ConsensusSnapshot:
    """Decoded details document: header fields plus the ordered relay batch."""

    version: str
    relays_published: str
    bridges_published: str = ""
    build_revision: str = ""
    relays: tuple[RelayDetails, ...] = ()

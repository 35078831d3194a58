"""Memoized free-text to surrogate-id resolution.

Each distinct (class, text) pair costs at most one store round-trip per
cache lifetime. Empty text never reaches the store and resolves to ``None``,
which is persisted as a ``NULL`` foreign key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from torhistory.domain.model import ValueClass

if TYPE_CHECKING:
    from torhistory.domain.ports.persistence import ValueStore

log = getLogger(__name__)


@dataclass(slots=True)
class ValueDictionary:
    """Owned per-run cache in front of the store's dictionary tables."""

    store: ValueStore
    _values: dict[tuple[ValueClass, str], int] = field(
        default_factory=dict[tuple[ValueClass, str], int]
    )
    _countries: dict[tuple[str, str], int] = field(default_factory=dict[tuple[str, str], int])
    lookups: int = 0
    misses: int = 0

    def resolve(self, value_class: ValueClass, text: str) -> int | None:
        """Return the surrogate id for ``text`` within ``value_class``."""

        if not text:
            return None
        self.lookups += 1
        key = (value_class, text)
        cached = self._values.get(key)
        if cached is not None:
            return cached
        self.misses += 1
        value_id = self.store.get_or_create_value_id(value_class, text)
        log.debug("Resolved %s %r -> %s", value_class, text, value_id)
        self._values[key] = value_id
        return value_id

    def resolve_fingerprint(self, fingerprint: str) -> int:
        value_id = self.resolve(ValueClass.FINGERPRINT, fingerprint)
        if value_id is None:
            raise ValueError("Relay fingerprint must not be empty")
        return value_id

    def resolve_country(self, code: str, name: str) -> int | None:
        """Country code and name are normalized jointly into one row."""

        if not code and not name:
            return None
        self.lookups += 1
        key = (code, name)
        cached = self._countries.get(key)
        if cached is not None:
            return cached
        self.misses += 1
        country_id = self.store.get_or_create_country_id(code, name)
        log.debug("Resolved country %r/%r -> %s", code, name, country_id)
        self._countries[key] = country_id
        return country_id

    def __len__(self) -> int:
        return len(self._values) + len(self._countries)

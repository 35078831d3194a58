"""Reconciliation run settings."""

from __future__ import annotations

from dataclasses import dataclass

from torhistory.domain.reconciliation import DEFAULT_REFRESH_INTERVAL

from .env import env_int
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class SyncConfig:
    reinit_caches_every: int = DEFAULT_REFRESH_INTERVAL
    store: bool = True

    def __post_init__(self) -> None:
        if self.reinit_caches_every < 1:
            raise ConfigurationError(
                f"reinit_caches_every must be at least 1, got {self.reinit_caches_every}"
            )


def get_sync_config(*, reinit_caches_every: int | None = None, store: bool = True) -> SyncConfig:
    """Explicit values win over ``TORHISTORY_REINIT_CACHES_EVERY``."""

    if reinit_caches_every is None:
        reinit_caches_every = env_int("TORHISTORY_REINIT_CACHES_EVERY")
    if reinit_caches_every is None:
        reinit_caches_every = DEFAULT_REFRESH_INTERVAL
    return SyncConfig(reinit_caches_every=reinit_caches_every, store=store)

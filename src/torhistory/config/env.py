"""Typed readers for ``TORHISTORY_*`` environment variables."""

from __future__ import annotations

import os

from .errors import ConfigurationError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def optional_env_var(name: str) -> str | None:
    """Return the stripped value of ``name``, treating blank values as unset."""

    value = os.getenv(name, "").strip()
    return value or None


def env_flag(name: str, *, default: bool = False) -> bool:
    value = optional_env_var(name)
    if value is None:
        return default
    return value.lower() in _TRUE_VALUES


def env_int(name: str) -> int | None:
    value = optional_env_var(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc

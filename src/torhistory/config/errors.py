"""Configuration error types."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when options or environment values are invalid or contradict each other."""

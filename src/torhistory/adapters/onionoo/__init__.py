"""Onionoo details-document acquisition and decoding."""

from __future__ import annotations

from .client import OnionooDownloader, build_client
from .files import expand_pattern, read_document, write_backup
from .schema import DetailsDocument, RelayPayload
from .source import OnionooSnapshotSource
from .translator import OnionooAPIError, decode_snapshot, parse_document, parse_relay

__all__ = [
    "DetailsDocument",
    "OnionooAPIError",
    "OnionooDownloader",
    "OnionooSnapshotSource",
    "RelayPayload",
    "build_client",
    "decode_snapshot",
    "expand_pattern",
    "parse_document",
    "parse_relay",
    "read_document",
    "write_backup",
]

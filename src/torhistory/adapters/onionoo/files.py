"""Local consensus documents: glob expansion, gzip reading and backups."""

from __future__ import annotations

import glob
import gzip
from datetime import UTC, datetime
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from torhistory.domain.ports.fetching import SnapshotSourceError
from torhistory.domain.timestamps import format_dlts

if TYPE_CHECKING:
    from torhistory.config.consensus import BackupConfig
    from torhistory.domain.timestamps import Clock

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def expand_pattern(pattern: str) -> list[str]:
    """Return the files matching ``pattern`` in the order they are imported."""

    filenames = sorted(glob.glob(pattern))
    if not filenames:
        raise SnapshotSourceError(f"Bad filename pattern, no files match: {pattern}")
    return filenames


def read_document(filename: str) -> bytes:
    """Read a consensus document, decompressing ``.gz`` files."""

    try:
        data = Path(filename).read_bytes()
    except OSError as exc:
        raise SnapshotSourceError(f"Unable to open consensus data file {filename}: {exc}") from exc

    if filename.endswith(".gz"):
        log.debug("Decompressing %s", filename)
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError) as exc:
            raise SnapshotSourceError(f"Unable to decompress {filename}: {exc}") from exc
    return data


def backup_path(config: BackupConfig, now: datetime) -> Path:
    suffix = ".gz" if config.gzip else ""
    return Path(f"{config.prefix}-{format_dlts(now)}{suffix}")


def write_backup(config: BackupConfig, data: bytes, *, clock: Clock = _utcnow) -> Path | None:
    """Copy the raw document to ``<prefix>-YYYYmmddHHMMSS[.gz]`` when backups are on."""

    if not config.enabled:
        return None
    path = backup_path(config, clock())
    log.info("Creating backup file: %s", path)
    path.write_bytes(gzip.compress(data) if config.gzip else data)
    return path

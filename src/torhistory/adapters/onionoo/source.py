"""Snapshot source over downloaded or locally stored details documents."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from torhistory.domain.ports.fetching import AcquiredSnapshot
from torhistory.domain.timestamps import derive_dlts

from .client import OnionooDownloader
from .files import expand_pattern, read_document, write_backup
from .translator import decode_snapshot

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from torhistory.config.consensus import ConsensusConfig

log = getLogger(__name__)


@dataclass(slots=True)
class OnionooSnapshotSource:
    """Yield one snapshot per matching file, or a single freshly downloaded one.

    The DLTS of a download is taken before the request is sent; file imports
    derive it per file.
    """

    config: ConsensusConfig
    downloader: Callable[[str], bytes] | None = None

    def __call__(self) -> Iterator[AcquiredSnapshot]:
        if self.config.filename:
            yield from self._from_files(self.config.filename)
        else:
            yield self._from_url(self.config.url)

    def _from_url(self, url: str) -> AcquiredSnapshot:
        dlts = derive_dlts(self.config.timestamp_options())
        downloader = self.downloader or OnionooDownloader(self.config.download)
        data = downloader(url)
        write_backup(self.config.backup, data)
        return AcquiredSnapshot(location=url, dlts=dlts, snapshot=decode_snapshot(data))

    def _from_files(self, pattern: str) -> Iterator[AcquiredSnapshot]:
        filenames = expand_pattern(pattern)
        config = self.config
        if len(filenames) > 1:
            log.info("Bulk import detected (%s). Number of files: %s", pattern, len(filenames))
            config = config.for_bulk_import()
        options = config.timestamp_options()

        for number, filename in enumerate(filenames):
            dlts = derive_dlts(options, filename=filename)
            log.info(
                "Importing sequence: %s/%s; filename: %s; DLTS %s",
                number,
                len(filenames),
                filename,
                dlts,
            )
            data = read_document(filename)
            write_backup(config.backup, data)
            yield AcquiredSnapshot(location=filename, dlts=dlts, snapshot=decode_snapshot(data))

"""Consensus acquisition configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger

from torhistory import __version__
from torhistory.domain.timestamps import TimestampOptions

from .env import env_flag, optional_env_var
from .errors import ConfigurationError

log = getLogger(__name__)

DEFAULT_CONSENSUS_URL = "https://onionoo.torproject.org/details"
CONSENSUS_TIMEOUT_SECONDS = 120.0
RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True, slots=True)
class DownloadConfig:
    """HTTP behaviour of consensus downloads; retries are spent inside the transport."""

    timeout_seconds: float = CONSENSUS_TIMEOUT_SECONDS
    attempts: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 60.0
    retry_statuses: frozenset[int] = RETRY_STATUSES
    user_agent: str = f"torhistory/{__version__}"


@dataclass(frozen=True, slots=True)
class BackupConfig:
    """Where raw consensus documents are copied before decoding."""

    prefix: str | None = None
    gzip: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.prefix)


@dataclass(frozen=True, slots=True)
class ConsensusConfig:
    """How consensus documents are acquired and timestamped.

    ``filename`` is a glob pattern; when unset the document is downloaded from
    ``url`` and stamped with the current time.
    """

    url: str = DEFAULT_CONSENSUS_URL
    filename: str | None = None
    download_time: str | None = None
    download_time_format: str | None = None
    extract_time_from_filename: bool = False
    filename_regex: str | None = None
    backup: BackupConfig = field(default_factory=BackupConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)

    @property
    def imports_from_file(self) -> bool:
        return bool(self.filename)

    def timestamp_options(self) -> TimestampOptions:
        return TimestampOptions(
            override=self.download_time,
            time_format=self.download_time_format,
            extract_from_filename=self.extract_time_from_filename,
            filename_pattern=self.filename_regex,
        )

    def for_bulk_import(self) -> ConsensusConfig:
        """Return the configuration adjusted for importing more than one file."""

        if self.download_time:
            raise ConfigurationError(
                "Bulk import detected however a consensus download time is also specified"
            )
        if self.extract_time_from_filename:
            return self
        log.warning("Operating in bulk mode without filename timestamp extraction; turning it on")
        return replace(self, extract_time_from_filename=True)


def validate_consensus_config(config: ConsensusConfig) -> ConsensusConfig:
    """Check option combinations and apply implied settings."""

    file_only = (
        config.download_time,
        config.download_time_format,
        config.extract_time_from_filename,
        config.filename_regex,
    )
    if not config.imports_from_file and any(file_only):
        raise ConfigurationError(
            "Consensus download time, its format, filename timestamp extraction and the "
            "filename regex can only be used together with an import data file"
        )
    if config.filename_regex and not config.extract_time_from_filename:
        config = replace(config, extract_time_from_filename=True)
    if config.extract_time_from_filename and config.download_time:
        raise ConfigurationError(
            "Filename timestamp extraction and an explicit consensus download time are "
            "mutually exclusive"
        )
    return config


def get_backup_config(*, prefix: str | None = None, gzip: bool | None = None) -> BackupConfig:
    return BackupConfig(
        prefix=prefix or optional_env_var("TORHISTORY_BACKUP_PREFIX"),
        gzip=env_flag("TORHISTORY_BACKUP_GZIP") if gzip is None else gzip,
    )


def get_consensus_config(
    *,
    url: str | None = None,
    filename: str | None = None,
    download_time: str | None = None,
    download_time_format: str | None = None,
    extract_time_from_filename: bool = False,
    filename_regex: str | None = None,
    backup: BackupConfig | None = None,
) -> ConsensusConfig:
    """Build the consensus configuration from explicit values over the environment."""

    config = ConsensusConfig(
        url=url or optional_env_var("TORHISTORY_CONSENSUS_URL") or DEFAULT_CONSENSUS_URL,
        filename=filename or optional_env_var("TORHISTORY_IMPORT_FILE"),
        download_time=download_time or None,
        download_time_format=download_time_format or None,
        extract_time_from_filename=extract_time_from_filename,
        filename_regex=filename_regex or None,
        backup=backup or get_backup_config(),
    )
    return validate_consensus_config(config)

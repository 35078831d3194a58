"""Application configuration helpers."""

from __future__ import annotations

from .consensus import (
    DEFAULT_CONSENSUS_URL,
    BackupConfig,
    ConsensusConfig,
    DownloadConfig,
    get_backup_config,
    get_consensus_config,
    validate_consensus_config,
)
from .env import env_flag, env_int, optional_env_var
from .errors import ConfigurationError
from .logging import configure_logging, level_for_verbosity
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "DEFAULT_CONSENSUS_URL",
    "BackupConfig",
    "ConfigurationError",
    "ConsensusConfig",
    "DatabaseConfig",
    "DownloadConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "env_flag",
    "env_int",
    "get_backup_config",
    "get_consensus_config",
    "get_database_config",
    "get_storage_config",
    "get_sync_config",
    "level_for_verbosity",
    "optional_env_var",
    "validate_consensus_config",
]

"""
Core module for playlist-backup.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Settings model, YAML persistence and the SettingsStore
    - logger: Logging system with console, file and failure report outputs

Usage:
    from playlist_backup.core import (
        Settings, SettingsStore,
        setup_logging, get_logger,
        PlaylistBackupError, ConfigError, ExportError
    )
"""

from playlist_backup.core.config import (
    Language,
    MismatchPolicy,
    PlaylistSetting,
    RelativePathMode,
    Settings,
    SettingsStore,
    default_settings_path,
    join_interval,
    load_settings,
    save_settings,
    split_interval,
)
from playlist_backup.core.exceptions import (
    BatchApplyConflictError,
    ConfigError,
    ExportError,
    PlaylistBackupError,
    RootMismatchError,
    SourceError,
)
from playlist_backup.core.logger import (
    get_logger,
    log_export_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Settings",
    "PlaylistSetting",
    "SettingsStore",
    "Language",
    "RelativePathMode",
    "MismatchPolicy",
    "default_settings_path",
    "load_settings",
    "save_settings",
    "split_interval",
    "join_interval",
    # Exceptions
    "PlaylistBackupError",
    "ConfigError",
    "SourceError",
    "ExportError",
    "RootMismatchError",
    "BatchApplyConflictError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_export_failure",
    "shutdown_logging",
]

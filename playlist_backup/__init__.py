r"""
playlist-backup: Periodic M3U8 snapshots of a media library host's playlists.

This package exports selected playlists of a running library host to
portable .m3u8 files, optionally rewriting every track path relative to a
configurable root so the files stay valid when the collection is moved or
mirrored to another machine.

Architecture:
    SettingsStore (core/)      immutable Settings, YAML persistence
    PlaylistSource (source/)   read-only view of the host's playlists
    export/
        PathResolver           base dir resolution, relative track paths
        build_plans()          Settings + snapshot -> ExportPlan list
        M3U8Writer             ExportPlan -> .m3u8 file
        BackupOrchestrator     perform_backup(trigger), one run at a time
    Scheduler                  interval timer and shutdown backup
    validation                 relative root vs. real track check
    editor                     settings editing operations
    cli.py                     command-line editor and host lifecycle

Usage:
    Command Line:
        playlist-backup --library ~/Music/Playlists sync
        playlist-backup --library ~/Music/Playlists enable "Favorites\Top"
        playlist-backup --library ~/Music/Playlists backup
        playlist-backup --library ~/Music/Playlists watch

    Python API:
        from playlist_backup import (
            BackupOrchestrator, InMemoryPlaylistSource, PathResolver,
            Scheduler, SettingsStore, Trigger
        )

        store = SettingsStore.load()
        orchestrator = BackupOrchestrator(source, lambda: store.current, PathResolver(base_dir))
        scheduler = Scheduler(orchestrator, lambda: store.current)
        store.subscribe(scheduler.apply)
        scheduler.apply(store.current)
        ...
        scheduler.shutdown()

Dependencies:
    - pyyaml: Settings file
    - rich-click: CLI framework and colors
    - tqdm: Progress bars and tqdm-safe console logging
    - apscheduler: Interval backup timer
"""

__version__ = "0.1.0"
__author__ = "playlist-backup"
__license__ = "MIT"

from playlist_backup.core import (
    ConfigError,
    ExportError,
    PlaylistBackupError,
    PlaylistSetting,
    RootMismatchError,
    Settings,
    SettingsStore,
    SourceError,
    get_logger,
    setup_logging,
)
from playlist_backup.export import BackupOrchestrator, BackupReport, PathResolver, Trigger
from playlist_backup.scheduler import Scheduler, SchedulerState
from playlist_backup.source import FolderPlaylistSource, InMemoryPlaylistSource, PlaylistSource

__all__ = [
    # Version
    "__version__",
    # Core
    "Settings",
    "PlaylistSetting",
    "SettingsStore",
    "setup_logging",
    "get_logger",
    # Exceptions
    "PlaylistBackupError",
    "ConfigError",
    "SourceError",
    "ExportError",
    "RootMismatchError",
    # Pipeline
    "BackupOrchestrator",
    "BackupReport",
    "PathResolver",
    "Trigger",
    "Scheduler",
    "SchedulerState",
    # Sources
    "PlaylistSource",
    "FolderPlaylistSource",
    "InMemoryPlaylistSource",
]

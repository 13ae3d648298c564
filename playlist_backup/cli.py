r"""
Command-line interface for playlist-backup.

This module implements the CLI using Click (rich-click for colors). It is
both the configuration editor and the host lifecycle surface: `watch` keeps
the interval timer running until interrupted and runs the shutdown backup
on exit.

Commands:
    playlist-backup backup                     Run one backup now
    playlist-backup watch                      Run interval backups until stopped
    playlist-backup list                       Show host playlists and their settings
    playlist-backup sync                       Align settings with host playlists
    playlist-backup enable NAME...             Include playlists in backups
    playlist-backup disable NAME...            Exclude playlists from backups
    playlist-backup set-path NAME PATH         Export directory of one playlist
    playlist-backup set-root NAME ROOT         Relative root of one playlist
    playlist-backup apply-path|apply-root      Copy the one set value to all enabled
    playlist-backup clear-path|clear-root      Clear the value on all enabled
    playlist-backup schedule ...               Interval and shutdown triggers
    playlist-backup options ...                Default path, path mode, policy, language
    playlist-backup validate                   Check relative roots against real tracks
    playlist-backup show                       Print current settings
    playlist-backup reset                      Delete the settings file

Global Options:
    --settings <file>      Settings file (env PLAYLIST_BACKUP_SETTINGS)
    --library <dir>        Host playlist folder (env PLAYLIST_BACKUP_LIBRARY)
    --base-dir <dir>       Base for relative settings paths (env PLAYLIST_BACKUP_BASE_DIR)
    --log-dir <dir>        Where the logs/ directory is created

Usage:
    playlist-backup --library ~/Music/Playlists sync
    playlist-backup --library ~/Music/Playlists enable "Favorites\Top"
    playlist-backup --library ~/Music/Playlists set-root "Favorites\Top" D:\Music
    playlist-backup --library ~/Music/Playlists schedule --days 1 --enable
    playlist-backup --library ~/Music/Playlists watch

Exit Codes:
    1  Configuration error
    2  Relative root mismatch (block policy)
    3  Batch apply conflict
    4  Other playlist-backup error
    130 Interrupted
"""

import functools
import logging
import os
import signal
import sys
import threading
from dataclasses import replace
from pathlib import Path

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.MAX_WIDTH = 100
_COMMAND_GROUPS = [
    {
        "name": "Backup",
        "commands": ["backup", "watch"],
    },
    {
        "name": "Playlists",
        "commands": [
            "list", "sync", "enable", "disable", "set-path", "set-root",
            "apply-path", "apply-root", "clear-path", "clear-root",
        ],
    },
    {
        "name": "Settings",
        "commands": ["schedule", "options", "validate", "show", "reset"],
    },
]
click.rich_click.COMMAND_GROUPS = {
    "playlist-backup": _COMMAND_GROUPS,
    "cli": _COMMAND_GROUPS,
}

from playlist_backup import __version__
from playlist_backup.core import (
    BatchApplyConflictError,
    ConfigError,
    Language,
    MismatchPolicy,
    PlaylistBackupError,
    RelativePathMode,
    Settings,
    SettingsStore,
    default_settings_path,
    get_logger,
    load_settings,
    setup_logging,
    shutdown_logging,
    split_interval,
)
from playlist_backup.core.exceptions import RootMismatchError
from playlist_backup.editor import (
    PlaylistField,
    batch_apply,
    batch_clear,
    merge_with_source,
    set_enabled,
    set_interval,
    set_playlist_path,
)
from playlist_backup.export import BackupOrchestrator, PathResolver, Trigger
from playlist_backup.scheduler import Scheduler
from playlist_backup.source import FolderPlaylistSource, PlaylistSource
from playlist_backup.validation import validate_settings

logger = get_logger(__name__)


# Seconds between checks of the settings file while watching
DEFAULT_RELOAD_SECONDS = 5.0


class AppContext:
    """
    Objects shared by all commands of one CLI invocation.

    Attributes:
        store: Published settings.
        resolver: PathResolver bound to the base directory.
        library: Host playlist folder, or None when not given.
    """

    def __init__(self, store: SettingsStore, resolver: PathResolver, library: Path | None) -> None:
        self.store = store
        self.resolver = resolver
        self.library = library
        self._source: PlaylistSource | None = None

    @property
    def has_source(self) -> bool:
        return self.library is not None

    @property
    def source(self) -> PlaylistSource:
        if self.library is None:
            raise click.UsageError("This command needs --library (or PLAYLIST_BACKUP_LIBRARY)")
        if self._source is None:
            self._source = FolderPlaylistSource(self.library)
        return self._source

    def orchestrator(self) -> BackupOrchestrator:
        return BackupOrchestrator(self.source, lambda: self.store.current, self.resolver)

    def publish(self, settings: Settings, check_roots: bool = False) -> Settings:
        """
        Run the pre-save check (when asked and possible), then publish and save.

        Raises:
            RootMismatchError: Under the block policy; nothing is saved.
        """
        if check_roots and self.has_source:
            validate_settings(settings, self.source, self.resolver)
        elif check_roots:
            logger.debug("No library given, skipping relative root check")
        return self.store.replace(settings)


pass_app = click.make_pass_decorator(AppContext)


def handle_errors(command):
    """Map playlist-backup errors to messages and exit codes."""

    @functools.wraps(command)
    def wrapper(*args, **kwargs):
        try:
            return command(*args, **kwargs)

        except ConfigError as e:
            click.echo(f"Configuration error: {e.message}", err=True)
            sys.exit(1)

        except RootMismatchError as e:
            click.echo(f"Relative root mismatch: {e.message}", err=True)
            for mismatch in e.mismatches:
                click.echo(f"  - {mismatch.describe()}", err=True)
            click.echo("Settings were not saved.", err=True)
            sys.exit(2)

        except BatchApplyConflictError as e:
            values = ", ".join(e.details.get("values", []))
            click.echo(f"Conflict: {e.message} ({values})", err=True)
            sys.exit(3)

        except PlaylistBackupError as e:
            click.echo(f"Error: {e.message}", err=True)
            logger.error(f"Error: {e.message}", exc_info=True)
            sys.exit(4)

        except KeyboardInterrupt:
            click.echo("\nInterrupted by user", err=True)
            logger.info("Interrupted by user")
            sys.exit(130)

    return wrapper


@click.group()
@click.option(
    "--settings", "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="PLAYLIST_BACKUP_SETTINGS",
    default=None,
    metavar="<file>",
    help="Settings file (default: ~/.playlist-backup/playlist_backup.yaml)"
)
@click.option(
    "--library",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="PLAYLIST_BACKUP_LIBRARY",
    default=None,
    metavar="<dir>",
    help="Host playlist folder to read playlists from"
)
@click.option(
    "--base-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="PLAYLIST_BACKUP_BASE_DIR",
    default=None,
    metavar="<dir>",
    help="Base directory for relative paths in settings (default: current directory)"
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<dir>",
    help="Directory for the logs/ folder (default: next to the settings file)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Show debug messages on the console"
)
@click.version_option(__version__, prog_name="playlist-backup")
@click.pass_context
def cli(
    ctx: click.Context,
    settings_path: Path | None,
    library: Path | None,
    base_dir: Path | None,
    log_dir: Path | None,
    verbose: bool
) -> None:
    r"""
    playlist-backup: Export media library playlists to portable M3U8 files.

    \b
    FIRST SETUP:
        playlist-backup --library DIR sync           # Import host playlists
        playlist-backup --library DIR enable NAME    # Choose what to back up
        playlist-backup --library DIR backup         # Export now

    \b
    RELATIVE PATHS:
        playlist-backup --library DIR set-root NAME D:\Music
        playlist-backup options --mode common_ancestor
    """
    settings_path = settings_path or default_settings_path()
    log_dir = log_dir or settings_path.parent

    setup_logging(log_dir, console_level=logging.DEBUG if verbose else logging.INFO)
    ctx.call_on_close(shutdown_logging)

    store = SettingsStore.load(settings_path)
    resolver = PathResolver(base_dir if base_dir is not None else Path.cwd())
    ctx.obj = AppContext(store, resolver, library)


# =============================================================================
# Backup
# =============================================================================


@cli.command()
@pass_app
@handle_errors
def backup(app: AppContext) -> None:
    """Run one backup of all enabled playlists now."""
    report = app.orchestrator().perform_backup(Trigger.MANUAL, show_progress=True)

    for path in report.written:
        click.echo(f"  updated   {path}")
    for path in report.unchanged:
        click.echo(f"  unchanged {path}")
    for name in report.failed:
        click.echo(f"  failed    {name}", err=True)
    for name in report.skipped:
        click.echo(f"  not found {name}")

    click.echo(f"Backup complete: {report.summary()}")


@cli.command()
@click.option(
    "--reload-seconds",
    type=float,
    default=DEFAULT_RELOAD_SECONDS,
    show_default=True,
    help="How often to check the settings file for changes"
)
@pass_app
@handle_errors
def watch(app: AppContext, reload_seconds: float) -> None:
    """
    Keep the interval timer running until interrupted.

    Changes saved to the settings file by other invocations are picked up
    and re-arm the timer. On exit the shutdown backup runs if enabled.
    """
    store = app.store
    scheduler = Scheduler(app.orchestrator(), lambda: store.current)
    store.subscribe(scheduler.apply)
    stop = threading.Event()

    # SIGTERM from a service manager ends the loop like Ctrl+C does
    signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())

    with scheduler:
        state = scheduler.apply(store.current)
        click.echo(f"Watching ({state.value}). Press Ctrl+C to stop.")
        last_mtime = _mtime(store.path)

        try:
            while not stop.wait(reload_seconds):
                mtime = _mtime(store.path)
                if mtime != last_mtime:
                    last_mtime = mtime
                    logger.info("Settings file changed, reloading")
                    store.replace(load_settings(store.path), persist=False)
        except KeyboardInterrupt:
            click.echo("\nStopping...")


def _mtime(path: Path) -> float | None:
    try:
        return os.stat(path).st_mtime
    except OSError:
        return None


# =============================================================================
# Playlists
# =============================================================================


@cli.command("list")
@pass_app
@handle_errors
def list_playlists(app: AppContext) -> None:
    """Show host playlists with their backup settings."""
    settings = app.store.current
    playlists = app.source.list_playlists()

    if not playlists:
        click.echo("No playlists found.")
        return

    for info in playlists:
        entry = settings.find_playlist(info.name)
        marker = "[x]" if entry is not None and entry.enabled else "[ ]"
        line = f"{marker} {info.name} ({info.kind.value})"
        if entry is not None and entry.custom_export_path:
            line += f"  export: {entry.custom_export_path}"
        if entry is not None and entry.custom_root_path:
            line += f"  root: {entry.custom_root_path}"
        click.echo(line)


@cli.command()
@pass_app
@handle_errors
def sync(app: AppContext) -> None:
    """Align the settings with the host's current playlists."""
    settings = merge_with_source(app.store.current, app.source)
    app.publish(settings, check_roots=True)
    click.echo(f"{len(settings.playlists)} playlists in settings.")


@cli.command()
@click.argument("names", nargs=-1, required=True)
@pass_app
@handle_errors
def enable(app: AppContext, names: tuple[str, ...]) -> None:
    """Include playlists in backups."""
    app.publish(set_enabled(app.store.current, names, True), check_roots=True)
    click.echo(f"Enabled {len(names)} playlist(s).")


@cli.command()
@click.argument("names", nargs=-1, required=True)
@pass_app
@handle_errors
def disable(app: AppContext, names: tuple[str, ...]) -> None:
    """Exclude playlists from backups."""
    app.publish(set_enabled(app.store.current, names, False))
    click.echo(f"Disabled {len(names)} playlist(s).")


@cli.command("set-path")
@click.argument("name")
@click.argument("path", default="")
@pass_app
@handle_errors
def set_path(app: AppContext, name: str, path: str) -> None:
    """Set (or clear, when PATH is omitted) the export directory of a playlist."""
    app.publish(set_playlist_path(app.store.current, name, PlaylistField.EXPORT_PATH, path))
    click.echo(f"Export path of '{name}': {path or '(default)'}")


@cli.command("set-root")
@click.argument("name")
@click.argument("root", default="")
@pass_app
@handle_errors
def set_root(app: AppContext, name: str, root: str) -> None:
    """Set (or clear, when ROOT is omitted) the relative root of a playlist."""
    settings = set_playlist_path(app.store.current, name, PlaylistField.ROOT_PATH, root)
    app.publish(settings, check_roots=True)
    click.echo(f"Relative root of '{name}': {root or '(absolute paths)'}")


def _batch_command(name: str, path_field: PlaylistField, clear: bool, help_text: str):
    @cli.command(name, help=help_text)
    @pass_app
    @handle_errors
    def command(app: AppContext) -> None:
        current = app.store.current
        if clear:
            settings = batch_clear(current, path_field)
        else:
            settings = batch_apply(current, path_field)
        app.publish(settings, check_roots=path_field == PlaylistField.ROOT_PATH and not clear)
        click.echo(f"Updated {len(settings.enabled_playlists())} enabled playlist(s).")

    return command


apply_path = _batch_command(
    "apply-path", PlaylistField.EXPORT_PATH, False,
    "Copy the one export path set among enabled playlists to all of them."
)
apply_root = _batch_command(
    "apply-root", PlaylistField.ROOT_PATH, False,
    "Copy the one relative root set among enabled playlists to all of them."
)
clear_path = _batch_command(
    "clear-path", PlaylistField.EXPORT_PATH, True,
    "Clear the export path of all enabled playlists."
)
clear_root = _batch_command(
    "clear-root", PlaylistField.ROOT_PATH, True,
    "Clear the relative root of all enabled playlists."
)


# =============================================================================
# Settings
# =============================================================================


@cli.command()
@click.option("--days", type=click.IntRange(min=0), default=None, help="Interval days")
@click.option("--hours", type=click.IntRange(min=0), default=None, help="Interval hours")
@click.option("--minutes", type=click.IntRange(min=0), default=None, help="Interval minutes")
@click.option("--enable/--disable", "enabled", default=None, help="Turn interval backups on or off")
@click.option(
    "--on-shutdown/--no-on-shutdown", "on_shutdown",
    default=None,
    help="Back up when the host shuts down"
)
@pass_app
@handle_errors
def schedule(
    app: AppContext,
    days: int | None,
    hours: int | None,
    minutes: int | None,
    enabled: bool | None,
    on_shutdown: bool | None
) -> None:
    """Configure interval and shutdown backups."""
    settings = app.store.current

    if any(part is not None for part in (days, hours, minutes)):
        settings = set_interval(settings, days or 0, hours or 0, minutes or 0, enabled)
    elif enabled is not None:
        settings = set_interval(settings, *split_interval(settings.interval_minutes), enabled)

    if on_shutdown is not None:
        settings = replace(settings, backup_on_shutdown=on_shutdown)

    app.publish(settings)
    click.echo(_describe_schedule(settings))


@cli.command()
@click.option(
    "--mode",
    type=click.Choice([m.value for m in RelativePathMode]),
    default=None,
    help="Relative path strategy"
)
@click.option(
    "--policy",
    type=click.Choice([p.value for p in MismatchPolicy]),
    default=None,
    help="What to do when a relative root does not match the tracks"
)
@click.option("--default-path", type=str, default=None, help="Default export directory")
@click.option(
    "--language",
    type=click.Choice([lang.value for lang in Language]),
    default=None,
    help="Editor language"
)
@click.option("--skin-theme/--no-skin-theme", default=None, help="Editor theme")
@pass_app
@handle_errors
def options(
    app: AppContext,
    mode: str | None,
    policy: str | None,
    default_path: str | None,
    language: str | None,
    skin_theme: bool | None
) -> None:
    """Change general settings."""
    changes: dict = {}
    if mode is not None:
        changes["relative_path_mode"] = RelativePathMode(mode)
    if policy is not None:
        changes["root_mismatch_policy"] = MismatchPolicy(policy)
    if default_path is not None:
        changes["default_export_path"] = default_path
    if language is not None:
        changes["language"] = Language(language)
    if skin_theme is not None:
        changes["use_skin_theme"] = skin_theme

    if not changes:
        raise click.UsageError("Nothing to change. See --help for options.")

    app.publish(replace(app.store.current, **changes))
    click.echo("Settings saved.")


@cli.command()
@click.option(
    "--policy",
    type=click.Choice([p.value for p in MismatchPolicy]),
    default=None,
    help="Override the configured mismatch policy"
)
@pass_app
@handle_errors
def validate(app: AppContext, policy: str | None) -> None:
    """Check every relative root against the playlist's first track."""
    mismatches = validate_settings(
        app.store.current,
        app.source,
        app.resolver,
        MismatchPolicy(policy) if policy else None
    )
    if not mismatches:
        click.echo("All relative roots match their playlists.")
        return
    for mismatch in mismatches:
        click.echo(f"Warning: {mismatch.describe()}")


@cli.command()
@pass_app
@handle_errors
def show(app: AppContext) -> None:
    """Print the current settings."""
    settings = app.store.current
    click.echo(f"Settings file:      {app.store.path}")
    click.echo(f"Language:           {settings.language.value}")
    click.echo(f"Default export:     {settings.default_export_path}")
    click.echo(f"Relative path mode: {settings.relative_path_mode.value}")
    click.echo(f"Mismatch policy:    {settings.root_mismatch_policy.value}")
    click.echo(_describe_schedule(settings))
    click.echo(f"Playlists:          {len(settings.playlists)} "
               f"({len(settings.enabled_playlists())} enabled)")
    for playlist in settings.playlists:
        marker = "[x]" if playlist.enabled else "[ ]"
        click.echo(f"  {marker} {playlist.name}")


@cli.command()
@click.confirmation_option(prompt="Delete the settings file?")
@pass_app
@handle_errors
def reset(app: AppContext) -> None:
    """Delete the settings file (uninstall)."""
    if app.store.delete():
        click.echo(f"Deleted {app.store.path}")
    else:
        click.echo("No settings file to delete.")


def _describe_schedule(settings: Settings) -> str:
    days, hours, minutes = split_interval(settings.interval_minutes)
    interval = f"every {days}d {hours}h {minutes}m"
    state = "on" if settings.interval_armed else "off"
    shutdown = "on" if settings.backup_on_shutdown else "off"
    return f"Interval backup:    {state} ({interval}), on shutdown: {shutdown}"


def main() -> None:
    """Entry point for the playlist-backup console script."""
    cli()


if __name__ == "__main__":
    main()

"""
Settings management for playlist-backup.

This module handles loading, validating, saving and publishing the
application settings stored in a YAML document.

The settings file contains:
    - UI preferences (language, skin theme) kept for the editor
    - Backup triggers (on shutdown, recurring interval)
    - Default export directory
    - Relative path strategy and root mismatch policy
    - One entry per host playlist (enabled flag, export path, relative root)

Settings File Location:
    ~/.playlist-backup/playlist_backup.yaml by default. The host (or the
    PLAYLIST_BACKUP_SETTINGS environment variable) may point elsewhere.

Example playlist_backup.yaml:
    language: EN
    use_skin_theme: false
    backup_on_shutdown: true
    enable_interval_backup: true
    interval_minutes: 1440
    default_export_path: ./PlaylistsBackup
    relative_path_mode: prefix
    root_mismatch_policy: warn
    playlists:
      - name: Favorites\\Top
        enabled: true
        custom_export_path: ""
        custom_root_path: D:\\Music

Settings values are frozen dataclasses. Editing produces a new value with
dataclasses.replace() and publishes it through SettingsStore.replace(), so a
backup running in the scheduler thread never sees a half-edited object.
"""

import os
import threading
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import yaml

from playlist_backup.core.exceptions import ConfigError
from playlist_backup.core.logger import get_logger

logger = get_logger(__name__)


SETTINGS_FILENAME = "playlist_backup.yaml"
DEFAULT_SETTINGS_DIR = Path.home() / ".playlist-backup"
SETTINGS_PATH_ENV = "PLAYLIST_BACKUP_SETTINGS"

DEFAULT_INTERVAL_MINUTES = 1440
DEFAULT_EXPORT_PATH = ".\\PlaylistsBackup"

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR


class Language(str, Enum):
    """Editor language. Has no effect on exports."""
    EN = "EN"
    CN = "CN"


class RelativePathMode(str, Enum):
    """
    Strategy used to turn an absolute track path into a root-relative one.

    PREFIX: strip the root when the track path starts with it.
    COMMON_ANCESTOR: walk up from the root with '..' to the deepest
                     shared directory, then down to the track.
    """
    PREFIX = "prefix"
    COMMON_ANCESTOR = "common_ancestor"


class MismatchPolicy(str, Enum):
    """What the validator does when a relative root does not contain the tracks."""
    WARN = "warn"
    BLOCK = "block"


@dataclass(frozen=True)
class PlaylistSetting:
    """
    Backup configuration for one host playlist.

    Attributes:
        name: Fully-qualified host playlist name (e.g. "Favorites\\Top").
              This is the key used to match live playlists.
        enabled: Whether the playlist is exported on each run.
        custom_export_path: Export directory override. Blank means the
                            default export path is used.
        custom_root_path: Relative root. Blank means absolute paths are
                          written; anything else switches to relative mode.
    """
    name: str
    enabled: bool = False
    custom_export_path: str = ""
    custom_root_path: str = ""

    @property
    def uses_relative_paths(self) -> bool:
        return bool(self.custom_root_path.strip())


@dataclass(frozen=True)
class Settings:
    """
    Complete application settings.

    Treat as immutable. Use dataclasses.replace() to derive an edited copy
    and SettingsStore.replace() to publish it.

    Attributes:
        language: Editor language.
        use_skin_theme: Editor theme flag.
        backup_on_shutdown: Run one backup when the host shuts down.
        enable_interval_backup: Run backups on a recurring timer.
        interval_minutes: Timer period. The timer is armed only when
                          enable_interval_backup is set and this is > 0.
        default_export_path: Export directory for playlists without override.
        relative_path_mode: Strategy for root-relative track paths.
        root_mismatch_policy: Validator policy when a root does not match.
        playlists: Ordered playlist entries.
    """
    language: Language = Language.CN
    use_skin_theme: bool = False
    backup_on_shutdown: bool = False
    enable_interval_backup: bool = False
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    default_export_path: str = DEFAULT_EXPORT_PATH
    relative_path_mode: RelativePathMode = RelativePathMode.PREFIX
    root_mismatch_policy: MismatchPolicy = MismatchPolicy.WARN
    playlists: tuple[PlaylistSetting, ...] = field(default_factory=tuple)

    @property
    def interval_armed(self) -> bool:
        return self.enable_interval_backup and self.interval_minutes > 0

    def find_playlist(self, name: str) -> PlaylistSetting | None:
        """Return the first playlist entry with this name, or None."""
        for playlist in self.playlists:
            if playlist.name == name:
                return playlist
        return None

    def enabled_playlists(self) -> list[PlaylistSetting]:
        return [p for p in self.playlists if p.enabled]


def split_interval(total_minutes: int) -> tuple[int, int, int]:
    """
    Split an interval in minutes into (days, hours, minutes).

    Example:
        split_interval(1530)  # (1, 1, 30)
    """
    total_minutes = max(total_minutes, 0)
    days = total_minutes // MINUTES_PER_DAY
    hours = (total_minutes % MINUTES_PER_DAY) // MINUTES_PER_HOUR
    minutes = total_minutes % MINUTES_PER_HOUR
    return days, hours, minutes


def join_interval(days: int = 0, hours: int = 0, minutes: int = 0) -> int:
    """Combine days, hours and minutes into a total number of minutes."""
    if days < 0 or hours < 0 or minutes < 0:
        raise ConfigError(
            "Interval parts must not be negative",
            details={"days": days, "hours": hours, "minutes": minutes}
        )
    return days * MINUTES_PER_DAY + hours * MINUTES_PER_HOUR + minutes


def default_settings_path() -> Path:
    """Settings path from PLAYLIST_BACKUP_SETTINGS, or the per-user default."""
    override = os.getenv(SETTINGS_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return DEFAULT_SETTINGS_DIR / SETTINGS_FILENAME


# =============================================================================
# Parsing and serialization
# =============================================================================


def parse_settings(raw: Any) -> Settings:
    """
    Build a Settings value from the parsed YAML document.

    Unknown keys are ignored. Missing keys take their default.

    Args:
        raw: Object returned by yaml.safe_load(). None means an empty file.

    Returns:
        Settings: Validated, frozen settings.

    Raises:
        ConfigError: If the document is not a mapping or a value has the
                     wrong type.
    """
    if raw is None:
        return Settings()

    if not isinstance(raw, dict):
        raise ConfigError("Settings file must contain a YAML dictionary")

    defaults = Settings()

    return Settings(
        language=_parse_enum(raw, "language", Language, defaults.language),
        use_skin_theme=_parse_bool(raw, "use_skin_theme", defaults.use_skin_theme),
        backup_on_shutdown=_parse_bool(raw, "backup_on_shutdown", defaults.backup_on_shutdown),
        enable_interval_backup=_parse_bool(
            raw, "enable_interval_backup", defaults.enable_interval_backup
        ),
        interval_minutes=_parse_interval(raw, defaults.interval_minutes),
        default_export_path=_parse_str(raw, "default_export_path", defaults.default_export_path),
        relative_path_mode=_parse_enum(
            raw, "relative_path_mode", RelativePathMode, defaults.relative_path_mode
        ),
        root_mismatch_policy=_parse_enum(
            raw, "root_mismatch_policy", MismatchPolicy, defaults.root_mismatch_policy
        ),
        playlists=_parse_playlists(raw.get("playlists")),
    )


def _parse_bool(raw: dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(
            f"'{key}' must be true or false",
            details={"field": key, "value": value}
        )
    return value


def _parse_str(raw: dict[str, Any], key: str, default: str) -> str:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigError(
            f"'{key}' must be a string",
            details={"field": key, "value": value}
        )
    return value


def _parse_enum(raw: dict[str, Any], key: str, enum_type: type[Enum], default: Enum) -> Any:
    value = raw.get(key)
    if value is None:
        return default
    try:
        return enum_type(value)
    except ValueError as e:
        choices = ", ".join(member.value for member in enum_type)
        raise ConfigError(
            f"'{key}' must be one of: {choices}",
            details={"field": key, "value": value}
        ) from e


def _parse_interval(raw: dict[str, Any], default: int) -> int:
    value = raw.get("interval_minutes")
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(
            "'interval_minutes' must be a non-negative integer",
            details={"field": "interval_minutes", "value": value}
        )
    return value


def _parse_playlists(section: Any) -> tuple[PlaylistSetting, ...]:
    if section is None:
        return ()

    if not isinstance(section, list):
        raise ConfigError("'playlists' must be a list")

    playlists = []
    for index, entry in enumerate(section):
        if not isinstance(entry, dict):
            raise ConfigError(
                "Each playlist entry must be a dictionary",
                details={"index": index}
            )

        name = entry.get("name")
        if not isinstance(name, str) or not name:
            raise ConfigError(
                "Playlist entry needs a non-empty 'name'",
                details={"index": index}
            )

        playlists.append(
            PlaylistSetting(
                name=name,
                enabled=_parse_bool(entry, "enabled", False),
                custom_export_path=_parse_str(entry, "custom_export_path", ""),
                custom_root_path=_parse_str(entry, "custom_root_path", ""),
            )
        )

    return tuple(playlists)


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Convert Settings to plain YAML-friendly data."""
    data = asdict(settings)
    data["language"] = settings.language.value
    data["relative_path_mode"] = settings.relative_path_mode.value
    data["root_mismatch_policy"] = settings.root_mismatch_policy.value
    data["playlists"] = [asdict(p) for p in settings.playlists]
    return data


def load_settings(path: Path) -> Settings:
    """
    Load settings from a YAML file, falling back to defaults.

    A missing, unreadable or invalid file never stops startup: the problem
    is logged and default settings are returned.

    Args:
        path: Settings file location.

    Returns:
        Settings: Parsed settings, or Settings() on any failure.
    """
    if not path.exists():
        logger.debug(f"No settings file at {path}, using defaults")
        return Settings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        return parse_settings(raw)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read settings from {path}: {e}. Using defaults")
    except ConfigError as e:
        logger.warning(f"Invalid settings in {path}: {e.message}. Using defaults")

    return Settings()


def save_settings(settings: Settings, path: Path) -> None:
    """
    Write settings to a YAML file atomically.

    The document is written to a temporary sibling file first and then
    moved over the target, so a crash never leaves a truncated file.

    Raises:
        ConfigError: If the file cannot be written.
    """
    temp_path = path.with_name(f".{path.name}.tmp")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                settings_to_dict(settings),
                f,
                allow_unicode=True,
                default_flow_style=False,
                sort_keys=False,
            )
        os.replace(temp_path, path)
    except OSError as e:
        raise ConfigError(
            f"Failed to save settings to {path}: {e}",
            details={"file_path": str(path), "original_error": str(e)}
        ) from e


# =============================================================================
# Published settings
# =============================================================================


SettingsListener = Callable[[Settings], None]


class SettingsStore:
    """
    Holds the current Settings value for the process.

    Readers call `current` and keep the returned object for as long as they
    need a consistent view. The editor publishes a new value with replace(),
    which swaps the reference, persists it and notifies listeners (the
    scheduler re-arms its timer there).

    Attributes:
        path: Settings file location.
    """

    def __init__(self, path: Path, settings: Settings | None = None) -> None:
        self.path = path
        self._settings = settings if settings is not None else Settings()
        self._lock = threading.Lock()
        self._listeners: list[SettingsListener] = []

    @classmethod
    def load(cls, path: Path | None = None) -> "SettingsStore":
        """Create a store from the settings file (defaults if unusable)."""
        path = path or default_settings_path()
        return cls(path, load_settings(path))

    @property
    def current(self) -> Settings:
        with self._lock:
            return self._settings

    def subscribe(self, listener: SettingsListener) -> None:
        """Register a callback invoked with every newly published value."""
        with self._lock:
            self._listeners.append(listener)

    def replace(self, settings: Settings, persist: bool = True) -> Settings:
        """
        Publish a new settings value.

        Args:
            settings: The fully-formed new value.
            persist: Save to disk after publishing. Default True.

        Returns:
            The published value.

        Raises:
            ConfigError: If persisting fails. The new value stays published.
        """
        with self._lock:
            self._settings = settings
            listeners = list(self._listeners)

        for listener in listeners:
            listener(settings)

        if persist:
            save_settings(settings, self.path)

        return settings

    def update(self, editor: Callable[[Settings], Settings], persist: bool = True) -> Settings:
        """Apply an editing function to the current value and publish the result."""
        return self.replace(editor(self.current), persist=persist)

    def save(self) -> None:
        save_settings(self.current, self.path)

    def delete(self) -> bool:
        """
        Remove the settings file (uninstall).

        Returns:
            True if a file was removed, False if none existed.
        """
        if not self.path.exists():
            return False
        self.path.unlink()
        logger.info(f"Removed settings file {self.path}")
        return True

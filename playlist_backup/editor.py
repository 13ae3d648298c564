"""
Settings editing operations.

Every function takes a Settings value and returns a new one; nothing is
modified in place. Publish the result with SettingsStore.replace() (or
SettingsStore.update(), which does both).

Operations:
    - merge_with_source(): align the playlist list with the host's playlists
    - set_enabled(), set_playlist_path(): per playlist edits
    - batch_apply(), batch_clear(): one value for all enabled playlists
    - set_interval(): interval from days, hours and minutes
"""

from dataclasses import replace
from enum import Enum
from typing import Iterable

from playlist_backup.core.config import PlaylistSetting, Settings, join_interval
from playlist_backup.core.exceptions import BatchApplyConflictError
from playlist_backup.source.base import PlaylistKind, PlaylistSource


class PlaylistField(str, Enum):
    """Per playlist path fields that support batch editing."""
    EXPORT_PATH = "custom_export_path"
    ROOT_PATH = "custom_root_path"


def merge_with_source(settings: Settings, source: PlaylistSource) -> Settings:
    """
    Rebuild the playlist list from the host's current playlists.

    Each live playlist keeps its saved entry when one exists; new ones are
    added disabled. Static playlists come first, then auto playlists, each
    group in host order. Entries for playlists the host no longer has are
    dropped.
    """
    static_entries: list[PlaylistSetting] = []
    auto_entries: list[PlaylistSetting] = []
    seen: set[str] = set()

    for info in source.list_playlists():
        if info.name in seen:
            continue
        seen.add(info.name)

        entry = settings.find_playlist(info.name) or PlaylistSetting(name=info.name)
        if info.kind == PlaylistKind.AUTO:
            auto_entries.append(entry)
        else:
            static_entries.append(entry)

    return replace(settings, playlists=tuple(static_entries + auto_entries))


def set_enabled(settings: Settings, names: Iterable[str], enabled: bool) -> Settings:
    """Enable or disable playlists by name, adding entries for unknown names."""
    return _edit_playlists(settings, names, enabled=enabled)


def set_playlist_path(
    settings: Settings,
    name: str,
    path_field: PlaylistField,
    value: str
) -> Settings:
    """Set the export directory or relative root of one playlist."""
    return _edit_playlists(settings, [name], **{PlaylistField(path_field).value: value})


def batch_apply(settings: Settings, path_field: PlaylistField) -> Settings:
    """
    Copy the single value set among enabled playlists to all enabled playlists.

    Blank values are ignored when collecting. With no value set nothing
    changes.

    Raises:
        BatchApplyConflictError: If enabled playlists carry more than one
                                 distinct non-blank value.
    """
    attribute = PlaylistField(path_field).value
    enabled = settings.enabled_playlists()

    values: list[str] = []
    for playlist in enabled:
        value = getattr(playlist, attribute)
        if value.strip() and value not in values:
            values.append(value)

    if len(values) > 1:
        raise BatchApplyConflictError(
            "Enabled playlists have different values, cannot apply one to all",
            details={"field": attribute, "values": values}
        )

    if not values:
        return settings

    return replace(
        settings,
        playlists=tuple(
            replace(p, **{attribute: values[0]}) if p.enabled else p
            for p in settings.playlists
        )
    )


def batch_clear(settings: Settings, path_field: PlaylistField) -> Settings:
    """Clear the export directory or relative root of all enabled playlists."""
    attribute = PlaylistField(path_field).value
    return replace(
        settings,
        playlists=tuple(
            replace(p, **{attribute: ""}) if p.enabled else p
            for p in settings.playlists
        )
    )


def set_interval(
    settings: Settings,
    days: int = 0,
    hours: int = 0,
    minutes: int = 0,
    enabled: bool | None = None
) -> Settings:
    """
    Set the backup interval from its parts.

    Args:
        days, hours, minutes: Interval parts, combined into minutes.
        enabled: New enable_interval_backup value, or None to keep it.

    Raises:
        ConfigError: If any part is negative.
    """
    changes: dict = {"interval_minutes": join_interval(days, hours, minutes)}
    if enabled is not None:
        changes["enable_interval_backup"] = enabled
    return replace(settings, **changes)


def _edit_playlists(settings: Settings, names: Iterable[str], **changes) -> Settings:
    targets = list(dict.fromkeys(names))
    playlists = list(settings.playlists)
    known = {p.name for p in playlists}

    playlists = [
        replace(p, **changes) if p.name in targets else p
        for p in playlists
    ]

    for name in targets:
        if name not in known:
            playlists.append(replace(PlaylistSetting(name=name), **changes))

    return replace(settings, playlists=tuple(playlists))

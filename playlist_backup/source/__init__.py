"""
Playlist sources for playlist-backup.

A source is the backup's only view of the media library host:
    - base: PlaylistSource contract, PlaylistInfo, InMemoryPlaylistSource
    - folder: FolderPlaylistSource reading a host playlist directory

Usage:
    from playlist_backup.source import FolderPlaylistSource

    source = FolderPlaylistSource(Path("~/Music/Playlists").expanduser())
    for info in source.list_playlists():
        print(info.name, len(source.track_paths(info.identifier)))
"""

from playlist_backup.source.base import (
    InMemoryPlaylistSource,
    PlaylistInfo,
    PlaylistKind,
    PlaylistSource,
)
from playlist_backup.source.folder import FolderPlaylistSource

__all__ = [
    "PlaylistSource",
    "PlaylistInfo",
    "PlaylistKind",
    "InMemoryPlaylistSource",
    "FolderPlaylistSource",
]

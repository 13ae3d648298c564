"""Test configuration and fixtures"""

import ntpath
import os
import tempfile
from pathlib import Path

import pytest

from playlist_backup.core.config import PlaylistSetting, Settings
from playlist_backup.export.paths import PathResolver
from playlist_backup.source.base import InMemoryPlaylistSource, PlaylistKind


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def win_resolver():
    """Resolver with Windows path rules, usable on any platform"""
    return PathResolver(r"C:\Program Files\Host", flavor=ntpath)


@pytest.fixture
def local_resolver(temp_dir):
    """Resolver bound to the temp dir with the platform's path rules"""
    return PathResolver(temp_dir, flavor=os.path)


@pytest.fixture
def music_dir(temp_dir):
    """Absolute directory used as the location of the sample tracks"""
    return str(temp_dir / "Music")


@pytest.fixture
def sample_source(music_dir):
    """Host with two static playlists, one inside a folder, and one auto playlist"""
    return InMemoryPlaylistSource(
        {
            "Road Trip": [
                os.path.join(music_dir, "Rock", "highway.mp3"),
                os.path.join(music_dir, "Pop", "sunny.flac"),
            ],
            "Favorites\\Top": [
                os.path.join(music_dir, "Rock", "anthem.mp3"),
            ],
            "Recently Added": [
                os.path.join(music_dir, "Jazz", "blue.mp3"),
            ],
        },
        kinds={"Recently Added": PlaylistKind.AUTO},
    )


@pytest.fixture
def make_settings():
    """Factory for Settings with playlist entries given as (name, enabled) or PlaylistSetting"""
    def factory(*playlists, **overrides):
        entries = []
        for entry in playlists:
            if isinstance(entry, PlaylistSetting):
                entries.append(entry)
            else:
                name, enabled = entry
                entries.append(PlaylistSetting(name=name, enabled=enabled))
        return Settings(playlists=tuple(entries), **overrides)

    return factory

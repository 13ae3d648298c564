"""
Read-only access to the media library host's playlists.

The backup never talks to the host directly. Everything it needs goes
through the two calls of PlaylistSource:

    list_playlists()         -> [PlaylistInfo(name, identifier, kind), ...]
    track_paths(identifier)  -> [absolute file path, ...] in host order

Any object with these two methods can be injected into the orchestrator,
the validator and the CLI. InMemoryPlaylistSource is the simplest one and
is what embedding hosts and the tests use.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Protocol, Sequence

from playlist_backup.core.exceptions import SourceError


class PlaylistKind(str, Enum):
    """How the host maintains a playlist's membership."""
    STATIC = "static"
    AUTO = "auto"


@dataclass(frozen=True)
class PlaylistInfo:
    r"""
    One playlist as reported by the host.

    Attributes:
        name: Fully-qualified playlist name (e.g. "Favorites\Top").
        identifier: Opaque host handle passed back to track_paths().
        kind: Static (stored membership) or auto (rule-based).
    """
    name: str
    identifier: str
    kind: PlaylistKind = PlaylistKind.STATIC


class PlaylistSource(Protocol):
    """Narrow read-only view of the host's playlists."""

    def list_playlists(self) -> Sequence[PlaylistInfo]:
        ...

    def track_paths(self, identifier: str) -> Sequence[str]:
        ...


class InMemoryPlaylistSource:
    r"""
    PlaylistSource backed by plain Python data.

    The identifier of each playlist is its name.

    Example:
        source = InMemoryPlaylistSource({
            r"Favorites\Top": [r"C:\Music\a.mp3", r"C:\Music\b.mp3"],
        })
        source.track_paths(r"Favorites\Top")
    """

    def __init__(
        self,
        playlists: Mapping[str, Iterable[str]] | None = None,
        kinds: Mapping[str, PlaylistKind] | None = None
    ) -> None:
        self._tracks: dict[str, list[str]] = {}
        self._kinds: dict[str, PlaylistKind] = dict(kinds or {})
        for name, tracks in (playlists or {}).items():
            self._tracks[name] = list(tracks)

    def set_playlist(
        self,
        name: str,
        tracks: Iterable[str],
        kind: PlaylistKind = PlaylistKind.STATIC
    ) -> None:
        """Add or replace a playlist."""
        self._tracks[name] = list(tracks)
        self._kinds[name] = kind

    def remove_playlist(self, name: str) -> None:
        self._tracks.pop(name, None)
        self._kinds.pop(name, None)

    def list_playlists(self) -> list[PlaylistInfo]:
        return [
            PlaylistInfo(name, name, self._kinds.get(name, PlaylistKind.STATIC))
            for name in self._tracks
        ]

    def track_paths(self, identifier: str) -> list[str]:
        try:
            return list(self._tracks[identifier])
        except KeyError as e:
            raise SourceError(
                f"Unknown playlist: {identifier}",
                details={"identifier": identifier}
            ) from e

r"""
PlaylistSource reading a host playlist folder.

Many library hosts keep their playlists as M3U files inside one directory,
with sub-directories acting as playlist folders:

    Playlists/
    ├── Road Trip.m3u8
    └── Favorites/
        ├── Top.m3u
        └── Chill.m3u8

The fully-qualified name of a playlist is its path below the folder with
the extension removed and backslash as folder separator, matching the way
hosts display nested playlists ("Favorites\Top").

Comment lines (#EXTM3U, #EXTINF, ...) and blank lines are skipped. Entries
that are relative are resolved against the playlist file's directory so
track_paths() always returns absolute paths.

This reader is for feeding the backup only; it never writes to the folder.
"""

from pathlib import Path

from playlist_backup.core.exceptions import SourceError
from playlist_backup.core.logger import get_logger
from playlist_backup.source.base import PlaylistInfo, PlaylistKind

logger = get_logger(__name__)


PLAYLIST_EXTENSIONS = (".m3u", ".m3u8")
NAME_SEPARATOR = "\\"


class FolderPlaylistSource:
    """
    Playlists stored as .m3u/.m3u8 files under a root directory.

    Attributes:
        root: The host playlist folder.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def list_playlists(self) -> list[PlaylistInfo]:
        """
        Enumerate playlist files below root, sorted by name.

        Raises:
            SourceError: If the folder does not exist or cannot be listed.
        """
        if not self.root.is_dir():
            raise SourceError(
                f"Playlist folder not found: {self.root}",
                details={"path": str(self.root)}
            )

        try:
            files = [
                path for path in self.root.rglob("*")
                if path.is_file() and path.suffix.lower() in PLAYLIST_EXTENSIONS
            ]
        except OSError as e:
            raise SourceError(
                f"Cannot list playlist folder {self.root}: {e}",
                details={"path": str(self.root), "original_error": str(e)}
            ) from e

        playlists = []
        for path in sorted(files):
            relative = path.relative_to(self.root)
            name = NAME_SEPARATOR.join(relative.with_suffix("").parts)
            playlists.append(
                PlaylistInfo(name=name, identifier=relative.as_posix(), kind=PlaylistKind.STATIC)
            )

        logger.debug(f"Found {len(playlists)} playlists in {self.root}")
        return playlists

    def track_paths(self, identifier: str) -> list[str]:
        """
        Read the entries of one playlist file.

        Args:
            identifier: Path of the playlist file relative to root (posix form).

        Returns:
            Absolute track paths in file order.

        Raises:
            SourceError: If the file cannot be read.
        """
        path = self.root / identifier

        try:
            text = path.read_bytes().decode("utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceError(
                f"Cannot read playlist {path}: {e}",
                details={"identifier": identifier, "original_error": str(e)}
            ) from e

        tracks = []
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            tracks.append(self._absolute(line, path.parent))

        return tracks

    @staticmethod
    def _absolute(entry: str, playlist_dir: Path) -> str:
        # Windows-style absolute entries stay as they are on every platform
        if len(entry) > 2 and entry[1] == ":" and entry[2] in "\\/":
            return entry
        if entry.startswith("\\\\"):
            return entry

        candidate = Path(entry)
        if candidate.is_absolute():
            return entry
        return str((playlist_dir / candidate).resolve())

r"""
Path resolution for playlist exports.

Two jobs live here:
    - Turning user-entered directories (absolute, or relative to the base
      directory of the running program) into absolute paths.
    - Turning absolute track paths into paths relative to a root directory,
      using one of two strategies (see RelativePathMode).

Host Paths:
    Track paths come from the media library host, which is usually a
    Windows program. PathResolver takes a path module ("flavor") so the
    same rules apply whether the backup runs on Windows or elsewhere:

        resolver = PathResolver(r"C:\Program Files\Host", flavor=ntpath)
        resolver.relative_to(r"C:\Music", r"C:\Music\Rock\song.mp3")
        # '.\\Rock\\song.mp3'

Totality:
    Every public method returns a string and never raises for bad input.
    When a path cannot be normalized the original value is returned.
"""

import os
import re
from types import ModuleType

from playlist_backup.core.config import RelativePathMode
from playlist_backup.core.logger import get_logger

logger = get_logger(__name__)


# Characters that are invalid in filenames on Windows (a superset of the
# POSIX rules), plus ASCII control characters
_INVALID_CHARS_PATTERN = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

_FOLDER_SEPARATOR = "\\"
_CURRENT_DIR_MARKERS = ("./", ".\\")
_PARENT_DIR = ".."


def sanitize_filename(name: str) -> str:
    """
    Replace every character that is illegal in a filename with '_'.

    Args:
        name: The string to sanitize (a playlist leaf name).

    Returns:
        The sanitized name, or "Unknown" for an empty name.

    Example:
        sanitize_filename('Best of: 2024?')  # 'Best of_ 2024_'
    """
    if not name:
        return "Unknown"
    return _INVALID_CHARS_PATTERN.sub("_", name)


def leaf_name(name: str) -> str:
    r"""
    Return the last segment of a hierarchical playlist name.

    The host names playlists inside folders with the folder path, e.g.
    "Favorites\Top". Only the backslash separates folders; a "/" is part
    of the name. A trailing separator yields the whole name.

    Example:
        leaf_name(r"Favorites\Top")  # 'Top'
        leaf_name("Top")             # 'Top'
        leaf_name("AC/DC")           # 'AC/DC'
    """
    if not name:
        return ""
    index = name.rfind(_FOLDER_SEPARATOR)
    if 0 <= index < len(name) - 1:
        return name[index + 1:]
    return name


class PathResolver:
    """
    Resolves configured directories and computes relative track paths.

    Attributes:
        base_dir: Directory that relative settings paths are resolved
                  against (the program's install directory).
        flavor: Path module used for all path manipulation (os.path,
                ntpath or posixpath).
    """

    def __init__(self, base_dir: str | os.PathLike, flavor: ModuleType = os.path) -> None:
        self.base_dir = os.fspath(base_dir)
        self.flavor = flavor

    @property
    def sep(self) -> str:
        return self.flavor.sep

    def is_rooted(self, path: str) -> bool:
        """True if the path has a drive or starts at a root separator."""
        drive, rest = self.flavor.splitdrive(path)
        return bool(drive) or rest.startswith(self._separators())

    def resolve_base(self, value: str) -> str:
        r"""
        Turn a configured directory into an absolute path.

        Args:
            value: Directory as typed by the user.

        Returns:
            - "" for a blank value
            - base_dir joined with the rest for ".\x" or "./x"
            - base_dir joined with the value for other relative paths
            - the value unchanged when it is already rooted
        """
        if not value or not value.strip():
            return ""

        if value.startswith(_CURRENT_DIR_MARKERS):
            return self.flavor.join(self.base_dir, value[2:])

        if not self.is_rooted(value):
            return self.flavor.join(self.base_dir, value)

        return value

    def relative_to(
        self,
        root: str,
        file_path: str,
        mode: RelativePathMode = RelativePathMode.PREFIX
    ) -> str:
        """
        Express file_path relative to root with the selected strategy.

        Falls back to file_path unchanged when no relation exists or when
        either path cannot be normalized.
        """
        try:
            if mode == RelativePathMode.COMMON_ANCESTOR:
                return self._relative_by_common_ancestor(root, file_path)
            return self._relative_by_prefix(root, file_path)
        except (TypeError, ValueError) as e:
            logger.debug(f"Keeping absolute path for {file_path!r}: {e}")
            return file_path

    def is_under(self, root: str, file_path: str) -> bool:
        """
        Case-insensitive, separator-normalized test that file_path lies below root.

        Returns False for anything that cannot be normalized.
        """
        if not root or not file_path:
            return False
        try:
            prefix = self._with_trailing_sep(self.flavor.normpath(root))
            target = self.flavor.normpath(file_path)
        except (TypeError, ValueError):
            return False
        return target.casefold().startswith(prefix.casefold())

    def _relative_by_prefix(self, root: str, file_path: str) -> str:
        if not root or not file_path:
            return file_path

        prefix = self._with_trailing_sep(self.flavor.normpath(root))
        target = self.flavor.normpath(file_path)

        if not target.casefold().startswith(prefix.casefold()):
            return file_path

        rest = target[len(prefix):].lstrip(self._separators())
        return f".{self.sep}{rest}"

    def _relative_by_common_ancestor(self, root: str, file_path: str) -> str:
        if not root or not file_path:
            return file_path

        root_drive, root_parts = self._split(root)
        file_drive, file_parts = self._split(file_path)

        if root_drive.casefold() != file_drive.casefold():
            return file_path

        common = 0
        for root_part, file_part in zip(root_parts, file_parts):
            if root_part.casefold() != file_part.casefold():
                break
            common += 1

        # No shared directory, or nothing left below it to point at
        if common == 0 or common == len(file_parts):
            return file_path

        parts = [_PARENT_DIR] * (len(root_parts) - common) + file_parts[common:]
        relative = self.sep.join(parts)

        if not relative.startswith(_PARENT_DIR):
            relative = f".{self.sep}{relative}"

        return relative

    def _split(self, path: str) -> tuple[str, list[str]]:
        """Split a normalized absolute path into (drive, segments)."""
        normalized = self.flavor.normpath(path)
        drive, rest = self.flavor.splitdrive(normalized)
        if not rest.startswith(self._separators()):
            raise ValueError(f"not an absolute path: {path!r}")
        segments = [s for s in re.split(self._separator_pattern(), rest) if s]
        return drive, segments

    def _with_trailing_sep(self, path: str) -> str:
        if path.endswith(self._separators()):
            return path
        return path + self.sep

    def _separators(self) -> tuple[str, ...]:
        if self.flavor.altsep:
            return (self.flavor.sep, self.flavor.altsep)
        return (self.flavor.sep,)

    def _separator_pattern(self) -> str:
        return "[" + "".join(re.escape(s) for s in self._separators()) + "]"

"""
M3U8 serialization of export plans.

Output format:
    #EXTM3U
    <track path>
    <track path>
    ...

One header line, then one path per line in host order. Files are UTF-8
with LF line endings and carry no #EXTINF metadata. Paths are written as
the host reports them, or relative to the plan's root when it has one.
Filename bytes the OS could not decode (surrogate-escaped) are written
back unchanged.

Each run replaces the file completely. If the rendered content is byte-for-
byte what is already on disk the file is left alone, so playlists that did
not change keep their modification time.
"""

import os
from dataclasses import dataclass
from enum import Enum

from playlist_backup.core.config import RelativePathMode
from playlist_backup.core.exceptions import ExportError
from playlist_backup.core.logger import get_logger
from playlist_backup.export.paths import PathResolver
from playlist_backup.export.planner import ExportPlan

logger = get_logger(__name__)


M3U_HEADER = "#EXTM3U"
ENCODING = "utf-8"
# Undecodable filename bytes (surrogate-escaped by the OS layer) are written back as-is
ENCODING_ERRORS = "surrogateescape"


class WriteStatus(str, Enum):
    WRITTEN = "written"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class WriteResult:
    """Outcome of writing one plan."""
    path: str
    status: WriteStatus
    track_count: int


class M3U8Writer:
    """
    Writes ExportPlan objects to .m3u8 files.

    Attributes:
        resolver: PathResolver used for relative paths and joining.
        mode: Relative path strategy applied to plans with a root.
    """

    def __init__(
        self,
        resolver: PathResolver,
        mode: RelativePathMode = RelativePathMode.PREFIX
    ) -> None:
        self.resolver = resolver
        self.mode = mode

    def render(self, plan: ExportPlan) -> str:
        """Return the complete file content for a plan."""
        lines = [M3U_HEADER]
        for track in plan.track_paths:
            if plan.relative_root is not None:
                lines.append(self.resolver.relative_to(plan.relative_root, track, self.mode))
            else:
                lines.append(track)
        return "\n".join(lines) + "\n"

    def write(self, plan: ExportPlan) -> WriteResult:
        """
        Write one plan to disk.

        Args:
            plan: The plan to write.

        Returns:
            WriteResult with the target path and whether it changed.

        Raises:
            ExportError: If the directory cannot be created or the file
                         cannot be written.
        """
        if not plan.export_directory:
            raise ExportError(
                "No export directory configured",
                details={"playlist": plan.playlist_name}
            )

        try:
            os.makedirs(plan.export_directory, exist_ok=True)
        except (OSError, ValueError) as e:
            raise ExportError(
                f"Cannot create export directory {plan.export_directory}: {e}",
                details={
                    "playlist": plan.playlist_name,
                    "path": plan.export_directory,
                    "original_error": str(e),
                }
            ) from e

        target = plan.output_path(self.resolver)
        try:
            content = self.render(plan).encode(ENCODING, errors=ENCODING_ERRORS)
        except UnicodeEncodeError as e:
            raise ExportError(
                f"Cannot encode track paths of '{plan.playlist_name}': {e}",
                details={
                    "playlist": plan.playlist_name,
                    "original_error": str(e),
                }
            ) from e

        if _read_existing(target) == content:
            logger.debug(f"'{plan.playlist_name}' unchanged: {target}")
            return WriteResult(target, WriteStatus.UNCHANGED, len(plan.track_paths))

        try:
            with open(target, "wb") as f:
                f.write(content)
        except (OSError, ValueError) as e:
            raise ExportError(
                f"Cannot write {target}: {e}",
                details={
                    "playlist": plan.playlist_name,
                    "path": target,
                    "original_error": str(e),
                }
            ) from e

        logger.debug(f"Wrote {len(plan.track_paths)} tracks to {target}")
        return WriteResult(target, WriteStatus.WRITTEN, len(plan.track_paths))


def _read_existing(path: str) -> bytes | None:
    try:
        with open(path, "rb") as f:
            return f.read()
    except (OSError, ValueError):
        return None

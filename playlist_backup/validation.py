r"""
Relative root validation.

Before settings are saved, every enabled playlist with a relative root is
checked against the first track the host reports for it. If that track
does not lie below the root, relative paths cannot be produced and the
export will silently fall back to absolute paths.

What happens then depends on the policy:
    MismatchPolicy.WARN   log a warning per playlist and let the save proceed
    MismatchPolicy.BLOCK  raise RootMismatchError so the caller refuses the save

Example:
    check_root(r"D:\Music", r"C:\Music\song.mp3", resolver)
    # RootMismatch(playlist='', root='D:\\Music', sample_track='C:\\Music\\song.mp3')
"""

from dataclasses import dataclass

from playlist_backup.core.config import MismatchPolicy, Settings
from playlist_backup.core.exceptions import RootMismatchError
from playlist_backup.core.logger import get_logger
from playlist_backup.export.paths import PathResolver
from playlist_backup.source.base import PlaylistSource

logger = get_logger(__name__)


@dataclass(frozen=True)
class RootMismatch:
    """A playlist whose relative root does not contain its sample track."""
    playlist: str
    root: str
    sample_track: str

    def describe(self) -> str:
        return (
            f"Playlist '{self.playlist}': root {self.root} does not contain "
            f"{self.sample_track}; tracks will be exported with absolute paths"
        )


def check_root(
    root: str,
    sample_track: str,
    resolver: PathResolver,
    playlist: str = ""
) -> RootMismatch | None:
    """
    Compare one relative root with one real track path.

    Args:
        root: Relative root as configured (resolved against the base dir).
        sample_track: Absolute path of a track from the playlist.
        resolver: PathResolver used for resolution and the prefix test.
        playlist: Playlist name, for reporting.

    Returns:
        None when the track lies below the root (or there is nothing to
        check), otherwise a RootMismatch.
    """
    if not root.strip() or not sample_track:
        return None

    resolved = resolver.resolve_base(root)
    if resolver.is_under(resolved, sample_track):
        return None

    return RootMismatch(playlist=playlist, root=root, sample_track=sample_track)


def find_root_mismatches(
    settings: Settings,
    source: PlaylistSource,
    resolver: PathResolver
) -> list[RootMismatch]:
    """
    Check every enabled playlist that has a relative root.

    Playlists the host does not report, empty playlists and playlists whose
    tracks cannot be read are not checked.
    """
    live = {}
    for info in source.list_playlists():
        live.setdefault(info.name, info)

    mismatches = []
    for playlist in settings.enabled_playlists():
        if not playlist.uses_relative_paths:
            continue

        info = live.get(playlist.name)
        if info is None:
            continue

        try:
            tracks = source.track_paths(info.identifier)
        except Exception as e:
            logger.debug(f"Cannot sample tracks of '{playlist.name}': {e}")
            continue

        if not tracks:
            continue

        mismatch = check_root(playlist.custom_root_path, tracks[0], resolver, playlist.name)
        if mismatch is not None:
            mismatches.append(mismatch)

    return mismatches


def validate_settings(
    settings: Settings,
    source: PlaylistSource,
    resolver: PathResolver,
    policy: MismatchPolicy | None = None
) -> list[RootMismatch]:
    """
    Run the pre-save check with the given (or configured) policy.

    Args:
        settings: Candidate settings about to be saved.
        source: Host playlists to sample tracks from.
        resolver: PathResolver bound to the base directory.
        policy: Overrides settings.root_mismatch_policy when given.

    Returns:
        The mismatches found (WARN policy, or none found).

    Raises:
        RootMismatchError: Under the BLOCK policy when any mismatch exists.
    """
    policy = MismatchPolicy(policy or settings.root_mismatch_policy)
    mismatches = find_root_mismatches(settings, source, resolver)

    if not mismatches:
        return []

    if policy == MismatchPolicy.BLOCK:
        raise RootMismatchError(
            f"{len(mismatches)} playlist(s) have a relative root that does not match their tracks",
            details={"playlists": [m.playlist for m in mismatches]},
            mismatches=mismatches,
        )

    for mismatch in mismatches:
        logger.warning(mismatch.describe())

    return mismatches

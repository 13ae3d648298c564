"""
Export planning.

Combines the settings with one snapshot of the host's playlists into a
list of ExportPlan objects, one per playlist that will be written in the
current run.

A playlist gets a plan when:
    - its PlaylistSetting is enabled, and
    - its name is present in the snapshot.

Everything else is skipped silently. Plans are built and thrown away within
one run and never persisted.
"""

from dataclasses import dataclass
from typing import Mapping, Sequence

from playlist_backup.core.config import Settings
from playlist_backup.core.logger import get_logger
from playlist_backup.export.paths import PathResolver, leaf_name, sanitize_filename

logger = get_logger(__name__)


PLAYLIST_EXTENSION = ".m3u8"


@dataclass(frozen=True)
class ExportPlan:
    """
    Everything needed to write one playlist file.

    Attributes:
        playlist_name: Fully-qualified host playlist name.
        export_directory: Absolute directory the file is written to.
        relative_root: Absolute relative root, or None for absolute paths.
        output_filename: Sanitized leaf name plus ".m3u8".
        track_paths: Absolute track paths in host order.
    """
    playlist_name: str
    export_directory: str
    relative_root: str | None
    output_filename: str
    track_paths: tuple[str, ...]

    @property
    def use_relative(self) -> bool:
        return self.relative_root is not None

    def output_path(self, resolver: PathResolver) -> str:
        return resolver.flavor.join(self.export_directory, self.output_filename)


def output_filename_for(name: str) -> str:
    r"""
    Derive the export filename of a playlist.

    Example:
        output_filename_for(r"Favorites\Top")  # 'Top.m3u8'
    """
    return sanitize_filename(leaf_name(name)) + PLAYLIST_EXTENSION


def build_plans(
    settings: Settings,
    snapshot: Mapping[str, Sequence[str]],
    resolver: PathResolver
) -> list[ExportPlan]:
    """
    Build one ExportPlan per enabled playlist present in the snapshot.

    Args:
        settings: Settings value read once at the start of the run.
        snapshot: Live playlist name -> track paths, captured once per run.
        resolver: Resolves the configured directories.

    Returns:
        Plans in settings order. Empty when there is nothing to do.
    """
    if not settings.playlists or not snapshot:
        return []

    plans: list[ExportPlan] = []
    seen: set[str] = set()

    for playlist in settings.playlists:
        # Duplicate entries collapse onto the first one
        if playlist.name in seen:
            continue
        seen.add(playlist.name)

        if not playlist.enabled:
            continue

        if playlist.name not in snapshot:
            logger.debug(f"Playlist '{playlist.name}' not reported by host, skipping")
            continue

        export_dir = resolver.resolve_base(
            playlist.custom_export_path
            if playlist.custom_export_path.strip()
            else settings.default_export_path
        )

        relative_root = None
        if playlist.uses_relative_paths:
            relative_root = resolver.resolve_base(playlist.custom_root_path)

        plans.append(
            ExportPlan(
                playlist_name=playlist.name,
                export_directory=export_dir,
                relative_root=relative_root,
                output_filename=output_filename_for(playlist.name),
                track_paths=tuple(snapshot[playlist.name]),
            )
        )

    return plans


def describe_plan(plan: ExportPlan) -> str:
    """One-line summary for logs."""
    mode = f"relative to {plan.relative_root}" if plan.use_relative else "absolute"
    return f"{plan.playlist_name} -> {plan.output_filename} ({len(plan.track_paths)} tracks, {mode})"

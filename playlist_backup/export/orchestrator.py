"""
Backup runs.

perform_backup() is the single entry point of the export pipeline. It is
called by three triggers: the interval timer, the host shutdown hook and
a manual run from the editor or the CLI.

One run:
    1. Read the current Settings once
    2. Ask the source for its playlists once (first name wins on duplicates)
    3. Fetch the track list of every enabled, configured playlist that the
       host still reports, before anything is written
    4. Build one ExportPlan per playlist
    5. Write the plans in order

Failure Isolation:
    A playlist whose tracks cannot be fetched, whose directory cannot be
    created or whose file cannot be written is logged and skipped. The run
    carries on with the remaining playlists and never raises.

Concurrency:
    Runs are serialized by a lock. A trigger that arrives while a run is in
    progress waits for it to finish before starting its own run, so two
    runs never write the same files at the same time.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from tqdm import tqdm

from playlist_backup.core.config import Settings
from playlist_backup.core.exceptions import ExportError
from playlist_backup.core.logger import get_logger, log_export_failure
from playlist_backup.export.paths import PathResolver
from playlist_backup.export.planner import ExportPlan, build_plans, describe_plan
from playlist_backup.export.writer import M3U8Writer, WriteStatus
from playlist_backup.source.base import PlaylistInfo, PlaylistSource

logger = get_logger(__name__)


class Trigger(str, Enum):
    """What started a run. Only used for logging and reports."""
    INTERVAL = "Interval"
    SHUTDOWN = "Shutdown"
    MANUAL = "Manual"


@dataclass
class BackupReport:
    """
    Summary of one backup run.

    Attributes:
        trigger: What started the run.
        written: Files whose content changed.
        unchanged: Files that already had the rendered content.
        failed: Playlists that were due but produced no file.
        skipped: Enabled playlists the host no longer reports.
        started_at: Run start time.
        finished_at: Run end time (None while running).
    """
    trigger: Trigger
    written: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None

    @property
    def exported_count(self) -> int:
        return len(self.written) + len(self.unchanged)

    def summary(self) -> str:
        return (
            f"{self.exported_count} exported "
            f"({len(self.written)} updated, {len(self.unchanged)} unchanged), "
            f"{len(self.failed)} failed, {len(self.skipped)} not found"
        )


class BackupOrchestrator:
    """
    Runs the export pipeline for all enabled playlists.

    Attributes:
        source: Read-only access to the host's playlists.
        resolver: PathResolver for directories and relative paths.
    """

    def __init__(
        self,
        source: PlaylistSource,
        settings_provider: Callable[[], Settings],
        resolver: PathResolver
    ) -> None:
        """
        Args:
            source: Host playlist source.
            settings_provider: Returns the currently published Settings
                               (typically SettingsStore.current).
            resolver: PathResolver bound to the program's base directory.
        """
        self.source = source
        self.resolver = resolver
        self._settings_provider = settings_provider
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def perform_backup(
        self,
        trigger: Trigger = Trigger.MANUAL,
        show_progress: bool = False
    ) -> BackupReport:
        """
        Export every enabled playlist once.

        Args:
            trigger: What started the run (diagnostic only).
            show_progress: Display a tqdm progress bar over the playlists.

        Returns:
            BackupReport describing the run. Never raises for playlist
            level failures.
        """
        trigger = Trigger(trigger)

        with self._run_lock:
            report = BackupReport(trigger=trigger)
            settings = self._settings_provider()

            if not settings.playlists:
                logger.debug(f"[{trigger.value}] No playlists configured, nothing to back up")
                report.finished_at = datetime.now()
                return report

            logger.info(f"[{trigger.value}] Backup started")

            snapshot = self._take_snapshot(settings, report)
            plans = build_plans(settings, snapshot, self.resolver)
            writer = M3U8Writer(self.resolver, settings.relative_path_mode)

            for plan in tqdm(
                plans,
                desc="Exporting",
                unit="playlist",
                disable=not show_progress
            ):
                self._write_plan(writer, plan, report)

            report.finished_at = datetime.now()
            logger.info(f"[{trigger.value}] Backup finished: {report.summary()}")
            return report

    def _take_snapshot(self, settings: Settings, report: BackupReport) -> dict[str, list[str]]:
        """Capture the track lists of all playlists due in this run."""
        live = self._query_playlists()
        snapshot: dict[str, list[str]] = {}

        for playlist in settings.enabled_playlists():
            if playlist.name in snapshot or playlist.name in report.failed:
                continue

            info = live.get(playlist.name)
            if info is None:
                logger.debug(f"Playlist '{playlist.name}' not found in host library")
                if playlist.name not in report.skipped:
                    report.skipped.append(playlist.name)
                continue

            try:
                snapshot[playlist.name] = list(self.source.track_paths(info.identifier))
            except Exception as e:
                log_export_failure(logger, playlist.name, f"Cannot read tracks: {e}")
                report.failed.append(playlist.name)

        return snapshot

    def _query_playlists(self) -> dict[str, PlaylistInfo]:
        """Name -> PlaylistInfo for the host's current playlists."""
        live: dict[str, PlaylistInfo] = {}

        try:
            playlists = self.source.list_playlists()
        except Exception as e:
            logger.error(f"Cannot list host playlists: {e}", exc_info=True)
            return live

        for info in playlists:
            live.setdefault(info.name, info)

        return live

    def _write_plan(self, writer: M3U8Writer, plan: ExportPlan, report: BackupReport) -> None:
        logger.debug(f"Exporting {describe_plan(plan)}")

        try:
            result = writer.write(plan)
        except ExportError as e:
            log_export_failure(logger, plan.playlist_name, e.message)
            report.failed.append(plan.playlist_name)
            return
        except Exception as e:
            logger.debug(f"Unexpected error exporting '{plan.playlist_name}'", exc_info=True)
            log_export_failure(logger, plan.playlist_name, f"Unexpected error: {e}")
            report.failed.append(plan.playlist_name)
            return

        if result.status == WriteStatus.WRITTEN:
            report.written.append(result.path)
        else:
            report.unchanged.append(result.path)

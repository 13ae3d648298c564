"""
Export pipeline for playlist-backup.

    - paths: PathResolver, filename helpers
    - planner: ExportPlan and build_plans()
    - writer: M3U8Writer
    - orchestrator: BackupOrchestrator.perform_backup()

Usage:
    from playlist_backup.export import BackupOrchestrator, PathResolver, Trigger

    orchestrator = BackupOrchestrator(source, lambda: store.current, PathResolver(base_dir))
    report = orchestrator.perform_backup(Trigger.MANUAL)
"""

from playlist_backup.export.orchestrator import BackupOrchestrator, BackupReport, Trigger
from playlist_backup.export.paths import PathResolver, leaf_name, sanitize_filename
from playlist_backup.export.planner import ExportPlan, build_plans, output_filename_for
from playlist_backup.export.writer import M3U8Writer, WriteResult, WriteStatus

__all__ = [
    "BackupOrchestrator",
    "BackupReport",
    "Trigger",
    "PathResolver",
    "leaf_name",
    "sanitize_filename",
    "ExportPlan",
    "build_plans",
    "output_filename_for",
    "M3U8Writer",
    "WriteResult",
    "WriteStatus",
]

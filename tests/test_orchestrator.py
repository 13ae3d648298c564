# tests/test_orchestrator.py
"""Tests for backup runs"""

import os
import threading
import time
from unittest.mock import Mock, patch

from playlist_backup.core.config import PlaylistSetting, RelativePathMode
from playlist_backup.core.exceptions import SourceError
from playlist_backup.export.orchestrator import BackupOrchestrator, Trigger
from playlist_backup.export.writer import M3U8Writer
from playlist_backup.source.base import InMemoryPlaylistSource


def read_bytes(path):
    with open(path, "rb") as f:
        return f.read()


class TestPerformBackup:
    """Test one backup run end to end"""

    def test_exports_enabled_playlists(self, temp_dir, local_resolver, sample_source, make_settings, music_dir):
        settings = make_settings(
            ("Road Trip", True),
            ("Favorites\\Top", True),
            ("Recently Added", False),
            default_export_path="./Backup",
        )
        orchestrator = BackupOrchestrator(sample_source, lambda: settings, local_resolver)

        report = orchestrator.perform_backup(Trigger.MANUAL)

        backup_dir = temp_dir / "Backup"
        assert sorted(os.listdir(backup_dir)) == ["Road Trip.m3u8", "Top.m3u8"]
        assert read_bytes(backup_dir / "Top.m3u8") == (
            "#EXTM3U\n" + os.path.join(music_dir, "Rock", "anthem.mp3") + "\n"
        ).encode("utf-8")
        assert len(report.written) == 2
        assert report.failed == []
        assert report.trigger == Trigger.MANUAL
        assert report.finished_at is not None

    def test_relative_root(self, temp_dir, local_resolver, sample_source, make_settings, music_dir):
        settings = make_settings(
            PlaylistSetting("Road Trip", enabled=True, custom_root_path=music_dir),
            default_export_path="./Backup",
        )
        orchestrator = BackupOrchestrator(sample_source, lambda: settings, local_resolver)

        orchestrator.perform_backup()

        sep = os.sep
        expected = f"#EXTM3U\n.{sep}Rock{sep}highway.mp3\n.{sep}Pop{sep}sunny.flac\n"
        assert read_bytes(temp_dir / "Backup" / "Road Trip.m3u8") == expected.encode("utf-8")

    def test_common_ancestor_mode(self, temp_dir, local_resolver, sample_source, make_settings, music_dir):
        settings = make_settings(
            PlaylistSetting(
                "Favorites\\Top",
                enabled=True,
                custom_root_path=os.path.join(music_dir, "Pop"),
            ),
            default_export_path="./Backup",
            relative_path_mode=RelativePathMode.COMMON_ANCESTOR,
        )
        orchestrator = BackupOrchestrator(sample_source, lambda: settings, local_resolver)

        orchestrator.perform_backup()

        expected = "#EXTM3U\n" + os.path.join("..", "Rock", "anthem.mp3") + "\n"
        assert read_bytes(temp_dir / "Backup" / "Top.m3u8") == expected.encode("utf-8")

    def test_no_playlists_is_noop(self, local_resolver, make_settings):
        source = Mock()
        orchestrator = BackupOrchestrator(source, lambda: make_settings(), local_resolver)

        report = orchestrator.perform_backup()

        source.list_playlists.assert_not_called()
        assert report.exported_count == 0

    def test_missing_playlist_reported_as_skipped(self, temp_dir, local_resolver, sample_source, make_settings):
        settings = make_settings(("Deleted", True), ("Road Trip", True), default_export_path="./Backup")
        orchestrator = BackupOrchestrator(sample_source, lambda: settings, local_resolver)

        report = orchestrator.perform_backup()

        assert report.skipped == ["Deleted"]
        assert os.listdir(temp_dir / "Backup") == ["Road Trip.m3u8"]

    def test_idempotent(self, temp_dir, local_resolver, sample_source, make_settings):
        settings = make_settings(("Road Trip", True), ("Favorites\\Top", True), default_export_path="./Backup")
        orchestrator = BackupOrchestrator(sample_source, lambda: settings, local_resolver)

        orchestrator.perform_backup()
        first = {name: read_bytes(temp_dir / "Backup" / name) for name in os.listdir(temp_dir / "Backup")}
        report = orchestrator.perform_backup()
        second = {name: read_bytes(temp_dir / "Backup" / name) for name in os.listdir(temp_dir / "Backup")}

        assert first == second
        assert report.written == []
        assert len(report.unchanged) == 2

    def test_settings_read_once_per_run(self, local_resolver, sample_source, make_settings):
        provider = Mock(return_value=make_settings(("Road Trip", True), default_export_path="./Backup"))
        orchestrator = BackupOrchestrator(sample_source, provider, local_resolver)

        orchestrator.perform_backup()

        assert provider.call_count == 1

    def test_unwritable_directory_does_not_stop_run(self, temp_dir, local_resolver, sample_source, make_settings):
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory")
        settings = make_settings(
            PlaylistSetting("Road Trip", enabled=True, custom_export_path=str(blocker / "sub")),
            ("Favorites\\Top", True),
            default_export_path="./Backup",
        )
        orchestrator = BackupOrchestrator(sample_source, lambda: settings, local_resolver)

        report = orchestrator.perform_backup()

        assert report.failed == ["Road Trip"]
        assert os.listdir(temp_dir / "Backup") == ["Top.m3u8"]

    def test_track_query_failure_does_not_stop_run(self, temp_dir, local_resolver, make_settings):
        source = InMemoryPlaylistSource({"Good": ["/music/a.mp3"], "Bad": []})
        original = source.track_paths

        def track_paths(identifier):
            if identifier == "Bad":
                raise SourceError("host went away")
            return original(identifier)

        source.track_paths = track_paths
        settings = make_settings(("Bad", True), ("Good", True), default_export_path="./Backup")
        orchestrator = BackupOrchestrator(source, lambda: settings, local_resolver)

        report = orchestrator.perform_backup()

        assert report.failed == ["Bad"]
        assert os.listdir(temp_dir / "Backup") == ["Good.m3u8"]

    def test_list_failure_writes_nothing(self, temp_dir, local_resolver, make_settings):
        source = Mock()
        source.list_playlists.side_effect = SourceError("host not ready")
        settings = make_settings(("Road Trip", True), default_export_path="./Backup")
        orchestrator = BackupOrchestrator(source, lambda: settings, local_resolver)

        report = orchestrator.perform_backup()

        assert report.exported_count == 0
        assert not (temp_dir / "Backup").exists()

    def test_duplicate_host_names_first_wins(self, temp_dir, local_resolver, make_settings):
        from playlist_backup.source.base import PlaylistInfo

        source = Mock()
        source.list_playlists.return_value = [
            PlaylistInfo("Mix", "first"),
            PlaylistInfo("Mix", "second"),
        ]
        source.track_paths.side_effect = lambda identifier: [f"/music/{identifier}.mp3"]
        settings = make_settings(("Mix", True), default_export_path="./Backup")
        orchestrator = BackupOrchestrator(source, lambda: settings, local_resolver)

        orchestrator.perform_backup()

        source.track_paths.assert_called_once_with("first")
        assert read_bytes(temp_dir / "Backup" / "Mix.m3u8") == b"#EXTM3U\n/music/first.mp3\n"


    def test_invalid_export_path_does_not_stop_run(self, temp_dir, local_resolver, make_settings):
        source = InMemoryPlaylistSource({"Bad": ["/music/a.mp3"], "Good": ["/music/b.mp3"]})
        settings = make_settings(
            PlaylistSetting("Bad", enabled=True, custom_export_path="bad\x00dir"),
            ("Good", True),
            default_export_path="./Backup",
        )
        orchestrator = BackupOrchestrator(source, lambda: settings, local_resolver)

        report = orchestrator.perform_backup()

        assert report.failed == ["Bad"]
        assert os.listdir(temp_dir / "Backup") == ["Good.m3u8"]

    def test_unencodable_track_does_not_stop_run(self, temp_dir, local_resolver, make_settings):
        source = InMemoryPlaylistSource({"Bad": ["/music/\ud800.mp3"], "Good": ["/music/b.mp3"]})
        settings = make_settings(("Bad", True), ("Good", True), default_export_path="./Backup")
        orchestrator = BackupOrchestrator(source, lambda: settings, local_resolver)

        report = orchestrator.perform_backup()

        assert report.failed == ["Bad"]
        assert read_bytes(temp_dir / "Backup" / "Good.m3u8") == b"#EXTM3U\n/music/b.mp3\n"

    def test_unexpected_writer_error_does_not_stop_run(self, temp_dir, local_resolver, make_settings):
        source = InMemoryPlaylistSource({"Bad": ["/music/a.mp3"], "Good": ["/music/b.mp3"]})
        settings = make_settings(("Bad", True), ("Good", True), default_export_path="./Backup")
        orchestrator = BackupOrchestrator(source, lambda: settings, local_resolver)
        original_write = M3U8Writer.write

        def write(writer, plan):
            if plan.playlist_name == "Bad":
                raise RuntimeError("unexpected")
            return original_write(writer, plan)

        with patch.object(M3U8Writer, "write", write):
            report = orchestrator.perform_backup()

        assert report.failed == ["Bad"]
        assert os.listdir(temp_dir / "Backup") == ["Good.m3u8"]

    def test_changed_playlist_only_rewrites_its_file(self, temp_dir, local_resolver, sample_source, make_settings, music_dir):
        settings = make_settings(("Road Trip", True), ("Favorites\\Top", True), default_export_path="./Backup")
        orchestrator = BackupOrchestrator(sample_source, lambda: settings, local_resolver)
        road_trip = temp_dir / "Backup" / "Road Trip.m3u8"
        top = temp_dir / "Backup" / "Top.m3u8"

        orchestrator.perform_backup()
        road_trip_before = read_bytes(road_trip)
        top_before = read_bytes(top)
        top_mtime = os.stat(top).st_mtime_ns

        tracks = sample_source.track_paths("Road Trip")
        sample_source.set_playlist("Road Trip", tracks + [os.path.join(music_dir, "Pop", "new.mp3")])
        time.sleep(0.01)
        report = orchestrator.perform_backup()

        assert read_bytes(road_trip) != road_trip_before
        assert read_bytes(top) == top_before
        assert os.stat(top).st_mtime_ns == top_mtime
        assert [os.path.basename(p) for p in report.written] == ["Road Trip.m3u8"]
        assert [os.path.basename(p) for p in report.unchanged] == ["Top.m3u8"]


class TestConcurrency:
    """Test that runs never overlap"""

    def test_runs_are_serialized(self, local_resolver, make_settings):
        active = 0
        max_active = 0
        counter_lock = threading.Lock()

        class SlowSource(InMemoryPlaylistSource):
            def track_paths(self, identifier):
                nonlocal active, max_active
                with counter_lock:
                    active += 1
                    max_active = max(max_active, active)
                time.sleep(0.05)
                with counter_lock:
                    active -= 1
                return super().track_paths(identifier)

        source = SlowSource({"A": ["/music/a.mp3"], "B": ["/music/b.mp3"]})
        settings = make_settings(("A", True), ("B", True), default_export_path="./Backup")
        orchestrator = BackupOrchestrator(source, lambda: settings, local_resolver)

        threads = [
            threading.Thread(target=orchestrator.perform_backup, args=(trigger,))
            for trigger in (Trigger.INTERVAL, Trigger.MANUAL, Trigger.SHUTDOWN)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert max_active == 1
        assert not orchestrator.is_running


class TestBackupReport:
    """Test report summaries"""

    def test_summary(self, local_resolver, sample_source, make_settings):
        settings = make_settings(("Road Trip", True), ("Deleted", True), default_export_path="./Backup")
        report = BackupOrchestrator(sample_source, lambda: settings, local_resolver).perform_backup()

        assert report.summary() == "1 exported (1 updated, 0 unchanged), 0 failed, 1 not found"

# tests/test_cli.py
"""Tests for the command-line interface"""

from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from playlist_backup import __version__
from playlist_backup.cli import cli
from playlist_backup.core.config import (
    MismatchPolicy,
    PlaylistSetting,
    RelativePathMode,
    Settings,
    load_settings,
    save_settings,
)
from playlist_backup.scheduler import SchedulerState


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def library(temp_dir):
    root = temp_dir / "Playlists"
    (root / "Favorites").mkdir(parents=True)
    (root / "Road Trip.m3u8").write_text(
        "#EXTM3U\n/music/highway.mp3\n/music/sunny.flac\n", encoding="utf-8"
    )
    (root / "Favorites" / "Top.m3u8").write_text(
        "#EXTM3U\n/music/rock/anthem.mp3\n", encoding="utf-8"
    )
    return root


@pytest.fixture
def settings_path(temp_dir):
    return temp_dir / "config" / "playlist_backup.yaml"


@pytest.fixture
def invoke(runner, temp_dir, library, settings_path):
    """Run the CLI against the temp library and settings file"""
    def run(*args, **kwargs):
        base = [
            "--settings", str(settings_path),
            "--library", str(library),
            "--base-dir", str(temp_dir),
            "--log-dir", str(temp_dir),
        ]
        return runner.invoke(cli, base + list(args), **kwargs)

    return run


class TestGeneral:
    """Test global behavior"""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "backup" in result.output

    def test_show_with_corrupt_settings(self, invoke, settings_path):
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text("playlists: [", encoding="utf-8")

        result = invoke("show")

        assert result.exit_code == 0
        assert "prefix" in result.output

    def test_writes_logs(self, invoke, temp_dir):
        invoke("show")
        assert list((temp_dir / "logs").glob("log_full_*.log"))


class TestPlaylistCommands:
    """Test playlist editing commands"""

    def test_sync(self, invoke, settings_path):
        result = invoke("sync")

        assert result.exit_code == 0
        settings = load_settings(settings_path)
        assert [p.name for p in settings.playlists] == ["Favorites\\Top", "Road Trip"]
        assert not any(p.enabled for p in settings.playlists)

    def test_enable_and_disable(self, invoke, settings_path):
        invoke("sync")
        assert invoke("enable", "Road Trip").exit_code == 0
        assert load_settings(settings_path).find_playlist("Road Trip").enabled

        assert invoke("disable", "Road Trip").exit_code == 0
        assert not load_settings(settings_path).find_playlist("Road Trip").enabled

    def test_list(self, invoke):
        invoke("sync")
        invoke("enable", "Road Trip")

        result = invoke("list")

        assert result.exit_code == 0
        assert "[x] Road Trip (static)" in result.output
        assert "[ ] Favorites\\Top (static)" in result.output

    def test_set_path_and_clear(self, invoke, settings_path):
        invoke("enable", "Road Trip")
        invoke("set-path", "Road Trip", "./Car")
        assert load_settings(settings_path).find_playlist("Road Trip").custom_export_path == "./Car"

        invoke("clear-path")
        assert load_settings(settings_path).find_playlist("Road Trip").custom_export_path == ""

    def test_set_root_warn_policy_saves(self, invoke, settings_path):
        invoke("enable", "Road Trip")
        result = invoke("set-root", "Road Trip", "/elsewhere")

        assert result.exit_code == 0
        assert load_settings(settings_path).find_playlist("Road Trip").custom_root_path == "/elsewhere"

    def test_set_root_block_policy_refuses(self, invoke, settings_path):
        invoke("enable", "Road Trip")
        invoke("options", "--policy", "block")

        result = invoke("set-root", "Road Trip", "/elsewhere")

        assert result.exit_code == 2
        assert "Road Trip" in result.output
        assert load_settings(settings_path).find_playlist("Road Trip").custom_root_path == ""

    def test_set_root_block_policy_accepts_match(self, invoke, settings_path):
        invoke("enable", "Road Trip")
        invoke("options", "--policy", "block")

        result = invoke("set-root", "Road Trip", "/music")

        assert result.exit_code == 0
        assert load_settings(settings_path).find_playlist("Road Trip").custom_root_path == "/music"

    def test_apply_root(self, invoke, settings_path):
        save_settings(
            Settings(playlists=(
                PlaylistSetting("Road Trip", enabled=True, custom_root_path="/music"),
                PlaylistSetting("Favorites\\Top", enabled=True),
            )),
            settings_path,
        )

        result = invoke("apply-root")

        assert result.exit_code == 0
        assert load_settings(settings_path).find_playlist("Favorites\\Top").custom_root_path == "/music"

    def test_apply_root_conflict(self, invoke, settings_path):
        save_settings(
            Settings(playlists=(
                PlaylistSetting("Road Trip", enabled=True, custom_root_path="/music"),
                PlaylistSetting("Favorites\\Top", enabled=True, custom_root_path="/other"),
            )),
            settings_path,
        )

        result = invoke("apply-root")

        assert result.exit_code == 3


class TestBackupCommand:
    """Test manual backups"""

    def test_backup(self, invoke, temp_dir):
        invoke("sync")
        invoke("enable", "Road Trip", "Favorites\\Top")

        result = invoke("backup")

        assert result.exit_code == 0
        assert "Backup complete: 2 exported" in result.output
        backup_dir = temp_dir / "PlaylistsBackup"
        assert (backup_dir / "Road Trip.m3u8").read_bytes() == (
            b"#EXTM3U\n/music/highway.mp3\n/music/sunny.flac\n"
        )
        assert (backup_dir / "Top.m3u8").exists()

    def test_backup_relative(self, invoke, temp_dir):
        invoke("enable", "Favorites\\Top")
        invoke("set-root", "Favorites\\Top", "/music")

        assert invoke("backup").exit_code == 0
        assert (temp_dir / "PlaylistsBackup" / "Top.m3u8").read_bytes() == (
            b"#EXTM3U\n./rock/anthem.mp3\n"
        )

    def test_backup_without_library(self, runner, temp_dir, settings_path):
        result = runner.invoke(cli, [
            "--settings", str(settings_path), "--log-dir", str(temp_dir), "backup"
        ])
        assert result.exit_code == 2


class TestSettingsCommands:
    """Test general settings commands"""

    def test_schedule(self, invoke, settings_path):
        result = invoke("schedule", "--days", "1", "--hours", "2", "--enable", "--on-shutdown")

        assert result.exit_code == 0
        settings = load_settings(settings_path)
        assert settings.interval_minutes == 1560
        assert settings.enable_interval_backup
        assert settings.backup_on_shutdown

    def test_schedule_toggle_keeps_interval(self, invoke, settings_path):
        invoke("schedule", "--minutes", "45")
        invoke("schedule", "--enable")

        settings = load_settings(settings_path)
        assert settings.interval_minutes == 45
        assert settings.enable_interval_backup

    def test_options(self, invoke, settings_path):
        result = invoke("options", "--mode", "common_ancestor", "--policy", "block")

        assert result.exit_code == 0
        settings = load_settings(settings_path)
        assert settings.relative_path_mode == RelativePathMode.COMMON_ANCESTOR
        assert settings.root_mismatch_policy == MismatchPolicy.BLOCK

    def test_options_nothing_to_change(self, invoke):
        assert invoke("options").exit_code == 2

    def test_validate(self, invoke):
        invoke("enable", "Road Trip")
        invoke("set-root", "Road Trip", "/elsewhere")

        result = invoke("validate")
        assert result.exit_code == 0
        assert "Warning" in result.output

        assert invoke("validate", "--policy", "block").exit_code == 2

    def test_reset(self, invoke, settings_path):
        invoke("sync")
        assert settings_path.exists()

        result = invoke("reset", "--yes")

        assert result.exit_code == 0
        assert not settings_path.exists()


class TestWatchCommand:
    """Test the host lifecycle loop"""

    def test_arms_scheduler_and_shuts_down(self, invoke, settings_path):
        save_settings(
            Settings(enable_interval_backup=True, interval_minutes=5, backup_on_shutdown=True),
            settings_path,
        )
        stop_event = Mock()
        stop_event.wait.side_effect = KeyboardInterrupt

        with patch("playlist_backup.cli.Scheduler") as scheduler_class, \
                patch("playlist_backup.cli.threading.Event", return_value=stop_event), \
                patch("playlist_backup.cli.signal.signal"):
            scheduler = scheduler_class.return_value
            scheduler.__enter__.return_value = scheduler
            scheduler.apply.return_value = SchedulerState.ARMED

            result = invoke("watch")

        assert result.exit_code == 0
        assert "Watching (armed)" in result.output
        applied = scheduler.apply.call_args[0][0]
        assert applied.interval_minutes == 5
        scheduler.__exit__.assert_called_once()

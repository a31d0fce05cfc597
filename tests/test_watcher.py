"""Tests for the stats folder watcher."""

import os
import queue
import time
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from watchdog.events import DirCreatedEvent, FileCreatedEvent, FileModifiedEvent

from aimlog.core.config import AimlogConfig
from aimlog.watcher import (
    StatsFileEvent,
    StatsFileHandler,
    StatsWatcher,
    get_default_stats_folder,
)


class TestGetDefaultStatsFolder:
    """Tests for get_default_stats_folder function."""

    @patch("platform.system")
    def test_windows_path(self, mock_system):
        """Test default path on Windows."""
        mock_system.return_value = "Windows"

        with patch.dict(os.environ, {"PROGRAMFILES(X86)": "C:/Program Files (x86)"}):
            path = get_default_stats_folder()
            assert "Steam" in str(path)
            assert "FPSAimTrainer" in str(path)

    @patch("platform.system")
    def test_macos_path(self, mock_system):
        """Test default path on macOS."""
        mock_system.return_value = "Darwin"

        path = get_default_stats_folder()
        assert "Library/Application Support/Steam" in str(path)
        assert path.name == "stats"

    @patch("platform.system")
    def test_linux_path(self, mock_system):
        """Test default path on Linux."""
        mock_system.return_value = "Linux"

        path = get_default_stats_folder()
        assert ".steam" in str(path) or ".local/share/Steam" in str(path)
        assert path.name == "stats"

    @patch("platform.system")
    def test_unsupported_os(self, mock_system):
        """Test error on unsupported OS."""
        mock_system.return_value = "BeOS"

        with pytest.raises(ValueError, match="Unsupported operating system"):
            get_default_stats_folder()


class TestStatsFileEvent:
    """Tests for StatsFileEvent dataclass."""

    def test_filename_property(self):
        """Test filename property."""
        event = StatsFileEvent(
            file_path=Path("/stats/Tile Frenzy - Challenge - 2023.01.15-14.05.30 Stats.csv"),
            event_type="created",
            timestamp=0.0,
        )
        assert event.filename == "Tile Frenzy - Challenge - 2023.01.15-14.05.30 Stats.csv"


class TestStatsFileHandler:
    """Tests for StatsFileHandler class."""

    @pytest.fixture
    def handler(self):
        """Create a handler with a short debounce."""
        return StatsFileHandler(event_queue=queue.Queue(), min_file_size=1, debounce_seconds=0.1)

    def test_is_stats_file(self, handler):
        """Test stats file detection."""
        assert handler._is_stats_file("/stats/run Stats.csv") is True
        assert handler._is_stats_file("/stats/notes.txt") is False
        assert handler._is_stats_file("/stats/run.csv.tmp") is False

    def test_is_file_ready(self, handler, tmp_path):
        """Test a written file is ready."""
        path = tmp_path / "run Stats.csv"
        path.write_text("content")
        assert handler._is_file_ready(path) is True

    def test_empty_file_not_ready(self, handler, tmp_path):
        """Test a file below the minimum size is not ready."""
        path = tmp_path / "run Stats.csv"
        path.write_text("")
        assert handler._is_file_ready(path) is False

    def test_missing_file_not_ready(self, handler, tmp_path):
        """Test a missing file is not ready."""
        assert handler._is_file_ready(tmp_path / "gone.csv") is False

    def test_ignores_other_files(self, handler):
        """Test non-stats files and directories are not scheduled."""
        handler.on_created(FileCreatedEvent("/stats/notes.txt"))
        handler.on_created(DirCreatedEvent("/stats/processed.csv"))
        assert handler._pending_files == {}

    def test_modified_only_tracks_pending(self, handler):
        """Test modification events do not schedule new files."""
        handler.on_modified(FileModifiedEvent("/stats/run Stats.csv"))
        assert handler._pending_files == {}

    def test_created_file_is_queued(self, handler, tmp_path):
        """Test a created stats file is queued after the debounce."""
        path = tmp_path / "run Stats.csv"
        path.write_text("content")

        handler.on_created(FileCreatedEvent(str(path)))
        event = handler.event_queue.get(timeout=5)

        assert event.file_path == path
        assert event.event_type == "created"


class TestStatsWatcher:
    """Tests for StatsWatcher class."""

    def test_init(self, tmp_path):
        """Test watcher initialization."""
        watcher = StatsWatcher(tmp_path)
        assert watcher.watch_folder == tmp_path
        assert watcher.is_running is False

    def test_from_config(self, tmp_path):
        """Test a watcher built from configuration."""
        config = AimlogConfig()
        config.watcher.debounce_seconds = 0.5
        config.watcher.recursive = True
        config.ingest.file_suffix = ".txt"

        watcher = StatsWatcher.from_config(config, watch_folder=tmp_path)
        assert watcher.debounce_seconds == 0.5
        assert watcher.recursive is True
        assert watcher.suffix == ".txt"

    def test_on_new_file_decorator(self, tmp_path):
        """Test the decorator registers and returns the callback."""
        watcher = StatsWatcher(tmp_path)

        @watcher.on_new_file
        def handle(event):
            pass

        assert handle in watcher._callbacks

    def test_dispatch_continues_after_failure(self, tmp_path):
        """Test a failing callback does not stop the others."""
        watcher = StatsWatcher(tmp_path)
        failing = Mock(side_effect=RuntimeError("boom"))
        working = Mock()
        watcher.add_callback(failing)
        watcher.add_callback(working)

        event = StatsFileEvent(file_path=tmp_path / "a.csv", event_type="created", timestamp=0.0)
        watcher.dispatch(event)

        failing.assert_called_once_with(event)
        working.assert_called_once_with(event)

    def test_scan_existing(self, tmp_path):
        """Test existing stats files are listed."""
        (tmp_path / "b Stats.csv").write_text("x")
        (tmp_path / "a Stats.csv").write_text("x")
        (tmp_path / "notes.txt").write_text("x")

        watcher = StatsWatcher(tmp_path)
        assert [p.name for p in watcher.scan_existing()] == ["a Stats.csv", "b Stats.csv"]

    def test_scan_missing_folder(self, tmp_path):
        """Test scanning a missing folder."""
        assert StatsWatcher(tmp_path / "missing").scan_existing() == []

    def test_start_and_stop(self, tmp_path):
        """Test the watcher starts and stops without blocking."""
        folder = tmp_path / "stats"
        watcher = StatsWatcher(folder, debounce_seconds=0.1)

        watcher.start()
        try:
            assert watcher.is_running
            assert folder.exists()
        finally:
            watcher.stop()

        assert not watcher.is_running

    def test_new_file_reaches_callback(self, tmp_path):
        """Test a file written while watching is delivered to callbacks."""
        received = queue.Queue()
        watcher = StatsWatcher(tmp_path, debounce_seconds=0.1)
        watcher.add_callback(received.put)

        watcher.start()
        try:
            time.sleep(0.2)
            path = tmp_path / "run Stats.csv"
            path.write_text("content")
            event = received.get(timeout=10)
        finally:
            watcher.stop()

        assert event.file_path.name == "run Stats.csv"

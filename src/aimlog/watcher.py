"""
Stats Folder Watchdog

Monitors the aim trainer's stats folder for new stats files and hands each
one to registered callbacks once the game has finished writing it.
"""

import logging
import os
import platform
import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from watchdog.events import FileCreatedEvent, FileModifiedEvent, FileSystemEventHandler
from watchdog.observers import Observer

from aimlog.core.constants import STATS_FILE_SUFFIX

logger = logging.getLogger(__name__)

STATS_SUBPATH = "steamapps/common/FPSAimTrainer/FPSAimTrainer/stats"


def get_default_stats_folder() -> Path:
    """
    Get the default stats folder based on the operating system.

    Returns:
        Path to the stats folder (may not exist)

    Raises:
        ValueError: If the OS is not supported
    """
    system = platform.system()

    if system == "Windows":
        steam_path = Path(os.environ.get("PROGRAMFILES(X86)", "C:/Program Files (x86)")) / "Steam"
        candidates = [
            steam_path / STATS_SUBPATH,
            Path("C:/Program Files/Steam") / STATS_SUBPATH,
            Path("D:/SteamLibrary") / STATS_SUBPATH,
        ]
    elif system == "Linux":
        home = Path.home()
        # Proton installs live under the regular Steam library
        candidates = [
            home / ".steam/steam" / STATS_SUBPATH,
            home / ".local/share/Steam" / STATS_SUBPATH,
        ]
    elif system == "Darwin":
        candidates = [Path.home() / "Library/Application Support/Steam" / STATS_SUBPATH]
    else:
        raise ValueError(f"Unsupported operating system: {system}")

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return candidates[0]


@dataclass
class StatsFileEvent:
    """Event representing a new stats file ready to be parsed."""

    file_path: Path
    event_type: str  # "created" or "existing"
    timestamp: float

    @property
    def filename(self) -> str:
        return self.file_path.name


class StatsFileHandler(FileSystemEventHandler):
    """
    Handler for stats file events.

    Filters for stats files and queues them once their size is stable.
    """

    def __init__(
        self,
        event_queue: queue.Queue,
        suffix: str = STATS_FILE_SUFFIX,
        min_file_size: int = 1,
        debounce_seconds: float = 2.0,
    ):
        """
        Initialize the handler.

        Args:
            event_queue: Queue to put detected events
            suffix: Filename suffix of stats files
            min_file_size: Minimum file size in bytes to process
            debounce_seconds: Quiet period before a file is considered written
        """
        super().__init__()
        self.event_queue = event_queue
        self.suffix = suffix
        self.min_file_size = min_file_size
        self.debounce_seconds = debounce_seconds
        self._pending_files: dict[str, float] = {}
        self._lock = threading.Lock()

    def _is_stats_file(self, path: str) -> bool:
        return Path(path).name.endswith(self.suffix)

    def _is_file_ready(self, path: Path) -> bool:
        """Check the file exists, meets the minimum size and is not growing."""
        if not path.exists():
            return False

        try:
            size = path.stat().st_size
            if size < self.min_file_size:
                return False

            time.sleep(0.5)
            return path.stat().st_size == size
        except OSError:
            return False

    def on_created(self, event: FileCreatedEvent) -> None:
        if event.is_directory or not self._is_stats_file(event.src_path):
            return

        logger.debug(f"Stats file created: {event.src_path}")
        self._schedule_processing(event.src_path, "created")

    def on_modified(self, event: FileModifiedEvent) -> None:
        if event.is_directory or not self._is_stats_file(event.src_path):
            return

        # Only extend the debounce of files we are already tracking
        with self._lock:
            if event.src_path in self._pending_files:
                self._pending_files[event.src_path] = time.time()

    def _schedule_processing(self, file_path: str, event_type: str) -> None:
        with self._lock:
            self._pending_files[file_path] = time.time()

        def process_after_debounce():
            time.sleep(self.debounce_seconds)

            with self._lock:
                last_modified = self._pending_files.get(file_path)
                if last_modified is None:
                    return

                if time.time() - last_modified < self.debounce_seconds:
                    threading.Thread(target=process_after_debounce, daemon=True).start()
                    return

                del self._pending_files[file_path]

            path = Path(file_path)
            if self._is_file_ready(path):
                self.event_queue.put(StatsFileEvent(file_path=path, event_type=event_type, timestamp=time.time()))
                logger.info(f"Stats file ready for processing: {path.name}")

        threading.Thread(target=process_after_debounce, daemon=True).start()


class StatsWatcher:
    """
    Watches a folder for new stats files.

    Example usage:
        watcher = StatsWatcher(folder)

        @watcher.on_new_file
        def handle(event):
            session = parse_session_file(event.file_path)

        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        watch_folder: Optional[Path] = None,
        recursive: bool = False,
        suffix: str = STATS_FILE_SUFFIX,
        min_file_size: int = 1,
        debounce_seconds: float = 2.0,
    ):
        if watch_folder is None:
            watch_folder = get_default_stats_folder()

        self.watch_folder = Path(watch_folder)
        self.recursive = recursive
        self.suffix = suffix
        self.min_file_size = min_file_size
        self.debounce_seconds = debounce_seconds

        self._event_queue: queue.Queue[StatsFileEvent] = queue.Queue()
        self._observer: Optional[Observer] = None
        self._callbacks: list[Callable[[StatsFileEvent], None]] = []
        self._running = False
        self._processor_thread: Optional[threading.Thread] = None

    @classmethod
    def from_config(cls, config, watch_folder: Optional[Path] = None) -> "StatsWatcher":
        """Build a watcher from the watcher and ingest config sections."""
        return cls(
            watch_folder=watch_folder,
            recursive=config.watcher.recursive,
            suffix=config.ingest.file_suffix,
            min_file_size=config.watcher.min_file_size_bytes,
            debounce_seconds=config.watcher.debounce_seconds,
        )

    def on_new_file(self, callback: Callable[[StatsFileEvent], None]) -> Callable:
        """Decorator registering a callback for new stats files."""
        self._callbacks.append(callback)
        return callback

    def add_callback(self, callback: Callable[[StatsFileEvent], None]) -> None:
        self._callbacks.append(callback)

    def start(self, blocking: bool = False) -> None:
        """
        Start watching for new stats files.

        Args:
            blocking: If True, blocks until stop() is called or Ctrl+C
        """
        if self._running:
            logger.warning("Watcher is already running")
            return

        if not self.watch_folder.exists():
            logger.warning(f"Watch folder does not exist, creating it: {self.watch_folder}")
            self.watch_folder.mkdir(parents=True, exist_ok=True)

        self._running = True

        handler = StatsFileHandler(
            self._event_queue,
            suffix=self.suffix,
            min_file_size=self.min_file_size,
            debounce_seconds=self.debounce_seconds,
        )
        self._observer = Observer()
        self._observer.schedule(handler, str(self.watch_folder), recursive=self.recursive)

        self._processor_thread = threading.Thread(target=self._process_events, daemon=True)
        self._processor_thread.start()

        self._observer.start()
        logger.info(f"Watching for stats files in: {self.watch_folder}")

        if blocking:
            try:
                while self._running:
                    time.sleep(1)
            except KeyboardInterrupt:
                self.stop()

    def stop(self) -> None:
        """Stop watching."""
        self._running = False

        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

        logger.info("Stats watcher stopped")

    def dispatch(self, event: StatsFileEvent) -> None:
        """Run every callback for one event; a failing callback does not stop the others."""
        for callback in self._callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error handling {event.filename}: {e}")

    def _process_events(self) -> None:
        while self._running:
            try:
                event = self._event_queue.get(timeout=1)
            except queue.Empty:
                continue
            self.dispatch(event)

    def scan_existing(self) -> list[Path]:
        """
        Scan for stats files already in the watch folder.

        Returns:
            Sorted paths of existing stats files
        """
        if not self.watch_folder.exists():
            return []

        pattern = f"**/*{self.suffix}" if self.recursive else f"*{self.suffix}"
        return sorted(p for p in self.watch_folder.glob(pattern) if p.is_file())

    @property
    def is_running(self) -> bool:
        return self._running

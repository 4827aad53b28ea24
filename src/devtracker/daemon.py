"""Foreground runner for devtracker.

Runs the two periodic timers (sampler tick and periodic flush) next to the
host bridge, and performs the final synchronous flush on shutdown.
"""

from __future__ import annotations

import logging
import os
import signal
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import IO, TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from devtracker.config import Config
    from devtracker.tracker import Tracker

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


class ShutdownRequested(Exception):
    """Raised from the signal handler to unblock the bridge read."""


def setup_logging(log_file: Path, level: int = logging.INFO) -> logging.Logger:
    """Attach a rotating file handler to the devtracker logger.

    Args:
        log_file: Destination file; parent directories are created.
        level: Level for the devtracker logger.

    Returns:
        The configured "devtracker" logger.
    """
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger("devtracker")
    logger.setLevel(level)
    # Avoid adding multiple handlers if re-initialized
    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(handler)
    return logger


class Runner:
    """Drives a Tracker: timers, host bridge, shutdown flush.

    The tick loop and the flush loop run on their own threads; the bridge
    reads host events on the calling thread. All of them go through the
    tracker, which serializes access behind its lock.
    """

    def __init__(
        self,
        tracker: Tracker,
        config: Config,
        pid_file: Path | None = None,
        log_file: Path | None = None,
    ):
        self.tracker = tracker
        self.config = config
        self.pid_file = pid_file or config.storage.pid_file
        self.log_file = log_file or config.storage.log_file
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        self.logger = logging.getLogger("devtracker.daemon")

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def start(self, stream: IO[str] | None = None, install_signals: bool = True) -> int:
        """Run until the host stream ends or a shutdown is requested.

        Args:
            stream: Host event stream. Defaults to stdin.
            install_signals: Install SIGTERM/SIGINT handlers. Only possible
                from the main thread.

        Returns:
            Exit code (0 for success, non-zero for failure).
        """
        from devtracker.hooks.bridge import run_bridge

        self.pid_file.parent.mkdir(parents=True, exist_ok=True)

        if self._is_running():
            pid = self._read_pid()
            print(
                f"Another devtracker runner is already writing (PID: {pid})",
                file=sys.stderr,
            )
            return 1

        setup_logging(self.log_file)
        self._write_pid()
        self.logger.info(f"Runner started (PID: {os.getpid()})")

        try:
            if install_signals:
                signal.signal(signal.SIGTERM, self._handle_signal)
                signal.signal(signal.SIGINT, self._handle_signal)
            # A load cut short leaves the tracker refusing to flush
            self.tracker.load()
            self._start_loops()
            run_bridge(self.tracker, stream, stop=self._stop)
        except ShutdownRequested:
            pass
        finally:
            self.stop()
            self.tracker.shutdown()
            self.pid_file.unlink(missing_ok=True)
            self.logger.info("Runner stopped")

        return 0

    def stop(self) -> None:
        """Stop the timer loops and wait for them to exit."""
        self._stop.set()
        for thread in self._threads:
            if thread is not threading.current_thread():
                thread.join(timeout=5)
        self._threads.clear()

    def _start_loops(self) -> None:
        tracker_config = self.config.tracker
        self._threads = [
            self._spawn("devtracker-tick", tracker_config.tick_interval, self.tracker.on_tick),
            self._spawn(
                "devtracker-flush", tracker_config.flush_interval, self.tracker.on_periodic_flush
            ),
        ]

    def _spawn(self, name: str, interval: int, action: Callable[[], object]) -> threading.Thread:
        thread = threading.Thread(
            target=self._loop, args=(interval, action), name=name, daemon=True
        )
        thread.start()
        return thread

    def _loop(self, interval: int, action: Callable[[], object]) -> None:
        """Call ``action`` every ``interval`` seconds until stopped."""
        while not self._stop.wait(interval):
            try:
                action()
            except Exception as e:
                self.logger.error(f"Error in {threading.current_thread().name}: {e}", exc_info=True)

    def _handle_signal(self, signum, frame):
        self.logger.info(f"Received signal {signum}, shutting down...")
        self._stop.set()
        raise ShutdownRequested()

    # --- PID file ---

    def status(self) -> int:
        """Show runner status.

        Returns:
            Exit code (0 if running, 1 if not running).
        """
        if self._is_running():
            print(f"Runner is running (PID: {self._read_pid()})")
            return 0
        print("Runner is not running")
        return 1

    def _is_running(self) -> bool:
        return live_pid(self.pid_file) is not None

    def _read_pid(self) -> int | None:
        return read_pid(self.pid_file)

    def _write_pid(self) -> None:
        self.pid_file.write_text(str(os.getpid()))


def read_pid(pid_file: Path) -> int | None:
    """Return the PID recorded in ``pid_file``, or None if absent or garbled."""
    if not pid_file.exists():
        return None

    try:
        return int(pid_file.read_text().strip())
    except (ValueError, OSError):
        return None


def live_pid(pid_file: Path) -> int | None:
    """Return the PID of another live runner recorded in ``pid_file``."""
    pid = read_pid(pid_file)
    if pid is None or pid == os.getpid():
        return None

    try:
        os.kill(pid, 0)  # Signal 0 just checks if process exists
        return pid
    except (ProcessLookupError, PermissionError):
        return None

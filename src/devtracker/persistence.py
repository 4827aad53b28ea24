"""Persistence engine for devtracker.

Reads the backing JSON document at startup and rewrites it in full on every
flush. Load failures degrade to the default empty document; save failures
are logged and swallowed so the in-memory store stays the source of truth
until the next successful flush.

Only one write runs at a time. A flush requested while another is writing
marks a single pending slot and the running writer makes one more pass, so
overlapping requests collapse into at most one extra write.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from devtracker.metrics.store import GlobalData, normalize_document

logger = logging.getLogger("devtracker.persistence")

DEFAULT_DATA_PATH = Path.home() / ".devtracker" / "data.json"


class PersistenceEngine:
    """Loads and flushes the backing file.

    Attributes:
        data_path: Path to the JSON document.
        last_flush_at: When the last successful flush finished (UTC).
        last_error: Message of the last failed load or flush, if any.
    """

    def __init__(
        self,
        data_path: Path | None = None,
        serialize: Callable[[], dict[str, Any]] | None = None,
    ):
        """Initialize the engine.

        Args:
            data_path: Backing file. Defaults to ~/.devtracker/data.json.
            serialize: Returns the document to write. Must take whatever lock
                guards the store so the snapshot is consistent.
        """
        self.data_path = Path(data_path) if data_path else DEFAULT_DATA_PATH
        self._serialize = serialize
        self._write_lock = threading.Lock()
        self._pending = False
        self.last_flush_at: datetime | None = None
        self.last_error: str | None = None

    def bind(self, serialize: Callable[[], dict[str, Any]]) -> None:
        """Set the serializer after construction."""
        self._serialize = serialize

    @property
    def is_writing(self) -> bool:
        return self._write_lock.locked()

    @property
    def has_pending_write(self) -> bool:
        return self._pending

    # --- Load ---

    def read(self) -> Any | None:
        """Read and parse the backing file.

        Returns:
            The parsed JSON value, or None if the file is missing or
            unreadable.
        """
        if not self.data_path.exists():
            logger.info(f"No data file at {self.data_path}, starting empty")
            return None

        try:
            with open(self.data_path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            self.last_error = str(e)
            logger.warning(f"Error reading {self.data_path}: {e}")
            return None

    def load(self) -> GlobalData:
        """Load and normalize the backing document.

        Never raises; any failure yields the default document.
        """
        raw = self.read()
        try:
            return normalize_document(raw)
        except (TypeError, ValueError, AttributeError) as e:
            self.last_error = str(e)
            logger.warning(f"Discarding malformed data in {self.data_path}: {e}")
            return GlobalData()

    # --- Flush ---

    def flush(self, wait: bool = False) -> bool:
        """Write the full document to the backing file.

        Args:
            wait: Block until a write that reflects the current state has
                finished. Without it, a flush requested while another write
                is running only marks the pending slot and returns.

        Returns:
            False if the write this call performed failed, True otherwise.
        """
        if self._serialize is None:
            raise RuntimeError("PersistenceEngine has no serializer bound")

        ok = True
        while True:
            if not self._write_lock.acquire(blocking=wait):
                self._pending = True
                if self._write_lock.locked():
                    logger.debug("Write in progress, flush queued")
                    return True
                # The writer finished between our attempt and the flag
                continue

            try:
                self._pending = False
                ok = self._write_once()
            finally:
                self._write_lock.release()

            if not self._pending:
                return ok

    def _write_once(self) -> bool:
        """Serialize and atomically replace the backing file."""
        tmp_path: str | None = None
        try:
            document = self._serialize()
            payload = json.dumps(document, indent=2)

            self.data_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=".data-", suffix=".json.tmp", dir=self.data_path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.data_path)
            tmp_path = None

            self.last_flush_at = datetime.now(timezone.utc)
            self.last_error = None
            logger.debug(f"Flushed {len(payload)} bytes to {self.data_path}")
            return True
        except (OSError, TypeError, ValueError) as e:
            self.last_error = str(e)
            logger.error(f"Error saving data to {self.data_path}: {e}")
            return False
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass

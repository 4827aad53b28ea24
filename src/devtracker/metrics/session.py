"""Volatile per-run counters.

The session accumulator is reset on every process start and is never
persisted. Every increment applied here is mirrored into the persistent
store by the tracker context from the same input event.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class SessionState:
    """Counters for the current process run.

    Attributes:
        start_time: When the session started (epoch seconds).
        seconds: Active seconds credited during this run.
        keystrokes: Edit events observed during this run.
        lines_added: Lines inserted during this run.
        lines_deleted: Lines removed during this run.
        languages: Seconds per language id.
    """

    start_time: float = field(default_factory=time.time)
    seconds: int = 0
    keystrokes: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    languages: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase shape a presentation layer consumes."""
        return {
            "startTime": self.start_time,
            "seconds": self.seconds,
            "keystrokes": self.keystrokes,
            "linesAdded": self.lines_added,
            "linesDeleted": self.lines_deleted,
            "languages": dict(self.languages),
        }

    def copy(self) -> SessionState:
        """Return an independent copy."""
        return SessionState(**asdict(self))


class SessionAccumulator:
    """Owns the SessionState for one process run."""

    def __init__(self, start_time: float | None = None):
        self.state = SessionState()
        if start_time is not None:
            self.state.start_time = start_time

    def add_time(self, language_id: str, seconds: int) -> None:
        self.state.seconds += seconds
        self.state.languages[language_id] = (
            self.state.languages.get(language_id, 0) + seconds
        )

    def add_keystrokes(self, count: int) -> None:
        self.state.keystrokes += count

    def add_lines(self, added: int, deleted: int) -> None:
        """Add line deltas. A call with both values zero does nothing."""
        if added == 0 and deleted == 0:
            return
        self.state.lines_added += added
        self.state.lines_deleted += deleted

"""Activity sampler and idle detector.

A fixed-period poller. Once per tick it decides whether the user is active
(an input event happened less than ``idle_threshold`` seconds ago) and, if
so, credits exactly one tick of time to the focused project and language.
Time that passes while idle, or while the process is suspended, is never
credited retroactively.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

from devtracker.events import FocusedDocument

logger = logging.getLogger("devtracker.sampler")

DEFAULT_IDLE_THRESHOLD = 300  # seconds
DEFAULT_TICK_SECONDS = 1

RecordTime = Callable[[str, str, str, int], None]
FocusProvider = Callable[[], "FocusedDocument | None"]


class ActivityState(Enum):
    ACTIVE = "active"
    IDLE = "idle"


class ActivitySampler:
    """Decides per tick whether to credit time, and to what.

    The sampler does not own any counters; crediting goes through the
    ``record_time`` callable so the caller can update store and session
    together.
    """

    def __init__(
        self,
        record_time: RecordTime,
        idle_threshold: int = DEFAULT_IDLE_THRESHOLD,
        tick_seconds: int = DEFAULT_TICK_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        focus_provider: FocusProvider | None = None,
    ):
        """Initialize the sampler.

        Args:
            record_time: Called as ``record_time(project_root, language_id,
                relative_path, seconds)`` for every credited tick.
            idle_threshold: Seconds without input after which time stops
                accruing.
            tick_seconds: Seconds credited per active tick.
            clock: Monotonic time source, injectable for tests.
            focus_provider: Resolves the focused document each tick. Defaults
                to the document last passed to ``set_focus``.
        """
        self._record_time = record_time
        self.idle_threshold = idle_threshold
        self.tick_seconds = tick_seconds
        self._clock = clock
        self._focus_provider = focus_provider
        self._focus: FocusedDocument | None = None
        self.last_activity = clock()
        self.last_known_project: str | None = None
        self._last_state = ActivityState.ACTIVE

    def on_activity(self) -> None:
        """Record that the user did something just now."""
        self.last_activity = self._clock()

    def set_focus(self, document: FocusedDocument | None) -> None:
        """Set the focused document (None when nothing trackable has focus)."""
        self._focus = document

    def current_focus(self) -> FocusedDocument | None:
        if self._focus_provider is not None:
            return self._focus_provider()
        return self._focus

    def idle_seconds(self) -> float:
        return self._clock() - self.last_activity

    @property
    def state(self) -> ActivityState:
        if self.idle_seconds() < self.idle_threshold:
            return ActivityState.ACTIVE
        return ActivityState.IDLE

    def is_active(self) -> bool:
        return self.state is ActivityState.ACTIVE

    def tick(self) -> int:
        """Run one sampling step.

        Returns:
            Seconds credited by this tick (0 or ``tick_seconds``).
        """
        state = self.state
        if state is not self._last_state:
            logger.debug(f"Activity state changed: {self._last_state.value} -> {state.value}")
            self._last_state = state
        if state is ActivityState.IDLE:
            return 0

        focus = self.current_focus()
        if focus is None or not focus.project_root:
            return 0

        self.last_known_project = focus.project_root
        self._record_time(
            focus.project_root,
            focus.language_id or "unknown",
            focus.relative_path,
            self.tick_seconds,
        )
        return self.tick_seconds

"""Tracker context for devtracker.

The Tracker owns one store, one session accumulator, one activity sampler
and one persistence engine. Every inbound host event is handled by a method
on this object, and every mutation goes through the store lock so store and
session are updated together.

Lifecycle:
    tracker = Tracker(config)
    tracker.load()
    ...handlers called by the host or the runner...
    tracker.shutdown()
"""

from __future__ import annotations

import copy
import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable

from devtracker.config import Config
from devtracker.events import (
    ContentChange,
    DocumentChange,
    FocusedDocument,
    count_line_deltas,
    keystrokes_for,
)
from devtracker.metrics.export import generate_csv
from devtracker.metrics.session import SessionAccumulator, SessionState
from devtracker.metrics.store import ProjectData, TrackerStore
from devtracker.persistence import PersistenceEngine
from devtracker.sampler import ActivitySampler, FocusProvider

logger = logging.getLogger("devtracker.tracker")


@dataclass
class TrackerSnapshot:
    """Read-only view handed to a presentation layer.

    Attributes:
        session: Copy of the current session counters.
        project: Copy of the last credited project, if any.
        all_projects: Copies of every tracked project; empty in snapshots
            pushed to listeners.
        daily_goal_seconds: Goal in seconds, fallback applied.
    """

    session: SessionState
    project: ProjectData | None
    all_projects: list[ProjectData] = field(default_factory=list)
    daily_goal_seconds: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "session": self.session.to_dict(),
            "project": self.project.to_dict() if self.project else None,
            "allProjects": [p.to_dict() for p in self.all_projects],
            "dailyGoal": self.daily_goal_seconds,
        }


SnapshotListener = Callable[[TrackerSnapshot], None]


class Tracker:
    """Explicit context object passed to every handler."""

    def __init__(
        self,
        config: Config | None = None,
        persistence: PersistenceEngine | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.now,
        focus_provider: FocusProvider | None = None,
    ):
        """Initialize the tracker.

        Args:
            config: Configuration. Defaults to built-in defaults.
            persistence: Engine for the backing file. Defaults to one at
                ``config.storage.data_path``.
            clock: Monotonic time source for idle detection.
            now: Wall-clock source for day and hour bucketing.
            focus_provider: Optional per-tick resolver of the focused
                document; otherwise the last ``on_focus_changed`` wins.
        """
        self.config = config or Config()
        tracker_config = self.config.tracker

        self.store = TrackerStore(now=now, default_goal=tracker_config.default_goal)
        self.lock = self.store.lock
        self.session = SessionAccumulator()
        self.sampler = ActivitySampler(
            self.record_time,
            idle_threshold=tracker_config.idle_threshold,
            tick_seconds=1,
            clock=clock,
            focus_provider=focus_provider,
        )

        if persistence is None:
            persistence = PersistenceEngine(self.config.storage.data_path)
        self.persistence = persistence
        self.persistence.bind(self.store.to_dict)

        self._listeners: list[SnapshotListener] = []
        self._shut_down = False
        self._load_interrupted = False

    # --- Lifecycle ---

    def load(self) -> None:
        """Replace the in-memory store with the backing file's contents.

        If this is interrupted (e.g. by a shutdown signal) the in-memory store
        no longer reflects the file, so every later flush is refused.
        """
        self._load_interrupted = True
        data = self.persistence.load()
        with self.lock:
            self.store.data = data
        self._load_interrupted = False
        logger.info(
            f"Loaded {len(data.projects)} project(s) from {self.persistence.data_path}"
        )

    def flush(self, wait: bool = False) -> bool:
        """Write the store to the backing file.

        Returns:
            False if the write failed or a load never finished.
        """
        if self._load_interrupted:
            logger.warning(
                f"Load of {self.persistence.data_path} did not finish, not overwriting it"
            )
            return False
        return self.persistence.flush(wait=wait)

    def shutdown(self) -> bool:
        """Run the final synchronous flush. Safe to call more than once."""
        if self._shut_down:
            return True
        self._shut_down = True
        ok = self.flush(wait=True)
        logger.info("Tracker shut down" if ok else "Tracker shut down, final flush failed")
        return ok

    # --- Recording (store and session together) ---

    def record_time(
        self, path: str, language_id: str, relative_file: str, delta_seconds: int
    ) -> None:
        with self.lock:
            self.store.record_time(path, language_id, relative_file, delta_seconds)
            self.session.add_time(language_id, delta_seconds)

    def record_keystrokes(self, path: str, count: int) -> None:
        with self.lock:
            self.store.record_keystrokes(path, count)
            self.session.add_keystrokes(count)

    def record_lines(self, path: str, added: int, deleted: int) -> None:
        """Add line deltas to store and session; zero deltas are a no-op."""
        if added == 0 and deleted == 0:
            return
        with self.lock:
            self.store.record_lines(path, added, deleted)
            self.session.add_lines(added, deleted)

    # --- Goal and queries ---

    def set_daily_goal(self, hours: float) -> None:
        """Set the daily goal and persist it immediately.

        Raises:
            ValueError: If ``hours`` is not a positive number.
        """
        if (
            isinstance(hours, bool)
            or not isinstance(hours, (int, float))
            or not math.isfinite(hours)
            or hours <= 0
        ):
            raise ValueError(f"Daily goal must be a positive number of hours, got {hours!r}")
        self.store.set_daily_goal(hours)
        self.flush()
        self._notify()

    def get_daily_goal(self) -> int:
        return self.store.get_daily_goal()

    def get_today_total_seconds(self) -> int:
        return self.store.get_today_total_seconds()

    def get_project_data(self, path: str) -> ProjectData:
        return self.store.get_project(path)

    def all_projects(self) -> list[ProjectData]:
        return self.store.all_projects()

    def generate_csv(self) -> str:
        with self.lock:
            return generate_csv(self.store.all_projects())

    # --- Inbound host events ---

    def on_focus_or_selection_activity(self) -> None:
        self.sampler.on_activity()

    def on_focus_changed(self, document: FocusedDocument | None) -> None:
        """The active document changed; also counts as user activity."""
        self.sampler.set_focus(document)
        self.sampler.on_activity()

    def on_document_content_changed(
        self,
        document_uri: str,
        changes: Iterable[ContentChange],
        is_file_backed: bool,
        owning_project_root: str | None,
    ) -> None:
        """Account a raw content-change notification.

        Every notification counts as activity. Only file-backed documents
        inside a project are credited: one keystroke per notification with
        changes, plus the summed line deltas when they are non-zero.
        """
        self.sampler.on_activity()

        change = DocumentChange(
            document_uri=document_uri,
            changes=list(changes),
            is_file_backed=is_file_backed,
            owning_project_root=owning_project_root,
        )
        if not change.is_trackable:
            return

        project_root = change.owning_project_root
        keystrokes = keystrokes_for(change.changes)
        added, deleted = count_line_deltas(change.changes)

        with self.lock:
            if keystrokes:
                self.record_keystrokes(project_root, keystrokes)
            self.record_lines(project_root, added, deleted)

        self._notify()

    def on_tick(self) -> int:
        """Sample once; returns the seconds credited."""
        credited = self.sampler.tick()
        if credited:
            self._notify()
        return credited

    def on_periodic_flush(self) -> bool:
        return self.flush()

    def on_shutdown(self) -> bool:
        return self.shutdown()

    # --- Outbound snapshot ---

    def snapshot(self, include_all_projects: bool = True) -> TrackerSnapshot:
        """Return a consistent deep copy of the state a dashboard shows.

        Args:
            include_all_projects: Copy every project's history. Pushed
                snapshots leave ``all_projects`` empty.
        """
        with self.lock:
            project = None
            last_project = self.sampler.last_known_project
            if last_project:
                project = self.store.find_project(last_project)
            all_projects = []
            if include_all_projects:
                all_projects = copy.deepcopy(self.store.all_projects())
            return TrackerSnapshot(
                session=self.session.state.copy(),
                project=copy.deepcopy(project),
                all_projects=all_projects,
                daily_goal_seconds=self.store.get_daily_goal(),
            )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener pushed a snapshot on every state change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot(include_all_projects=False)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Snapshot listener failed: {e}", exc_info=True)

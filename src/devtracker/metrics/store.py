"""Persistent store model for devtracker.

Holds the durable nested structure global -> project -> day -> metrics and
the operations that mutate it. Projects and days are created lazily on the
first observed activity. Documents read from disk are normalized to the
current schema once, right after deserialization (see ``normalize_document``).

Usage:
    from devtracker.metrics.store import TrackerStore

    store = TrackerStore()
    store.record_time("/home/me/alpha", "python", "src/app.py", 1)
    store.get_today_total_seconds()
"""

from __future__ import annotations

import math
import posixpath
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from devtracker.metrics.bucketing import bucket, day_key

SCHEMA_VERSION = 2
DEFAULT_DAILY_GOAL = 14400  # 4 hours


def normalize_path(path: str) -> str:
    """Normalize a project path into its store key.

    The key is case-insensitive and separator-normalized, so "/Foo/Bar",
    "/foo/bar/" and "\\Foo\\Bar" all map to the same project.
    """
    unified = path.replace("\\", "/")
    return posixpath.normpath(unified).lower()


def display_name_for(path: str) -> str:
    """Return the last path component, keeping its original case."""
    unified = posixpath.normpath(path.replace("\\", "/"))
    return posixpath.basename(unified) or unified


def _count(value: Any) -> int:
    """Coerce a stored counter to a non-negative integer."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(0, int(value))


def _stored_goal(value: Any) -> int:
    """Keep a stored goal as an int, even if invalid; 0 for non-numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(value)


@dataclass
class LanguageStats:
    """Seconds spent in one language on one day."""

    name: str
    seconds: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "seconds": self.seconds}


@dataclass
class DayStats:
    """Metrics bucket for one project on one local calendar date.

    Attributes:
        date: ISO date key ("YYYY-MM-DD").
        total_seconds: Active seconds credited on this day.
        keystrokes: Edit events observed on this day.
        lines_added: Lines inserted on this day.
        lines_deleted: Lines removed on this day.
        languages: Per-language seconds, keyed by language id.
        hours: Seconds per hour of day, keyed "0".."23".
        files: Seconds per project-relative file path.
    """

    date: str
    total_seconds: int = 0
    keystrokes: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    languages: dict[str, LanguageStats] = field(default_factory=dict)
    hours: dict[str, int] = field(default_factory=dict)
    files: dict[str, int] = field(default_factory=dict)

    def repair(self) -> None:
        """Restore sub-maps that were dropped or replaced with None."""
        if self.languages is None:
            self.languages = {}
        if self.hours is None:
            self.hours = {}
        if self.files is None:
            self.files = {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk shape."""
        return {
            "date": self.date,
            "seconds": self.total_seconds,
            "keystrokes": self.keystrokes,
            "linesAdded": self.lines_added,
            "linesDeleted": self.lines_deleted,
            "languages": {k: v.to_dict() for k, v in self.languages.items()},
            "hours": dict(self.hours),
            "files": dict(self.files),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], date: str) -> DayStats:
        """Build a DayStats from a stored record, filling missing fields.

        Args:
            data: The stored day record. Older records may lack ``hours``,
                ``languages``, ``files`` or ``keystrokes``.
            date: The map key the record was stored under; used when the
                record itself has no ``date``.

        Returns:
            A DayStats in the current shape.
        """
        seconds = data.get("seconds", data.get("totalSeconds", 0))
        day = cls(
            date=str(data.get("date") or date),
            total_seconds=_count(seconds),
            keystrokes=_count(data.get("keystrokes", 0)),
            lines_added=_count(data.get("linesAdded", 0)),
            lines_deleted=_count(data.get("linesDeleted", 0)),
        )

        languages = data.get("languages")
        if isinstance(languages, dict):
            for lang_id, entry in languages.items():
                if isinstance(entry, dict):
                    name = str(entry.get("name") or lang_id)
                    lang_seconds = _count(entry.get("seconds", 0))
                else:
                    # Legacy shape: language id -> seconds
                    name = lang_id
                    lang_seconds = _count(entry)
                day.languages[lang_id] = LanguageStats(name=name, seconds=lang_seconds)

        hours = data.get("hours")
        if isinstance(hours, dict):
            day.hours = {str(h): _count(s) for h, s in hours.items()}

        files = data.get("files")
        if isinstance(files, dict):
            day.files = {str(f): _count(s) for f, s in files.items()}

        return day


@dataclass
class ProjectData:
    """A tracked workspace root.

    Attributes:
        display_name: Basename of the original path.
        original_path: The path as first observed.
        days: Day buckets keyed by ISO date.
    """

    display_name: str
    original_path: str
    days: dict[str, DayStats] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.display_name,
            "path": self.original_path,
            "days": {k: v.to_dict() for k, v in self.days.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], key: str) -> ProjectData:
        original_path = str(data.get("path") or data.get("originalPath") or key)
        name = data.get("name") or data.get("displayName") or display_name_for(original_path)
        project = cls(display_name=str(name), original_path=original_path)

        days = data.get("days")
        if isinstance(days, dict):
            for date, day_data in days.items():
                if isinstance(day_data, dict):
                    project.days[date] = DayStats.from_dict(day_data, date)

        return project


@dataclass
class GlobalData:
    """Root of the persisted document.

    ``daily_goal`` holds the raw stored value; readers go through
    ``TrackerStore.get_daily_goal`` which applies the fallback.
    """

    daily_goal: int = DEFAULT_DAILY_GOAL
    projects: dict[str, ProjectData] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "dailyGoal": self.daily_goal,
            "projects": {k: v.to_dict() for k, v in self.projects.items()},
        }


def normalize_document(data: Any) -> GlobalData:
    """Normalize a deserialized document to the current schema.

    Accepts the legacy (unversioned) layout as well as the current one.
    Anything that is not a mapping yields the default empty document.
    Projects stored under a non-normalized key are re-keyed; if two keys
    collapse onto the same normalized key their days are merged.

    Args:
        data: The result of ``json.loads`` on the backing file.

    Returns:
        A GlobalData in the current shape.
    """
    result = GlobalData()
    if not isinstance(data, dict):
        return result

    if "dailyGoal" in data:
        result.daily_goal = _stored_goal(data["dailyGoal"])

    projects = data.get("projects")
    if not isinstance(projects, dict):
        return result

    for key, project_data in projects.items():
        if not isinstance(project_data, dict):
            continue
        project = ProjectData.from_dict(project_data, key)
        normalized = normalize_path(key)
        existing = result.projects.get(normalized)
        if existing is None:
            result.projects[normalized] = project
        else:
            _merge_days(existing, project)

    return result


def _merge_days(target: ProjectData, source: ProjectData) -> None:
    """Fold the day buckets of ``source`` into ``target``."""
    for date, day in source.days.items():
        current = target.days.get(date)
        if current is None:
            target.days[date] = day
            continue
        current.total_seconds += day.total_seconds
        current.keystrokes += day.keystrokes
        current.lines_added += day.lines_added
        current.lines_deleted += day.lines_deleted
        for lang_id, lang in day.languages.items():
            entry = current.languages.setdefault(lang_id, LanguageStats(name=lang.name))
            entry.seconds += lang.seconds
        for hour, seconds in day.hours.items():
            current.hours[hour] = current.hours.get(hour, 0) + seconds
        for path, seconds in day.files.items():
            current.files[path] = current.files.get(path, 0) + seconds


class TrackerStore:
    """In-memory owner of the persisted dataset.

    All mutating operations take ``lock`` so that the four counters touched
    by ``record_time`` are never observed half-applied. The lock is
    reentrant; the tracker context holds it around store and session
    updates of the same event.
    """

    def __init__(
        self,
        data: GlobalData | None = None,
        now: Callable[[], datetime] = datetime.now,
        default_goal: int = DEFAULT_DAILY_GOAL,
    ):
        """Initialize the store.

        Args:
            data: Initial document. Defaults to an empty document.
            now: Wall-clock source used for day and hour bucketing.
            default_goal: Goal in seconds returned when the stored goal is
                missing or not positive.
        """
        self.data = data if data is not None else GlobalData(daily_goal=default_goal)
        self.now = now
        self.default_goal = default_goal
        self.lock = threading.RLock()

    @classmethod
    def from_dict(
        cls, raw: Any, now: Callable[[], datetime] = datetime.now
    ) -> TrackerStore:
        """Create a store from a deserialized document."""
        return cls(normalize_document(raw), now=now)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the whole dataset to the on-disk shape."""
        with self.lock:
            return self.data.to_dict()

    # --- Projects and days ---

    def get_project(self, path: str) -> ProjectData:
        """Return the project for ``path``, creating it if needed."""
        key = normalize_path(path)
        with self.lock:
            project = self.data.projects.get(key)
            if project is None:
                project = ProjectData(
                    display_name=display_name_for(path),
                    original_path=path,
                )
                self.data.projects[key] = project
            return project

    get_project_data = get_project

    def find_project(self, path: str) -> ProjectData | None:
        """Return the project for ``path`` without creating it."""
        return self.data.projects.get(normalize_path(path))

    def all_projects(self) -> list[ProjectData]:
        with self.lock:
            return list(self.data.projects.values())

    def get_or_create_day(self, path: str) -> DayStats:
        """Return today's bucket for the project at ``path``.

        The sub-maps are repaired on every access, not only on creation.
        """
        return self._day_for(path, day_key(self.now()))

    def _day_for(self, path: str, date: str) -> DayStats:
        with self.lock:
            project = self.get_project(path)
            day = project.days.get(date)
            if day is None:
                day = DayStats(date=date)
                project.days[date] = day
            day.repair()
            return day

    # --- Recording ---

    def record_time(
        self, path: str, language_id: str, relative_file: str, delta_seconds: int
    ) -> None:
        """Credit ``delta_seconds`` to today's bucket.

        Increments the day total, the current hour, the language entry and
        the file entry by the same amount.
        """
        with self.lock:
            # One instant for both keys
            today, hour = bucket(self.now())
            day = self._day_for(path, today)

            day.total_seconds += delta_seconds
            day.hours[hour] = day.hours.get(hour, 0) + delta_seconds

            lang = day.languages.get(language_id)
            if lang is None:
                lang = LanguageStats(name=language_id)
                day.languages[language_id] = lang
            lang.seconds += delta_seconds

            day.files[relative_file] = day.files.get(relative_file, 0) + delta_seconds

    def record_keystrokes(self, path: str, count: int) -> None:
        with self.lock:
            day = self.get_or_create_day(path)
            day.keystrokes += count

    def record_lines(self, path: str, added: int, deleted: int) -> None:
        """Add line deltas. A call with both values zero does nothing."""
        if added == 0 and deleted == 0:
            return
        with self.lock:
            day = self.get_or_create_day(path)
            day.lines_added += added
            day.lines_deleted += deleted

    # --- Goal and totals ---

    def set_daily_goal(self, hours: float) -> None:
        """Store the daily goal as whole seconds.

        Callers validate ``hours > 0`` before calling.
        """
        with self.lock:
            self.data.daily_goal = math.floor(hours * 3600)

    def get_daily_goal(self) -> int:
        """Return the daily goal in seconds, or the 4 hour default.

        The fallback is applied on every read so that a corrupted stored
        value never leaks out.
        """
        goal = self.data.daily_goal
        if not isinstance(goal, int) or goal <= 0:
            return self.default_goal
        return goal

    def get_today_total_seconds(self) -> int:
        """Sum today's seconds across every project."""
        with self.lock:
            today = day_key(self.now())
            total = 0
            for project in self.data.projects.values():
                day = project.days.get(today)
                if day is not None:
                    total += day.total_seconds
            return total

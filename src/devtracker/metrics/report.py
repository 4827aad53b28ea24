"""Range-filtered summaries over the persistent store.

These are the numbers a dashboard shows: totals per range, per-date trends,
top projects, goal progress and human-readable durations.

Usage:
    from devtracker.metrics import report

    summary = report.global_summary(store.all_projects(), range_name="7d")
    for name, seconds in summary.top_projects:
        print(name, report.format_duration(seconds))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable

from devtracker.metrics.session import SessionState
from devtracker.metrics.store import DayStats, LanguageStats, ProjectData

RANGES = ("today", "7d", "30d", "month", "all")
TOP_PROJECTS_LIMIT = 10


@dataclass
class Totals:
    """Summed counters over a set of days."""

    seconds: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    keystrokes: int = 0


@dataclass
class ProjectSummary:
    """Totals, daily trend and per-language/per-file seconds for one project."""

    name: str
    path: str
    totals: Totals
    trend: dict[str, int] = field(default_factory=dict)
    languages: dict[str, int] = field(default_factory=dict)
    files: dict[str, int] = field(default_factory=dict)


@dataclass
class GlobalSummary:
    """Totals across every project."""

    totals: Totals
    project_count: int
    top_projects: list[tuple[str, int]] = field(default_factory=list)


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def in_range(day: DayStats, range_name: str, today: date | None = None) -> bool:
    """Check whether a day falls in the named range.

    Args:
        day: The day bucket.
        range_name: One of ``RANGES``.
        today: Reference date. Defaults to the local date.

    Raises:
        ValueError: If ``range_name`` is unknown.
    """
    if range_name not in RANGES:
        raise ValueError(
            f"Unknown range '{range_name}'. Valid ranges are: {', '.join(RANGES)}"
        )
    if range_name == "all":
        return True

    if today is None:
        today = datetime.now().date()
    day_date = _parse_date(day.date)
    if day_date is None:
        return False

    if range_name == "today":
        return day_date == today
    if range_name == "month":
        return day_date.year == today.year and day_date.month == today.month

    days_back = 7 if range_name == "7d" else 30
    return day_date >= today - timedelta(days=days_back)


def filter_days(
    days: Iterable[DayStats], range_name: str, today: date | None = None
) -> list[DayStats]:
    return [d for d in days if in_range(d, range_name, today)]


def summarize_days(days: Iterable[DayStats]) -> Totals:
    totals = Totals()
    for day in days:
        totals.seconds += day.total_seconds
        totals.lines_added += day.lines_added
        totals.lines_deleted += day.lines_deleted
        totals.keystrokes += day.keystrokes or 0
    return totals


def project_summary(
    project: ProjectData, range_name: str = "all", today: date | None = None
) -> ProjectSummary:
    """Summarize one project over a range, with a per-date trend."""
    days = filter_days(project.days.values(), range_name, today)
    trend = {d.date: d.total_seconds for d in sorted(days, key=lambda d: d.date)}

    languages: dict[str, int] = {}
    files: dict[str, int] = {}
    for day in days:
        for lang in day.languages.values():
            languages[lang.name] = languages.get(lang.name, 0) + lang.seconds
        for path, seconds in day.files.items():
            files[path] = files.get(path, 0) + seconds

    return ProjectSummary(
        name=project.display_name,
        path=project.original_path,
        totals=summarize_days(days),
        trend=trend,
        languages=languages,
        files=files,
    )


def global_summary(
    projects: Iterable[ProjectData],
    range_name: str = "all",
    today: date | None = None,
    limit: int = TOP_PROJECTS_LIMIT,
) -> GlobalSummary:
    """Summarize all projects over a range.

    Projects with no seconds in the range are left out of ``top_projects``.
    """
    projects = list(projects)
    all_days: list[DayStats] = []
    per_project: list[tuple[str, int]] = []

    for project in projects:
        days = filter_days(project.days.values(), range_name, today)
        all_days.extend(days)
        seconds = sum(d.total_seconds for d in days)
        if seconds > 0:
            per_project.append((project.display_name, seconds))

    per_project.sort(key=lambda item: item[1], reverse=True)
    return GlobalSummary(
        totals=summarize_days(all_days),
        project_count=len(projects),
        top_projects=per_project[:limit],
    )


def top_languages(
    source: DayStats | SessionState | ProjectSummary,
) -> list[tuple[str, int]]:
    """Languages sorted by seconds descending.

    Day buckets hold ``LanguageStats``; sessions and project summaries hold
    plain seconds keyed by language id.
    """
    items = []
    for lang_id, value in source.languages.items():
        if isinstance(value, LanguageStats):
            items.append((value.name, value.seconds))
        else:
            items.append((lang_id, value))
    return sorted(items, key=lambda item: item[1], reverse=True)


def top_files(
    source: DayStats | ProjectSummary, limit: int = 10
) -> list[tuple[str, int]]:
    """Files sorted by seconds descending."""
    items = sorted(source.files.items(), key=lambda item: item[1], reverse=True)
    return items[:limit] if limit > 0 else items


def goal_progress(seconds: int, goal_seconds: int) -> int:
    """Percent of the goal reached, capped at 100."""
    if goal_seconds <= 0:
        return 0
    return min(100, int(seconds * 100 // goal_seconds))


def format_clock(seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_duration(seconds: int) -> str:
    """Format seconds as "Xh Ym", or "Ym" below one hour."""
    hours = int(seconds) // 3600
    minutes = (int(seconds) % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"

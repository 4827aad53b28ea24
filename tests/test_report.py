"""Tests for range summaries and formatting helpers."""

from __future__ import annotations

from datetime import date

import pytest

from devtracker.metrics import report
from devtracker.metrics.session import SessionState
from devtracker.metrics.store import DayStats, LanguageStats, ProjectData

TODAY = date(2024, 3, 15)


def day(date_str: str, seconds: int, **kwargs) -> DayStats:
    return DayStats(date=date_str, total_seconds=seconds, **kwargs)


def project(name: str, *days: DayStats) -> ProjectData:
    return ProjectData(
        display_name=name,
        original_path=f"/code/{name}",
        days={d.date: d for d in days},
    )


class TestInRange:
    """Tests for in_range."""

    @pytest.mark.parametrize(
        "range_name,date_str,expected",
        [
            ("today", "2024-03-15", True),
            ("today", "2024-03-14", False),
            ("7d", "2024-03-08", True),
            ("7d", "2024-03-07", False),
            ("30d", "2024-02-14", True),
            ("30d", "2024-02-13", False),
            ("month", "2024-03-01", True),
            ("month", "2024-02-29", False),
            ("all", "1999-01-01", True),
        ],
    )
    def test_ranges(self, range_name, date_str, expected):
        assert report.in_range(day(date_str, 1), range_name, TODAY) is expected

    def test_unknown_range(self):
        with pytest.raises(ValueError, match="Unknown range"):
            report.in_range(day("2024-03-15", 1), "year", TODAY)

    def test_unparseable_date_is_excluded(self):
        assert report.in_range(day("not-a-date", 1), "7d", TODAY) is False


class TestSummaries:
    """Tests for project and global summaries."""

    def test_summarize_days(self):
        totals = report.summarize_days([
            day("2024-03-15", 10, lines_added=1, keystrokes=3),
            day("2024-03-14", 20, lines_deleted=2, keystrokes=None),
        ])
        assert totals == report.Totals(seconds=30, lines_added=1, lines_deleted=2, keystrokes=3)

    def test_project_summary_trend_is_sorted(self):
        p = project("alpha", day("2024-03-15", 5), day("2024-03-10", 7), day("2024-01-01", 99))
        summary = report.project_summary(p, "30d", TODAY)

        assert summary.name == "alpha"
        assert summary.path == "/code/alpha"
        assert list(summary.trend.items()) == [("2024-03-10", 7), ("2024-03-15", 5)]
        assert summary.totals.seconds == 12

    def test_global_summary(self):
        projects = [
            project("alpha", day("2024-03-15", 100)),
            project("beta", day("2024-03-15", 300)),
            project("stale", day("2023-01-01", 500)),
        ]
        summary = report.global_summary(projects, "today", TODAY)

        assert summary.project_count == 3
        assert summary.totals.seconds == 400
        assert summary.top_projects == [("beta", 300), ("alpha", 100)]

    def test_global_summary_limit(self):
        projects = [project(f"p{i}", day("2024-03-15", i + 1)) for i in range(15)]
        summary = report.global_summary(projects, "all", TODAY)
        assert len(summary.top_projects) == report.TOP_PROJECTS_LIMIT
        assert summary.top_projects[0] == ("p14", 15)


class TestDayBreakdowns:
    """Tests for top_languages and top_files."""

    def test_top_languages(self):
        d = day(
            "2024-03-15",
            30,
            languages={
                "python": LanguageStats("python", 10),
                "rust": LanguageStats("rust", 20),
            },
        )
        assert report.top_languages(d) == [("rust", 20), ("python", 10)]

    def test_top_languages_of_session(self):
        session = SessionState(languages={"go": 5, "python": 40})
        assert report.top_languages(session) == [("python", 40), ("go", 5)]

    def test_project_summary_breakdowns(self):
        p = project(
            "alpha",
            day("2024-03-15", 30, languages={"python": LanguageStats("python", 30)},
                files={"a.py": 20, "b.py": 10}),
            day("2024-03-14", 15, languages={"python": LanguageStats("python", 5),
                                             "rust": LanguageStats("rust", 10)},
                files={"a.py": 15}),
            day("2023-01-01", 99, files={"old.py": 99}),
        )
        summary = report.project_summary(p, "7d", TODAY)

        assert report.top_languages(summary) == [("python", 35), ("rust", 10)]
        assert report.top_files(summary) == [("a.py", 35), ("b.py", 10)]

    def test_top_files_limit(self):
        d = day("2024-03-15", 0, files={f"f{i}.py": i for i in range(12)})
        top = report.top_files(d)
        assert len(top) == 10
        assert top[0] == ("f11.py", 11)


class TestFormatting:
    """Tests for goal progress and duration formatting."""

    def test_goal_progress(self):
        assert report.goal_progress(7200, 14400) == 50
        assert report.goal_progress(20000, 14400) == 100
        assert report.goal_progress(10, 0) == 0

    def test_format_clock(self):
        assert report.format_clock(0) == "00:00:00"
        assert report.format_clock(3725) == "01:02:05"
        assert report.format_clock(360000) == "100:00:00"

    def test_format_duration(self):
        assert report.format_duration(59) == "0m"
        assert report.format_duration(600) == "10m"
        assert report.format_duration(3 * 3600 + 120) == "3h 2m"

"""CLI commands for metrics queries.

This module provides the command handlers for the reporting subcommands:
- show: Summary across all projects for a range
- project: Summary and daily trend for one project
- today: Today's total against the daily goal
- export: Write the CSV projection to a file
- goal: Set the daily goal
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from devtracker.metrics import report

if TYPE_CHECKING:
    import argparse

    from devtracker.metrics.store import TrackerStore


def format_number(n: int) -> str:
    """Format a number with thousands separators."""
    return f"{n:,}"


def _data_path(args: argparse.Namespace) -> Path:
    from devtracker.config import Config

    data = getattr(args, "data", None)
    if data:
        return Path(data).expanduser()
    return Config.load_or_default().storage.data_path


def load_store(args: argparse.Namespace) -> TrackerStore:
    """Load the store from the data file named by ``--data`` or the config."""
    from devtracker.config import Config
    from devtracker.metrics.store import TrackerStore
    from devtracker.persistence import PersistenceEngine

    config = Config.load_or_default()
    engine = PersistenceEngine(_data_path(args))
    return TrackerStore(engine.load(), default_goal=config.tracker.default_goal)


def cmd_metrics_show(args: argparse.Namespace) -> int:
    """Handle 'show' command - summary across all projects."""
    range_name = getattr(args, "range", "7d")

    try:
        store = load_store(args)
        summary = report.global_summary(store.all_projects(), range_name=range_name)
    except Exception as e:
        print(f"Error computing summary: {e}", file=sys.stderr)
        return 1

    totals = summary.totals
    print(f"=== DevTracker Summary ({range_name}) ===")
    print(f"Time: {report.format_duration(totals.seconds)}")
    print(f"Lines: +{format_number(totals.lines_added)} -{format_number(totals.lines_deleted)}")
    print(f"Keystrokes: {format_number(totals.keystrokes)}")
    print(f"Projects tracked: {summary.project_count}")
    print()

    if summary.top_projects:
        print("Top Projects:")
        max_name_len = max(len(name) for name, _ in summary.top_projects)
        for name, seconds in summary.top_projects:
            print(f"  {name.ljust(max_name_len)}  {report.format_duration(seconds).rjust(8)}")
    else:
        print("No activity recorded in this range.")

    return 0


def cmd_metrics_project(args: argparse.Namespace) -> int:
    """Handle 'project <path>' command - one project's summary and trend."""
    range_name = getattr(args, "range", "7d")

    try:
        store = load_store(args)
    except Exception as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        return 1

    project = store.find_project(args.path)
    if project is None:
        print(f"No data found for project: {args.path}", file=sys.stderr)
        return 1

    summary = report.project_summary(project, range_name=range_name)
    totals = summary.totals
    print(f"=== {summary.name} ({range_name}) ===")
    print(f"Path: {summary.path}")
    print(f"Time: {report.format_duration(totals.seconds)}")
    print(f"Lines: +{format_number(totals.lines_added)} -{format_number(totals.lines_deleted)}")
    print(f"Keystrokes: {format_number(totals.keystrokes)}")

    if summary.trend:
        print()
        print("Daily Trend:")
        for date, seconds in summary.trend.items():
            print(f"  {date}  {report.format_duration(seconds).rjust(8)}")

    languages = report.top_languages(summary)
    if languages:
        print()
        print("Languages:")
        max_len = max(len(name) for name, _ in languages)
        for name, seconds in languages:
            print(f"  {name.ljust(max_len)}  {report.format_duration(seconds).rjust(8)}")

    files = report.top_files(summary)
    if files:
        print()
        print("Top Files:")
        max_len = max(len(path) for path, _ in files)
        for path, seconds in files:
            print(f"  {path.ljust(max_len)}  {report.format_duration(seconds).rjust(8)}")

    return 0


def cmd_metrics_today(args: argparse.Namespace) -> int:
    """Handle 'today' command - today's total against the goal."""
    try:
        store = load_store(args)
    except Exception as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        return 1

    total = store.get_today_total_seconds()
    goal = store.get_daily_goal()
    progress = report.goal_progress(total, goal)
    marker = "  ✓ Goal reached" if progress >= 100 else ""

    print(f"Today: {report.format_clock(total)}")
    print(f"Daily goal: {report.format_duration(goal)} ({progress}%){marker}")
    return 0


def cmd_metrics_export(args: argparse.Namespace) -> int:
    """Handle 'export <output>' command - write the CSV projection."""
    from devtracker.metrics.export import write_csv

    try:
        store = load_store(args)
        output = write_csv(store.all_projects(), Path(args.output))
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Data exported: {output}")
    return 0


def cmd_metrics_goal(args: argparse.Namespace) -> int:
    """Handle 'goal <minutes>' command - set the daily goal.

    The goal is entered in minutes and stored via hours, like the editor
    prompt it replaces. A live runner would overwrite the file with its own
    goal on its next flush, so the command refuses while one is running; the
    runner takes the goal as a bridge event instead.
    """
    from devtracker.config import Config
    from devtracker.daemon import live_pid
    from devtracker.persistence import PersistenceEngine

    minutes = args.minutes
    if minutes <= 0:
        print("Error: Please enter a number of minutes greater than 0.", file=sys.stderr)
        return 1

    pid = live_pid(Config.load_or_default().storage.pid_file)
    if pid is not None:
        print(
            f"Error: a devtracker runner is active (PID: {pid}) and would overwrite "
            f'the goal. Send {{"event": "goal", "minutes": {minutes}}} to it instead.',
            file=sys.stderr,
        )
        return 1

    data_path = _data_path(args)
    store = load_store(args)
    store.set_daily_goal(minutes / 60)

    engine = PersistenceEngine(data_path, serialize=store.to_dict)
    if not engine.flush(wait=True):
        print(f"Error: could not save {data_path}: {engine.last_error}", file=sys.stderr)
        return 1

    print(f"Daily goal set to {minutes} minutes.")
    return 0

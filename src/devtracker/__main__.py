"""CLI entry point for devtracker.

Usage:
    python -m devtracker <command> [options]

Commands:
    run [--data PATH]
    status
    show [--range RANGE] [--data PATH]
    project <path> [--range RANGE] [--data PATH]
    today [--data PATH]
    export <output.csv> [--data PATH]
    goal <minutes> [--data PATH]
    config validate
    config get <key>
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from devtracker import __version__
from devtracker.metrics.report import RANGES


def _add_data_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--data",
        help="Path to the data file (default: storage.data_path from config)",
    )


def _add_range_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--range",
        choices=RANGES,
        default="7d",
        help="Time range to summarize (default: 7d)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="devtracker",
        description="Local telemetry for developer activity",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser(
        "run", help="Track host editor events read from stdin (JSON lines)"
    )
    _add_data_argument(run_parser)

    # status command
    subparsers.add_parser("status", help="Show whether a runner is active")

    # show command
    show_parser = subparsers.add_parser("show", help="Summary across all projects")
    _add_range_argument(show_parser)
    _add_data_argument(show_parser)

    # project command
    project_parser = subparsers.add_parser("project", help="Summary for one project")
    project_parser.add_argument("path", help="Project root path")
    _add_range_argument(project_parser)
    _add_data_argument(project_parser)

    # today command
    today_parser = subparsers.add_parser("today", help="Today's total and goal progress")
    _add_data_argument(today_parser)

    # export command
    export_parser = subparsers.add_parser("export", help="Export data as CSV")
    export_parser.add_argument("output", help="Destination CSV file")
    _add_data_argument(export_parser)

    # goal command
    goal_parser = subparsers.add_parser("goal", help="Set the daily goal")
    goal_parser.add_argument(
        "minutes", type=int, help="Daily goal in minutes (e.g. 240 for 4 hours)"
    )
    _add_data_argument(goal_parser)

    # config command
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(
        dest="config_command", help="Config subcommands"
    )

    # config validate
    config_subparsers.add_parser("validate", help="Validate configuration")

    # config get
    get_parser = config_subparsers.add_parser("get", help="Get configuration value")
    get_parser.add_argument("key", help="Configuration key (e.g. tracker.idle_threshold)")

    return parser


def cmd_run(args: argparse.Namespace) -> int:
    """Handle 'run' command."""
    from devtracker.config import Config
    from devtracker.daemon import Runner
    from devtracker.persistence import PersistenceEngine
    from devtracker.tracker import Tracker

    try:
        config = Config.load_or_default()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    data_path = Path(args.data).expanduser() if args.data else config.storage.data_path
    tracker = Tracker(config, persistence=PersistenceEngine(data_path))
    runner = Runner(tracker, config)
    return runner.start()


def cmd_status(args: argparse.Namespace) -> int:
    """Handle 'status' command."""
    from devtracker.config import Config
    from devtracker.daemon import Runner
    from devtracker.tracker import Tracker

    config = Config.load_or_default()
    return Runner(Tracker(config), config).status()


def cmd_config_get(args: argparse.Namespace) -> int:
    """Handle 'config get' command."""
    from devtracker.config import Config

    try:
        config = Config.load_or_default()
        value = config.get_value(args.key)
        print(value)
        return 0
    except KeyError:
        print(f"Error: Config key not found: {args.key}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error reading config: {e}", file=sys.stderr)
        return 1


def cmd_config_validate(args: argparse.Namespace) -> int:
    """Handle 'config validate' command."""
    from devtracker.config import Config

    try:
        config = Config.load()
        print(f"Configuration valid: {config.config_path}")
        print(f"  Idle threshold: {config.tracker.idle_threshold}s")
        print(f"  Tick interval: {config.tracker.tick_interval}s")
        print(f"  Flush interval: {config.tracker.flush_interval}s")
        print(f"  Default goal: {config.tracker.default_goal}s")
        print(f"  Data file: {config.storage.data_path}")
        print(f"  Log file: {config.storage.log_file}")
        return 0
    except FileNotFoundError as e:
        print(f"No configuration found: {e}", file=sys.stderr)
        return 0  # Missing config is not an error
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1


def main() -> NoReturn:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        sys.exit(cmd_run(args))
    elif args.command == "status":
        sys.exit(cmd_status(args))
    elif args.command == "show":
        from devtracker.metrics.cli import cmd_metrics_show

        sys.exit(cmd_metrics_show(args))
    elif args.command == "project":
        from devtracker.metrics.cli import cmd_metrics_project

        sys.exit(cmd_metrics_project(args))
    elif args.command == "today":
        from devtracker.metrics.cli import cmd_metrics_today

        sys.exit(cmd_metrics_today(args))
    elif args.command == "export":
        from devtracker.metrics.cli import cmd_metrics_export

        sys.exit(cmd_metrics_export(args))
    elif args.command == "goal":
        from devtracker.metrics.cli import cmd_metrics_goal

        sys.exit(cmd_metrics_goal(args))
    elif args.command == "config":
        if args.config_command == "validate":
            sys.exit(cmd_config_validate(args))
        elif args.config_command == "get":
            sys.exit(cmd_config_get(args))
        else:
            parser.parse_args(["config", "--help"])
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

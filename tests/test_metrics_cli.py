"""Tests for the reporting CLI commands."""

from __future__ import annotations

import json
from argparse import Namespace
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from devtracker.__main__ import create_parser
from devtracker.config import CONFIG_ENV_VAR
from devtracker.metrics.cli import (
    cmd_metrics_export,
    cmd_metrics_goal,
    cmd_metrics_project,
    cmd_metrics_show,
    cmd_metrics_today,
    format_number,
)


@pytest.fixture
def pid_file(tmp_path: Path) -> Path:
    return tmp_path / "devtracker.pid"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, pid_file: Path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(f'[storage]\npid_file = "{pid_file}"\n')
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))


@pytest.fixture
def data_path(tmp_path: Path) -> Path:
    today = datetime.now().strftime("%Y-%m-%d")
    path = tmp_path / "data.json"
    path.write_text(json.dumps({
        "dailyGoal": 3600,
        "projects": {
            "/code/alpha": {
                "name": "Alpha",
                "path": "/code/Alpha",
                "days": {
                    today: {
                        "date": today,
                        "seconds": 1800,
                        "keystrokes": 1234,
                        "linesAdded": 40,
                        "linesDeleted": 4,
                        "languages": {
                            "python": {"name": "python", "seconds": 1500},
                            "markdown": {"name": "markdown", "seconds": 300},
                        },
                        "files": {"src/app.py": 1500, "README.md": 300},
                    },
                    "2020-01-01": {"date": "2020-01-01", "seconds": 99},
                },
            }
        },
    }))
    return path


class TestFormatNumber:
    def test_thousands(self):
        assert format_number(1234567) == "1,234,567"
        assert format_number(12) == "12"


class TestShow:
    """Tests for the show command."""

    def test_show(self, data_path: Path, capsys):
        assert cmd_metrics_show(Namespace(range="7d", data=str(data_path))) == 0
        out = capsys.readouterr().out
        assert "=== DevTracker Summary (7d) ===" in out
        assert "Time: 30m" in out
        assert "Keystrokes: 1,234" in out
        assert "Alpha" in out

    def test_show_empty(self, tmp_path: Path, capsys):
        assert cmd_metrics_show(Namespace(range="all", data=str(tmp_path / "none.json"))) == 0
        assert "No activity recorded" in capsys.readouterr().out


class TestProject:
    """Tests for the project command."""

    def test_project_lookup_is_case_insensitive(self, data_path: Path, capsys):
        args = Namespace(path="/CODE/Alpha/", range="all", data=str(data_path))
        assert cmd_metrics_project(args) == 0
        out = capsys.readouterr().out
        assert "=== Alpha (all) ===" in out
        assert "2020-01-01" in out

    def test_project_shows_languages_and_files(self, data_path: Path, capsys):
        args = Namespace(path="/code/alpha", range="7d", data=str(data_path))
        assert cmd_metrics_project(args) == 0
        out = capsys.readouterr().out

        languages = out.split("Languages:")[1].split("Top Files:")[0]
        assert languages.index("python") < languages.index("markdown")
        files = out.split("Top Files:")[1]
        assert "src/app.py" in files
        assert "25m" in files

    def test_unknown_project(self, data_path: Path, capsys):
        args = Namespace(path="/code/nope", range="all", data=str(data_path))
        assert cmd_metrics_project(args) == 1
        assert "No data found" in capsys.readouterr().err


class TestToday:
    """Tests for the today command."""

    def test_today(self, data_path: Path, capsys):
        assert cmd_metrics_today(Namespace(data=str(data_path))) == 0
        out = capsys.readouterr().out
        assert "Today: 00:30:00" in out
        assert "Daily goal: 1h 0m (50%)" in out


class TestExport:
    """Tests for the export command."""

    def test_export(self, data_path: Path, tmp_path: Path, capsys):
        output = tmp_path / "out.csv"
        assert cmd_metrics_export(Namespace(output=str(output), data=str(data_path))) == 0

        lines = output.read_text().splitlines()
        assert lines[0] == "Project,Date,Seconds,LinesAdded,LinesDeleted,Keystrokes"
        assert '"Alpha","2020-01-01",99,0,0,0' in lines
        assert f"Data exported: {output}" in capsys.readouterr().out


class TestGoal:
    """Tests for the goal command."""

    def test_set_goal(self, data_path: Path, capsys):
        assert cmd_metrics_goal(Namespace(minutes=90, data=str(data_path))) == 0

        doc = json.loads(data_path.read_text())
        assert doc["dailyGoal"] == 5400
        assert doc["projects"]["/code/alpha"]["days"]["2020-01-01"]["seconds"] == 99
        assert "Daily goal set to 90 minutes." in capsys.readouterr().out

    def test_refuses_while_runner_is_live(self, data_path: Path, pid_file: Path, capsys):
        pid_file.write_text("4242")
        before = data_path.read_text()

        with patch("devtracker.daemon.os.kill"):
            assert cmd_metrics_goal(Namespace(minutes=60, data=str(data_path))) == 1

        assert data_path.read_text() == before
        err = capsys.readouterr().err
        assert "PID: 4242" in err
        assert '"event": "goal"' in err

    def test_stale_runner_pid_does_not_block(self, data_path: Path, pid_file: Path):
        pid_file.write_text("4242")
        with patch("devtracker.daemon.os.kill", side_effect=ProcessLookupError):
            assert cmd_metrics_goal(Namespace(minutes=60, data=str(data_path))) == 0
        assert json.loads(data_path.read_text())["dailyGoal"] == 3600

    @pytest.mark.parametrize("minutes", [0, -30])
    def test_rejects_non_positive(self, data_path: Path, minutes, capsys):
        before = data_path.read_text()
        assert cmd_metrics_goal(Namespace(minutes=minutes, data=str(data_path))) == 1
        assert data_path.read_text() == before
        assert "greater than 0" in capsys.readouterr().err


class TestParser:
    """Tests for argument parsing."""

    def test_range_choices(self):
        args = create_parser().parse_args(["show", "--range", "month"])
        assert args.range == "month"

    def test_invalid_range(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["show", "--range", "year"])

    def test_goal_minutes_is_int(self):
        args = create_parser().parse_args(["goal", "240"])
        assert args.minutes == 240

"""Tests for configuration parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from devtracker.config import CONFIG_ENV_VAR, Config, StorageConfig, TrackerConfig


class TestTrackerConfig:
    """Tests for TrackerConfig."""

    def test_defaults(self):
        config = TrackerConfig()
        assert config.idle_threshold == 300
        assert config.tick_interval == 1
        assert config.flush_interval == 30
        assert config.default_goal == 14400

    def test_from_dict(self):
        config = TrackerConfig.from_dict({"idle_threshold": 120, "flush_interval": 10})
        assert config.idle_threshold == 120
        assert config.flush_interval == 10
        assert config.tick_interval == 1

    @pytest.mark.parametrize("value", [0, -5, "60", 1.5, True])
    def test_rejects_non_positive_integers(self, value):
        with pytest.raises(ValueError, match="tracker.idle_threshold"):
            TrackerConfig.from_dict({"idle_threshold": value})


class TestStorageConfig:
    """Tests for StorageConfig."""

    def test_defaults_under_home(self):
        config = StorageConfig()
        assert config.data_path.name == "data.json"
        assert config.data_path.parent.name == ".devtracker"

    def test_expands_user(self):
        config = StorageConfig.from_dict({"data_path": "~/stats/data.json"})
        assert config.data_path == Path.home() / "stats" / "data.json"

    def test_rejects_non_string(self):
        with pytest.raises(ValueError):
            StorageConfig.from_dict({"log_file": 42})


class TestConfigLoad:
    """Tests for Config.load and friends."""

    def test_load(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text(
            "[tracker]\n"
            "idle_threshold = 600\n"
            "\n"
            "[storage]\n"
            f'data_path = "{tmp_path / "data.json"}"\n'
        )
        config = Config.load(path)

        assert config.config_path == path
        assert config.tracker.idle_threshold == 600
        assert config.storage.data_path == tmp_path / "data.json"

    def test_load_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            Config.load(tmp_path / "nope.toml")

    def test_load_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "config.toml"
        path.write_text("[tracker\n")
        with pytest.raises(ValueError, match="Invalid TOML"):
            Config.load(path)

    def test_load_or_default(self, tmp_path: Path):
        config = Config.load_or_default(tmp_path / "nope.toml")
        assert config.config_path is None
        assert config.tracker == TrackerConfig()

    def test_env_var(self, tmp_path: Path, monkeypatch):
        path = tmp_path / "custom.toml"
        path.write_text("[tracker]\ntick_interval = 2\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert Config.load().tracker.tick_interval == 2


class TestGetValue:
    """Tests for Config.get_value."""

    def test_nested(self):
        assert Config().get_value("tracker.flush_interval") == 30

    def test_invalid(self):
        with pytest.raises(KeyError):
            Config().get_value("tracker.nope")

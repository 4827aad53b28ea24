"""Configuration parsing for devtracker.

Parses ~/.devtracker/config.toml for tracker timing and storage locations.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CONFIG_ENV_VAR = "DEVTRACKER_CONFIG"
DEFAULT_HOME = Path.home() / ".devtracker"


def _positive_int(section: str, key: str, value: Any) -> int:
    """Validate a positive integer setting.

    Raises:
        ValueError: If the value is not an integer greater than zero.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(
            f"Invalid value for '{section}.{key}': expected a positive integer, got {value!r}"
        )
    return value


@dataclass
class TrackerConfig:
    """Timing settings for the sampler and flush loop."""

    idle_threshold: int = 300  # seconds without input before time stops
    tick_interval: int = 1  # seconds between sampler ticks
    flush_interval: int = 30  # seconds between periodic flushes
    default_goal: int = 14400  # seconds, 4 hours

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrackerConfig:
        """Create a TrackerConfig from the [tracker] table.

        Raises:
            ValueError: If any value is not a positive integer.
        """
        defaults = cls()
        values = {}
        for key in ("idle_threshold", "tick_interval", "flush_interval", "default_goal"):
            values[key] = _positive_int("tracker", key, data.get(key, getattr(defaults, key)))
        return cls(**values)


@dataclass
class StorageConfig:
    """Locations of the data, log and PID files."""

    data_path: Path = field(default_factory=lambda: DEFAULT_HOME / "data.json")
    log_file: Path = field(default_factory=lambda: DEFAULT_HOME / "devtracker.log")
    pid_file: Path = field(default_factory=lambda: DEFAULT_HOME / "devtracker.pid")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StorageConfig:
        defaults = cls()
        return cls(
            data_path=_expand(data.get("data_path"), defaults.data_path),
            log_file=_expand(data.get("log_file"), defaults.log_file),
            pid_file=_expand(data.get("pid_file"), defaults.pid_file),
        )


def _expand(value: Any, default: Path) -> Path:
    if value is None:
        return default
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid storage path: {value!r}")
    return Path(value).expanduser()


@dataclass
class Config:
    """Main configuration container."""

    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    config_path: Path | None = None

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Load configuration from a file.

        Args:
            path: Path to config file. If None, uses $DEVTRACKER_CONFIG or
                  ~/.devtracker/config.toml.

        Returns:
            Loaded configuration.

        Raises:
            FileNotFoundError: If no config file found.
            ValueError: If config file is invalid.
        """
        if path is None:
            path = cls._find_config()

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {path}: {e}") from e

        return cls._from_dict(data, path)

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> Config:
        """Load configuration or return default if not found."""
        try:
            return cls.load(path)
        except FileNotFoundError:
            return cls()

    @classmethod
    def _find_config(cls) -> Path:
        """Resolve the config file location."""
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path).expanduser()
        return DEFAULT_HOME / "config.toml"

    @classmethod
    def _from_dict(cls, data: dict[str, Any], path: Path) -> Config:
        """Create a Config from a dictionary."""
        return cls(
            tracker=TrackerConfig.from_dict(data.get("tracker", {})),
            storage=StorageConfig.from_dict(data.get("storage", {})),
            config_path=path,
        )

    def get_value(self, key_path: str) -> Any:
        """Get a configuration value by dot-separated path.

        Args:
            key_path: Dot-separated path to value (e.g. "tracker.idle_threshold").

        Returns:
            The configuration value.

        Raises:
            KeyError: If path is invalid.
        """
        parts = key_path.split(".")
        current: Any = self
        for part in parts:
            if hasattr(current, part):
                current = getattr(current, part)
            elif isinstance(current, dict) and part in current:
                current = current[part]
            else:
                raise KeyError(f"Invalid config path: {key_path}")
        return current

"""DevTracker - Local telemetry for developer activity.

DevTracker turns editor events into time-bucketed usage metrics (time,
keystrokes, lines changed, per-language and per-file breakdowns, hourly
histograms) and keeps them per project and per day in a local JSON file.
"""

__version__ = "0.1.0"
__author__ = "DevTracker Team"

from devtracker.config import Config, StorageConfig, TrackerConfig
from devtracker.events import ContentChange, EventType, FocusedDocument
from devtracker.tracker import Tracker, TrackerSnapshot

__all__ = [
    "Config",
    "StorageConfig",
    "TrackerConfig",
    "ContentChange",
    "EventType",
    "FocusedDocument",
    "Tracker",
    "TrackerSnapshot",
]

"""Metrics model and projections for devtracker.

Architecture:
    Host editor events
            | (tracker handlers)
            v
    SessionAccumulator  +  TrackerStore (day/hour buckets)
                                |
                                v (periodic flush)
                        ~/.devtracker/data.json
                                |
                                v (on demand)
                    export (CSV) / report (summaries)
"""

from devtracker.metrics.bucketing import bucket, day_key, hour_key
from devtracker.metrics.export import generate_csv, write_csv
from devtracker.metrics.session import SessionAccumulator, SessionState
from devtracker.metrics.store import (
    DEFAULT_DAILY_GOAL,
    DayStats,
    GlobalData,
    LanguageStats,
    ProjectData,
    TrackerStore,
    normalize_document,
    normalize_path,
)

__all__ = [
    # Bucketing
    "bucket",
    "day_key",
    "hour_key",
    # Session
    "SessionAccumulator",
    "SessionState",
    # Store
    "DEFAULT_DAILY_GOAL",
    "DayStats",
    "GlobalData",
    "LanguageStats",
    "ProjectData",
    "TrackerStore",
    "normalize_document",
    "normalize_path",
    # Export
    "generate_csv",
    "write_csv",
]

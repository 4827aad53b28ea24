"""Time bucketing helpers.

Converts a wall-clock instant into the keys used by the persistent store:
a calendar-day key ("YYYY-MM-DD") and an hour-of-day key ("0".."23").
Both are computed in the local time zone; no offset is stored.
"""

from __future__ import annotations

from datetime import datetime


def day_key(now: datetime | None = None) -> str:
    """Return the local calendar-day key for an instant.

    Args:
        now: The instant to bucket. Defaults to the current local time.

    Returns:
        ISO date string, e.g. "2024-01-01".
    """
    if now is None:
        now = datetime.now()
    return now.date().isoformat()


def hour_key(now: datetime | None = None) -> str:
    """Return the local hour-of-day key for an instant ("0" through "23")."""
    if now is None:
        now = datetime.now()
    return str(now.hour)


def bucket(now: datetime | None = None) -> tuple[str, str]:
    """Return (day_key, hour_key) for the same instant."""
    if now is None:
        now = datetime.now()
    return day_key(now), hour_key(now)

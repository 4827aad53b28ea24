"""Host editor bridge.

Receives host editor events as JSON lines on stdin and dispatches them to
the tracker handlers.

Usage:
    editor-plugin | python -m devtracker run

Architecture:
    Host editor plugin
            ↓ one JSON object per line
    Bridge (this module)
            ↓
    Tracker handlers (activity, focus, change, flush, goal, shutdown)

Wire format:
    {"event": "activity"}
    {"event": "focus", "project_root": "/code/alpha", "language": "python",
     "file": "src/app.py"}
    {"event": "change", "uri": "file:///code/alpha/src/app.py",
     "file_backed": true, "project_root": "/code/alpha",
     "changes": [{"text": "x\\n", "start_line": 3, "end_line": 3}]}
    {"event": "flush"}
    {"event": "goal", "minutes": 240}
    {"event": "shutdown"}
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from typing import IO, TYPE_CHECKING, Any

from devtracker.events import ContentChange, EventType, FocusedDocument

if TYPE_CHECKING:
    from devtracker.tracker import Tracker

logger = logging.getLogger("devtracker.bridge")


def parse_line(line: str) -> dict[str, Any] | None:
    """Parse one JSON line.

    Returns:
        Parsed JSON object, or None if the line is blank or invalid.
    """
    if not line.strip():
        return None
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        logger.warning(f"Skipping malformed event line: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning("Skipping event line that is not a JSON object")
        return None
    return data


def parse_focus(data: dict[str, Any]) -> FocusedDocument | None:
    """Build the focused document from a focus event.

    A missing or null ``project_root`` means the focused document lies
    outside every project.
    """
    project_root = data.get("project_root")
    if not project_root:
        return None
    return FocusedDocument(
        project_root=str(project_root),
        language_id=str(data.get("language") or "unknown"),
        relative_path=str(data.get("file") or ""),
    )


def parse_changes(data: dict[str, Any]) -> list[ContentChange]:
    """Build content changes from a change event.

    Raises:
        ValueError: If ``changes`` is not a list of objects.
    """
    raw_changes = data.get("changes", [])
    if not isinstance(raw_changes, list):
        raise ValueError("'changes' must be a list")
    changes = []
    for raw in raw_changes:
        if not isinstance(raw, dict):
            raise ValueError("Each change must be an object")
        changes.append(ContentChange.from_dict(raw))
    return changes


def parse_flag(data: dict[str, Any], key: str, default: bool) -> bool:
    """Read a JSON boolean field.

    Raises:
        ValueError: If the field is present but not a boolean.
    """
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be a boolean, got {value!r}")
    return value


def dispatch(tracker: Tracker, data: dict[str, Any]) -> EventType | None:
    """Dispatch one parsed event to the tracker.

    Args:
        tracker: The tracker context.
        data: Parsed event object.

    Returns:
        The event type handled, or None if the event was skipped.
    """
    name = data.get("event")
    try:
        event_type = EventType(name)
    except ValueError:
        logger.warning(f"Skipping unknown event type: {name!r}")
        return None

    if event_type is EventType.ACTIVITY:
        tracker.on_focus_or_selection_activity()
    elif event_type is EventType.FOCUS:
        tracker.on_focus_changed(parse_focus(data))
    elif event_type is EventType.CHANGE:
        try:
            changes = parse_changes(data)
            is_file_backed = parse_flag(data, "file_backed", default=True)
        except ValueError as e:
            logger.warning(f"Skipping malformed change event: {e}")
            return None
        project_root = data.get("project_root")
        tracker.on_document_content_changed(
            document_uri=str(data.get("uri", "")),
            changes=changes,
            is_file_backed=is_file_backed,
            owning_project_root=str(project_root) if project_root else None,
        )
    elif event_type is EventType.FLUSH:
        tracker.on_periodic_flush()
    elif event_type is EventType.GOAL:
        minutes = data.get("minutes")
        if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
            logger.warning(f"Skipping goal event with invalid minutes: {minutes!r}")
            return None
        try:
            tracker.set_daily_goal(minutes / 60)
        except ValueError as e:
            logger.warning(f"Skipping goal event: {e}")
            return None
    elif event_type is EventType.SHUTDOWN:
        # The runner owns the final flush
        pass

    return event_type


def run_bridge(
    tracker: Tracker,
    stream: IO[str] | None = None,
    stop: threading.Event | None = None,
) -> int:
    """Read events until EOF, a shutdown event, or ``stop`` is set.

    Args:
        tracker: The tracker context.
        stream: Input stream. Defaults to stdin.
        stop: Optional event that ends the loop early.

    Returns:
        Number of events dispatched.
    """
    if stream is None:
        stream = sys.stdin

    handled = 0
    for line in stream:
        if stop is not None and stop.is_set():
            break
        data = parse_line(line)
        if data is None:
            continue
        event_type = dispatch(tracker, data)
        if event_type is None:
            continue
        handled += 1
        if event_type is EventType.SHUTDOWN:
            logger.info("Shutdown requested by host")
            break

    return handled

"""Host event types and edit-delta accounting for devtracker.

Defines the inbound events a host editor delivers and the rules that turn
a raw content-change notification into keystroke and line counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable


class EventType(Enum):
    """Inbound events accepted from the host editor."""

    ACTIVITY = "activity"
    FOCUS = "focus"
    CHANGE = "change"
    FLUSH = "flush"
    GOAL = "goal"
    SHUTDOWN = "shutdown"


@dataclass
class ContentChange:
    """A single replacement inside a content-change notification.

    Attributes:
        text: The inserted replacement text.
        start_line: First line of the replaced range (0-based).
        end_line: Last line of the replaced range (0-based).
    """

    text: str = ""
    start_line: int = 0
    end_line: int = 0

    @property
    def lines_added(self) -> int:
        """Newlines inserted by this change."""
        return self.text.count("\n")

    @property
    def lines_deleted(self) -> int:
        """Lines spanned by the replaced range."""
        return max(0, self.end_line - self.start_line)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentChange:
        """Create a ContentChange from a bridge payload.

        Raises:
            ValueError: If a line number is not an integer.
        """
        start = data.get("start_line", 0)
        end = data.get("end_line", start)
        if not isinstance(start, int) or not isinstance(end, int):
            raise ValueError("Content change line numbers must be integers")
        return cls(text=str(data.get("text", "")), start_line=start, end_line=end)


@dataclass
class FocusedDocument:
    """The document that currently has focus, resolved to its project.

    Attributes:
        project_root: Root of the owning project.
        language_id: Host language identifier (e.g. "python").
        relative_path: Path of the file relative to ``project_root``.
    """

    project_root: str
    language_id: str = "unknown"
    relative_path: str = ""


@dataclass
class DocumentChange:
    """A content-change notification from the host.

    Attributes:
        document_uri: URI of the changed document.
        changes: Individual replacements in this notification.
        is_file_backed: False for untitled/virtual documents.
        owning_project_root: Root of the project the document belongs to,
            or None when it lies outside every project.
    """

    document_uri: str
    changes: list[ContentChange] = field(default_factory=list)
    is_file_backed: bool = True
    owning_project_root: str | None = None

    @property
    def is_trackable(self) -> bool:
        """True when the change can be credited to a project."""
        return self.is_file_backed and bool(self.owning_project_root)


def count_line_deltas(changes: Iterable[ContentChange]) -> tuple[int, int]:
    """Sum line deltas across every change of one notification.

    Args:
        changes: The replacements of a single notification.

    Returns:
        Tuple of (lines_added, lines_deleted).
    """
    added = 0
    deleted = 0
    for change in changes:
        added += change.lines_added
        deleted += change.lines_deleted
    return added, deleted


def keystrokes_for(changes: list[ContentChange]) -> int:
    """One keystroke per notification that carries at least one change."""
    return 1 if changes else 0

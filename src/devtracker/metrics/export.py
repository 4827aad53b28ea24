"""CSV projection of the persistent store.

One header row followed by one row per (project, day) pair, in the order
the store's dicts yield them. No sorting is applied.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from devtracker.metrics.store import ProjectData

CSV_HEADER = "Project,Date,Seconds,LinesAdded,LinesDeleted,Keystrokes"


def generate_csv(projects: Iterable[ProjectData]) -> str:
    """Flatten projects into CSV text.

    Args:
        projects: Projects to export, usually ``TrackerStore.all_projects()``.

    Returns:
        The CSV document, each line terminated by a newline.
    """
    lines = [CSV_HEADER]
    for project in projects:
        for day in project.days.values():
            lines.append(
                f'"{project.display_name}","{day.date}",{day.total_seconds},'
                f"{day.lines_added},{day.lines_deleted},{day.keystrokes or 0}"
            )
    return "\n".join(lines) + "\n"


def write_csv(projects: Iterable[ProjectData], output_path: Path) -> Path:
    """Write the CSV projection to ``output_path``.

    Raises:
        OSError: If the file cannot be written.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(generate_csv(projects), encoding="utf-8")
    return output_path

# src/tickly/storage/bundle.py

"""
Data bundle export/import.

A bundle is one JSON object carrying the task list, the progress history and
the sort order, so a user can move their data between machines:

    {"Tasks": [...], "SortOrder": "manual", "Progress": [...]}

Importing is an explicit action, so unlike the stores a broken file raises
BundleError instead of reading as empty.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import BundleError
from ..tasks.task_models import DailyProgressEntry, SortOrder, Task, upsert_progress
from .json_file import write_json_atomic
from .records import progress_from_record, progress_to_record, task_from_record, task_to_record

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DataBundle:
    tasks: list[Task] = field(default_factory=list)
    progress: list[DailyProgressEntry] = field(default_factory=list)
    sort_order: SortOrder = SortOrder.MANUAL


def export_bundle(
    path: str | Path,
    tasks: Iterable[Task],
    progress: Iterable[DailyProgressEntry],
    sort_order: SortOrder = SortOrder.MANUAL,
) -> Path:
    path = Path(path)
    data = {
        "Tasks": [task_to_record(t) for t in tasks],
        "SortOrder": sort_order.value,
        "Progress": [progress_to_record(e) for e in progress],
    }
    write_json_atomic(path, data)
    logger.info(
        "Exported bundle to %s (%d tasks, %d progress entries)",
        path,
        len(data["Tasks"]),
        len(data["Progress"]),
    )
    return path


def load_bundle(path: str | Path) -> DataBundle:
    path = Path(path)
    try:
        text = path.read_text("utf-8")
    except OSError as e:
        raise BundleError(f"cannot read bundle {path}: {e}") from e

    if not text.strip():
        raise BundleError(f"bundle {path} is empty")

    try:
        data = json.loads(text)
    except ValueError as e:
        raise BundleError(f"bundle {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise BundleError(f"bundle {path} must contain a JSON object")

    raw_tasks = data.get("Tasks") or []
    raw_progress = data.get("Progress") or []
    if not isinstance(raw_tasks, list) or not isinstance(raw_progress, list):
        raise BundleError(f"bundle {path} has malformed Tasks/Progress sections")

    tasks = [t for t in (task_from_record(r) for r in raw_tasks) if t is not None]
    tasks.sort(key=lambda t: t.order)

    progress: list[DailyProgressEntry] = []
    for rec in raw_progress:
        entry = progress_from_record(rec)
        if entry is not None:
            upsert_progress(progress, entry.date, entry.percent_completed)

    raw_sort = data.get("SortOrder")
    bundle = DataBundle(
        tasks=tasks,
        progress=progress,
        sort_order=SortOrder.from_raw(raw_sort if isinstance(raw_sort, str) else None),
    )
    logger.info(
        "Loaded bundle %s (%d tasks, %d progress entries)", path, len(tasks), len(progress)
    )
    return bundle


def export_progress_text(entries: Iterable[DailyProgressEntry], *, descending: bool = False) -> str:
    """One "YYYY-MM-DD-NN%" line per entry, sorted by date."""
    ordered = sorted(entries, key=lambda e: e.date, reverse=descending)
    lines = [f"{e.date.isoformat()}-{round(e.percent_completed * 100)}%" for e in ordered]
    return "\n".join(lines) + ("\n" if lines else "")

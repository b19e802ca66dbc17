# src/tickly/storage/task_store.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from ..tasks.task_models import Task
from .json_file import read_json_array, write_json_atomic
from .records import task_from_record, task_to_record

logger = logging.getLogger(__name__)


class TaskFileStore:
    """
    JSON file holding the ordered task list.

    An empty list is stored as *no file*: writing [] deletes the file. Both a
    missing and a deleted file load as [].
    """

    def __init__(self, path: str | Path = "tasks.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("TaskFileStore ready path=%s exists=%s", self._path, self._path.exists())

    @property
    def path(self) -> Path:
        return self._path

    def load_tasks(self) -> list[Task]:
        """Tasks sorted by their persisted order. Never raises."""
        records = read_json_array(self._path)
        tasks: list[Task] = []
        skipped = 0
        for rec in records:
            task = task_from_record(rec)
            if task is None:
                skipped += 1
                continue
            tasks.append(task)

        if skipped:
            logger.warning("Skipped %d unreadable task records in %s", skipped, self._path)

        tasks.sort(key=lambda t: t.order)
        logger.info("Loaded %d tasks from %s", len(tasks), self._path)
        return tasks

    def write_tasks(self, tasks: Iterable[Task]) -> None:
        """Persist `tasks` as-is. Raises OSError on I/O failure."""
        records = [task_to_record(t) for t in tasks]
        if not records:
            if self._path.exists():
                self._path.unlink()
                logger.info("Task list empty; deleted %s", self._path)
            return

        write_json_atomic(self._path, records)
        logger.debug("Saved %d tasks to %s", len(records), self._path)

# src/tickly/storage/progress_store.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from ..tasks.task_models import DailyProgressEntry, upsert_progress
from .json_file import read_json_array, write_json_atomic
from .records import progress_from_record, progress_to_record

logger = logging.getLogger(__name__)


class ProgressFileStore:
    """JSON file with one DailyProgressEntry per calendar date."""

    def __init__(self, path: str | Path = "dailyProgress.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("ProgressFileStore ready path=%s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def load_progress(self) -> list[DailyProgressEntry]:
        """
        Entries from disk, one per date. Never raises.

        A file carrying the same date twice is folded with last-wins, so the
        one-entry-per-date rule holds from here on.
        """
        entries: list[DailyProgressEntry] = []
        for rec in read_json_array(self._path):
            entry = progress_from_record(rec)
            if entry is None:
                continue
            upsert_progress(entries, entry.date, entry.percent_completed)
        logger.debug("Loaded %d progress entries from %s", len(entries), self._path)
        return entries

    def write_progress(self, entries: Iterable[DailyProgressEntry]) -> None:
        records = [progress_to_record(e) for e in entries]
        write_json_atomic(self._path, records)
        logger.debug("Saved %d progress entries to %s", len(records), self._path)

# src/tickly/core/tracker.py

"""
Task tracker: owner of the in-memory ordered task list.

Every successful mutation runs the same pipeline:
1. recompute order/index/colors and aggregate progress (one diff pass),
2. upsert today's progress entry,
3. notify listeners with the batch of field changes,
4. request a debounced save of the task list (and of progress if it moved).

All methods are meant to be called from a single owner thread. The only
other threads are the save timers of the two DebouncedStores. They only see
snapshots copied here, on the owner thread, at request time.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from datetime import date

from ..errors import TaskValidationError
from ..storage.debounced import DebouncedStore
from ..tasks.list_state import FieldChange, ListState, recompute, sort_tasks
from ..tasks.recurrence import (
    Advance,
    advance_on_completion,
    catch_up_on_load,
    reset_if_eligible_for_tomorrow_daily,
)
from ..tasks.task_models import DailyProgressEntry, SortOrder, Task, upsert_progress
from .ports import ChangeListener, Clock, ProgressRepo, TaskRepo

logger = logging.getLogger(__name__)


class TaskTracker:
    def __init__(
        self,
        *,
        task_repo: TaskRepo,
        progress_repo: ProgressRepo,
        settings,
        clock: Clock = date.today,
    ) -> None:
        self._task_repo = task_repo
        self._progress_repo = progress_repo
        self._clock = clock
        self.sort_order = SortOrder(getattr(settings, "sort_order", SortOrder.MANUAL))

        self._task_saver: DebouncedStore[list[Task]] = DebouncedStore(
            "tasks",
            task_repo.write_tasks,
            delay_seconds=float(settings.tasks_debounce_seconds),
        )
        self._progress_saver: DebouncedStore[list[DailyProgressEntry]] = DebouncedStore(
            "progress",
            progress_repo.write_progress,
            delay_seconds=float(settings.progress_debounce_seconds),
        )

        self._tasks: list[Task] = []
        self._progress: list[DailyProgressEntry] = []
        self._state: ListState | None = None
        self._listeners: list[ChangeListener] = []

    # ---- read side ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def progress_history(self) -> tuple[DailyProgressEntry, ...]:
        return tuple(self._progress)

    @property
    def state(self) -> ListState | None:
        return self._state

    def today(self) -> date:
        return self._clock()

    def get(self, task_id: str) -> Task | None:
        idx = self._index_of(task_id)
        return self._tasks[idx] if idx is not None else None

    def subscribe(self, listener: ChangeListener):
        """Register a change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---- lifecycle ----

    def load(self) -> tuple[Task, ...]:
        """
        Load both stores, catch up stale repeating tasks, recompute.

        Persists the task list again only if load-time corrections changed it.
        """
        today = self._clock()
        tasks = self._task_repo.load_tasks()

        corrected = sum(1 for t in tasks if catch_up_on_load(t, today))
        self._tasks = sort_tasks(tasks, self.sort_order)
        self._progress = self._progress_repo.load_progress()
        self._state = None

        changes = self._refresh(today)
        reordered = any(c.field == "order" for c in changes)
        if corrected or reordered:
            logger.info("Load corrected %d due dates (reordered=%s); saving", corrected, reordered)
            self._request_task_save()

        logger.info("Tracker loaded %d tasks, %d progress entries", len(self._tasks), len(self._progress))
        return self.tasks

    def flush(self) -> None:
        """Write both stores now (shutdown / suspension)."""
        self._task_saver.flush(self._task_snapshot())
        self._progress_saver.flush(self._progress_snapshot())

    def wait_idle(self, timeout: float | None = None) -> bool:
        ok_tasks = self._task_saver.wait_idle(timeout)
        ok_progress = self._progress_saver.wait_idle(timeout)
        return ok_tasks and ok_progress

    # ---- mutations ----

    def add(self, task: Task) -> Task:
        task.validate()
        if self._index_of(task.id) is not None:
            raise TaskValidationError(f"task id already exists: {task.id}")

        task.order = len(self._tasks)
        self._tasks.append(task)
        logger.debug("Task added id=%s title=%r", task.id, task.title)
        self._commit()
        return task

    def update(self, task: Task) -> bool:
        """Replace the task with the same id, keeping its position."""
        task.validate()
        idx = self._index_of(task.id)
        if idx is None:
            logger.warning("update: task id=%s not found", task.id)
            return False

        task.order = self._tasks[idx].order
        task.index = idx
        self._tasks[idx] = task
        self._commit()
        return True

    def delete(self, task_id: str) -> bool:
        idx = self._index_of(task_id)
        if idx is None:
            return False
        removed = self._tasks.pop(idx)
        logger.debug("Task deleted id=%s", removed.id)
        self._commit()
        return True

    def mark_done(self, task_id: str) -> Advance | None:
        """Complete a task. None if the id is unknown."""
        idx = self._index_of(task_id)
        if idx is None:
            return None

        task = self._tasks[idx]
        outcome = advance_on_completion(task, self._clock())
        if outcome == Advance.REMOVED:
            self._tasks.pop(idx)
        logger.info("Task id=%s done -> %s", task.id, outcome.value)
        self._commit()
        return outcome

    def reset_daily(self, task_id: str) -> bool:
        task = self.get(task_id)
        if task is None or not reset_if_eligible_for_tomorrow_daily(task, self._clock()):
            return False
        self._commit()
        return True

    def move(self, old_index: int, new_index: int) -> bool:
        n = len(self._tasks)
        if not (0 <= old_index < n and 0 <= new_index < n) or old_index == new_index:
            return False
        task = self._tasks.pop(old_index)
        self._tasks.insert(new_index, task)
        self._commit()
        return True

    def replace_all(
        self,
        tasks: Iterable[Task],
        progress: Iterable[DailyProgressEntry] | None = None,
    ) -> None:
        """Swap in an imported data set (the same path as a fresh load)."""
        today = self._clock()
        new_tasks = list(tasks)
        for t in new_tasks:
            catch_up_on_load(t, today)
        self._tasks = sort_tasks(new_tasks, self.sort_order)

        if progress is not None:
            self._progress = []
            for e in progress:
                upsert_progress(self._progress, e.date, e.percent_completed)
            self._progress_saver.request_save(self._progress_snapshot())

        self._commit()

    def clear_progress(self) -> None:
        """Bulk-clear the daily progress history."""
        self._progress.clear()
        self._progress_saver.request_save([])
        logger.info("Progress history cleared")

    # ---- internals ----

    def _index_of(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def _refresh(self, today: date) -> list[FieldChange]:
        state = recompute(self._tasks, today, previous=self._state)
        self._state = state
        self._record_progress(today, state.progress)
        self._notify(state.changes)
        return state.changes

    def _commit(self) -> None:
        self._refresh(self._clock())
        self._request_task_save()

    def _task_snapshot(self) -> list[Task]:
        # Field-level copies; the live objects keep changing after the request.
        return [dataclasses.replace(t) for t in self._tasks]

    def _progress_snapshot(self) -> list[DailyProgressEntry]:
        return [dataclasses.replace(e) for e in self._progress]

    def _request_task_save(self) -> None:
        self._task_saver.request_save(self._task_snapshot())

    def _record_progress(self, today: date, value: float) -> None:
        current = next((e for e in self._progress if e.date == today), None)
        if current is not None and current.percent_completed == value:
            return
        upsert_progress(self._progress, today, value)
        self._progress_saver.request_save(self._progress_snapshot())

    def _notify(self, changes: list[FieldChange]) -> None:
        if not changes:
            return
        for listener in list(self._listeners):
            try:
                listener(changes)
            except Exception:
                logger.exception("Change listener failed")

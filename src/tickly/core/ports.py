# src/tickly/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the tracker.

The tracker depends on Protocols instead of concrete file stores, which keeps
storage swappable and makes testing easier.
"""

from collections.abc import Callable, Iterable
from datetime import date
from typing import Protocol

from ..tasks.list_state import FieldChange
from ..tasks.task_models import DailyProgressEntry, Task

Clock = Callable[[], date]
# Returns "today"; injected so tests can pin the date.

ChangeListener = Callable[[list[FieldChange]], None]
# Receives one batch of field changes per recompute pass.


class TaskRepo(Protocol):
    def load_tasks(self) -> list[Task]: ...
    def write_tasks(self, tasks: Iterable[Task]) -> None: ...


class ProgressRepo(Protocol):
    def load_progress(self) -> list[DailyProgressEntry]: ...
    def write_progress(self, entries: Iterable[DailyProgressEntry]) -> None: ...

# src/tickly/tasks/list_state.py

"""
List state calculator.

Derives per-task order/index and position color, plus the aggregate
"not due today" progress, from an ordered snapshot of tasks.

Colors follow a three-point gradient red -> yellow -> green. It is two
linear segments meeting at yellow, not a single red -> green lerp.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .task_models import RED, Color, SortOrder, Task


@dataclass(frozen=True, slots=True)
class FieldChange:
    task_id: str | None  # None for list-level fields (progress)
    field: str
    old: Any
    new: Any


@dataclass(frozen=True, slots=True)
class ListState:
    progress: float
    progress_color: Color
    changes: list[FieldChange] = field(default_factory=list)


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def gradient_color(factor: float, alpha: float = 1.0) -> Color:
    factor = _clamp01(factor)
    if factor < 0.5:
        r, g = 1.0, factor * 2.0
    else:
        r, g = 1.0 - (factor - 0.5) * 2.0, 1.0
    return Color(_clamp01(r), _clamp01(g), 0.0, alpha)


def position_color(i: int, n: int) -> Color:
    """Color for position i of n: first item red, last green."""
    if n <= 1:
        return RED
    return gradient_color(i / (n - 1), RED.a)


def aggregate_progress(tasks: Sequence[Task], today: date) -> tuple[float, Color]:
    """
    Fraction of tasks NOT due today, and its color.

    An empty list counts as fully done (1.0, green).
    """
    total = len(tasks)
    if total == 0:
        value = 1.0
    else:
        due_today = sum(1 for t in tasks if t.is_due_on(today))
        value = _clamp01((total - due_today) / total)
    return value, gradient_color(value)


def assign_order_and_index(tasks: Sequence[Task]) -> list[FieldChange]:
    """Make order/index equal list position. Untouched when already correct."""
    changes: list[FieldChange] = []
    for i, task in enumerate(tasks):
        if task.order != i:
            changes.append(FieldChange(task.id, "order", task.order, i))
            task.order = i
        if task.index != i:
            changes.append(FieldChange(task.id, "index", task.index, i))
            task.index = i
    return changes


def recompute(
    tasks: Sequence[Task],
    today: date,
    *,
    previous: ListState | None = None,
) -> ListState:
    """
    Full recompute-and-diff pass over the list.

    Applies order, index and position color, and returns the aggregate
    progress with one FieldChange per field whose value changed. Progress
    changes are reported against `previous` when given.
    """
    changes = assign_order_and_index(tasks)

    n = len(tasks)
    for i, task in enumerate(tasks):
        color = position_color(i, n)
        if task.display_color != color:
            changes.append(FieldChange(task.id, "display_color", task.display_color, color))
            task.display_color = color

    value, color = aggregate_progress(tasks, today)
    old_value = previous.progress if previous is not None else None
    old_color = previous.progress_color if previous is not None else None
    if old_value != value:
        changes.append(FieldChange(None, "progress", old_value, value))
    if old_color != color:
        changes.append(FieldChange(None, "progress_color", old_color, color))

    return ListState(progress=value, progress_color=color, changes=changes)


def sort_tasks(tasks: Sequence[Task], sort_order: SortOrder) -> list[Task]:
    """Order tasks for display. MANUAL keeps the persisted order."""
    if sort_order == SortOrder.PRIORITY_HIGH_FIRST:
        return sorted(tasks, key=lambda t: (int(t.priority), t.title.casefold()))
    if sort_order == SortOrder.PRIORITY_LOW_FIRST:
        return sorted(tasks, key=lambda t: (-int(t.priority), t.title.casefold()))
    return sorted(tasks, key=lambda t: t.order)

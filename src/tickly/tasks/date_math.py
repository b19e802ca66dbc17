# src/tickly/tasks/date_math.py

"""
Date arithmetic for repeating tasks.

Pure functions, no state. Dates only: callers pass `datetime.date` values.
"""

from __future__ import annotations

from datetime import date, timedelta

from .task_models import RepetitionRule, Task, Weekday

ONE_DAY = timedelta(days=1)


def next_weekday_on_or_after(base: date, weekday: Weekday) -> date:
    """
    Smallest date >= base falling on `weekday`.

    Inclusive: if `base` already is that weekday it is returned unchanged.
    """
    delta = (int(weekday) - int(Weekday.of(base))) % 7
    return base + timedelta(days=delta)


def compute_next_due_date(task: Task, today: date) -> date | None:
    """
    Next due date after completing a repeating task.

    The base is the task's current due date, or `today` when it has none.
    Weekly is exclusive of the base: completing a weekly task never
    reschedules it onto the day just completed.

    Returns None for an unset/unknown rule (the caller drops the task).
    """
    base = task.due_date or today
    rule = task.repetition_rule

    if rule == RepetitionRule.DAILY:
        return base + ONE_DAY

    if rule == RepetitionRule.ALTERNATE_DAY:
        return base + 2 * ONE_DAY

    if rule == RepetitionRule.WEEKLY:
        if task.repetition_weekday is not None:
            return next_weekday_on_or_after(base + ONE_DAY, task.repetition_weekday)
        # No weekday configured: keep the weekly cadence from the base.
        return base + 7 * ONE_DAY

    return None

# src/tickly/tasks/recurrence.py

"""
Recurrence scheduler.

Mutates a task's due date in place:
- on completion (advance to the next occurrence, or report removal),
- on the early "reset" of a daily task that is already due tomorrow,
- at load time, catching up a stale due date after days without a run.

Completion and catch-up use different base semantics for weekly tasks:
completion is exclusive of the current due date, catch-up is inclusive of
today.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum

from .date_math import ONE_DAY, compute_next_due_date, next_weekday_on_or_after
from .task_models import RepetitionRule, Task, TimeType, Weekday

logger = logging.getLogger(__name__)


class Advance(str, Enum):
    UPDATED = "updated"
    REMOVED = "removed"


def advance_on_completion(task: Task, today: date) -> Advance:
    """Handle a task being marked done. REMOVED means the caller deletes it."""
    if not task.is_repeating:
        return Advance.REMOVED

    next_due = compute_next_due_date(task, today)
    if next_due is None:
        logger.info("No next due date for task id=%s rule=%s; removing", task.id, task.repetition_rule)
        return Advance.REMOVED

    logger.debug("Task id=%s advanced %s -> %s", task.id, task.due_date, next_due)
    task.due_date = next_due
    return Advance.UPDATED


def can_reset_daily(task: Task, today: date) -> bool:
    return (
        task.time_type == TimeType.REPEATING
        and task.repetition_rule == RepetitionRule.DAILY
        and task.due_date is not None
        and task.due_date == today + ONE_DAY
    )


def reset_if_eligible_for_tomorrow_daily(task: Task, today: date) -> bool:
    """Pull a daily task due tomorrow back to today. False (no-op) otherwise."""
    if not can_reset_daily(task, today):
        return False

    task.due_date = today
    logger.debug("Task id=%s reset to today (%s)", task.id, today)
    return True


def _caught_up_due_date(task: Task, stale: date, today: date) -> date:
    rule = task.repetition_rule

    if rule == RepetitionRule.DAILY:
        return today

    if rule == RepetitionRule.ALTERNATE_DAY:
        # Keep the two-day parity across the gap.
        return today if (today - stale).days % 2 == 0 else today + ONE_DAY

    if rule == RepetitionRule.WEEKLY:
        if task.repetition_weekday is not None:
            return next_weekday_on_or_after(today, task.repetition_weekday)
        corrected = stale
        while corrected < today:
            corrected += 7 * ONE_DAY
        return corrected

    return stale


def catch_up_on_load(task: Task, today: date) -> bool:
    """
    Correct a stale due date once at start-up.

    Only repeating tasks with a due date before `today` are touched. Returns
    True when the due date was changed.
    """
    if not task.is_repeating or task.due_date is None or task.due_date >= today:
        return False

    stale = task.due_date
    corrected = _caught_up_due_date(task, stale, today)
    if corrected == stale:
        return False

    task.due_date = corrected
    logger.info("Caught up task id=%s due date %s -> %s", task.id, stale, corrected)
    return True


def is_completable_today(task: Task, today: date) -> bool:
    """Non-repeating tasks always; repeating ones only once due."""
    if not task.is_repeating:
        return True
    return task.due_date is not None and task.due_date <= today


# ---- human-readable schedule ----

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_RULE_LABELS = {
    RepetitionRule.DAILY: "Daily",
    RepetitionRule.ALTERNATE_DAY: "Every other day",
}


def _format_day(day: date, today: date, *, with_year: bool) -> str:
    if day == today:
        return "Today"
    if day == today + ONE_DAY:
        return "Tomorrow"
    dow = Weekday.of(day).name[:3].title()
    text = f"{dow}, {day.day:02d} {_MONTHS[day.month - 1]}"
    return f"{text} {day.year}" if with_year else text


def describe_schedule(task: Task, today: date) -> str:
    """E.g. "Any time", "Tomorrow", "Weekly on Monday, due Mon, 05 May"."""
    if task.time_type == TimeType.SPECIFIC_DATE:
        if task.due_date is None:
            return "No date"
        return _format_day(task.due_date, today, with_year=True)

    if task.time_type == TimeType.REPEATING:
        if task.repetition_rule == RepetitionRule.WEEKLY:
            label = "Weekly"
            if task.repetition_weekday is not None:
                label += f" on {task.repetition_weekday.name.title()}"
        else:
            label = _RULE_LABELS.get(task.repetition_rule, "Repeating")  # type: ignore[arg-type]
        due = _format_day(task.due_date, today, with_year=False) if task.due_date else "Unknown"
        return f"{label}, due {due}"

    return "Any time"

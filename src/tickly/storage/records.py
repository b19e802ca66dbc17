# src/tickly/storage/records.py

"""
Flat JSON records for tasks and daily progress.

Field names are the ones the tracker has always written, so files from older
versions keep loading. Unknown fields are ignored, missing optional fields
become None.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from ..tasks.task_models import (
    DailyProgressEntry,
    RepetitionRule,
    Task,
    TaskPriority,
    TimeType,
    Weekday,
    new_task_id,
)


def date_to_json(day: date | None) -> str | None:
    if day is None:
        return None
    return f"{day.isoformat()}T00:00:00"


def date_from_json(raw: Any) -> date | None:
    """Accept "2025-05-01", "2025-05-01T00:00:00", "...+03:30", "...Z"."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    s = raw.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def task_to_record(task: Task) -> dict[str, Any]:
    return {
        "Id": task.id,
        "Title": task.title,
        "Priority": int(task.priority),
        "TimeType": int(task.time_type),
        "DueDate": date_to_json(task.due_date),
        "RepetitionType": int(task.repetition_rule) if task.repetition_rule is not None else None,
        "RepetitionDayOfWeek": (
            int(task.repetition_weekday) if task.repetition_weekday is not None else None
        ),
        "Order": task.order,
    }


def task_from_record(rec: Any) -> Task | None:
    """Lenient decode. Returns None when the record is not usable at all."""
    if not isinstance(rec, dict):
        return None

    title = rec.get("Title")
    if not isinstance(title, str) or not title.strip():
        return None

    raw_id = rec.get("Id")
    task_id = str(raw_id).strip() if raw_id not in (None, "") else new_task_id()

    order = rec.get("Order")
    if isinstance(order, bool) or not isinstance(order, int):
        order = 0

    time_type = TimeType.from_raw(rec.get("TimeType"), TimeType.NONE)
    rule = RepetitionRule.from_raw(rec.get("RepetitionType"))
    weekday = Weekday.from_raw(rec.get("RepetitionDayOfWeek"))

    # Older files carry a rule on non-repeating tasks; the rule means nothing there.
    if time_type != TimeType.REPEATING:
        rule = None
    if rule != RepetitionRule.WEEKLY:
        weekday = None

    return Task(
        id=task_id,
        title=title,
        priority=TaskPriority.from_raw(rec.get("Priority"), TaskPriority.MEDIUM),
        time_type=time_type,
        due_date=date_from_json(rec.get("DueDate")),
        repetition_rule=rule,
        repetition_weekday=weekday,
        order=order,
        index=order,
    )


def progress_to_record(entry: DailyProgressEntry) -> dict[str, Any]:
    return {
        "Date": date_to_json(entry.date),
        "PercentageCompleted": float(entry.percent_completed),
    }


def progress_from_record(rec: Any) -> DailyProgressEntry | None:
    if not isinstance(rec, dict):
        return None
    day = date_from_json(rec.get("Date"))
    value = rec.get("PercentageCompleted")
    if day is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return DailyProgressEntry(date=day, percent_completed=float(value))

# src/tickly/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import IntEnum, StrEnum
from typing import Any

from ..errors import TaskValidationError


class _PersistedEnum(IntEnum):
    """
    Integer enum as written to the JSON files.

    Loading accepts either the integer value or the member name in any common
    spelling ("AlternateDay", "alternate_day", "ALTERNATE_DAY").
    """

    @classmethod
    def from_raw(cls, raw: Any, default: Any = None) -> Any:
        """Member for `raw`, or `default` when it cannot be decoded."""
        if raw is None or isinstance(raw, bool):
            return default
        if isinstance(raw, int):
            try:
                return cls(raw)
            except ValueError:
                return default
        if isinstance(raw, str):
            key = raw.strip().replace("_", "").replace("-", "").lower()
            if key.isdigit():
                return cls.from_raw(int(key), default)
            for member in cls:
                if member.name.replace("_", "").lower() == key:
                    return member
        return default


class TaskPriority(_PersistedEnum):
    HIGH = 0
    MEDIUM = 1
    LOW = 2


class TimeType(_PersistedEnum):
    NONE = 0  # any time
    SPECIFIC_DATE = 1
    REPEATING = 2


class RepetitionRule(_PersistedEnum):
    DAILY = 0
    ALTERNATE_DAY = 1  # every other day from the due date
    WEEKLY = 2


class Weekday(_PersistedEnum):
    """Day of week, Sunday first (matches the persisted numbering)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def of(cls, day: date) -> Weekday:
        # date.weekday() is Monday=0
        return cls((day.weekday() + 1) % 7)


class SortOrder(StrEnum):
    MANUAL = "manual"
    PRIORITY_HIGH_FIRST = "priority_high_first"
    PRIORITY_LOW_FIRST = "priority_low_first"

    @classmethod
    def from_raw(cls, raw: str | None) -> SortOrder:
        if not raw:
            return cls.MANUAL
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.MANUAL


@dataclass(frozen=True, slots=True)
class Color:
    r: float
    g: float
    b: float
    a: float = 1.0

    def to_hex(self) -> str:
        def ch(v: float) -> str:
            return f"{round(max(0.0, min(1.0, v)) * 255):02X}"

        return f"#{ch(self.r)}{ch(self.g)}{ch(self.b)}{ch(self.a)}"


RED = Color(1.0, 0.0, 0.0)
YELLOW = Color(1.0, 1.0, 0.0)
GREEN = Color(0.0, 1.0, 0.0)


def new_task_id() -> str:
    return str(uuid.uuid4())


def as_day(value: date | datetime | None) -> date | None:
    """Strip any time-of-day component."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(slots=True)
class Task:
    title: str
    time_type: TimeType = TimeType.NONE
    due_date: date | None = None
    repetition_rule: RepetitionRule | None = None
    repetition_weekday: Weekday | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    id: str = field(default_factory=new_task_id)

    # List state: order is persisted, index and display_color are derived.
    order: int = 0
    index: int = 0
    display_color: Color | None = None

    def __post_init__(self) -> None:
        self.due_date = as_day(self.due_date)

    @property
    def is_repeating(self) -> bool:
        return self.time_type == TimeType.REPEATING

    def is_due_on(self, day: date) -> bool:
        return self.due_date is not None and self.due_date == day

    def validate(self) -> None:
        if not self.title or not self.title.strip():
            raise TaskValidationError("title is required")

        if self.time_type == TimeType.REPEATING:
            if self.repetition_rule is None:
                raise TaskValidationError("repeating task needs a repetition rule")
        elif self.repetition_rule is not None:
            raise TaskValidationError("repetition rule is only valid on repeating tasks")

        if self.repetition_weekday is not None and self.repetition_rule != RepetitionRule.WEEKLY:
            raise TaskValidationError("weekday is only valid on weekly tasks")


@dataclass(slots=True)
class DailyProgressEntry:
    date: date
    percent_completed: float

    def __post_init__(self) -> None:
        self.date = as_day(self.date)  # type: ignore[assignment]


def upsert_progress(
    entries: list[DailyProgressEntry], day: date, percent_completed: float
) -> DailyProgressEntry:
    """Replace the value recorded for `day`, or append a new entry."""
    day = as_day(day)  # type: ignore[assignment]
    for entry in entries:
        if entry.date == day:
            entry.percent_completed = percent_completed
            return entry

    entry = DailyProgressEntry(date=day, percent_completed=percent_completed)
    entries.append(entry)
    return entry

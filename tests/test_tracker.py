# tests/test_tracker.py

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from tickly.core.tracker import TaskTracker
from tickly.errors import TaskValidationError
from tickly.tasks.recurrence import Advance
from tickly.tasks.task_models import (
    DailyProgressEntry,
    RepetitionRule,
    SortOrder,
    Task,
    TaskPriority,
    TimeType,
)

from .fakes import TODAY, FakeProgressRepo, FakeTaskRepo, FixedClock, GatedWriter

DAY = timedelta(days=1)


def _daily(title: str, due=TODAY, **kw) -> Task:
    return Task(
        title=title,
        time_type=TimeType.REPEATING,
        due_date=due,
        repetition_rule=RepetitionRule.DAILY,
        **kw,
    )


def _later(title: str, **kw) -> Task:
    return Task(title=title, time_type=TimeType.SPECIFIC_DATE, due_date=TODAY + 3 * DAY, **kw)


def _make(settings, clock, task_repo, progress_repo) -> TaskTracker:
    t = TaskTracker(task_repo=task_repo, progress_repo=progress_repo, settings=settings, clock=clock)
    t.load()
    return t


# ---- mutations ----


def test_add_assigns_dense_order_index_and_colors(tracker: TaskTracker, task_repo: FakeTaskRepo) -> None:
    for name in ("a", "b", "c"):
        tracker.add(_later(name))

    tasks = tracker.tasks
    assert [t.order for t in tasks] == [0, 1, 2]
    assert [t.index for t in tasks] == [0, 1, 2]
    assert all(t.display_color is not None for t in tasks)

    assert tracker.wait_idle(2.0)
    assert [t.title for t in task_repo.writes[-1]] == ["a", "b", "c"]


def test_burst_of_edits_is_saved_once(settings, clock, task_repo, progress_repo) -> None:
    settings.tasks_debounce_seconds = 0.3
    tracker = _make(settings, clock, task_repo, progress_repo)

    for i in range(5):
        tracker.add(_later(f"t{i}"))
    assert tracker.wait_idle(3.0)

    assert len(task_repo.writes) == 1
    assert len(task_repo.writes[0]) == 5


def test_invalid_task_is_rejected(tracker: TaskTracker) -> None:
    with pytest.raises(TaskValidationError):
        tracker.add(Task(title="  "))
    with pytest.raises(TaskValidationError):
        tracker.add(Task(title="x", time_type=TimeType.REPEATING))
    assert tracker.tasks == ()


def test_duplicate_id_is_rejected(tracker: TaskTracker) -> None:
    task = tracker.add(_later("a"))
    with pytest.raises(TaskValidationError):
        tracker.add(_later("b", id=task.id))


def test_update_keeps_position(tracker: TaskTracker) -> None:
    a = tracker.add(_later("a"))
    tracker.add(_later("b"))

    edited = Task(title="a2", id=a.id, priority=TaskPriority.HIGH)
    assert tracker.update(edited) is True
    assert [t.title for t in tracker.tasks] == ["a2", "b"]
    assert tracker.tasks[0].order == 0

    assert tracker.update(Task(title="ghost")) is False


def test_delete_restores_dense_order(tracker: TaskTracker) -> None:
    tasks = [tracker.add(_later(n)) for n in "abcd"]
    assert tracker.delete(tasks[1].id) is True
    assert [t.title for t in tracker.tasks] == ["a", "c", "d"]
    assert [t.order for t in tracker.tasks] == [0, 1, 2]
    assert tracker.delete("unknown") is False


def test_mark_done_advances_repeating_task(tracker: TaskTracker) -> None:
    task = tracker.add(_daily("water"))
    assert tracker.mark_done(task.id) == Advance.UPDATED
    assert tracker.get(task.id).due_date == TODAY + DAY


def test_mark_done_removes_one_shot_task(tracker: TaskTracker) -> None:
    a = tracker.add(_later("a"))
    b = tracker.add(_later("b"))
    assert tracker.mark_done(a.id) == Advance.REMOVED
    assert tracker.get(a.id) is None
    assert tracker.tasks[0].id == b.id
    assert tracker.tasks[0].order == 0


def test_mark_done_unknown_id(tracker: TaskTracker) -> None:
    assert tracker.mark_done("nope") is None


def test_reset_daily(tracker: TaskTracker) -> None:
    task = tracker.add(_daily("stretch", due=TODAY + DAY))
    other = tracker.add(_daily("read", due=TODAY + 2 * DAY))

    assert tracker.reset_daily(task.id) is True
    assert tracker.get(task.id).due_date == TODAY
    assert tracker.reset_daily(other.id) is False
    assert tracker.reset_daily("nope") is False


def test_move(tracker: TaskTracker) -> None:
    for n in "abc":
        tracker.add(_later(n))

    assert tracker.move(0, 2) is True
    assert [t.title for t in tracker.tasks] == ["b", "c", "a"]
    assert [t.order for t in tracker.tasks] == [0, 1, 2]
    assert tracker.tasks[0].display_color.r == 1.0
    assert tracker.tasks[2].display_color.r == 0.0

    assert tracker.move(1, 1) is False
    assert tracker.move(0, 3) is False
    assert tracker.move(-1, 0) is False


# ---- progress ----


def test_one_progress_entry_per_day(tracker: TaskTracker, clock: FixedClock) -> None:
    tracker.add(_daily("a"))
    tracker.add(_later("b"))
    tracker.add(_later("c"))
    tracker.add(_later("d"))

    history = tracker.progress_history
    assert [e.date for e in history] == [TODAY]
    assert history[0].percent_completed == pytest.approx(0.75)

    clock.today = TODAY + DAY
    tracker.add(_later("e"))
    assert [e.date for e in tracker.progress_history] == [TODAY, TODAY + DAY]


def test_progress_is_saved_only_when_it_changes(tracker: TaskTracker, progress_repo: FakeProgressRepo) -> None:
    writes_after_load = len(progress_repo.writes)

    tracker.add(_later("a"))
    tracker.add(_later("b"))
    assert tracker.wait_idle(2.0)
    assert len(progress_repo.writes) == writes_after_load

    tracker.add(_daily("due"))
    assert tracker.wait_idle(2.0)
    assert len(progress_repo.writes) == writes_after_load + 1
    (entry,) = progress_repo.writes[-1]
    assert entry.percent_completed == pytest.approx(2 / 3)


def test_clear_progress(tracker: TaskTracker, progress_repo: FakeProgressRepo) -> None:
    tracker.clear_progress()
    assert tracker.progress_history == ()
    assert tracker.wait_idle(2.0)
    assert progress_repo.writes[-1] == []


# ---- load ----


def test_load_catches_up_and_saves(settings, clock, progress_repo) -> None:
    repo = FakeTaskRepo(initial=[_daily("stale", due=TODAY - 4 * DAY, order=0)])
    tracker = _make(settings, clock, repo, progress_repo)

    assert tracker.tasks[0].due_date == TODAY
    assert tracker.wait_idle(2.0)
    assert repo.writes and repo.writes[-1][0].due_date == TODAY


def test_clean_load_does_not_rewrite_tasks(settings, clock, progress_repo) -> None:
    repo = FakeTaskRepo(initial=[_later("a", order=0), _daily("b", order=1)])
    tracker = _make(settings, clock, repo, progress_repo)

    assert tracker.wait_idle(2.0)
    assert repo.writes == []
    assert progress_repo.writes[-1] == [DailyProgressEntry(TODAY, 0.5)]


def test_load_repairs_sparse_order(settings, clock, progress_repo) -> None:
    repo = FakeTaskRepo(initial=[_later("a", order=3), _later("b", order=9)])
    tracker = _make(settings, clock, repo, progress_repo)

    assert [t.order for t in tracker.tasks] == [0, 1]
    assert tracker.wait_idle(2.0)
    assert [t.order for t in repo.writes[-1]] == [0, 1]


def test_load_applies_priority_sort(settings, clock, progress_repo) -> None:
    settings.sort_order = SortOrder.PRIORITY_HIGH_FIRST
    repo = FakeTaskRepo(
        initial=[
            _later("low", priority=TaskPriority.LOW, order=0),
            _later("high", priority=TaskPriority.HIGH, order=1),
        ]
    )
    tracker = _make(settings, clock, repo, progress_repo)
    assert [t.title for t in tracker.tasks] == ["high", "low"]


def test_replace_all(tracker: TaskTracker, progress_repo: FakeProgressRepo) -> None:
    tracker.add(_later("old"))
    imported = [_daily("stale", due=TODAY - 2 * DAY, order=1), _later("new", order=0)]
    history = [DailyProgressEntry(TODAY - DAY, 0.25)]

    tracker.replace_all(imported, history)

    assert [t.title for t in tracker.tasks] == ["new", "stale"]
    assert tracker.tasks[1].due_date == TODAY
    assert [e.date for e in tracker.progress_history] == [TODAY - DAY, TODAY]


# ---- listeners / flush ----


def test_listeners_get_one_batch_per_mutation(tracker: TaskTracker, caplog) -> None:
    batches: list[list] = []

    def broken(changes) -> None:
        raise RuntimeError("listener bug")

    tracker.subscribe(broken)
    unsubscribe = tracker.subscribe(batches.append)

    with caplog.at_level(logging.ERROR, logger="tickly.core.tracker"):
        task = tracker.add(_later("a"))

    assert len(batches) == 1
    assert any(c.task_id == task.id and c.field == "display_color" for c in batches[0])
    assert "Change listener failed" in caplog.text

    unsubscribe()
    tracker.add(_later("b"))
    assert len(batches) == 1


def test_no_op_mutation_does_not_notify(tracker: TaskTracker) -> None:
    tracker.add(_later("a"))
    batches: list[list] = []
    tracker.subscribe(batches.append)

    assert tracker.move(0, 0) is False
    assert tracker.delete("unknown") is False
    assert batches == []


def test_flush_writes_pending_changes_immediately(settings, clock, task_repo, progress_repo) -> None:
    settings.tasks_debounce_seconds = 30.0
    settings.progress_debounce_seconds = 30.0
    tracker = _make(settings, clock, task_repo, progress_repo)

    tracker.add(_daily("a"))
    assert task_repo.writes == []

    tracker.flush()
    assert [t.title for t in task_repo.writes[-1]] == ["a"]
    assert progress_repo.writes[-1] == [DailyProgressEntry(TODAY, 0.0)]


def test_queued_task_snapshot_is_isolated_from_later_edits(settings, clock, progress_repo) -> None:
    settings.tasks_debounce_seconds = 0.1
    repo = FakeTaskRepo(initial=[_later(n, order=i) for i, n in enumerate("abc")])
    writer = GatedWriter()
    repo.write_tasks = writer  # type: ignore[method-assign]
    tracker = _make(settings, clock, repo, progress_repo)

    assert tracker.move(0, 2) is True

    # Owner keeps editing the live objects while the save is still queued.
    for t in tracker.tasks:
        t.order = 0
        t.title = "edited"

    assert writer.started.wait(2.0)
    # And again while the write is in flight; this save request is dropped.
    assert tracker.move(0, 2) is True
    writer.release.set()
    assert tracker.wait_idle(2.0)

    (first,) = writer.payloads
    assert [t.title for t in first] == ["b", "c", "a"]
    assert [t.order for t in first] == [0, 1, 2]

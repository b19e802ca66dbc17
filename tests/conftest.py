# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tickly.cli.bootstrap import create_initial_state
from tickly.core.state import AppState
from tickly.core.tracker import TaskTracker
from tickly.tasks.task_models import SortOrder

from .fakes import TODAY, FakeProgressRepo, FakeTaskRepo, FixedClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with TaskTracker and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="tickly-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.json",
        progress_path=tmp_path / "dailyProgress.json",
        # Short windows keep the suite fast; tasks stay shorter than progress.
        tasks_debounce_seconds=0.02,
        progress_debounce_seconds=0.05,
        sort_order=SortOrder.MANUAL,
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture()
def task_repo() -> FakeTaskRepo:
    return FakeTaskRepo()


@pytest.fixture()
def progress_repo() -> FakeProgressRepo:
    return FakeProgressRepo()


@pytest.fixture()
def tracker(settings, clock, task_repo, progress_repo) -> TaskTracker:
    t = TaskTracker(
        task_repo=task_repo,
        progress_repo=progress_repo,
        settings=settings,
        clock=clock,
    )
    t.load()
    t.wait_idle(2.0)
    return t


@pytest.fixture()
def state(settings, clock) -> AppState:
    """AppState wired with the real JSON file stores under tmp_path."""
    return create_initial_state(settings=settings, clock=clock)

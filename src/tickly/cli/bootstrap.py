# src/tickly/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local data directory exists,
- wires the JSON stores into a TaskTracker and loads it.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..core.tracker import TaskTracker
from ..storage.progress_store import ProgressFileStore
from ..storage.task_store import TaskFileStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)
    settings.progress_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock=None) -> AppState:
    """
    Build and load the tracker from the provided settings.

    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    extra = {"clock": clock} if clock is not None else {}
    tracker = TaskTracker(
        task_repo=TaskFileStore(settings.tasks_path),
        progress_repo=ProgressFileStore(settings.progress_path),
        settings=settings,
        **extra,
    )
    tracker.load()
    return AppState(settings=settings, tracker=tracker)


def shutdown(state: AppState) -> None:
    """Best-effort shutdown: flush pending writes (no exceptions should escape)."""
    try:
        state.tracker.flush()
    except Exception:
        logger.exception("Failed to flush tracker on shutdown.")

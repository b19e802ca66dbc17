# src/tickly/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app, passed explicitly to the tracker.
- No process-wide mutable settings: Settings is frozen.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .tasks.task_models import SortOrder

ENV_PREFIX = "TICKLY"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Local .env never overrides variables already set in the environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    tasks_path: Path
    progress_path: Path

    # ---- Persistence ----
    tasks_debounce_seconds: float
    progress_debounce_seconds: float

    # ---- List behaviour ----
    sort_order: SortOrder

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tickly").strip() or "tickly"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tickly"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")
        progress_path = _env_path(_k("PROGRESS_PATH"), data_dir / "dailyProgress.json")

        # Task edits are latency-sensitive; progress summaries are not.
        tasks_debounce_ms = max(0, _env_int(_k("TASKS_DEBOUNCE_MS"), 500))
        progress_debounce_ms = max(0, _env_int(_k("PROGRESS_DEBOUNCE_MS"), 2000))

        sort_order = SortOrder.from_raw(_env(_k("SORT_ORDER"), SortOrder.MANUAL.value))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            progress_path=progress_path,
            tasks_debounce_seconds=tasks_debounce_ms / 1000.0,
            progress_debounce_seconds=progress_debounce_ms / 1000.0,
            sort_order=sort_order,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS

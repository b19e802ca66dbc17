# src/tickly/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from .tracker import TaskTracker


@dataclass
class AppState:
    # Settings are kept on the state so commands can read them.
    settings: object
    tracker: TaskTracker

    # Serializes command handling when more than one connector is running.
    lock: threading.Lock = field(default_factory=threading.Lock)

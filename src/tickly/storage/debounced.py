# src/tickly/storage/debounced.py

"""
Debounced, mutually exclusive persistence.

One DebouncedStore per logical store (tasks, daily progress). Bursts of
`request_save` calls collapse into a single delayed write of the latest
snapshot. At most one write is in flight; requests arriving while writing
are dropped rather than queued (the next mutation re-requests).

A snapshot is handed over on request: the caller must not mutate it
afterwards. The store never copies, so nothing slow runs under its lock.

States:
- IDLE     nothing armed, nothing writing
- PENDING  timer armed (single slot), no write in flight
- WRITING  write in flight on the timer thread (or a flush)

Limitation: there is no I/O timeout. A stuck write keeps the store in
WRITING and every request is dropped until it returns.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET: Any = object()


class SaveState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    WRITING = "writing"


class DebouncedStore(Generic[T]):
    def __init__(
        self,
        name: str,
        writer: Callable[[T], None],
        *,
        delay_seconds: float,
    ) -> None:
        self.name = name
        self._writer = writer
        self._delay = max(0.0, float(delay_seconds))

        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)
        self._writing = False
        self._timer: threading.Timer | None = None
        self._generation = 0

        self._latest: T | Any = _UNSET
        self._dirty = False

    @property
    def delay_seconds(self) -> float:
        return self._delay

    @property
    def state(self) -> SaveState:
        with self._lock:
            return self._state_locked()

    def _state_locked(self) -> SaveState:
        if self._writing:
            return SaveState.WRITING
        if self._timer is not None:
            return SaveState.PENDING
        return SaveState.IDLE

    # ---- public API ----

    def request_save(self, snapshot: T) -> bool:
        """
        Arm (or re-arm) the debounce timer for `snapshot`.

        Returns False when a write is in flight and the request was dropped.
        Never blocks on I/O.
        """
        with self._lock:
            if self._writing:
                logger.debug("[%s] save in progress; request dropped", self.name)
                return False

            self._cancel_timer_locked()
            self._latest = snapshot
            self._dirty = True

            self._generation += 1
            timer = threading.Timer(self._delay, self._on_timer, args=(self._generation,))
            timer.daemon = True
            timer.name = f"tickly-save-{self.name}"
            self._timer = timer
            timer.start()
            return True

    def flush(self, snapshot: T | Any = _UNSET) -> bool:
        """
        Write the latest snapshot now, bypassing the debounce window.

        If `snapshot` is given it replaces the held one. Waits for an
        in-flight write first. Returns True when a write was performed.
        """
        with self._changed:
            self._cancel_timer_locked()
            while self._writing:
                self._changed.wait()

            if snapshot is not _UNSET:
                self._latest = snapshot
                self._dirty = True

            payload = self._begin_write_locked()
            if payload is _UNSET:
                self._changed.notify_all()
                return False

        self._run_write(payload)
        return True

    def cancel(self) -> None:
        """Drop a pending timer and the snapshot it would have written."""
        with self._changed:
            self._cancel_timer_locked()
            self._latest = _UNSET
            self._dirty = False
            self._changed.notify_all()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until nothing is pending or writing. False on timeout."""
        with self._changed:
            return self._changed.wait_for(
                lambda: self._state_locked() == SaveState.IDLE, timeout=timeout
            )

    # ---- internals ----

    def _cancel_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        # A timer that already fired but has not taken the lock yet sees a
        # stale generation and backs off.
        self._generation += 1

    def _begin_write_locked(self) -> T | Any:
        if not self._dirty:
            return _UNSET
        self._writing = True
        self._dirty = False
        return self._latest

    def _on_timer(self, generation: int) -> None:
        with self._changed:
            if generation != self._generation:
                return
            self._timer = None
            payload = self._begin_write_locked()
            if payload is _UNSET:
                self._changed.notify_all()
                return

        self._run_write(payload)

    def _run_write(self, payload: T) -> None:
        try:
            self._writer(payload)
        except Exception:
            logger.exception("[%s] write failed; will retry on next save request", self.name)
        finally:
            with self._changed:
                self._writing = False
                self._changed.notify_all()

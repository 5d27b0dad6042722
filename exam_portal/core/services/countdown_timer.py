"""Exam countdown that forces a submission when time runs out.

The timer ticks once per ``interval`` seconds through a ``TickScheduler``.
Only one tick is ever pending, so stopping the timer cancels exactly one
scheduled call and no stray tick can fire afterwards.

    RUNNING --tick, remaining hits 0--> EXPIRED --on_expire()--> STOPPED
    RUNNING --stop()------------------> STOPPED

An owner may pass ``halted``; once it returns True, ticks stop counting even
if one was already running when ``stop`` was called.
"""

from __future__ import annotations

from enum import Enum
import logging
from threading import Lock, Timer
from typing import Callable, Protocol

from exam_portal.constants.exam_constants import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    RUNNING = "running"
    EXPIRED = "expired"
    STOPPED = "stopped"


class ScheduledCall(Protocol):
    def cancel(self) -> None: ...


class TickScheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall: ...


class ThreadingTickScheduler:
    """Schedules each tick on a daemon ``threading.Timer``."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        timer = Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class CountdownTimer:
    """Counts ``time_remaining`` down to zero and calls ``on_expire`` once."""

    def __init__(
        self,
        duration_seconds: int,
        on_expire: Callable[[], None],
        scheduler: TickScheduler | None = None,
        interval: float = TICK_INTERVAL_SECONDS,
        halted: Callable[[], bool] | None = None,
    ) -> None:
        if duration_seconds <= 0:
            raise ValueError("Exam duration must be a positive number of seconds.")
        self._duration = duration_seconds
        self._remaining = duration_seconds
        self._on_expire = on_expire
        self._scheduler = scheduler or ThreadingTickScheduler()
        self._interval = interval
        self._halted = halted
        self._state = TimerState.RUNNING
        self._started = False
        self._pending: ScheduledCall | None = None
        self._lock = Lock()

    @property
    def state(self) -> TimerState:
        with self._lock:
            return self._state

    @property
    def time_remaining(self) -> int:
        with self._lock:
            return self._remaining

    @property
    def duration(self) -> int:
        return self._duration

    def start(self) -> None:
        with self._lock:
            if self._started or self._state is not TimerState.RUNNING:
                return
            self._started = True
            self._schedule_next()

    def tick(self) -> None:
        """Advance one second. Ignored unless running and not halted by the owner."""
        with self._lock:
            self._pending = None
            if self._state is not TimerState.RUNNING:
                return
            if self._halted is not None and self._halted():
                return
            self._remaining = max(0, self._remaining - 1)
            if self._remaining > 0:
                self._schedule_next()
                return
            self._state = TimerState.EXPIRED

        logger.info("Exam time expired; forcing submission")
        try:
            self._on_expire()
        finally:
            with self._lock:
                self._state = TimerState.STOPPED

    def stop(self) -> None:
        with self._lock:
            if self._state is TimerState.RUNNING:
                self._state = TimerState.STOPPED
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def _schedule_next(self) -> None:
        self._pending = self._scheduler.call_later(self._interval, self.tick)

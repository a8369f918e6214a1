"""Whole-second countdown used to bound an attempt's duration.

The timer does not sleep itself. A tick scheduler calls back once per
interval and the timer decides what the tick means. ``ThreadTickScheduler``
is the headless default; the Qt window plugs in a ``QTimer`` based one so ticks
arrive on the GUI thread.
"""

from __future__ import annotations

from functools import partial
import logging
from threading import Event, Lock, Thread, current_thread
from typing import Callable, Protocol

from quiz_taker.constants.quiz_constants import TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

TickCallback = Callable[[], bool]


class TickScheduler(Protocol):
    """Calls ``callback`` once per interval until stopped or it returns False."""

    def start(self) -> None: ...

    def stop(self) -> None: ...


SchedulerFactory = Callable[[TickCallback], TickScheduler]


class ThreadTickScheduler:
    """Runs the tick callback on a daemon thread."""

    def __init__(self, callback: TickCallback, interval_seconds: float = TICK_INTERVAL_SECONDS) -> None:
        self._callback = callback
        self._interval = interval_seconds
        self._stopped = Event()
        self._thread: Thread | None = None

    def start(self) -> None:
        self._thread = Thread(target=self._run, name="CountdownTicker", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not current_thread():
            thread.join(timeout=self._interval * 2)

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            if not self._callback():
                break


class CountdownTimer:
    """Counts down whole seconds and signals expiry exactly once per run."""

    def __init__(
        self,
        on_tick: Callable[[int], None] | None = None,
        on_expired: Callable[[], None] | None = None,
        scheduler_factory: SchedulerFactory = ThreadTickScheduler,
    ) -> None:
        self._on_tick = on_tick
        self._on_expired = on_expired
        self._scheduler_factory = scheduler_factory
        self._lock = Lock()
        self._generation: int = 0
        self._running: bool = False
        self._remaining: int = 0
        self._scheduler: TickScheduler | None = None

    @property
    def remaining_seconds(self) -> int:
        with self._lock:
            return self._remaining

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def start(self, duration_seconds: int) -> None:
        """Start a new run, cancelling any run already in progress."""
        if not isinstance(duration_seconds, int) or duration_seconds <= 0:
            raise ValueError("Countdown duration must be a positive whole number of seconds.")
        self.cancel()
        with self._lock:
            self._generation += 1
            self._remaining = duration_seconds
            self._running = True
            scheduler = self._scheduler_factory(partial(self._tick, self._generation))
            self._scheduler = scheduler
        logger.debug("Countdown started for %s seconds", duration_seconds)
        scheduler.start()

    def cancel(self) -> None:
        """Stop the current run. Safe to call when nothing is running."""
        with self._lock:
            scheduler = self._scheduler
            self._scheduler = None
            self._running = False
            self._generation += 1
        if scheduler is not None:
            scheduler.stop()

    def _tick(self, generation: int) -> bool:
        with self._lock:
            if not self._running or generation != self._generation:
                return False
            self._remaining -= 1
            remaining = self._remaining
            expired = remaining <= 0
            if expired:
                self._running = False
                self._scheduler = None

        if self._on_tick is not None:
            self._on_tick(remaining)
        if expired:
            logger.debug("Countdown expired")
            if self._on_expired is not None:
                self._on_expired()
        return not expired

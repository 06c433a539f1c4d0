"""Polling loop that drives a set of observers from one background thread."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from .errors import MonitorError, SchedulingError
from .observer import Observer

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 5.0

MonitorErrorHandler = Callable[[Observer, Exception], None]


class MonitorState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class MonitorStats:
    """Counters emitted by the monitor for observability."""

    cycles: int = 0
    events_emitted: int = 0
    errors: int = 0


class Monitor:
    """Runs a check of every registered observer once per interval.

    A monitor runs at most once: ``CREATED -> RUNNING -> STOPPED``. Cycles
    are spaced from start to start, so a cycle that overruns the interval is
    followed by the next one immediately. :meth:`stop` is honoured between
    cycles; the cycle in flight always completes.

    Observers and listeners should only be added or removed before
    :meth:`start`, or with external synchronisation.
    """

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        observers: Iterable[Observer] = (),
        *,
        error_handler: Optional[MonitorErrorHandler] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise MonitorError(f"Monitor interval must be positive: {interval}")
        self._interval = float(interval)
        self._observers: List[Observer] = []
        for observer in observers:
            self.add_observer(observer)
        self._error_handler = error_handler
        self._clock = clock
        self._state = MonitorState.CREATED
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._stats = MonitorStats()

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def stats(self) -> MonitorStats:
        return self._stats

    @property
    def observers(self) -> Tuple[Observer, ...]:
        return tuple(self._observers)

    def add_observer(self, observer: Observer) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def start(self) -> None:
        """Start the background polling thread."""

        if self._state is not MonitorState.CREATED:
            raise MonitorError(f"Monitor cannot be started from state '{self._state.value}'")

        thread = threading.Thread(target=self._run, name="pollwatch-monitor", daemon=True)
        # RUNNING before the first cycle, so a listener may stop the monitor from it
        self._thread = thread
        self._state = MonitorState.RUNNING
        try:
            thread.start()
        except RuntimeError as exc:
            self._state = MonitorState.STOPPED
            raise SchedulingError("Unable to start monitor thread", cause=exc) from exc
        logger.info(
            "Started monitor for %s observers (interval %.3fs)",
            len(self._observers),
            self._interval,
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop polling once the current cycle, if any, has completed."""

        if self._state is not MonitorState.RUNNING:
            return
        self._state = MonitorState.STOPPED
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def run_cycle(self) -> int:
        """Check every observer once, in registration order.

        Returns the number of events emitted. A failing observer is logged,
        reported to the error handler and skipped.
        """

        emitted = 0
        for observer in list(self._observers):
            try:
                if observer.is_initialized:
                    emitted += len(observer.check_and_notify())
                else:
                    observer.initialize()
            except Exception as exc:
                self._stats.errors += 1
                logger.exception("Check of %s failed", observer.root)
                self._report_error(observer, exc)
        self._stats.cycles += 1
        self._stats.events_emitted += emitted
        return emitted

    def _report_error(self, observer: Observer, exc: Exception) -> None:
        if self._error_handler is None:
            return
        try:
            self._error_handler(observer, exc)
        except Exception:
            logger.exception("Monitor error handler failed")

    def _run(self) -> None:
        try:
            while not self._stop_event.is_set():
                started_at = self._clock()
                self.run_cycle()
                self._wait_until_next_cycle(started_at)
        finally:
            logger.info(
                "Monitor stopped after %s cycles, %s events",
                self._stats.cycles,
                self._stats.events_emitted,
            )

    def _wait_until_next_cycle(self, started_at: float) -> None:
        elapsed = self._clock() - started_at
        remaining = max(self._interval - elapsed, 0.0)
        if remaining > 0:
            self._stop_event.wait(remaining)

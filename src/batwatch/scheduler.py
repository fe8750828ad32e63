"""Poll loop driving the battery checks."""

from __future__ import annotations

import logging
import sched
import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Final

logger: Final = logging.getLogger(__name__)


class PollLoop:
    """Runs a periodic tick and one-shot continuations on a single thread.

    All work is queued on one ``sched.scheduler`` and executed by run(), one
    event at a time, so a tick can never overlap another tick or a
    continuation. The next tick is queued only after the current one has
    returned; a late tick therefore shifts the schedule instead of piling up.

    The interval can be changed at any time with reschedule(), which drops
    the pending tick and queues a new one. stop() empties the queue and wakes
    the loop so run() returns promptly.

    Only submit() and request_stop() may be called from signal handlers or
    other threads; they never touch the queue, which run() owns.
    """

    def __init__(
        self,
        tick: Callable[[], None],
        interval: float,
        timefunc: Callable[[], float] = time.monotonic,
        delayfunc: Callable[[float], object] | None = None,
    ) -> None:
        """Initialize the loop.

        Args:
            tick: Callback run every ``interval`` seconds
            interval: Seconds between ticks
            timefunc: Clock used for scheduling
            delayfunc: Blocking wait used between events (default: an
                interruptible wait that stop() can cut short)
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._tick = tick
        self.interval = float(interval)
        self._wakeup = threading.Event()
        self._delay = delayfunc or self._wakeup.wait
        self._scheduler = sched.scheduler(timefunc, self._delay)
        self._submitted: deque[Callable[[], None]] = deque()
        self._tick_event: sched.Event | None = None
        self._stopped = False

    @property
    def running(self) -> bool:
        """Whether a tick is currently scheduled."""
        return self._tick_event is not None

    def now(self) -> float:
        """Current time on the loop's clock."""
        return self._scheduler.timefunc()

    def start(self) -> None:
        """Schedule the first tick one interval from now."""
        self._stopped = False
        self._wakeup.clear()
        self._schedule_tick()

    def reschedule(self, interval: float) -> None:
        """Cancel the pending tick and restart with a new interval.

        Args:
            interval: New seconds between ticks
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        old = self.interval
        self.interval = float(interval)
        had_tick = self._cancel_tick()
        if had_tick and not self._stopped:
            self._schedule_tick()
        logger.info("Poll interval changed from %.0fs to %.0fs", old, self.interval)

    def call_later(self, delay: float, callback: Callable[[], None]) -> sched.Event:
        """Run ``callback`` on the loop after ``delay`` seconds.

        Args:
            delay: Seconds to wait
            callback: Function to run

        Returns:
            Handle that can be passed to cancel()
        """
        return self._scheduler.enter(delay, 1, self._guarded, (callback,))

    def cancel(self, event: sched.Event | None) -> bool:
        """Cancel a pending continuation.

        Args:
            event: Handle returned by call_later()

        Returns:
            True if the event was still pending
        """
        if event is None:
            return False
        try:
            self._scheduler.cancel(event)
        except ValueError:
            return False
        return True

    def submit(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on the loop as soon as it is idle.

        Safe to call from a signal handler or another thread.

        Args:
            callback: Function to run
        """
        self._submitted.append(callback)
        self._wakeup.set()

    def run(self) -> None:
        """Execute queued events until the queue is empty or the loop is stopped."""
        while not self._stopped:
            self._wakeup.clear()
            self._run_submitted()
            if self._stopped:
                break
            delay = self._scheduler.run(blocking=False)
            if self._stopped:
                break
            if delay is None:
                if self._submitted:
                    continue
                break
            self._delay(delay)
        if self._stopped:
            self._drain()

    def stop(self) -> None:
        """Cancel every pending event and wake the loop.

        Must be called on the loop's thread; use request_stop() elsewhere.
        """
        self._stopped = True
        self._drain()
        self._wakeup.set()

    def request_stop(self) -> None:
        """Ask run() to stop; the queue is emptied by the loop itself.

        Safe to call from a signal handler or another thread.
        """
        self._stopped = True
        self._wakeup.set()

    # ── internals ────────────────────────────────────────────────────────────
    def _schedule_tick(self) -> None:
        self._tick_event = self._scheduler.enter(self.interval, 0, self._run_tick)

    def _cancel_tick(self) -> bool:
        event, self._tick_event = self._tick_event, None
        return self.cancel(event)

    def _drain(self) -> None:
        self._tick_event = None
        self._submitted.clear()
        for event in list(self._scheduler.queue):
            self.cancel(event)

    def _run_submitted(self) -> None:
        while self._submitted and not self._stopped:
            self._guarded(self._submitted.popleft())

    def _run_tick(self) -> None:
        self._tick_event = None
        self._guarded(self._tick)
        if not self._stopped and self._tick_event is None:
            self._schedule_tick()

    @staticmethod
    def _guarded(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Scheduled callback failed")

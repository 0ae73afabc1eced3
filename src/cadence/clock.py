"""Clock sources for the scheduler.

The scheduler never reads time directly; it asks a clock for the current
monotonic instant and asks it to wait until the next due instant. Swapping
in :class:`ManualClock` makes the engine fully deterministic under test.
"""

import threading
import time
from typing import Protocol, runtime_checkable

from cadence.errors import ClockError

# A point on a monotonic timeline, in seconds
Instant = float


@runtime_checkable
class Clock(Protocol):
    """Port: source of monotonic time for the scheduler."""

    def now(self) -> Instant: ...

    def sleep_until(self, deadline: Instant | None, wakeup: threading.Event) -> None:
        """Block until ``deadline`` or until ``wakeup`` is set.

        A deadline of None means wait for ``wakeup`` only.
        """
        ...


class MonotonicClock:
    """Production clock backed by ``time.monotonic()``."""

    def now(self) -> Instant:
        return time.monotonic()

    def sleep_until(self, deadline: Instant | None, wakeup: threading.Event) -> None:
        if deadline is None:
            wakeup.wait()
            return
        timeout = deadline - self.now()
        if timeout > 0:
            wakeup.wait(timeout)


class ManualClock:
    """Test clock pinned to an instant that only moves when told to.

    Sleeping jumps the clock straight to the deadline, so a run loop driven
    by this clock executes without any real waiting.

    Example:
        clock = ManualClock()
        scheduler = Scheduler(clock=clock)
        clock.advance(330)
        scheduler.run_pending()
    """

    def __init__(self, start: Instant = 0.0) -> None:
        self._now = float(start)
        self._lock = threading.Lock()
        self.sleep_calls: list[Instant | None] = []

    def now(self) -> Instant:
        with self._lock:
            return self._now

    def set(self, instant: Instant) -> None:
        """Move the clock to ``instant``; moving backwards is an error."""
        with self._lock:
            if instant < self._now:
                raise ClockError(f"Monotonic clock cannot go back from {self._now} to {instant}")
            self._now = float(instant)

    def advance(self, seconds: float) -> Instant:
        """Advance the clock and return the new instant."""
        if seconds < 0:
            raise ClockError(f"Cannot advance a monotonic clock by {seconds}")
        with self._lock:
            self._now += seconds
            return self._now

    def sleep_until(self, deadline: Instant | None, wakeup: threading.Event) -> None:
        self.sleep_calls.append(deadline)
        if wakeup.is_set():
            return
        if deadline is None:
            raise ClockError("ManualClock cannot sleep without a deadline")
        with self._lock:
            if deadline > self._now:
                self._now = float(deadline)

"""Due-time policies for jobs.

This module handles computing when a job is next due for the two schedule
kinds: a recurring interval (``every``) and a single delayed firing
(``once``). Schedules work on monotonic instants (float seconds) and are
anchored at the instant their job is registered.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from cadence.errors import ZeroDuration
from cadence.interval import Interval

logger = logging.getLogger(__name__)


class ScheduleKind(str, Enum):
    """Type of schedule for a job.

    Attributes:
        EVERY: Recurring execution at a fixed interval.
        ONCE: One-shot execution after a delay.
    """

    EVERY = "every"
    ONCE = "once"


class Schedule(ABC):
    """Base class for due-time policies.

    A schedule is unanchored until :meth:`start` is called with the
    registration instant. An unanchored schedule is never due.
    """

    kind: ScheduleKind

    def __init__(self, interval: Interval) -> None:
        # Computing the duration here surfaces DurationOverflow at construction
        seconds = interval.total_seconds()
        if seconds <= 0:
            raise ZeroDuration()
        self._interval = interval
        self._seconds = seconds
        self._registered_at: float | None = None

    @staticmethod
    def periodic(interval: Interval) -> "Periodic":
        """Create a recurring schedule."""
        return Periodic(interval)

    @staticmethod
    def once(interval: Interval) -> "Once":
        """Create a one-shot schedule."""
        return Once(interval)

    @property
    def interval(self) -> Interval:
        return self._interval

    @property
    def seconds(self) -> float:
        """Length of the interval in seconds."""
        return self._seconds

    @property
    def registered_at(self) -> float | None:
        return self._registered_at

    def start(self, registered_at: float) -> None:
        """Anchor the schedule at its registration instant.

        Any firing state from an earlier registration is discarded.
        """
        self._registered_at = registered_at

    @abstractmethod
    def next_due(self) -> float | None:
        """Get the next instant the schedule is due.

        Returns:
            The instant, or None if unanchored or exhausted.
        """

    @abstractmethod
    def advance(self, now: float) -> None:
        """Record a firing at ``now`` and move to the next state."""

    def is_due(self, now: float) -> bool:
        """Check if the schedule is due at ``now``."""
        due = self.next_due()
        return due is not None and now >= due

    def is_exhausted(self) -> bool:
        return False

    def is_periodic(self) -> bool:
        return self.kind == ScheduleKind.EVERY

    def time_until(self, now: float) -> float | None:
        """Get the seconds remaining until the schedule is due.

        Args:
            now: Current instant.

        Returns:
            Seconds until due (0 if already due), or None if the schedule
            will not fire.
        """
        due = self.next_due()
        if due is None:
            return None
        return max(0.0, due - now)

    def describe(self) -> str:
        prefix = "every" if self.is_periodic() else "in"
        return f"{prefix} {self._interval.describe()}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._interval.describe()!r})"


class Periodic(Schedule):
    """Recurring schedule.

    The next due instant is ``(last_fired or registered_at) + interval``.
    After a firing the schedule is re-anchored at the actual firing instant,
    so a long pause yields a single late firing rather than a burst of missed
    ones.
    """

    kind = ScheduleKind.EVERY

    def __init__(self, interval: Interval) -> None:
        super().__init__(interval)
        self._last_fired: float | None = None

    @property
    def last_fired(self) -> float | None:
        return self._last_fired

    def start(self, registered_at: float) -> None:
        super().start(registered_at)
        self._last_fired = None

    def next_due(self) -> float | None:
        anchor = self._last_fired if self._last_fired is not None else self._registered_at
        if anchor is None:
            return None
        return anchor + self._seconds

    def advance(self, now: float) -> None:
        due = self.next_due()
        if due is not None and now > due + self._seconds:
            logger.debug(
                f"Periodic schedule fired {now - due:.3f}s late; "
                f"missed firings are not replayed"
            )
        self._last_fired = now


class Once(Schedule):
    """One-shot schedule, due ``delay`` after registration and then exhausted."""

    kind = ScheduleKind.ONCE

    def __init__(self, interval: Interval) -> None:
        super().__init__(interval)
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def start(self, registered_at: float) -> None:
        super().start(registered_at)
        self._fired = False

    def next_due(self) -> float | None:
        if self._fired or self._registered_at is None:
            return None
        return self._registered_at + self._seconds

    def advance(self, now: float) -> None:
        self._fired = True

    def is_exhausted(self) -> bool:
        return self._fired

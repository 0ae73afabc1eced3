"""Jobs: a schedule bound to an action.

This module defines the Job class and the JobRun record produced each time a
job fires. A failing action is isolated here: the exception is logged and
recorded on the job, and the schedule advances regardless.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from cadence.errors import MissingAction
from cadence.schedule import Schedule

logger = logging.getLogger(__name__)

# Type alias for job actions
Action = Callable[[], object]


@dataclass(frozen=True)
class JobRun:
    """Result of firing a job once.

    Attributes:
        job_id: Identifier of the job, None if it was never registered.
        job_name: Name of the job, if any.
        fired_at: Instant the job was fired at.
        duration_ms: Time spent in the action in milliseconds.
        error: Error message if the action failed.
    """

    job_id: int | None
    job_name: str | None
    fired_at: float
    duration_ms: float = 0
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class Job:
    """A task that is designed to be run at some point in the future.

    Jobs are normally created through :mod:`cadence.builder` and handed to a
    :class:`~cadence.scheduler.Scheduler`, which assigns the id.

    Example:
        job = Job(Schedule.periodic(Interval.of(5, TimeUnit.MINUTES)), ping, name="ping")
        scheduler.add(job)
    """

    def __init__(
        self,
        schedule: Schedule,
        action: Action,
        name: str | None = None,
    ) -> None:
        """Initialize the job.

        Args:
            schedule: The due-time policy.
            action: Zero-argument callable run on every firing.
            name: Optional human-readable name.

        Raises:
            MissingAction: If action is not callable.
        """
        self.id: int | None = None
        self.name = name
        self.schedule = schedule
        self._action = self._validate_action(action)

        self.last_fired: float | None = None
        self.times_run = 0
        self.failure_count = 0
        self.last_error: str | None = None
        self.last_exception: Exception | None = None
        self.last_run: JobRun | None = None
        self.cancelled = False

        self._state_lock = threading.Lock()
        self._in_flight = False

    @staticmethod
    def _validate_action(action: object) -> Action:
        if action is None or not callable(action):
            raise MissingAction(action)
        return action

    @property
    def action(self) -> Action:
        return self._action

    def register_action(self, action: Action) -> "Job":
        """Bind a new action to the job.

        The action may be invoked any number of times and from any thread.

        Raises:
            MissingAction: If action is not callable.
        """
        self._action = self._validate_action(action)
        return self

    @property
    def label(self) -> str:
        return self.name or "UNKNOWN"

    def is_due(self, now: float) -> bool:
        return self.schedule.is_due(now)

    def is_exhausted(self) -> bool:
        return self.schedule.is_exhausted()

    def is_periodic(self) -> bool:
        return self.schedule.is_periodic()

    def next_due(self) -> float | None:
        return self.schedule.next_due()

    def fire(self, now: float) -> JobRun:
        """Run the action and advance the schedule.

        Args:
            now: The instant the job is fired at.

        Returns:
            Record of the run. Action failures are captured in it rather
            than raised.
        """
        try:
            return self.run_action(now)
        finally:
            self.mark_fired(now)

    def mark_fired(self, now: float) -> None:
        """Advance the schedule past a firing at ``now``."""
        self.last_fired = now
        self.schedule.advance(now)

    def run_action(self, fired_at: float) -> JobRun:
        """Invoke the action and record the outcome.

        Does not touch the schedule; callers that dispatch asynchronously
        advance it themselves via :meth:`mark_fired`.
        """
        logger.info(f"Running {self!r}")
        started = time.monotonic()
        error: str | None = None

        try:
            self._action()
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.exception(f"Job error: {self!r}")
            with self._state_lock:
                self.failure_count += 1
                self.last_error = error
                self.last_exception = e

        duration_ms = (time.monotonic() - started) * 1000
        run = JobRun(
            job_id=self.id,
            job_name=self.name,
            fired_at=fired_at,
            duration_ms=duration_ms,
            error=error,
        )
        with self._state_lock:
            self.times_run += 1
            self.last_run = run

        if error is None:
            logger.debug(f"Job completed: {self!r} in {duration_ms:.0f}ms")
        return run

    def claim(self) -> bool:
        """Mark the job in flight.

        Returns:
            False if an earlier firing is still running.
        """
        with self._state_lock:
            if self._in_flight:
                return False
            self._in_flight = True
            return True

    def release(self) -> None:
        with self._state_lock:
            self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def __repr__(self) -> str:
        return f"Job(id={self.id}, name='{self.label}')"

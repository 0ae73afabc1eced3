"""Fluent construction of jobs.

Example:
    from cadence import every, once, TimeUnit

    job = every(5, TimeUnit.MINUTES).and_(30, TimeUnit.SECONDS).named("backup").do(backup)
    reminder = once(10, TimeUnit.SECONDS).do(remind)
    heartbeat = every("30s").do(ping)
"""

from dataclasses import dataclass, field, replace

from cadence.interval import Interval, TimeUnit
from cadence.job import Action, Job
from cadence.schedule import Once, Periodic, ScheduleKind


@dataclass(frozen=True)
class JobBuilder:
    """Immutable builder; every chaining call returns a new builder."""

    kind: ScheduleKind
    interval: Interval = field(default_factory=Interval)
    name: str | None = None

    def and_(self, count: int, unit: TimeUnit) -> "JobBuilder":
        """Add to the duration between runs."""
        return replace(self, interval=self.interval.and_(count, unit))

    def named(self, name: str) -> "JobBuilder":
        """Give the job a name."""
        return replace(self, name=name)

    def do(self, action: Action) -> Job:
        """Bind the action and validate the job.

        Raises:
            ZeroDuration: If no duration was entered.
            MissingAction: If action is not callable.
        """
        if self.kind == ScheduleKind.EVERY:
            schedule = Periodic(self.interval)
        else:
            schedule = Once(self.interval)
        return Job(schedule, action, name=self.name)


def _start(kind: ScheduleKind, count: int | str, unit: TimeUnit | None) -> JobBuilder:
    if isinstance(count, str) and unit is None:
        return JobBuilder(kind=kind, interval=Interval.parse(count))
    return JobBuilder(kind=kind, interval=Interval.of(count, unit))


def every(count: int | str, unit: TimeUnit | None = None) -> JobBuilder:
    """Start building a periodic job.

    Accepts either a count and unit or interval text such as ``"5m30s"``.
    """
    return _start(ScheduleKind.EVERY, count, unit)


def once(count: int | str, unit: TimeUnit | None = None) -> JobBuilder:
    """Start building a one-shot job that fires after the given delay."""
    return _start(ScheduleKind.ONCE, count, unit)


in_ = once

"""cadence - run jobs on human-friendly intervals.

Example:
    from cadence import Scheduler, TimeUnit, every, once

    scheduler = Scheduler()
    scheduler.add(every(5, TimeUnit.MINUTES).and_(30, TimeUnit.SECONDS).do(backup))
    scheduler.add(once(10, TimeUnit.SECONDS).do(warm_cache))

    scheduler.run_forever()
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("cadence-sched")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from cadence.builder import JobBuilder, every, in_, once
from cadence.clock import Clock, Instant, ManualClock, MonotonicClock
from cadence.dispatch import Dispatcher, InlineDispatcher, ThreadPoolDispatcher
from cadence.errors import (
    CadenceError,
    ClockError,
    ConstructionError,
    DurationOverflow,
    IntervalParseError,
    InvalidCount,
    JobAlreadyRegistered,
    JobsFileError,
    MissingAction,
    SchedulerFault,
    ZeroDuration,
)
from cadence.interval import Interval, TimeUnit
from cadence.job import Job, JobRun
from cadence.schedule import Once, Periodic, Schedule, ScheduleKind
from cadence.scheduler import Scheduler

__all__ = [
    # Scheduler
    "Scheduler",
    # Jobs
    "Job",
    "JobRun",
    "JobBuilder",
    "every",
    "once",
    "in_",
    # Schedules
    "Schedule",
    "ScheduleKind",
    "Periodic",
    "Once",
    "Interval",
    "TimeUnit",
    # Clocks
    "Clock",
    "Instant",
    "MonotonicClock",
    "ManualClock",
    # Dispatch
    "Dispatcher",
    "InlineDispatcher",
    "ThreadPoolDispatcher",
    # Errors
    "CadenceError",
    "ConstructionError",
    "InvalidCount",
    "ZeroDuration",
    "DurationOverflow",
    "MissingAction",
    "IntervalParseError",
    "JobsFileError",
    "JobAlreadyRegistered",
    "ClockError",
    "SchedulerFault",
]

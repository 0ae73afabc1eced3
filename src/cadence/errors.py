"""Exception hierarchy for cadence.

Construction errors are raised synchronously while building intervals,
schedules and jobs. Scheduler faults are raised out of the run loop.
Failures inside job actions never surface here; they are recorded on the
job instead.
"""


class CadenceError(Exception):
    """Base class for all cadence errors."""
    pass


class ConstructionError(CadenceError, ValueError):
    """A job, schedule or interval was built from invalid input."""
    pass


class InvalidCount(ConstructionError):
    """Raised when an interval part has a count that is not a positive integer."""

    def __init__(self, count: object) -> None:
        super().__init__(f"Interval count must be a positive integer, got {count!r}")
        self.count = count


class ZeroDuration(ConstructionError):
    """Raised when a schedule is derived from an interval of zero length."""

    def __init__(self) -> None:
        super().__init__("No duration entered")


class DurationOverflow(ConstructionError):
    """Raised when an interval's total exceeds the representable duration range."""
    pass


class MissingAction(ConstructionError):
    """Raised when a job is built without a callable action."""

    def __init__(self, action: object = None) -> None:
        if action is None:
            message = "No function supplied"
        else:
            message = f"Job action must be callable, got {type(action).__name__}"
        super().__init__(message)


class IntervalParseError(ConstructionError):
    """Raised when interval text cannot be understood."""
    pass


class JobsFileError(ConstructionError):
    """Raised when a jobs file is missing or malformed."""
    pass


class JobAlreadyRegistered(CadenceError):
    """Raised when the same job object is added to a scheduler twice."""
    pass


class ClockError(CadenceError):
    """Raised by a clock that cannot report or wait for time."""
    pass


class SchedulerFault(CadenceError):
    """Unrecoverable failure of the run loop (e.g. clock source failure)."""
    pass

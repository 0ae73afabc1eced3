"""Interval composition.

An interval is an ordered list of ``(count, unit)`` parts whose durations are
summed. Intervals are immutable: every composition returns a new value.

Example:
    interval = Interval.of(5, TimeUnit.MINUTES).and_(30, TimeUnit.SECONDS)
    interval.total_seconds()  # 330.0

    Interval.parse("every 5 minutes and 30 seconds") == interval  # True
"""

import re
from datetime import timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from cadence.errors import DurationOverflow, IntervalParseError, InvalidCount


class TimeUnit(str, Enum):
    """Units an interval can be composed from.

    Singular spellings are aliases of the plural members, so
    ``TimeUnit.MINUTE is TimeUnit.MINUTES``.
    """

    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"

    MILLISECOND = "milliseconds"
    SECOND = "seconds"
    MINUTE = "minutes"
    HOUR = "hours"
    DAY = "days"
    WEEK = "weeks"

    def as_duration(self) -> timedelta:
        """Get the duration of a single unit."""
        return timedelta(**{self.value: 1})

    def label(self, count: int) -> str:
        """Get the unit name agreeing in number with ``count``."""
        return self.value if count != 1 else self.value[:-1]


# Accepted spellings when parsing text, longest first so "ms" wins over "m"
_UNIT_ALIASES: dict[str, TimeUnit] = {
    "milliseconds": TimeUnit.MILLISECONDS,
    "millisecond": TimeUnit.MILLISECONDS,
    "msecs": TimeUnit.MILLISECONDS,
    "msec": TimeUnit.MILLISECONDS,
    "ms": TimeUnit.MILLISECONDS,
    "seconds": TimeUnit.SECONDS,
    "second": TimeUnit.SECONDS,
    "secs": TimeUnit.SECONDS,
    "sec": TimeUnit.SECONDS,
    "s": TimeUnit.SECONDS,
    "minutes": TimeUnit.MINUTES,
    "minute": TimeUnit.MINUTES,
    "mins": TimeUnit.MINUTES,
    "min": TimeUnit.MINUTES,
    "m": TimeUnit.MINUTES,
    "hours": TimeUnit.HOURS,
    "hour": TimeUnit.HOURS,
    "hrs": TimeUnit.HOURS,
    "hr": TimeUnit.HOURS,
    "h": TimeUnit.HOURS,
    "days": TimeUnit.DAYS,
    "day": TimeUnit.DAYS,
    "d": TimeUnit.DAYS,
    "weeks": TimeUnit.WEEKS,
    "week": TimeUnit.WEEKS,
    "w": TimeUnit.WEEKS,
}

_UNIT_PATTERN = "|".join(sorted(_UNIT_ALIASES, key=len, reverse=True))
_PART_RE = re.compile(rf"(\d+)\s*({_UNIT_PATTERN})(?![a-z])")
_SEPARATOR_RE = re.compile(r"^\s*(?:,\s*)?(?:and(?![a-z])\s*)?$")
_PREFIX_RE = re.compile(r"^\s*(?:every|in)\s+")


def _check_count(count: object) -> int:
    # bool is an int subclass but never a meaningful count
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise InvalidCount(count)
    return count


class Interval(BaseModel):
    """An accumulated duration built from ``(count, unit)`` parts.

    Attributes:
        parts: The composed parts, in the order they were added.
    """

    model_config = ConfigDict(frozen=True)

    parts: tuple[tuple[int, TimeUnit], ...] = Field(
        default=(),
        description="Composed (count, unit) pairs",
    )

    def model_post_init(self, __context: object) -> None:
        # Checked after validation so InvalidCount is raised unwrapped
        for count, _ in self.parts:
            _check_count(count)

    @classmethod
    def of(cls, count: int, unit: TimeUnit) -> "Interval":
        """Create a single-part interval."""
        return cls().and_(count, unit)

    @classmethod
    def parse(cls, text: str) -> "Interval":
        """Build an interval from human text.

        Accepts compact forms ("5m30s"), spelled out forms
        ("5 minutes and 30 seconds"), comma lists ("1h, 15 min") and an
        optional leading "every" or "in".

        Args:
            text: The text to parse.

        Returns:
            The parsed interval.

        Raises:
            IntervalParseError: If the text contains anything else.
        """
        if not isinstance(text, str):
            raise IntervalParseError(f"Expected interval text, got {type(text).__name__}")

        normalized = _PREFIX_RE.sub("", text.strip().lower())
        interval = cls()
        position = 0

        for match in _PART_RE.finditer(normalized):
            gap = normalized[position:match.start()]
            # Only whitespace may precede the first part
            if interval.parts:
                allowed = _SEPARATOR_RE.match(gap) is not None
            else:
                allowed = not gap.strip()
            if not allowed:
                raise IntervalParseError(f"Unexpected {gap.strip()!r} in interval {text!r}")
            interval = interval.and_(int(match.group(1)), _UNIT_ALIASES[match.group(2)])
            position = match.end()

        if normalized[position:].strip():
            raise IntervalParseError(
                f"Unexpected {normalized[position:].strip()!r} in interval {text!r}"
            )
        if not interval.parts:
            raise IntervalParseError(f"No duration found in interval {text!r}")

        return interval

    def and_(self, count: int, unit: TimeUnit) -> "Interval":
        """Return a new interval with ``count`` units appended.

        Args:
            count: Number of units, must be a positive integer.
            unit: The time unit.

        Raises:
            InvalidCount: If count is zero, negative or not an integer.
        """
        count = _check_count(count)
        return Interval(parts=self.parts + ((count, TimeUnit(unit)),))

    def total_duration(self) -> timedelta:
        """Sum the durations of all parts.

        Raises:
            DurationOverflow: If the sum leaves the ``timedelta`` range.
        """
        total = timedelta(0)
        try:
            for count, unit in self.parts:
                total += count * unit.as_duration()
        except OverflowError as e:
            raise DurationOverflow(f"Interval {self.describe()} is too long: {e}") from e
        return total

    def total_seconds(self) -> float:
        """Get the total duration in seconds."""
        return self.total_duration().total_seconds()

    def is_zero(self) -> bool:
        """Check whether the interval has no length."""
        return not self.parts

    def describe(self) -> str:
        """Get a human-readable form, e.g. ``"5 minutes and 30 seconds"``."""
        if not self.parts:
            return "0 seconds"
        words = [f"{count} {unit.label(count)}" for count, unit in self.parts]
        if len(words) == 1:
            return words[0]
        return ", ".join(words[:-1]) + " and " + words[-1]

    def __str__(self) -> str:
        return self.describe()

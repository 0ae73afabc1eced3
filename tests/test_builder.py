"""Tests for the fluent job builder."""

import pytest

from cadence import every, in_, once
from cadence.errors import InvalidCount, MissingAction, ZeroDuration
from cadence.interval import Interval, TimeUnit
from cadence.schedule import Once, Periodic


class TestBuilder:
    """Tests for building jobs fluently."""

    def test_ideal_use(self):
        job = every(5, TimeUnit.MINUTES).do(lambda: print("Hello World!"))

        assert job.is_periodic()
        assert isinstance(job.schedule, Periodic)
        assert job.schedule.seconds == 300.0

    def test_increment_with_and(self):
        job = every(5, TimeUnit.MINUTES).and_(18, TimeUnit.SECONDS).do(lambda: None)
        assert job.schedule.interval == Interval.of(5, TimeUnit.MINUTES).and_(18, TimeUnit.SECONDS)

    def test_chaining_does_not_mutate(self):
        base = every(5, TimeUnit.MINUTES)
        base.and_(30, TimeUnit.SECONDS)
        base.named("other")

        assert base.interval.parts == ((5, TimeUnit.MINUTES),)
        assert base.name is None

    def test_once(self):
        job = once(10, TimeUnit.SECONDS).named("warmup").do(lambda: None)

        assert isinstance(job.schedule, Once)
        assert not job.is_periodic()
        assert job.name == "warmup"

    def test_in_is_once(self):
        assert isinstance(in_(1, TimeUnit.SECOND).do(lambda: None).schedule, Once)

    def test_interval_text(self):
        job = every("5m30s").do(lambda: None)
        assert job.schedule.seconds == 330.0

    def test_missing_action(self):
        with pytest.raises(MissingAction):
            every(5, TimeUnit.MINUTES).do(None)

    def test_invalid_count(self):
        with pytest.raises(InvalidCount):
            every(0, TimeUnit.SECONDS)

    def test_builder_without_duration(self):
        from cadence.builder import JobBuilder
        from cadence.schedule import ScheduleKind

        with pytest.raises(ZeroDuration):
            JobBuilder(kind=ScheduleKind.EVERY).do(lambda: None)

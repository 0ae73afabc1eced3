"""Tests for inline and thread pool dispatch."""

import threading

import pytest

from cadence import every, once
from cadence.clock import ManualClock
from cadence.dispatch import Dispatcher, InlineDispatcher, ThreadPoolDispatcher
from cadence.interval import TimeUnit
from cadence.scheduler import Scheduler


class _Blocker:
    """Action that blocks until released."""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1
        self.started.set()
        self.release.wait(timeout=5)


@pytest.fixture
def pool():
    dispatcher = ThreadPoolDispatcher(max_workers=2, max_pending=10)
    yield dispatcher
    dispatcher.shutdown(wait=True)


class TestInlineDispatcher:
    def test_runs_on_calling_thread(self):
        threads = []
        job = every(1, TimeUnit.SECONDS).do(lambda: threads.append(threading.current_thread()))
        job.schedule.start(0.0)

        assert InlineDispatcher().dispatch(job, 1.0) is True
        assert threads == [threading.current_thread()]
        assert job.next_due() == 2.0

    def test_satisfies_protocol(self):
        assert isinstance(InlineDispatcher(), Dispatcher)
        assert isinstance(ThreadPoolDispatcher(max_workers=1), Dispatcher)


class TestThreadPoolDispatcher:
    """Tests for parallel dispatch."""

    def test_rejects_bad_limits(self):
        with pytest.raises(ValueError):
            ThreadPoolDispatcher(max_workers=0)
        with pytest.raises(ValueError):
            ThreadPoolDispatcher(max_pending=0)

    def test_runs_action_on_worker(self, pool):
        done = threading.Event()
        threads = []

        def record():
            threads.append(threading.current_thread())
            done.set()

        scheduler = Scheduler(clock=ManualClock(), dispatcher=pool)
        scheduler.add(every(1, TimeUnit.SECONDS).do(record))

        assert scheduler.tick(1.0) == [1]
        assert done.wait(timeout=5)
        assert threads[0] is not threading.current_thread()

    def test_at_most_one_in_flight(self, pool):
        """A job still running when due again is skipped, not re-entered."""
        blocker = _Blocker()
        scheduler = Scheduler(clock=ManualClock(), dispatcher=pool)
        job = every(1, TimeUnit.SECONDS).do(blocker)
        scheduler.add(job)

        assert scheduler.tick(1.0) == [1]
        assert blocker.started.wait(timeout=5)

        assert scheduler.tick(2.0) == []
        assert pool.dropped == 1
        assert job.next_due() == 3.0

        blocker.release.set()
        pool.shutdown(wait=True)

        assert blocker.calls == 1
        assert job.times_run == 1
        assert not job.in_flight

    def test_slow_job_does_not_block_others(self, pool):
        blocker = _Blocker()
        quick = threading.Event()
        scheduler = Scheduler(clock=ManualClock(), dispatcher=pool)
        scheduler.add(every(1, TimeUnit.SECONDS).do(blocker))
        scheduler.add(every(1, TimeUnit.SECONDS).do(quick.set))

        assert scheduler.tick(1.0) == [1, 2]
        assert quick.wait(timeout=5)

        blocker.release.set()

    def test_overflow_drops_firing(self):
        dispatcher = ThreadPoolDispatcher(max_workers=1, max_pending=1)
        blocker = _Blocker()
        second = threading.Event()
        scheduler = Scheduler(clock=ManualClock(), dispatcher=dispatcher)
        scheduler.add(every(1, TimeUnit.SECONDS).do(blocker))
        scheduler.add(every(1, TimeUnit.SECONDS).do(second.set))

        try:
            assert scheduler.tick(1.0) == [1]
            assert dispatcher.dropped == 1
            assert scheduler.get(2).next_due() == 2.0
        finally:
            blocker.release.set()
            dispatcher.shutdown(wait=True)

        assert not second.is_set()
        assert dispatcher.pending == 0

    def test_failure_recorded_on_worker(self, pool):
        scheduler = Scheduler(clock=ManualClock(), dispatcher=pool)
        job = every(1, TimeUnit.SECONDS).do(lambda: 1 / 0)
        scheduler.add(job)

        scheduler.tick(1.0)
        pool.shutdown(wait=True)

        assert job.failure_count == 1
        assert job.last_error == "division by zero"

    def test_cancelled_queued_job_is_skipped(self):
        dispatcher = ThreadPoolDispatcher(max_workers=1, max_pending=10)
        blocker = _Blocker()
        queued = threading.Event()
        scheduler = Scheduler(clock=ManualClock(), dispatcher=dispatcher)
        scheduler.add(every(1, TimeUnit.SECONDS).do(blocker))
        scheduler.add(every(1, TimeUnit.SECONDS).do(queued.set))

        assert scheduler.tick(1.0) == [1, 2]
        assert blocker.started.wait(timeout=5)
        scheduler.cancel(2)

        blocker.release.set()
        dispatcher.shutdown(wait=True)

        assert not queued.is_set()

    def test_once_job_retired_at_submission(self, pool):
        done = threading.Event()
        scheduler = Scheduler(clock=ManualClock(), dispatcher=pool)
        job_id = scheduler.add(once(1, TimeUnit.SECONDS).do(done.set))

        assert scheduler.tick(1.0) == [job_id]
        assert job_id not in scheduler
        assert done.wait(timeout=5)

    def test_shutdown_through_scheduler(self):
        dispatcher = ThreadPoolDispatcher(max_workers=1)
        scheduler = Scheduler(clock=ManualClock(), dispatcher=dispatcher)
        scheduler.shutdown()

        with pytest.raises(RuntimeError):
            dispatcher.dispatch(every(1, TimeUnit.SECONDS).do(lambda: None), 0.0)

"""Scheduler for registering jobs and firing them when due.

This module provides the Scheduler class, which owns the live job
collection, decides on each tick which jobs are due, dispatches them in
ascending id order and retires exhausted one-shot jobs.
"""

import asyncio
import itertools
import logging
import threading

from cadence.clock import Clock, MonotonicClock
from cadence.config import settings
from cadence.dispatch import Dispatcher, InlineDispatcher
from cadence.errors import CadenceError, JobAlreadyRegistered, SchedulerFault
from cadence.job import Job

logger = logging.getLogger(__name__)


class Scheduler:
    """A job scheduler.

    The scheduler handles:
    - Job registration and cancellation, safe from any thread
    - Due-time evaluation and deterministic firing on each tick
    - A blocking run loop (``run_forever``) or a cooperative one
      (``run_async``) that sleeps until the next due job

    Example:
        scheduler = Scheduler()
        scheduler.add(every(5, TimeUnit.SECONDS).do(lambda: print("Hello World")))

        scheduler.run_forever()
    """

    def __init__(
        self,
        clock: Clock | None = None,
        dispatcher: Dispatcher | None = None,
        max_idle: float | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            clock: Time source (defaults to the monotonic clock).
            dispatcher: Where actions run (defaults to inline).
            max_idle: Longest single sleep of the run loop in seconds.
        """
        self._clock = clock or MonotonicClock()
        self._dispatcher = dispatcher or InlineDispatcher()
        self._max_idle = max_idle if max_idle is not None else settings.max_idle_seconds

        self._jobs: dict[int, Job] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

        self._wakeup = threading.Event()
        self._stopping = threading.Event()
        self._running = False
        self._thread: threading.Thread | None = None
        self._async_loop: asyncio.AbstractEventLoop | None = None
        self._async_wakeup: asyncio.Event | None = None

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def is_running(self) -> bool:
        """Check if a run loop is active."""
        return self._running

    def _now(self) -> float:
        try:
            return self._clock.now()
        except Exception as e:
            raise SchedulerFault(f"Clock unavailable: {e}") from e

    def _notify(self) -> None:
        """Wake a sleeping run loop."""
        self._wakeup.set()
        loop, event = self._async_loop, self._async_wakeup
        if loop is not None and event is not None and not loop.is_closed():
            loop.call_soon_threadsafe(event.set)

    # Job collection

    def add(self, job: Job, now: float | None = None) -> int:
        """Register a job.

        Args:
            job: The job to register.
            now: Registration instant (defaults to the clock's now).

        Returns:
            The id assigned to the job.

        Raises:
            JobAlreadyRegistered: If the job is already in this scheduler.
        """
        registered_at = self._now() if now is None else now

        with self._lock:
            if job.id is not None and self._jobs.get(job.id) is job:
                raise JobAlreadyRegistered(f"{job!r} is already registered")

            job.id = next(self._ids)
            job.cancelled = False
            job.schedule.start(registered_at)
            self._jobs[job.id] = job

        logger.debug(f"Registered {job!r}, next due at {job.next_due()}")
        self._notify()
        return job.id

    def cancel(self, job_id: int) -> bool:
        """Remove a job.

        Unknown, already cancelled and already retired ids are ignored.

        Returns:
            True if a job was removed.
        """
        with self._lock:
            job = self._jobs.pop(job_id, None)
            if job is None:
                return False
            job.cancelled = True

        logger.debug(f"Cancelled {job!r}")
        self._notify()
        return True

    def get(self, job_id: int) -> Job | None:
        with self._lock:
            return self._jobs.get(job_id)

    def jobs(self) -> list[Job]:
        """List live jobs in id order."""
        with self._lock:
            return [self._jobs[job_id] for job_id in sorted(self._jobs)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    # Due-time evaluation

    def tick(self, now: float) -> list[int]:
        """Fire every job due at ``now``.

        Jobs fire in ascending id order. One-shot jobs that are exhausted
        afterwards are removed from the collection.

        Args:
            now: The instant to evaluate against.

        Returns:
            Ids of the jobs fired, in firing order.
        """
        with self._lock:
            due = [self._jobs[job_id] for job_id in sorted(self._jobs)
                   if self._jobs[job_id].is_due(now)]

        fired: list[int] = []
        for job in due:
            # An earlier action in this tick may have cancelled it
            with self._lock:
                if self._jobs.get(job.id) is not job:
                    continue
            if self._dispatcher.dispatch(job, now):
                fired.append(job.id)

        self._reap()
        return fired

    def _reap(self) -> None:
        with self._lock:
            exhausted = [job_id for job_id, job in self._jobs.items() if job.is_exhausted()]
            for job_id in exhausted:
                job = self._jobs.pop(job_id)
                logger.debug(f"Retired {job!r}")

    def next_wake(self, now: float) -> float | None:
        """Get the instant the run loop must wake at to miss no job.

        Returns:
            The earliest next-due instant, which is in the past when a job is
            overdue, or None if no job is pending.
        """
        with self._lock:
            dues = [due for due in (job.next_due() for job in self._jobs.values())
                    if due is not None]
        if not dues:
            return None
        return min(dues)

    def pending(self, now: float | None = None) -> bool:
        """Check if there are any jobs that need to be run."""
        now = self._now() if now is None else now
        with self._lock:
            return any(job.is_due(now) for job in self._jobs.values())

    def run_pending(self) -> int:
        """Run any pending jobs and return the number of jobs run."""
        return len(self.tick(self._now()))

    def time_to_next(self, now: float | None = None) -> float | None:
        """Get the seconds until the next job is due (0 if one is overdue)."""
        now = self._now() if now is None else now
        wake_at = self.next_wake(now)
        if wake_at is None:
            return None
        return max(0.0, wake_at - now)

    # Run loops

    def _deadline(self, now: float) -> float:
        wake_at = self.next_wake(now)
        limit = now + self._max_idle
        return limit if wake_at is None else max(now, min(wake_at, limit))

    def run_forever(self) -> None:
        """Run the jobs until :meth:`stop` is called.

        Returns at once if a stop was requested before the loop started.

        Raises:
            SchedulerFault: If the clock fails or the loop breaks.
        """
        self._run_loop()

    def _run_loop(self) -> None:
        self._running = True
        logger.info(f"Scheduler started with {len(self)} jobs")

        try:
            while not self._stopping.is_set():
                self._wakeup.clear()
                now = self._now()
                deadline = self._deadline(now)

                if deadline <= now:
                    self.tick(now)
                    continue
                if self._stopping.is_set():
                    break

                try:
                    self._clock.sleep_until(deadline, self._wakeup)
                except Exception as e:
                    raise SchedulerFault(f"Clock failed while sleeping: {e}") from e

        except SchedulerFault:
            logger.exception("Scheduler fault")
            raise
        except Exception as e:
            logger.exception("Error in scheduler loop")
            raise SchedulerFault(f"Scheduler loop failed: {e}") from e
        finally:
            self._running = False
            self._stopping.clear()
            logger.info("Scheduler stopped")

    async def run_async(self) -> None:
        """Run the jobs cooperatively on the current event loop.

        Sleeps are real-time waits on the event loop, so the clock must
        advance on its own (e.g. :class:`MonotonicClock`). Actions run
        inline on the loop thread unless a pool dispatcher is configured.

        Raises:
            SchedulerFault: If the clock fails or the loop breaks.
        """
        loop = asyncio.get_running_loop()
        event = asyncio.Event()
        with self._lock:
            self._async_loop = loop
            self._async_wakeup = event

        self._running = True
        logger.info(f"Scheduler started with {len(self)} jobs")

        try:
            while not self._stopping.is_set():
                event.clear()
                now = self._now()
                deadline = self._deadline(now)

                if deadline <= now:
                    self.tick(now)
                    # Let other tasks run between back-to-back ticks
                    await asyncio.sleep(0)
                    continue
                if self._stopping.is_set():
                    break

                try:
                    await asyncio.wait_for(event.wait(), timeout=deadline - now)
                except asyncio.TimeoutError:
                    pass

        except SchedulerFault:
            logger.exception("Scheduler fault")
            raise
        except Exception as e:
            logger.exception("Error in scheduler loop")
            raise SchedulerFault(f"Scheduler loop failed: {e}") from e
        finally:
            with self._lock:
                self._async_loop = None
                self._async_wakeup = None
            self._running = False
            self._stopping.clear()
            logger.info("Scheduler stopped")

    def start(self) -> None:
        """Start ``run_forever`` on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Scheduler is already running")
            return

        self._thread = threading.Thread(
            target=self._run_loop,
            name="cadence-scheduler",
            daemon=True,
        )
        self._thread.start()

    def stop(self, wait: bool = True, timeout: float | None = None) -> None:
        """Stop the run loop.

        Safe to call from a job action, a signal handler or another thread.
        A stop requested while no loop is running ends the next loop as soon
        as it starts.

        Args:
            wait: Join the background thread started by :meth:`start`.
            timeout: Maximum seconds to wait for the thread.
        """
        self._stopping.set()
        self._notify()

        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if not thread.is_alive():
                self._thread = None

    def shutdown(self, wait: bool = True) -> None:
        """Stop the run loop and release the dispatcher's workers."""
        self.stop(wait=wait)
        self._dispatcher.shutdown(wait=wait)

    def __repr__(self) -> str:
        return f"Scheduler(jobs={self.jobs()!r})"

"""Dispatch of due jobs.

A dispatcher decides where a due job's action runs. The inline dispatcher
runs it on the scheduling thread; the thread pool dispatcher hands it to a
worker so a slow action never holds up the rest of a tick.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Protocol, runtime_checkable

from cadence.job import Job, JobRun

logger = logging.getLogger(__name__)


@runtime_checkable
class Dispatcher(Protocol):
    """Port: execute a due job."""

    def dispatch(self, job: Job, now: float) -> bool:
        """Fire ``job`` at ``now``.

        Returns:
            True if the firing ran or was submitted, False if it was dropped.
        """
        ...

    def shutdown(self, wait: bool = True) -> None: ...


class InlineDispatcher:
    """Runs actions on the calling thread, one after another."""

    def dispatch(self, job: Job, now: float) -> bool:
        job.fire(now)
        return True

    def shutdown(self, wait: bool = True) -> None:
        pass


class ThreadPoolDispatcher:
    """Runs actions on a bounded worker pool.

    Guarantees at most one in-flight firing per job. A firing that finds its
    job still running, or finds ``max_pending`` firings already queued, is
    dropped and logged. In both cases the schedule still advances, so the
    job is simply considered again at its next due time.

    Example:
        dispatcher = ThreadPoolDispatcher(max_workers=4, max_pending=100)
        scheduler = Scheduler(dispatcher=dispatcher)
    """

    def __init__(self, max_workers: int = 4, max_pending: int = 100) -> None:
        """Initialize the dispatcher.

        Args:
            max_workers: Number of worker threads.
            max_pending: Maximum submitted firings not yet finished.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="cadence-worker",
        )
        self._max_pending = max_pending
        self._pending = 0
        self._lock = threading.Lock()
        self.dropped = 0

    @property
    def pending(self) -> int:
        """Number of submitted firings that have not finished."""
        return self._pending

    def dispatch(self, job: Job, now: float) -> bool:
        if not job.claim():
            job.mark_fired(now)
            self._drop(job, "previous run still in flight")
            return False

        with self._lock:
            if self._pending >= self._max_pending:
                full = True
            else:
                full = False
                self._pending += 1

        if full:
            job.release()
            job.mark_fired(now)
            self._drop(job, f"dispatch queue full ({self._max_pending} pending)")
            return False

        job.mark_fired(now)
        try:
            future = self._executor.submit(self._run, job, now)
        except RuntimeError:
            # Executor already shut down
            self._finish(job)
            raise
        future.add_done_callback(self._log_unexpected)
        return True

    def _run(self, job: Job, now: float) -> JobRun | None:
        try:
            if job.cancelled:
                logger.debug(f"Skipping cancelled {job!r}")
                return None
            return job.run_action(now)
        finally:
            self._finish(job)

    def _finish(self, job: Job) -> None:
        job.release()
        with self._lock:
            self._pending -= 1

    def _drop(self, job: Job, reason: str) -> None:
        with self._lock:
            self.dropped += 1
        logger.warning(f"Dropped firing of {job!r}: {reason}")

    @staticmethod
    def _log_unexpected(future: Future) -> None:
        # run_action captures action errors; anything here is a bug in the worker
        exc = future.exception()
        if exc is not None:
            logger.error(f"Worker failed outside job action: {exc!r}")

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

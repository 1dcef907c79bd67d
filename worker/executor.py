"""
Job executors: what happens to a job between start_job() and the moment the
scheduling loop notices it has finished.

Jobs here model lifecycle and resource accounting, not real computation, so
an executor never runs user code. It only decides WHEN a running job reaches
COMPLETED or FAILED. The scheduler never waits on it: executors flip the
job's status from their own threads and the loop discovers the change the
next time check_completed_jobs() polls the running set.

Two implementations:
- SimulatedExecutor: one timer per running job, fires after the job's
  remaining estimated_duration and completes it (or fails it with
  probability failure_rate). Used by the host process and benchmarks.
- ManualExecutor: records launches and does nothing else. The embedding
  host (or a test) calls job.complete() / job.fail() itself.
"""

import logging
import random
import threading
from abc import ABC, abstractmethod
from typing import Optional

from config.settings import settings
from models.job import Job
from scheduler.errors import InvalidTransition

logger = logging.getLogger(__name__)


class JobExecutor(ABC):

    @abstractmethod
    def launch(self, job: Job) -> None:
        """Called right after the job went RUNNING. Must not block."""
        ...

    @abstractmethod
    def suspend(self, job: Job) -> None:
        """Called after the job was preempted (RUNNING → PAUSED)."""
        ...

    def shutdown(self) -> None:
        """Stop tracking every job. Default: nothing to clean up."""
        pass


class ManualExecutor(JobExecutor):

    def __init__(self):
        self.launched: list[Job] = []
        self.suspended: list[Job] = []

    def launch(self, job: Job) -> None:
        self.launched.append(job)

    def suspend(self, job: Job) -> None:
        self.suspended.append(job)


class SimulatedExecutor(JobExecutor):

    def __init__(self, failure_rate: Optional[float] = None, seed: Optional[int] = None):
        rate = settings.SIMULATED_FAILURE_RATE if failure_rate is None else failure_rate
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"failure_rate must be between 0 and 1, got {rate}")
        self.failure_rate = rate
        self._random = random.Random(seed)
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    def launch(self, job: Job) -> None:
        delay = job.remaining_duration()
        timer = threading.Timer(delay, self._finish, args=(job,))
        timer.daemon = True
        with self._lock:
            self._timers[job.job_id] = timer
        timer.start()
        logger.debug(f"Simulating {job!r} for {delay:.3f}s")

    def suspend(self, job: Job) -> None:
        with self._lock:
            timer = self._timers.pop(job.job_id, None)
        if timer is not None:
            timer.cancel()

    def shutdown(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._timers)

    def _finish(self, job: Job) -> None:
        with self._lock:
            timer = self._timers.get(job.job_id)
            if timer is None or timer is not threading.current_thread():
                return  # suspended (or relaunched) after this timer fired
            del self._timers[job.job_id]

        fail_probability = job.payload.get("fail_probability", self.failure_rate)
        try:
            if self._random.random() < fail_probability:
                job.fail(f"Simulated failure (fail_probability={fail_probability})")
            else:
                job.complete()
        except InvalidTransition:
            # lost the race against a preemption; the job is PAUSED now
            logger.debug(f"Ignoring stale finish for {job!r}")

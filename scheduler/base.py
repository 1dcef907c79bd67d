"""
Scheduler core: the engine every scheduling policy plugs into (Strategy pattern).

SchedulerCore owns all shared state of one scheduler instance:

    ready structure  → owned by the policy subclass (heap, deque, list)
    running set      → jobs holding reserved resources
    finished record  → COMPLETED, CANCELLED and permanently FAILED jobs
    resource pool    → cpu/memory counters (scheduler/resources.py)

and drives one loop, tick() after tick():

    1. check_completed_jobs(): reclaim resources of jobs that finished
       since the last poll, requeue retryable failures
    2. admit: while under max_concurrent_jobs, ask the policy for the next
       ready job that fits the spare capacity, reserve and start it
    3. idle for poll_interval (run() only)

A policy only has to answer "which ready job goes next?". The capability
interface is five members:

    schedule_job(job)       put a QUEUED job into the ready structure
    select_next_job()       remove and return the best job that fits, or None
    prioritize_jobs()       rebuild ordering after external changes
    strategy_description    human-readable summary of the policy
    policy_name             SchedulingPolicy value for this class

plus the bookkeeping pair ready_jobs() / remove_ready_job(job).

Locking: one RLock guards everything above. Producer calls (submit, cancel,
snapshot, policy-specific mutators) and each tick() take it, so the loop is
the sole mutator while it runs and callers never see a half-applied
transition. Executors never take it: they change job status under the job's
own lock and the loop notices on its next poll.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from config.settings import settings
from models.enums import JobStatus
from models.job import Job
from models.schemas import JobView, SchedulerSnapshot
from scheduler.errors import ExceedsCapacity, InvalidTransition, JobNotFound
from scheduler.resources import ResourcePool
from scheduler.retry import RetryHandler
from worker.executor import JobExecutor, SimulatedExecutor

logger = logging.getLogger(__name__)


class SchedulerCore(ABC):

    def __init__(
        self,
        name: Optional[str] = None,
        max_concurrent_jobs: Optional[int] = None,
        total_cpu: Optional[float] = None,
        total_memory: Optional[float] = None,
        executor: Optional[JobExecutor] = None,
        poll_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name or f"{self.policy_name} scheduler"
        self.max_concurrent_jobs = (
            settings.MAX_CONCURRENT_JOBS if max_concurrent_jobs is None else max_concurrent_jobs
        )
        if self.max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be at least 1")

        self._resources = ResourcePool(
            settings.TOTAL_CPU_CAPACITY if total_cpu is None else total_cpu,
            settings.TOTAL_MEMORY_CAPACITY if total_memory is None else total_memory,
        )
        self._executor = executor if executor is not None else SimulatedExecutor()
        self._poll_interval = settings.POLL_INTERVAL if poll_interval is None else poll_interval
        self._clock = clock

        self._jobs: dict[str, Job] = {}
        self._running_jobs: list[Job] = []
        self._finished: list[Job] = []
        self._retry_handler = RetryHandler()

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._paused = False

    # ── Policy contract ─────────────────────────────────────────

    @abstractmethod
    def schedule_job(self, job: Job) -> None:
        """Add a QUEUED job to this policy's ready structure."""
        ...

    @abstractmethod
    def select_next_job(self) -> Optional[Job]:
        """Remove and return the next ready job that fits spare capacity, or None."""
        ...

    @abstractmethod
    def prioritize_jobs(self) -> None:
        """Re-establish the ready ordering."""
        ...

    @property
    @abstractmethod
    def strategy_description(self) -> str:
        ...

    @property
    @abstractmethod
    def policy_name(self) -> str:
        """Unique name for this policy (e.g., 'priority', 'fair_share')."""
        ...

    @abstractmethod
    def ready_jobs(self) -> list[Job]:
        """Ready jobs in the order the policy would consider them."""
        ...

    @abstractmethod
    def remove_ready_job(self, job: Job) -> bool:
        """Take a job out of the ready structure. False if it was not there."""
        ...

    # ── Hooks (no-ops unless a policy needs them) ───────────────

    def _on_job_submitted(self, job: Job) -> None:
        pass

    def _on_job_started(self, job: Job) -> None:
        pass

    def _on_job_released(self, job: Job) -> None:
        """Resources of a run were returned (finished or preempted)."""
        pass

    def _on_job_finished(self, job: Job) -> None:
        """Job reached a terminal state and left the scheduler for good."""
        pass

    def _preempt_expired(self, now: float) -> list[Job]:
        return []

    def _owner_shares(self):
        return None

    # ── Submission ──────────────────────────────────────────────

    def submit(self, job: Job) -> Job:
        """
        Admit a new job into the ready structure.

        Raises ExceedsCapacity if the job needs more cpu or memory than the
        pool has in total; nothing is changed in that case.
        """
        with self._lock:
            if job.cpu_requirement > self._resources.total_cpu:
                self._reject(job, "cpu", job.cpu_requirement, self._resources.total_cpu)
            if job.memory_requirement > self._resources.total_memory:
                self._reject(job, "memory", job.memory_requirement, self._resources.total_memory)
            if job.job_id in self._jobs:
                raise InvalidTransition(job.job_id, job.status, JobStatus.QUEUED)

            job.enqueue()
            self._jobs[job.job_id] = job
            self._on_job_submitted(job)
            self.schedule_job(job)

        logger.info(f"Job submitted: {job!r} to {self.name}")
        return job

    def _reject(self, job: Job, resource: str, required: float, capacity: float) -> None:
        logger.warning(
            f"Rejected {job!r}: needs {required:g} {resource}, capacity {capacity:g}"
        )
        raise ExceedsCapacity(job.job_id, resource, required, capacity)

    def cancel(self, job_id: str) -> bool:
        """Cancel a job that is still waiting. Running jobs are never cancelled."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or not job.is_ready_to_run():
                return False
            if not self.remove_ready_job(job):
                return False
            job.cancel(self._clock())
            self._finished.append(job)
            self._on_job_finished(job)

        logger.info(f"Job cancelled: {job!r}")
        return True

    # ── Admission and reclamation ───────────────────────────────

    def has_resources_for_job(self, job: Job) -> bool:
        return self._resources.fits(job)

    def can_start_new_job(self) -> bool:
        return not self._paused and len(self._running_jobs) < self.max_concurrent_jobs

    def start_job(self, job: Job) -> bool:
        """Reserve resources for a ready job and move it to RUNNING."""
        with self._lock:
            if not self.has_resources_for_job(job):
                logger.warning(f"Insufficient resources for job: {job!r}")
                return False
            if job.status is JobStatus.PAUSED:
                job.resume()

            self._resources.reserve(job)
            job.start(self._clock())
            self._running_jobs.append(job)
            self._on_job_started(job)
            self._executor.launch(job)

        logger.info(f"Job started: {job!r} ({self._resources!r})")
        return True

    def preempt_job(self, job: Job) -> bool:
        """
        Take a RUNNING job off the pool: RUNNING → PAUSED → QUEUED, back into
        the ready structure. False if the job finished before we got to it.
        """
        with self._lock:
            if job not in self._running_jobs:
                return False
            try:
                job.pause(self._clock())
            except InvalidTransition:
                # finished concurrently; check_completed_jobs() will reclaim it
                return False

            self._running_jobs.remove(job)
            self._resources.release(job)
            self._executor.suspend(job)
            self._on_job_released(job)
            job.resume()
            self.schedule_job(job)

        logger.info(f"Job preempted: {job!r} after {job.run_time:.3f}s of run time")
        return True

    def check_completed_jobs(self) -> list[Job]:
        """
        Reclaim every running job whose run has ended since the last poll.

        FAILED jobs with retries left go back into the ready structure;
        everything else lands in the finished record.
        """
        with self._lock:
            ended = [job for job in self._running_jobs if job.status.is_finished]
            for job in ended:
                self._running_jobs.remove(job)
                self._resources.release(job)
                self._on_job_released(job)

                if job.status is JobStatus.FAILED and self._retry_handler.handle_failure(job):
                    self.schedule_job(job)
                    continue

                self._finished.append(job)
                self._on_job_finished(job)
                if job.status is JobStatus.COMPLETED:
                    logger.info(f"Job completed: {job!r} in {job.run_time:.3f}s")
        return ended

    def tick(self) -> list[Job]:
        """One scheduling cycle. Returns the jobs started during it."""
        started: list[Job] = []
        with self._lock:
            self.check_completed_jobs()
            self._preempt_expired(self._clock())
            while self.can_start_new_job():
                job = self.select_next_job()
                if job is None:
                    break
                if not self.start_job(job):
                    # policy handed out a job that does not fit; keep it queued
                    self.schedule_job(job)
                    break
                started.append(job)
        return started

    # ── Loop control ────────────────────────────────────────────

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    def run(self) -> None:
        """
        Tick until stop() is called. Blocks the calling thread.

        Raises RuntimeError if another loop (e.g. one from start()) is alive.
        """
        self._wait_for_stopping_loop()
        with self._lock:
            if self.is_running:
                raise RuntimeError(f"Scheduler loop already running: {self.name}")
            stop_event = self._stop_event = threading.Event()
            self._thread = threading.current_thread()
        self._loop(stop_event)

    def _loop(self, stop_event: threading.Event) -> None:
        logger.info(f"Scheduler started: {self.name} ({self.strategy_description})")
        try:
            while not stop_event.is_set():
                try:
                    self.tick()
                except Exception as e:
                    logger.error(f"Scheduler loop error: {e}", exc_info=True)
                stop_event.wait(self.poll_interval)
        finally:
            with self._lock:
                if self._thread is threading.current_thread():
                    self._thread = None
        logger.info(f"Scheduler stopped: {self.name}")

    def _wait_for_stopping_loop(self) -> None:
        # a loop told to stop may outlive stop(timeout); never run two at once
        thread = self._thread
        if thread is not None and thread is not threading.current_thread() and self._stop_event.is_set():
            thread.join()

    def start(self) -> None:
        """Run the loop in a daemon thread. No-op if a loop is already running."""
        self._wait_for_stopping_loop()
        with self._lock:
            if self.is_running:
                return
            # every loop gets its own event so an old loop can never be revived
            stop_event = self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._loop, args=(stop_event,), name=f"{self.policy_name}-loop", daemon=True
            )
            self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """
        Signal the loop to stop and wait up to `timeout` for it to exit.

        If the loop is still finishing its tick when the timeout expires,
        is_running stays True until it actually exits.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def shutdown(self) -> None:
        """Stop the loop and the executor's pending work."""
        self.stop()
        self._executor.shutdown()

    def pause(self) -> None:
        """Stop admitting jobs. Running jobs are still reclaimed."""
        self._paused = True
        logger.info(f"Scheduler paused: {self.name}")

    def resume(self) -> None:
        self._paused = False
        logger.info(f"Scheduler resumed: {self.name}")

    def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Tick in the calling thread until nothing is queued or running.

        Returns False if the timeout expired first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            self.tick()
            with self._lock:
                if not self._running_jobs and self.queue_size == 0:
                    return True
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(self.poll_interval)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def is_paused(self) -> bool:
        return self._paused

    # ── Introspection (never mutates) ───────────────────────────

    @property
    def queue_size(self) -> int:
        with self._lock:
            return len(self.ready_jobs())

    @property
    def resources(self) -> ResourcePool:
        return self._resources

    def get_job(self, job_id: str) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def running_jobs(self) -> list[Job]:
        with self._lock:
            return list(self._running_jobs)

    def finished_jobs(self) -> list[Job]:
        with self._lock:
            return list(self._finished)

    def dead_letter(self) -> list[Job]:
        with self._lock:
            return self._retry_handler.dead_letter

    def snapshot(self) -> SchedulerSnapshot:
        with self._lock:
            now = self._clock()
            statuses = [job.status for job in self._finished]
            return SchedulerSnapshot(
                name=self.name,
                policy=self.policy_name,
                strategy=self.strategy_description,
                running=self.is_running,
                paused=self._paused,
                max_concurrent_jobs=self.max_concurrent_jobs,
                queue_size=len(self.ready_jobs()),
                running_count=len(self._running_jobs),
                finished_count=len(self._finished),
                completed_count=statuses.count(JobStatus.COMPLETED),
                failed_count=statuses.count(JobStatus.FAILED),
                cancelled_count=statuses.count(JobStatus.CANCELLED),
                resources=self._resources.usage(),
                queued_jobs=[JobView.from_job(job, now) for job in self.ready_jobs()],
                running_jobs=[JobView.from_job(job, now) for job in self._running_jobs],
                dead_letter=[JobView.from_job(job, now) for job in self._retry_handler.dead_letter],
                owner_shares=self._owner_shares(),
            )

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self.name!r}: {self.queue_size} queued, "
            f"{len(self._running_jobs)} running, {len(self._finished)} finished>"
        )

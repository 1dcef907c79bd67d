"""
Round Robin scheduler.

Each running job gets a fixed time slice (e.g., 2000 ms). If it finishes
within the slice, fine. If not, it is preempted: RUNNING → PAUSED, its
resources go back to the pool, it is resumed to QUEUED and sent to the back
of the line. Priority is ignored entirely.

Data structure: deque
- schedule_job: append to right  → O(1)
- select_next_job: pop from left, skip (rotate to the back) jobs that do
  not fit the spare capacity, drop jobs that turned terminal
- preemption: append to right    → O(1)

Every tick checks ALL running jobs against the slice before admitting
anything, so an expired job is always off the pool before a different job
is admitted. The loop polls at min(poll_interval, time_slice / 10) to keep
preemption latency well under one slice.

Tradeoff: the slice size controls overhead vs responsiveness:
- small slice: very fair, lots of pause/resume churn
- large slice: little churn, approaches arrival-order (FCFS) behavior
"""

import logging
from collections import deque
from typing import Optional

from models.enums import SchedulingPolicy
from models.job import Job
from scheduler.base import SchedulerCore

logger = logging.getLogger(__name__)


class RoundRobinScheduler(SchedulerCore):

    def __init__(self, time_slice_ms: int = 2000, **kwargs):
        if time_slice_ms <= 0:
            raise ValueError(f"time_slice_ms must be positive, got {time_slice_ms}")
        self._queue: deque[Job] = deque()
        self._time_slice_ms = time_slice_ms
        self._slice_started: dict[str, float] = {}
        self._current_job: Optional[Job] = None
        super().__init__(**kwargs)

    def schedule_job(self, job: Job) -> None:
        with self._lock:
            self._queue.append(job)
        logger.debug(f"Job added to round-robin queue: {job.name}")

    def select_next_job(self) -> Optional[Job]:
        with self._lock:
            self._preempt_expired(self._clock())

            # one pass over the queue; skipped jobs rotate to the back
            for _ in range(len(self._queue)):
                candidate = self._queue.popleft()
                if candidate.is_ready_to_run() and self.has_resources_for_job(candidate):
                    return candidate
                if not candidate.is_terminal:
                    self._queue.append(candidate)
            return None

    def _preempt_expired(self, now: float) -> list[Job]:
        preempted = []
        with self._lock:
            for job in self.running_jobs():
                started = self._slice_started.get(job.job_id)
                if started is None:
                    continue
                if (now - started) * 1000.0 >= self._time_slice_ms:
                    logger.info(f"Time slice expired for job: {job.name}")
                    if self.preempt_job(job):
                        preempted.append(job)
        return preempted

    def _on_job_started(self, job: Job) -> None:
        self._slice_started[job.job_id] = self._clock()
        self._current_job = job

    def _on_job_released(self, job: Job) -> None:
        self._slice_started.pop(job.job_id, None)
        if self._current_job is job:
            self._current_job = None

    def prioritize_jobs(self) -> None:
        # every job gets equal treatment; arrival order is the only order
        pass

    # ── Time slice ──────────────────────────────────────────────

    @property
    def time_slice_ms(self) -> int:
        return self._time_slice_ms

    def set_time_slice(self, time_slice_ms: int) -> None:
        if time_slice_ms <= 0:
            raise ValueError(f"time_slice_ms must be positive, got {time_slice_ms}")
        with self._lock:
            self._time_slice_ms = time_slice_ms
        logger.info(f"Time slice updated to: {time_slice_ms}ms")

    @property
    def current_job(self) -> Optional[Job]:
        """The most recently admitted job that is still running."""
        return self._current_job

    def remaining_time_slice(self, now: Optional[float] = None) -> float:
        """Milliseconds left in the current job's slice (0 if nothing runs)."""
        with self._lock:
            if self._current_job is None:
                return 0.0
            now = self._clock() if now is None else now
            started = self._slice_started[self._current_job.job_id]
            return max(0.0, self._time_slice_ms - (now - started) * 1000.0)

    @property
    def poll_interval(self) -> float:
        return min(self._poll_interval, self._time_slice_ms / 10.0 / 1000.0)

    # ── Bookkeeping ─────────────────────────────────────────────

    def ready_jobs(self) -> list[Job]:
        with self._lock:
            return list(self._queue)

    def remove_ready_job(self, job: Job) -> bool:
        with self._lock:
            try:
                self._queue.remove(job)
            except ValueError:
                return False
            return True

    @property
    def strategy_description(self) -> str:
        return f"Round-robin with {self._time_slice_ms}ms time slices"

    @property
    def policy_name(self) -> str:
        return SchedulingPolicy.ROUND_ROBIN.value

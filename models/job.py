"""
Job model: the unit of schedulable work.

A Job carries what a scheduler needs to make decisions (priority, owner,
cpu/memory requirements, creation time) plus its lifecycle state:

    CREATED → QUEUED → RUNNING → COMPLETED
                  ↑        ├──→ FAILED ──(retry, if retries remain)──┐
                  │        └──→ PAUSED ──(resume)──┐                 │
                  └────────────────────────────────┴─────────────────┘

Every status change goes through JobStatus.can_transition_to(); anything
else raises InvalidTransition. Changes are made under a per-job lock because
executor threads complete or fail jobs while the scheduling loop may be
preempting them at the same moment. Whichever side takes the lock first
wins and the other sees an illegal transition.

Timestamps are plain floats from a monotonic clock. Schedulers pass their
own clock reading in as `now` so tests can drive time by hand.
"""

import itertools
import math
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from config.settings import settings
from models.enums import JobPriority, JobStatus
from scheduler.errors import InvalidRetry, InvalidTransition

# Submission order tiebreaker for jobs created within the same clock tick
_sequence = itertools.count()


@dataclass(eq=False)
class Job:
    name: str
    owner: str = "default"
    priority: JobPriority = JobPriority.NORMAL
    cpu_requirement: float = field(default_factory=lambda: settings.DEFAULT_CPU_REQUIREMENT)
    memory_requirement: float = field(default_factory=lambda: settings.DEFAULT_MEMORY_REQUIREMENT)
    max_retries: int = field(default_factory=lambda: settings.DEFAULT_MAX_RETRIES)
    estimated_duration: float = field(default_factory=lambda: settings.DEFAULT_ESTIMATED_DURATION)
    description: str = ""
    tags: list[str] = field(default_factory=list)
    payload: dict = field(default_factory=dict)   # executor hints, e.g. {"fail_probability": 1.0}

    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.CREATED
    retry_count: int = 0
    error_message: Optional[str] = None

    # ── Lifecycle timestamps ────────────────────────────────────
    created_at: float = field(default_factory=time.monotonic)
    started_at: Optional[float] = None   # start of the current (or last) run
    ended_at: Optional[float] = None
    run_time: float = 0.0                # seconds spent RUNNING, summed over preemptions

    seq: int = field(default_factory=lambda: next(_sequence))
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self):
        self.priority = JobPriority(self.priority)
        for value in (self.cpu_requirement, self.memory_requirement, self.estimated_duration):
            # NaN compares False against everything and would never fit the pool
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"Requirements and duration must be finite and non-negative, got {value}")
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")

    # ── Transitions ─────────────────────────────────────────────

    def _move(self, target: JobStatus) -> None:
        if not self.status.can_transition_to(target):
            raise InvalidTransition(self.job_id, self.status, target)
        self.status = target

    def _close_run(self, now: float) -> None:
        if self.started_at is not None:
            self.run_time += max(0.0, now - self.started_at)
        self.ended_at = now

    def enqueue(self) -> None:
        with self._lock:
            self._move(JobStatus.QUEUED)

    def start(self, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._move(JobStatus.RUNNING)
            self.started_at = now
            self.ended_at = None

    def complete(self, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._move(JobStatus.COMPLETED)
            self._close_run(now)

    def fail(self, error: str, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._move(JobStatus.FAILED)
            self._close_run(now)
            self.error_message = error

    def pause(self, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._move(JobStatus.PAUSED)
            self._close_run(now)

    def resume(self) -> None:
        with self._lock:
            self._move(JobStatus.QUEUED)

    def cancel(self, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._move(JobStatus.CANCELLED)
            self.ended_at = now

    def retry(self) -> None:
        """
        Send a FAILED job back to QUEUED for another attempt.

        retry_count counts retries, not attempts: a job with max_retries=2
        runs at most three times and ends with retry_count == 2.
        """
        with self._lock:
            if self.retry_count >= self.max_retries:
                raise InvalidRetry(self.job_id, self.retry_count, self.max_retries)
            self._move(JobStatus.QUEUED)
            self.retry_count += 1
            self.error_message = None

    # ── Queries ─────────────────────────────────────────────────

    def is_ready_to_run(self) -> bool:
        return self.status in (JobStatus.QUEUED, JobStatus.PAUSED)

    @property
    def can_retry(self) -> bool:
        return self.status is JobStatus.FAILED and self.retry_count < self.max_retries

    @property
    def is_terminal(self) -> bool:
        if self.status is JobStatus.FAILED:
            return not self.can_retry
        return self.status in (JobStatus.COMPLETED, JobStatus.CANCELLED)

    @property
    def blended_cost(self) -> float:
        """Single-number resource cost used by fair-share accounting."""
        return (self.cpu_requirement + self.memory_requirement) / 2.0

    def elapsed(self, now: Optional[float] = None) -> float:
        """Total seconds spent running, including the current run if any."""
        now = time.monotonic() if now is None else now
        if self.status is JobStatus.RUNNING and self.started_at is not None:
            return self.run_time + max(0.0, now - self.started_at)
        return self.run_time

    def remaining_duration(self, now: Optional[float] = None) -> float:
        return max(0.0, self.estimated_duration - self.elapsed(now))

    def progress_percent(self, now: Optional[float] = None) -> float:
        if self.status is JobStatus.COMPLETED:
            return 100.0
        if self.status in (JobStatus.FAILED, JobStatus.CANCELLED):
            return 0.0
        if self.estimated_duration <= 0:
            return 0.0
        return min(100.0, self.elapsed(now) * 100.0 / self.estimated_duration)

    def has_tag(self, tag: str) -> bool:
        return any(t.lower() == tag.lower() for t in self.tags)

    def __repr__(self) -> str:
        return f"<Job {self.job_id[:8]} [{self.name}] {self.priority.name} {self.status.value}>"

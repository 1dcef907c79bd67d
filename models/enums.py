"""
Shared enumerations used across the entire project.

JobStatus and SchedulingPolicy inherit from str so they log and serialize as
their plain value ("QUEUED", not "JobStatus.QUEUED"). JobPriority is an
IntEnum whose value is the priority LEVEL: a bigger number is more urgent,
so `max()` and descending sorts pick the most important job.
"""

import enum


class JobPriority(enum.IntEnum):
    CRITICAL = 5   # system-critical tasks that must run immediately
    HIGH = 4       # important tasks that should run soon
    NORMAL = 3     # standard priority tasks
    LOW = 2        # background tasks that can wait
    DEFERRED = 1   # tasks that run when the system is idle

    @property
    def level(self) -> int:
        return int(self.value)

    @property
    def display_name(self) -> str:
        return self.name.capitalize()

    def is_higher_than(self, other: "JobPriority") -> bool:
        return self.level > other.level

    def is_lower_than(self, other: "JobPriority") -> bool:
        return self.level < other.level


class JobStatus(str, enum.Enum):
    CREATED = "CREATED"        # built by the caller, not yet submitted
    QUEUED = "QUEUED"          # waiting in a scheduler's ready structure
    RUNNING = "RUNNING"        # admitted, resources reserved
    PAUSED = "PAUSED"          # preempted by round robin, about to be requeued
    COMPLETED = "COMPLETED"    # finished successfully
    FAILED = "FAILED"          # execution failed (may still be retried)
    CANCELLED = "CANCELLED"    # removed before it ever ran to completion

    @property
    def is_finished(self) -> bool:
        """True once a run has ended; a FAILED job may still be retried."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)

    def can_transition_to(self, target: "JobStatus") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.CREATED: frozenset({JobStatus.QUEUED, JobStatus.CANCELLED}),
    JobStatus.QUEUED: frozenset({JobStatus.RUNNING, JobStatus.CANCELLED}),
    JobStatus.RUNNING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.PAUSED}),
    JobStatus.PAUSED: frozenset({JobStatus.QUEUED, JobStatus.CANCELLED}),
    JobStatus.FAILED: frozenset({JobStatus.QUEUED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}


class SchedulingPolicy(str, enum.Enum):
    PRIORITY = "priority"        # highest priority level first, FIFO within a level
    ROUND_ROBIN = "round_robin"  # arrival order with time-slice preemption
    FAIR_SHARE = "fair_share"    # most under-served owner first

"""
Pydantic read models returned by scheduler introspection.

These are snapshots, not live objects: snapshot() copies scheduler state into
them while holding the scheduler lock, so a caller can keep, log or
serialize the result without ever touching (or mutating) the real queues.
"""

from typing import Optional

from pydantic import BaseModel


class JobView(BaseModel):
    """Read-only copy of a Job's scheduling-relevant fields."""

    job_id: str
    name: str
    owner: str
    priority: str
    status: str
    cpu_requirement: float
    memory_requirement: float
    retry_count: int
    max_retries: int
    error_message: Optional[str] = None
    progress_percent: float = 0.0

    model_config = {"frozen": True}

    @classmethod
    def from_job(cls, job, now: Optional[float] = None) -> "JobView":
        return cls(
            job_id=job.job_id,
            name=job.name,
            owner=job.owner,
            priority=job.priority.name,
            status=job.status.value,
            cpu_requirement=job.cpu_requirement,
            memory_requirement=job.memory_requirement,
            retry_count=job.retry_count,
            max_retries=job.max_retries,
            error_message=job.error_message,
            progress_percent=round(job.progress_percent(now), 1),
        )


class ResourceUsage(BaseModel):
    total_cpu: float
    total_memory: float
    used_cpu: float
    used_memory: float
    cpu_utilization: float       # percent
    memory_utilization: float    # percent

    model_config = {"frozen": True}


class OwnerShare(BaseModel):
    """One row of the fair-share table."""

    owner: str
    allocated_share_percent: float
    current_usage: float
    job_count: int
    fair_share_ratio: float      # inf when the owner has no share
    under_share: bool            # ratio <= 1.0

    model_config = {"frozen": True}


class SchedulerSnapshot(BaseModel):
    """Everything snapshot() reports about one scheduler instance."""

    name: str
    policy: str
    strategy: str
    running: bool                # loop thread alive
    paused: bool                 # admission suspended
    max_concurrent_jobs: int
    queue_size: int
    running_count: int
    finished_count: int
    completed_count: int
    failed_count: int
    cancelled_count: int
    resources: ResourceUsage
    queued_jobs: list[JobView]
    running_jobs: list[JobView]
    dead_letter: list[JobView]
    owner_shares: Optional[list[OwnerShare]] = None   # fair-share only

    model_config = {"frozen": True}

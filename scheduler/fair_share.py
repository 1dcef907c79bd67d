"""
Fair-share scheduler.

Every owner is allocated a percentage of the pool. The owner who is most
under-served relative to that allocation goes next:

    expected_usage(owner) = share% / 100 × average(total_cpu, total_memory)
    fair_share_ratio(owner) = current_usage / expected_usage

A ratio below 1.0 means the owner uses less than its entitlement. An owner
with a 0% share has an infinite ratio: its jobs only run when no owner with
a real share has an eligible job.

Usage is tracked as one blended number per job, (cpu + memory) / 2, added
when the job starts and subtracted (floored at zero) when its resources come
back. This conflates the two resource dimensions on purpose; it keeps the
ratio a single scalar.

Ordering: (ratio ascending, priority level descending, created_at ascending).
Ratios change every time a job starts or ends, so the ready list is
re-sorted at every selection rather than once on insertion.

Owners nobody allocated anything to get FAIR_SHARE_DEFAULT_PERCENT (10%) on
their first submission, if the total still allows it.
"""

import logging
import math
from typing import Optional

from config.settings import settings
from models.enums import SchedulingPolicy
from models.job import Job
from models.schemas import OwnerShare
from scheduler.base import SchedulerCore
from scheduler.errors import OverAllocation, OwnerNotFound

logger = logging.getLogger(__name__)

# Float slack so that e.g. 70.0 + 20.0 + 10.0 is not rejected as > 100
_EPSILON = 1e-9


class FairShareScheduler(SchedulerCore):

    def __init__(self, default_share_percent: Optional[float] = None, **kwargs):
        self._ready: list[Job] = []
        self._shares: dict[str, float] = {}
        self._usage: dict[str, float] = {}
        self._job_counts: dict[str, int] = {}
        self.default_share_percent = (
            settings.FAIR_SHARE_DEFAULT_PERCENT
            if default_share_percent is None
            else default_share_percent
        )
        super().__init__(**kwargs)

    # ── Share allocation ────────────────────────────────────────

    @property
    def total_allocated_share(self) -> float:
        with self._lock:
            return sum(self._shares.values())

    @property
    def available_share(self) -> float:
        return max(0.0, 100.0 - self.total_allocated_share)

    def allocate_user_share(self, owner: str, share_percent: float) -> None:
        """
        Set an owner's share. Raises OverAllocation (and changes nothing) if
        the sum over all owners would exceed 100%.
        """
        if share_percent < 0:
            raise ValueError(f"Share percentage must be non-negative, got {share_percent}")

        with self._lock:
            current_total = sum(self._shares.values())
            new_total = current_total - self._shares.get(owner, 0.0) + share_percent
            if new_total > 100.0 + _EPSILON:
                logger.warning(
                    f"Cannot allocate {share_percent:g}% to {owner}: "
                    f"would exceed 100% total allocation"
                )
                raise OverAllocation(owner, share_percent, current_total)

            self._shares[owner] = float(share_percent)
            self._usage.setdefault(owner, 0.0)
            self._job_counts.setdefault(owner, 0)
            self.prioritize_jobs()

        logger.info(f"Allocated {share_percent:g}% share to user: {owner}")

    def adjust_user_share(self, owner: str, share_percent: float) -> None:
        with self._lock:
            if owner not in self._shares:
                raise OwnerNotFound(owner)
            self.allocate_user_share(owner, share_percent)

    def _ensure_owner(self, owner: str) -> None:
        if owner in self._shares:
            return
        try:
            self.allocate_user_share(owner, self.default_share_percent)
        except OverAllocation:
            self._shares[owner] = 0.0
            self._usage.setdefault(owner, 0.0)
            self._job_counts.setdefault(owner, 0)
            logger.warning(f"No share left for new owner {owner}; registered with 0%")

    # ── Ratios ──────────────────────────────────────────────────

    def fair_share_ratio(self, owner: str) -> float:
        with self._lock:
            share = self._shares.get(owner, 0.0)
            if share <= 0.0:
                return math.inf
            expected = share / 100.0 * self._resources.average_capacity
            return self._usage.get(owner, 0.0) / expected

    def user_share(self, owner: str) -> float:
        with self._lock:
            return self._shares.get(owner, 0.0)

    def user_usage(self, owner: str) -> float:
        with self._lock:
            return self._usage.get(owner, 0.0)

    def user_job_count(self, owner: str) -> int:
        with self._lock:
            return self._job_counts.get(owner, 0)

    def _sort_key(self, job: Job):
        return (
            self.fair_share_ratio(job.owner),
            -job.priority.level,
            job.created_at,
            job.seq,
        )

    # ── Policy contract ─────────────────────────────────────────

    def schedule_job(self, job: Job) -> None:
        with self._lock:
            self._ensure_owner(job.owner)
            self._ready.append(job)
        logger.debug(
            f"Job scheduled for user {job.owner} "
            f"(share: {self.user_share(job.owner):.1f}%): {job.name}"
        )

    def select_next_job(self) -> Optional[Job]:
        with self._lock:
            self.prioritize_jobs()
            for job in self._ready:
                if job.is_ready_to_run() and self.has_resources_for_job(job):
                    self._ready.remove(job)
                    return job
            return None

    def prioritize_jobs(self) -> None:
        with self._lock:
            self._ready.sort(key=self._sort_key)

    # ── Usage accounting hooks ──────────────────────────────────

    def _on_job_submitted(self, job: Job) -> None:
        self._job_counts[job.owner] = self._job_counts.get(job.owner, 0) + 1

    def _on_job_started(self, job: Job) -> None:
        self._usage[job.owner] = self._usage.get(job.owner, 0.0) + job.blended_cost

    def _on_job_released(self, job: Job) -> None:
        current = self._usage.get(job.owner, 0.0)
        self._usage[job.owner] = max(0.0, current - job.blended_cost)

    def _on_job_finished(self, job: Job) -> None:
        self._job_counts[job.owner] = max(0, self._job_counts.get(job.owner, 0) - 1)

    # ── Introspection ───────────────────────────────────────────

    def owner_share(self, owner: str) -> OwnerShare:
        with self._lock:
            if owner not in self._shares:
                raise OwnerNotFound(owner)
            ratio = self.fair_share_ratio(owner)
            return OwnerShare(
                owner=owner,
                allocated_share_percent=self._shares[owner],
                current_usage=round(self._usage.get(owner, 0.0), 6),
                job_count=self._job_counts.get(owner, 0),
                fair_share_ratio=ratio,
                under_share=ratio <= 1.0,
            )

    def owner_shares(self) -> list[OwnerShare]:
        with self._lock:
            return [self.owner_share(owner) for owner in sorted(self._shares)]

    def _owner_shares(self):
        return self.owner_shares()

    def ready_jobs(self) -> list[Job]:
        with self._lock:
            return sorted(self._ready, key=self._sort_key)

    def remove_ready_job(self, job: Job) -> bool:
        with self._lock:
            try:
                self._ready.remove(job)
            except ValueError:
                return False
            return True

    @property
    def strategy_description(self) -> str:
        return "Fair-share scheduling with user resource allocation"

    @property
    def policy_name(self) -> str:
        return SchedulingPolicy.FAIR_SHARE.value

"""
Priority-based scheduler.

Jobs with the highest priority LEVEL run first (CRITICAL=5 ... DEFERRED=1).
Within a level, the job created first wins (FIFO).

Data structure: min-heap of (-level, created_at, seq, job)
- schedule_job: heappush → O(log n)
- select_next_job: pop until a job fits the spare capacity, push the
  skipped ones back → O(k log n) for k skipped jobs
- boost_priority: remove + reinsert (heapify) → O(n)

The negated level turns Python's min-heap into "highest level first";
seq breaks ties between jobs created within the same clock tick, so
the heap never has to compare Job objects.

A big job that does not fit right now does not block smaller ones behind it:
selection skips it and keeps it queued at its place in the ordering.

Downside: starvation. DEFERRED jobs may wait forever if higher levels keep
arriving. boost_priority() is the manual escape hatch.
"""

import heapq
import logging
from collections import Counter
from typing import Optional

from models.enums import JobPriority, SchedulingPolicy
from models.job import Job
from scheduler.base import SchedulerCore
from scheduler.errors import JobNotFound

logger = logging.getLogger(__name__)


def _entry(job: Job) -> tuple[int, float, int, Job]:
    return (-job.priority.level, job.created_at, job.seq, job)


class PriorityScheduler(SchedulerCore):

    def __init__(self, **kwargs):
        self._heap: list[tuple[int, float, int, Job]] = []
        super().__init__(**kwargs)

    def schedule_job(self, job: Job) -> None:
        with self._lock:
            heapq.heappush(self._heap, _entry(job))
        logger.debug(f"Job queued with priority {job.priority.display_name}: {job.name}")

    def select_next_job(self) -> Optional[Job]:
        with self._lock:
            skipped = []
            chosen = None
            while self._heap:
                entry = heapq.heappop(self._heap)
                job = entry[-1]
                if job.is_ready_to_run() and self.has_resources_for_job(job):
                    chosen = job
                    break
                skipped.append(entry)
            for entry in skipped:
                heapq.heappush(self._heap, entry)
            return chosen

    def prioritize_jobs(self) -> None:
        # the heap is kept ordered on every push and boost
        pass

    def boost_priority(self, job_id: str, new_priority: JobPriority) -> Job:
        """
        Change the priority of a QUEUED job.

        The job is removed, mutated and pushed back; changing the priority
        in place would leave the heap invariant broken.
        """
        new_priority = JobPriority(new_priority)
        with self._lock:
            for index, entry in enumerate(self._heap):
                if entry[-1].job_id == job_id:
                    break
            else:
                raise JobNotFound(job_id)

            job = entry[-1]
            last = self._heap.pop()
            if index < len(self._heap):
                self._heap[index] = last
                heapq.heapify(self._heap)
            old_priority = job.priority
            job.priority = new_priority
            heapq.heappush(self._heap, _entry(job))

        logger.info(
            f"Boosted job priority: {job.name} from {old_priority.display_name} "
            f"to {new_priority.display_name}"
        )
        return job

    def priority_breakdown(self) -> dict[str, int]:
        """Queued job count per priority level, highest level first."""
        with self._lock:
            counts = Counter(entry[-1].priority for entry in self._heap)
        return {p.name: counts[p] for p in sorted(JobPriority, reverse=True) if counts[p]}

    def ready_jobs(self) -> list[Job]:
        with self._lock:
            return [entry[-1] for entry in sorted(self._heap, key=lambda e: e[:3])]

    def remove_ready_job(self, job: Job) -> bool:
        with self._lock:
            for index, entry in enumerate(self._heap):
                if entry[-1] is job:
                    self._heap.pop(index)
                    heapq.heapify(self._heap)
                    return True
            return False

    @property
    def strategy_description(self) -> str:
        return "Priority-based scheduling with FIFO for same priority"

    @property
    def policy_name(self) -> str:
        return SchedulingPolicy.PRIORITY.value

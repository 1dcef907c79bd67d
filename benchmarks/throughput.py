"""
Throughput benchmark: measures jobs/sec under each policy.

How it works:
1. Build a fresh scheduler for the policy (SimulatedExecutor, no failures)
2. Submit N short jobs with mixed priorities, owners and sizes
3. drain() the scheduler in this thread until nothing is queued or running
4. Report wall clock, throughput = N / wall clock, and average run time

The jobs are tiny (10-50 ms) so the numbers measure scheduling overhead
and packing onto the resource pool, not the simulated work itself.
"""

import time

from models.enums import JobPriority, SchedulingPolicy
from models.job import Job
from scheduler.fair_share import FairShareScheduler
from scheduler.registry import create_scheduler
from worker.executor import SimulatedExecutor

OWNERS = ["alice", "bob", "charlie", "diana"]


class ThroughputBenchmark:

    def __init__(
        self,
        num_jobs: int = 100,
        max_concurrent_jobs: int = 4,
        total_cpu: float = 8.0,
        total_memory: float = 16.0,
        time_slice_ms: int = 20,
        timeout: float = 120.0,
    ):
        self.num_jobs = num_jobs
        self.max_concurrent_jobs = max_concurrent_jobs
        self.total_cpu = total_cpu
        self.total_memory = total_memory
        self.time_slice_ms = time_slice_ms
        self.timeout = timeout

    def build_jobs(self) -> list[Job]:
        priorities = sorted(JobPriority)
        return [
            Job(
                f"bench-{i}",
                owner=OWNERS[i % len(OWNERS)],
                priority=priorities[i % len(priorities)],           # spread across levels
                cpu_requirement=0.5 * ((i % 4) + 1),                # 0.5 .. 2.0 cores
                memory_requirement=1.0 * ((i % 3) + 1),             # 1 .. 3 GB
                estimated_duration=0.01 * ((i % 5) + 1),            # 10 .. 50 ms
                max_retries=0,
            )
            for i in range(self.num_jobs)
        ]

    def run(self, policy: str) -> dict:
        """Run the benchmark for a single policy."""
        policy = SchedulingPolicy(policy)
        kwargs = {
            "max_concurrent_jobs": self.max_concurrent_jobs,
            "total_cpu": self.total_cpu,
            "total_memory": self.total_memory,
            "executor": SimulatedExecutor(failure_rate=0.0),
            "poll_interval": 0.002,
        }
        if policy is SchedulingPolicy.ROUND_ROBIN:
            kwargs["time_slice_ms"] = self.time_slice_ms
        scheduler = create_scheduler(policy, **kwargs)

        if isinstance(scheduler, FairShareScheduler):
            for owner in OWNERS:
                scheduler.allocate_user_share(owner, 100.0 / len(OWNERS))

        jobs = self.build_jobs()
        start = time.monotonic()
        for job in jobs:
            scheduler.submit(job)
        drained = scheduler.drain(timeout=self.timeout)
        elapsed = time.monotonic() - start
        scheduler.shutdown()

        if not drained:
            raise TimeoutError(f"Jobs didn't complete within {self.timeout}s")

        snap = scheduler.snapshot()
        return {
            "policy": policy.value,
            "num_jobs": self.num_jobs,
            "completed": snap.completed_count,
            "failed": snap.failed_count,
            "wall_clock_sec": round(elapsed, 3),
            "throughput_jobs_per_sec": round(self.num_jobs / elapsed, 2),
            "avg_run_time_ms": round(sum(j.run_time for j in jobs) / len(jobs) * 1000, 2),
        }

    def run_all_policies(self) -> list[dict]:
        """Benchmark every policy sequentially."""
        results = []
        for policy in SchedulingPolicy:
            print(f"\n--- Benchmarking {policy.value} ---")
            result = self.run(policy.value)
            results.append(result)
            print(
                f"  {result['throughput_jobs_per_sec']} jobs/sec "
                f"({result['wall_clock_sec']}s wall clock)"
            )
        return results

"""
Seed script: submits a variety of sample jobs for demo purposes.

Usage:
    python -m scripts.seed_jobs                 # print what would be seeded
    (worker/main.py calls seed() on the scheduler it builds)

This creates:
- 4 jobs with different priorities and resource needs
- 4 equal jobs for each of four owners (fair-share demo)
- 1 oversized job (rejected with ExceedsCapacity)
- 1 flaky job that retries before ending up in the dead-letter record
"""

from models.enums import JobPriority, SchedulingPolicy
from models.job import Job
from scheduler.base import SchedulerCore
from scheduler.errors import ExceedsCapacity
from scheduler.fair_share import FairShareScheduler

DEMO_SHARES = {"alice": 40.0, "bob": 30.0, "charlie": 20.0, "diana": 10.0}


def build_demo_jobs() -> list[Job]:
    jobs = [
        Job("Cleanup Task", owner="maintenance", priority=JobPriority.LOW,
            cpu_requirement=0.5, memory_requirement=0.5, estimated_duration=1.0),
        Job("Database Backup", owner="admin", priority=JobPriority.CRITICAL,
            cpu_requirement=2.0, memory_requirement=4.0, estimated_duration=3.0),
        Job("Log Analysis", owner="analyst", priority=JobPriority.NORMAL,
            cpu_requirement=1.0, memory_requirement=1.0, estimated_duration=2.0),
        Job("Security Scan", owner="security", priority=JobPriority.HIGH,
            cpu_requirement=1.5, memory_requirement=2.0, estimated_duration=2.0),
    ]

    task_types = ["Analysis", "Processing", "Computation", "Optimization"]
    for i in range(16):
        owner = list(DEMO_SHARES)[i % len(DEMO_SHARES)]
        jobs.append(Job(
            f"{owner}'s {task_types[i % len(task_types)]} {i // len(DEMO_SHARES) + 1}",
            owner=owner,
            cpu_requirement=1.0,
            memory_requirement=1.0,
            estimated_duration=2.0,
        ))

    jobs.append(Job("Whole-cluster rebuild", owner="admin", priority=JobPriority.HIGH,
                    cpu_requirement=1000.0, memory_requirement=1.0))
    jobs.append(Job("Flaky job (will fail and retry)", owner="developer",
                    max_retries=2, estimated_duration=0.1, tags=["flaky"],
                    payload={"fail_probability": 1.0}))
    return jobs


def seed(scheduler: SchedulerCore) -> list[Job]:
    """Submit the demo jobs; returns the ones that were accepted."""
    if isinstance(scheduler, FairShareScheduler):
        for owner, share in DEMO_SHARES.items():
            scheduler.allocate_user_share(owner, share)

    accepted = []
    print(f"Submitting demo jobs to {scheduler.name}...\n")
    for job in build_demo_jobs():
        try:
            scheduler.submit(job)
        except ExceedsCapacity as e:
            print(f"  [REJECTED] {job.name}: {e}")
            continue
        accepted.append(job)
        print(f"  [{job.status.value}] {job.name} (id: {job.job_id[:8]}...)")
    return accepted


if __name__ == "__main__":
    for job in build_demo_jobs():
        print(f"{job.name:<40} {job.owner:<12} {job.priority.name:<9} "
              f"cpu={job.cpu_requirement:g} mem={job.memory_requirement:g}")
    print(f"\nPolicies: {', '.join(p.value for p in SchedulingPolicy)}")

"""
Shared test fixtures.

These replace time and execution with deterministic in-memory stand-ins:
- time.monotonic → FakeClock (advanced by hand)
- SimulatedExecutor timers → ManualExecutor (tests complete/fail jobs themselves)

This means tests:
- Never sleep waiting for a job to finish
- Get the same scheduling decisions on every run
- Drive the scheduler with tick() instead of a background thread
"""

import pytest

from models.enums import JobPriority
from models.job import Job
from scheduler.fair_share import FairShareScheduler
from scheduler.priority import PriorityScheduler
from scheduler.round_robin import RoundRobinScheduler
from worker.executor import ManualExecutor


class FakeClock:
    """Callable clock whose reading only changes when a test advances it."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def executor():
    return ManualExecutor()


@pytest.fixture
def make_job(clock):
    """
    Factory for jobs created "now" on the fake clock.

    Each call moves the clock forward by 1 ms so creation order is strict.
    """

    def _make_job(name="job", owner="default", priority=JobPriority.NORMAL,
                  cpu=1.0, memory=1.0, max_retries=3, **kwargs):
        job = Job(
            name,
            owner=owner,
            priority=priority,
            cpu_requirement=cpu,
            memory_requirement=memory,
            max_retries=max_retries,
            created_at=clock.now,
            **kwargs,
        )
        clock.advance(0.001)
        return job

    return _make_job


def _common(clock, executor, **overrides):
    kwargs = {
        "max_concurrent_jobs": 3,
        "total_cpu": 8.0,
        "total_memory": 16.0,
        "executor": executor,
        "poll_interval": 0.01,
        "clock": clock,
    }
    kwargs.update(overrides)
    return kwargs


@pytest.fixture
def priority_scheduler(clock, executor):
    return PriorityScheduler(**_common(clock, executor))


@pytest.fixture
def round_robin_scheduler(clock, executor):
    return RoundRobinScheduler(time_slice_ms=100, **_common(clock, executor))


@pytest.fixture
def fair_share_scheduler(clock, executor):
    return FairShareScheduler(
        default_share_percent=10.0,
        **_common(clock, executor, max_concurrent_jobs=10, total_cpu=10.0, total_memory=10.0),
    )

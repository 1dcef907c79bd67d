"""
Tests for the simulated executor.

These use real (tiny) durations: a timer per job completes or fails it
after estimated_duration, and the scheduler picks the result up on its
next tick.
"""

import time

import pytest

from models.enums import JobStatus
from models.job import Job
from scheduler.priority import PriorityScheduler
from worker.executor import ManualExecutor, SimulatedExecutor


def _scheduler(executor, **kwargs):
    return PriorityScheduler(
        executor=executor, max_concurrent_jobs=4, total_cpu=8.0, total_memory=8.0,
        poll_interval=0.005, **kwargs,
    )


def _job(name, duration=0.01, **kwargs):
    return Job(name, estimated_duration=duration, cpu_requirement=1.0, memory_requirement=1.0, **kwargs)


def test_simulated_jobs_complete():
    executor = SimulatedExecutor(failure_rate=0.0)
    scheduler = _scheduler(executor)
    jobs = [scheduler.submit(_job(f"j{i}")) for i in range(6)]

    assert scheduler.drain(timeout=5.0) is True
    assert all(j.status is JobStatus.COMPLETED for j in jobs)
    assert scheduler.resources.used_cpu == 0.0
    assert executor.active_count == 0


def test_simulated_failures_exhaust_retries():
    executor = SimulatedExecutor(failure_rate=1.0)
    scheduler = _scheduler(executor)
    job = scheduler.submit(_job("doomed", max_retries=2))

    assert scheduler.drain(timeout=5.0) is True
    assert job.status is JobStatus.FAILED
    assert job.retry_count == 2
    assert "Simulated failure" in job.error_message
    assert scheduler.dead_letter() == [job]


def test_payload_overrides_failure_rate():
    executor = SimulatedExecutor(failure_rate=0.0)
    scheduler = _scheduler(executor)
    flaky = scheduler.submit(_job("flaky", max_retries=0, payload={"fail_probability": 1.0}))
    steady = scheduler.submit(_job("steady"))

    assert scheduler.drain(timeout=5.0) is True
    assert flaky.status is JobStatus.FAILED
    assert steady.status is JobStatus.COMPLETED


def test_suspend_cancels_pending_timer():
    executor = SimulatedExecutor(failure_rate=0.0)
    job = _job("slow", duration=0.2)
    job.enqueue()
    job.start()
    executor.launch(job)
    assert executor.active_count == 1

    job.pause()
    executor.suspend(job)
    assert executor.active_count == 0
    time.sleep(0.3)
    assert job.status is JobStatus.PAUSED


def test_shutdown_cancels_everything():
    executor = SimulatedExecutor(failure_rate=0.0)
    jobs = [_job(f"j{i}", duration=0.2) for i in range(3)]
    for job in jobs:
        job.enqueue()
        job.start()
        executor.launch(job)

    executor.shutdown()
    assert executor.active_count == 0
    time.sleep(0.3)
    assert all(j.status is JobStatus.RUNNING for j in jobs)


@pytest.mark.parametrize("rate", [-0.1, 1.5])
def test_invalid_failure_rate(rate):
    with pytest.raises(ValueError):
        SimulatedExecutor(failure_rate=rate)


def test_manual_executor_records_calls():
    executor = ManualExecutor()
    job = _job("x")
    executor.launch(job)
    executor.suspend(job)
    assert executor.launched == [job]
    assert executor.suspended == [job]

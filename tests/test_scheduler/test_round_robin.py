"""
Tests for Round Robin scheduler.

Jobs are admitted in arrival order regardless of priority. A job still
running when its time slice expires is preempted: resources released,
RUNNING → PAUSED → QUEUED, back of the line. Time is driven by FakeClock.
"""

import pytest

from models.enums import JobPriority, JobStatus
from scheduler.round_robin import RoundRobinScheduler


def test_arrival_order_ignores_priority(round_robin_scheduler, make_job):
    low = round_robin_scheduler.submit(make_job("low", priority=JobPriority.DEFERRED))
    critical = round_robin_scheduler.submit(make_job("critical", priority=JobPriority.CRITICAL))

    assert round_robin_scheduler.select_next_job() is low
    assert round_robin_scheduler.select_next_job() is critical


def test_expired_slice_preempts_and_requeues(round_robin_scheduler, clock, executor, make_job):
    round_robin_scheduler.max_concurrent_jobs = 1
    a = round_robin_scheduler.submit(make_job("a"))
    b = round_robin_scheduler.submit(make_job("b"))

    assert round_robin_scheduler.tick() == [a]

    clock.advance(0.05)
    assert round_robin_scheduler.tick() == []
    assert a.status is JobStatus.RUNNING

    clock.advance(0.06)
    assert round_robin_scheduler.tick() == [b]
    assert a.status is JobStatus.QUEUED
    assert executor.suspended == [a]
    assert a.run_time == pytest.approx(0.11)
    assert round_robin_scheduler.ready_jobs() == [a]


def test_jobs_take_turns(round_robin_scheduler, clock, make_job):
    round_robin_scheduler.max_concurrent_jobs = 1
    jobs = [round_robin_scheduler.submit(make_job(name)) for name in "abc"]

    order = []
    for _ in range(6):
        order.extend(j.name for j in round_robin_scheduler.tick())
        clock.advance(0.15)

    assert order == ["a", "b", "c", "a", "b", "c"]
    assert all(j.run_time == pytest.approx(0.3) for j in jobs[:2])


def test_preemption_releases_resources(round_robin_scheduler, clock, make_job):
    a = round_robin_scheduler.submit(make_job("a", cpu=8.0))
    b = round_robin_scheduler.submit(make_job("b", cpu=8.0))
    round_robin_scheduler.tick()
    assert b.status is JobStatus.QUEUED

    clock.advance(0.2)
    assert round_robin_scheduler.tick() == [b]
    assert a.status is JobStatus.QUEUED
    assert round_robin_scheduler.resources.used_cpu == 8.0


def test_job_finishing_within_slice_is_not_preempted(round_robin_scheduler, clock, executor, make_job):
    a = round_robin_scheduler.submit(make_job("a"))
    round_robin_scheduler.tick()
    clock.advance(0.05)
    a.complete(clock())
    round_robin_scheduler.tick()
    clock.advance(0.2)
    round_robin_scheduler.tick()

    assert a.status is JobStatus.COMPLETED
    assert executor.suspended == []
    assert round_robin_scheduler.current_job is None


def test_job_that_does_not_fit_rotates_to_back(round_robin_scheduler, make_job):
    round_robin_scheduler.submit(make_job("blocker", cpu=6.0))
    round_robin_scheduler.tick()

    big = round_robin_scheduler.submit(make_job("big", cpu=4.0))
    small = round_robin_scheduler.submit(make_job("small", cpu=1.0))

    assert round_robin_scheduler.tick() == [small]
    assert round_robin_scheduler.ready_jobs() == [big]


def test_remaining_time_slice(round_robin_scheduler, clock, make_job):
    assert round_robin_scheduler.remaining_time_slice() == 0.0

    a = round_robin_scheduler.submit(make_job("a"))
    round_robin_scheduler.tick()
    assert round_robin_scheduler.current_job is a

    clock.advance(0.03)
    assert round_robin_scheduler.remaining_time_slice() == pytest.approx(70.0)
    clock.advance(0.5)
    assert round_robin_scheduler.remaining_time_slice() == 0.0


def test_set_time_slice_changes_poll_interval(round_robin_scheduler):
    assert round_robin_scheduler.poll_interval == pytest.approx(0.01)
    round_robin_scheduler.set_time_slice(20)
    assert round_robin_scheduler.time_slice_ms == 20
    assert round_robin_scheduler.poll_interval == pytest.approx(0.002)
    assert "20ms" in round_robin_scheduler.strategy_description


def test_poll_interval_capped_by_configured_value(clock, executor):
    scheduler = RoundRobinScheduler(time_slice_ms=5000, poll_interval=0.1, executor=executor, clock=clock)
    assert scheduler.poll_interval == pytest.approx(0.1)


@pytest.mark.parametrize("bad", [0, -100])
def test_invalid_time_slice(bad, round_robin_scheduler, executor):
    with pytest.raises(ValueError):
        RoundRobinScheduler(time_slice_ms=bad, executor=executor)
    with pytest.raises(ValueError):
        round_robin_scheduler.set_time_slice(bad)


def test_policy_name(round_robin_scheduler):
    assert round_robin_scheduler.policy_name == "round_robin"

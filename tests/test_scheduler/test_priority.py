"""
Tests for Priority scheduler.

Priority selects the job with the HIGHEST level first (CRITICAL=5).
Ties are broken by creation order.
"""

import pytest

from models.enums import JobPriority, JobStatus
from scheduler.errors import JobNotFound


def test_selects_highest_priority_first(priority_scheduler, make_job):
    """Core guarantee: higher level = more urgent = selected first."""
    low = priority_scheduler.submit(make_job("low", priority=JobPriority.LOW))
    high = priority_scheduler.submit(make_job("high", priority=JobPriority.HIGH))
    normal = priority_scheduler.submit(make_job("normal", priority=JobPriority.NORMAL))

    assert priority_scheduler.select_next_job() is high
    assert priority_scheduler.select_next_job() is normal
    assert priority_scheduler.select_next_job() is low
    assert priority_scheduler.select_next_job() is None


def test_equal_priority_preserves_creation_order(priority_scheduler, make_job):
    first = make_job("first")
    second = make_job("second")
    third = make_job("third")
    # submission order differs from creation order
    priority_scheduler.submit(third)
    priority_scheduler.submit(first)
    priority_scheduler.submit(second)

    assert priority_scheduler.select_next_job() is first
    assert priority_scheduler.select_next_job() is second
    assert priority_scheduler.select_next_job() is third


def test_high_priority_starts_before_low(priority_scheduler, make_job):
    """With one slot, the HIGH job runs and the LOW job keeps waiting."""
    priority_scheduler.max_concurrent_jobs = 1
    low = priority_scheduler.submit(make_job("low", priority=JobPriority.LOW))
    high = priority_scheduler.submit(make_job("high", priority=JobPriority.HIGH))

    assert priority_scheduler.tick() == [high]
    assert low.status is JobStatus.QUEUED


def test_mixed_priority_ordering(priority_scheduler, make_job):
    """Simulate a realistic mix of priorities."""
    names = [
        ("report", JobPriority.DEFERRED),
        ("payment", JobPriority.CRITICAL),
        ("email", JobPriority.NORMAL),
        ("alert", JobPriority.HIGH),
        ("cleanup", JobPriority.LOW),
    ]
    for name, priority in names:
        priority_scheduler.submit(make_job(name, priority=priority))

    order = [j.name for j in priority_scheduler.ready_jobs()]
    assert order == ["payment", "alert", "email", "cleanup", "report"]


def test_job_that_does_not_fit_is_skipped_not_dropped(priority_scheduler, make_job):
    blocker = priority_scheduler.submit(make_job("blocker", cpu=6.0))
    priority_scheduler.tick()

    big = priority_scheduler.submit(make_job("big", priority=JobPriority.CRITICAL, cpu=4.0))
    small = priority_scheduler.submit(make_job("small", priority=JobPriority.LOW, cpu=1.0))

    assert priority_scheduler.tick() == [small]
    assert big.status is JobStatus.QUEUED
    assert priority_scheduler.ready_jobs() == [big]

    blocker.complete()
    small.complete()
    assert priority_scheduler.tick() == [big]


def test_boost_priority_reorders(priority_scheduler, make_job):
    first = priority_scheduler.submit(make_job("first", priority=JobPriority.NORMAL))
    late = priority_scheduler.submit(make_job("late", priority=JobPriority.DEFERRED))

    priority_scheduler.boost_priority(late.job_id, JobPriority.CRITICAL)

    assert late.priority is JobPriority.CRITICAL
    assert priority_scheduler.select_next_job() is late
    assert priority_scheduler.select_next_job() is first


def test_boost_unknown_job_raises(priority_scheduler):
    with pytest.raises(JobNotFound):
        priority_scheduler.boost_priority("missing", JobPriority.HIGH)


def test_boost_running_job_raises(priority_scheduler, make_job):
    job = priority_scheduler.submit(make_job("a"))
    priority_scheduler.tick()
    with pytest.raises(JobNotFound):
        priority_scheduler.boost_priority(job.job_id, JobPriority.HIGH)


def test_priority_breakdown(priority_scheduler, make_job):
    priority_scheduler.submit(make_job("a", priority=JobPriority.HIGH))
    priority_scheduler.submit(make_job("b", priority=JobPriority.HIGH))
    priority_scheduler.submit(make_job("c", priority=JobPriority.LOW))

    breakdown = priority_scheduler.priority_breakdown()
    assert breakdown == {"HIGH": 2, "LOW": 1}
    assert list(breakdown) == ["HIGH", "LOW"]


def test_cancel_removes_from_heap(priority_scheduler, make_job):
    a = priority_scheduler.submit(make_job("a", priority=JobPriority.HIGH))
    b = priority_scheduler.submit(make_job("b"))
    priority_scheduler.cancel(a.job_id)
    assert priority_scheduler.select_next_job() is b


def test_policy_name(priority_scheduler):
    assert priority_scheduler.policy_name == "priority"
    assert "Priority" in priority_scheduler.strategy_description

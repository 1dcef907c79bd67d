"""
Tests for the RetryHandler.

These test the decision logic:
- If retries remain → job goes back to QUEUED with retry_count + 1
- If retries exhausted → job stays FAILED and lands in the dead-letter record
"""

from models.enums import JobStatus
from models.job import Job
from scheduler.retry import RetryHandler


def _failed_job(max_retries=3, retry_count=0):
    job = Job("test job", max_retries=max_retries)
    job.retry_count = retry_count
    job.enqueue()
    job.start()
    job.fail("boom")
    return job


def test_retry_when_retries_remain():
    handler = RetryHandler()
    job = _failed_job(max_retries=3, retry_count=0)

    assert handler.handle_failure(job) is True
    assert job.status is JobStatus.QUEUED
    assert job.retry_count == 1
    assert len(handler) == 0


def test_dead_letter_when_retries_exhausted():
    handler = RetryHandler()
    job = _failed_job(max_retries=3, retry_count=3)

    assert handler.handle_failure(job) is False
    assert job.status is JobStatus.FAILED
    assert job.error_message == "boom"
    assert handler.dead_letter == [job]


def test_last_retry_still_allowed():
    handler = RetryHandler()
    job = _failed_job(max_retries=3, retry_count=2)

    assert handler.handle_failure(job) is True
    assert job.retry_count == 3


def test_dead_letter_is_a_copy():
    handler = RetryHandler()
    handler.handle_failure(_failed_job(max_retries=0))
    handler.dead_letter.clear()
    assert len(handler) == 1

"""
Retry handler: decides what happens when a running job fails.

Two outcomes:
1. retry_count < max_retries → job.retry() (retry_count++, FAILED → QUEUED),
   the caller hands it back to the policy's ready structure
2. retry_count >= max_retries → the job stays FAILED for good and is kept
   in the dead-letter record for inspection

Lifecycle on failure:
    RUNNING → FAILED → retry_count++ → QUEUED   (if retries left)
    RUNNING → FAILED                 → dead letter (if retries exhausted)

The dead-letter record lives in memory only; nothing here outlives the
scheduler instance.
"""

import logging

from models.job import Job

logger = logging.getLogger(__name__)


class RetryHandler:

    def __init__(self):
        self._dead_letter: list[Job] = []

    def handle_failure(self, job: Job) -> bool:
        """
        Called by the scheduler when it reclaims a FAILED job.

        Returns True if the job was requeued (caller must re-enqueue it),
        False if it was dead-lettered.
        """
        if job.can_retry:
            error = job.error_message
            job.retry()
            logger.info(
                f"Job {job.job_id} [{job.name}] will be retried "
                f"({job.retry_count}/{job.max_retries}) after: {error}"
            )
            return True

        self._dead_letter.append(job)
        logger.warning(
            f"Job {job.job_id} [{job.name}] exhausted retries "
            f"({job.max_retries}), moved to dead-letter record: {job.error_message}"
        )
        return False

    @property
    def dead_letter(self) -> list[Job]:
        return list(self._dead_letter)

    def __len__(self) -> int:
        return len(self._dead_letter)

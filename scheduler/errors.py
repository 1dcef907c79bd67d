"""
Scheduler-specific exceptions.

Only caller mistakes and rejected requests are exceptions. A job that fails
while running is NOT an exception here: it ends in FAILED status with an
error_message and the RetryHandler decides what happens next.
"""


class SchedulerError(Exception):
    """Base exception for all scheduler errors."""
    pass


class ExceedsCapacity(SchedulerError):
    """
    Raised by submit() when a job needs more of a resource than the pool
    has in total. The job could never run, so it is rejected up front and
    the scheduler state is left unchanged.
    """

    def __init__(self, job_id: str, resource: str, required: float, capacity: float):
        self.job_id = job_id
        self.resource = resource
        self.required = required
        self.capacity = capacity
        super().__init__(
            f"Job {job_id} requires {required:g} {resource}, "
            f"total capacity is {capacity:g}"
        )


class OverAllocation(SchedulerError):
    """Raised when a fair-share allocation would push the total past 100%."""

    def __init__(self, owner: str, requested: float, allocated: float):
        self.owner = owner
        self.requested = requested
        self.allocated = allocated
        super().__init__(
            f"Cannot allocate {requested:g}% to {owner}: "
            f"{allocated:g}% already allocated, total may not exceed 100%"
        )


class InvalidRetry(SchedulerError):
    """Raised when retry() is called on a job that is not retryable."""

    def __init__(self, job_id: str, retry_count: int, max_retries: int):
        self.job_id = job_id
        self.retry_count = retry_count
        self.max_retries = max_retries
        super().__init__(
            f"Cannot retry job {job_id}: {retry_count}/{max_retries} retries used"
        )


class InvalidTransition(SchedulerError):
    """Raised when a job is asked to move along an illegal lifecycle edge."""

    def __init__(self, job_id: str, current, target):
        self.job_id = job_id
        self.current = current
        self.target = target
        super().__init__(f"Job {job_id} cannot go from {current.value} to {target.value}")


class JobNotFound(SchedulerError):
    """Raised when a requested job does not exist (or is not in the expected set)."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class OwnerNotFound(SchedulerError):
    """Raised when a fair-share operation names an owner with no allocation."""

    def __init__(self, owner: str):
        self.owner = owner
        super().__init__(f"Owner not found: {owner}")

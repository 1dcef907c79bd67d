"""
Scheduler factory: maps policy names to scheduler classes.

One place knows how to build each policy; the host process, the benchmark
and the tests all go through create_scheduler().
"""

from config.settings import Settings, settings as default_settings
from models.enums import SchedulingPolicy
from scheduler.base import SchedulerCore
from scheduler.fair_share import FairShareScheduler
from scheduler.priority import PriorityScheduler
from scheduler.round_robin import RoundRobinScheduler


_REGISTRY: dict[SchedulingPolicy, type[SchedulerCore]] = {
    SchedulingPolicy.PRIORITY: PriorityScheduler,
    SchedulingPolicy.ROUND_ROBIN: RoundRobinScheduler,
    SchedulingPolicy.FAIR_SHARE: FairShareScheduler,
}


def create_scheduler(policy: SchedulingPolicy, **kwargs) -> SchedulerCore:
    """
    Create a scheduler instance for the given policy.

    Common kwargs (name, max_concurrent_jobs, total_cpu, total_memory,
    executor, poll_interval, clock) go to every policy. Policy-specific ones:
        create_scheduler(SchedulingPolicy.ROUND_ROBIN, time_slice_ms=500)
        create_scheduler(SchedulingPolicy.FAIR_SHARE, default_share_percent=5.0)
    """
    try:
        cls = _REGISTRY[SchedulingPolicy(policy)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown scheduling policy: {policy}") from None
    return cls(**kwargs)


def create_scheduler_from_settings(settings: Settings = default_settings, **overrides) -> SchedulerCore:
    """Build the configured default policy with sizes taken from settings."""
    policy = SchedulingPolicy(overrides.pop("policy", settings.DEFAULT_SCHEDULING_POLICY))
    kwargs = {
        "max_concurrent_jobs": settings.MAX_CONCURRENT_JOBS,
        "total_cpu": settings.TOTAL_CPU_CAPACITY,
        "total_memory": settings.TOTAL_MEMORY_CAPACITY,
        "poll_interval": settings.POLL_INTERVAL,
    }
    if policy is SchedulingPolicy.ROUND_ROBIN:
        kwargs["time_slice_ms"] = settings.ROUND_ROBIN_TIME_SLICE_MS
    elif policy is SchedulingPolicy.FAIR_SHARE:
        kwargs["default_share_percent"] = settings.FAIR_SHARE_DEFAULT_PERCENT
    kwargs.update(overrides)
    return create_scheduler(policy, **kwargs)

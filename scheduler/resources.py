"""
Resource pool: the cpu/memory counters every admission and reclamation goes
through.

The pool does no locking of its own. It is owned by exactly one scheduler
and only touched while that scheduler's lock is held, so a check in fits()
followed by reserve() can never be split by another thread.

    fits(job)      → spare capacity check (used + required <= total)
    reserve(job)   → used += required          (RUNNING admission)
    release(job)   → used -= required          (completion, failure, preemption)
"""

from models.schemas import ResourceUsage

# Float slack for repeated add/subtract of fractional requirements
_EPSILON = 1e-9


class ResourcePool:

    def __init__(self, total_cpu: float, total_memory: float):
        if total_cpu <= 0 or total_memory <= 0:
            raise ValueError("Resource capacity must be positive")
        self.total_cpu = float(total_cpu)
        self.total_memory = float(total_memory)
        self.used_cpu = 0.0
        self.used_memory = 0.0

    def fits(self, job) -> bool:
        return (
            self.used_cpu + job.cpu_requirement <= self.total_cpu + _EPSILON
            and self.used_memory + job.memory_requirement <= self.total_memory + _EPSILON
        )

    def reserve(self, job) -> None:
        assert self.fits(job), f"over-commit reserving {job!r}"
        # fits() allows _EPSILON of float residue; the counters never exceed total
        self.used_cpu = min(self.total_cpu, self.used_cpu + job.cpu_requirement)
        self.used_memory = min(self.total_memory, self.used_memory + job.memory_requirement)

    def release(self, job) -> None:
        self.used_cpu -= job.cpu_requirement
        self.used_memory -= job.memory_requirement
        assert self.used_cpu > -_EPSILON, f"negative cpu usage after releasing {job!r}"
        assert self.used_memory > -_EPSILON, f"negative memory usage after releasing {job!r}"
        # snap float residue back to zero
        self.used_cpu = max(0.0, self.used_cpu)
        self.used_memory = max(0.0, self.used_memory)

    @property
    def cpu_utilization(self) -> float:
        return self.used_cpu / self.total_cpu * 100.0

    @property
    def memory_utilization(self) -> float:
        return self.used_memory / self.total_memory * 100.0

    @property
    def average_capacity(self) -> float:
        """Blended capacity used as the fair-share baseline."""
        return (self.total_cpu + self.total_memory) / 2.0

    def usage(self) -> ResourceUsage:
        return ResourceUsage(
            total_cpu=self.total_cpu,
            total_memory=self.total_memory,
            used_cpu=round(self.used_cpu, 6),
            used_memory=round(self.used_memory, 6),
            cpu_utilization=round(self.cpu_utilization, 2),
            memory_utilization=round(self.memory_utilization, 2),
        )

    def __repr__(self) -> str:
        return (
            f"<ResourcePool cpu {self.used_cpu:g}/{self.total_cpu:g} "
            f"mem {self.used_memory:g}/{self.total_memory:g}>"
        )

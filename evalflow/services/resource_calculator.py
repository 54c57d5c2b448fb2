"""Resource calculation service for parallel evaluation.

This module provides a ResourceCalculator class that encapsulates
the logic for determining safe parallelization levels based on
available system resources.
"""

import psutil


class ResourceCalculator:
    """Calculates a safe number of parallel workers.

    The worker count is bounded by available RAM (given an estimate of the
    peak memory of one unit of work), by the CPU count and by the number of
    units to run.

    Attributes:
        memory_per_worker_gb: Estimated peak memory of one unit of work.
    """

    def __init__(self, memory_per_worker_gb: float = 0.5) -> None:
        """Initialize the ResourceCalculator.

        Args:
            memory_per_worker_gb: Estimated peak memory of one unit, in GB.
                Higher values are more conservative (fewer workers).
        """
        self._memory_per_worker_gb = memory_per_worker_gb

    def compute_safe_jobs(self, n_units: int | None = None) -> int:
        """Calculate a safe number of parallel workers.

        Args:
            n_units: Number of units to run, used as an upper bound.

        Returns:
            Safe number of workers (at least 1, at most the CPU count).
        """
        available_ram_gb = psutil.virtual_memory().available / (1024**3)

        # Avoid division by zero for tiny units
        per_worker = max(self._memory_per_worker_gb, 0.1)
        safe_jobs = int(available_ram_gb // per_worker)

        cpu_count = psutil.cpu_count(logical=False) or 1
        jobs = max(1, min(safe_jobs, cpu_count))
        if n_units is not None:
            jobs = max(1, min(jobs, n_units))
        return jobs

    @property
    def memory_per_worker_gb(self) -> float:
        """Get the estimated memory of one unit of work."""
        return self._memory_per_worker_gb

"""Executors dispatching independent units of work.

A unit of work is a call of the same function with its own arguments. Units
share no mutable state, so executors only have to dispatch them and hand
the results back in submission order.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from typing import Any

from joblib import Parallel, delayed
from loguru import logger

from evalflow.core.evaluation.lifecycle import CancellationToken


def _until_cancelled(
    items: Iterable[tuple[Any, ...]],
    token: CancellationToken | None,
) -> Iterator[tuple[Any, ...]]:
    for args in items:
        if token is not None and token.cancelled:
            logger.info("Cancellation requested, no further units will be dispatched")
            return
        yield args


class BaseExecutor(ABC):
    """Base class for unit executors."""

    def __init__(self, verbose: int = 0) -> None:
        """Initialize the executor.

        Args:
            verbose: Verbosity level for logging.
        """
        self._verbose = verbose

    @abstractmethod
    def execute(
        self,
        fn: Callable[..., Any],
        units: Iterable[tuple[Any, ...]],
        token: CancellationToken | None = None,
    ) -> Iterator[Any]:
        """Run `fn(*args)` for every unit.

        Args:
            fn: The unit-of-work function.
            units: Argument tuples, one per unit.
            token: Optional cancellation token, checked before each dispatch.

        Returns:
            An iterator over results in submission order. When the token is
            cancelled the iterator ends after the units already dispatched.
        """
        ...


class SequentialExecutor(BaseExecutor):
    """Runs units one after another in the calling process."""

    def execute(
        self,
        fn: Callable[..., Any],
        units: Iterable[tuple[Any, ...]],
        token: CancellationToken | None = None,
    ) -> Iterator[Any]:
        for args in _until_cancelled(units, token):
            yield fn(*args)


class ParallelExecutor(BaseExecutor):
    """Runs units in parallel using joblib."""

    def __init__(
        self,
        n_jobs: int = -1,
        verbose: int = 0,
        pre_dispatch: str = "2*n_jobs",
        backend: str | None = None,
    ) -> None:
        """Initialize the parallel executor.

        Args:
            n_jobs: Number of parallel workers. -1 means use all processors.
            verbose: Verbosity level for joblib.
            pre_dispatch: Number of units dispatched ahead of the workers.
            backend: joblib backend name, e.g. "loky" or "threading".
        """
        super().__init__(verbose)
        self._n_jobs = n_jobs
        self._pre_dispatch = pre_dispatch
        self._backend = backend

    @property
    def n_jobs(self) -> int:
        """Get the number of parallel workers."""
        return self._n_jobs

    @n_jobs.setter
    def n_jobs(self, value: int) -> None:
        """Set the number of parallel workers."""
        self._n_jobs = value

    def execute(
        self,
        fn: Callable[..., Any],
        units: Iterable[tuple[Any, ...]],
        token: CancellationToken | None = None,
    ) -> Iterator[Any]:
        logger.info(f"Dispatching units to {self._n_jobs} workers...")

        parallel = Parallel(
            n_jobs=self._n_jobs,
            verbose=self._verbose,
            pre_dispatch=self._pre_dispatch,
            backend=self._backend,
            return_as="generator",
        )
        yield from parallel(delayed(fn)(*args) for args in _until_cancelled(units, token))


__all__ = [
    "BaseExecutor",
    "SequentialExecutor",
    "ParallelExecutor",
]

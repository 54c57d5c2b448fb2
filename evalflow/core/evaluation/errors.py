"""Error taxonomy for evaluation runs.

Unit-level failures (`PipelineFailure`) are caught and recorded by the
evaluator; configuration-level failures (`EvaluationFailure`) exclude a
configuration from the ranking; only run-level exhaustion
(`NoViableConfiguration`) and invalid fold counts are fatal.
"""

from collections.abc import Sequence
from typing import Any


class EvaluationError(Exception):
    """Base exception for evaluation errors."""


class InvalidFoldCount(EvaluationError, ValueError):
    """Raised when the number of folds is out of the valid range.

    Attributes:
        k: The requested number of folds.
        size: The number of data points available.
    """

    def __init__(self, k: int, size: int) -> None:
        self.k = k
        self.size = size
        super().__init__(
            f"Invalid fold count k={k} for a dataset of {size} points "
            f"(expected 2 <= k <= {size})"
        )

    def __reduce__(self):
        return (type(self), (self.k, self.size))


class PipelineFailure(EvaluationError):
    """Training or prediction failed for one (configuration, fold) unit.

    Attributes:
        config: The configuration being evaluated.
        fold_index: The fold that failed.
        cause: The underlying exception.
    """

    def __init__(self, config: Any, fold_index: int, cause: BaseException) -> None:
        self.config = config
        self.fold_index = fold_index
        self.cause = cause
        super().__init__(f"Fold {fold_index} failed: {type(cause).__name__}: {cause}")

    def __reduce__(self):
        return (type(self), (self.config, self.fold_index, self.cause))


class EvaluationFailure(EvaluationError):
    """Every fold of a configuration failed.

    Attributes:
        config: The configuration that could not be evaluated.
        failures: The per-fold failures, in fold order.
    """

    def __init__(self, config: Any, failures: Sequence[PipelineFailure]) -> None:
        self.config = config
        self.failures = list(failures)
        super().__init__(f"All {len(self.failures)} folds failed")

    @property
    def cause(self) -> BaseException | None:
        """The cause of the first failed fold, if any."""
        return self.failures[0].cause if self.failures else None

    def __reduce__(self):
        return (type(self), (self.config, self.failures))


class NoViableConfiguration(EvaluationError):
    """No configuration could be evaluated.

    Attributes:
        failures: One failure per configuration.
    """

    def __init__(self, failures: Sequence[EvaluationFailure]) -> None:
        self.failures = list(failures)
        if self.failures:
            message = f"All {len(self.failures)} configurations failed to evaluate"
        else:
            message = "No configurations were supplied"
        super().__init__(message)

    def __reduce__(self):
        return (type(self), (self.failures,))


class SearchCancelled(EvaluationError):
    """The run was cancelled before all units completed.

    Attributes:
        completed: Number of units that finished before the cancellation.
        total: Number of units in the run.
    """

    def __init__(self, completed: int, total: int) -> None:
        self.completed = completed
        self.total = total
        super().__init__(f"Search cancelled after {completed} of {total} units")

    def __reduce__(self):
        return (type(self), (self.completed, self.total))


__all__ = [
    "EvaluationError",
    "InvalidFoldCount",
    "PipelineFailure",
    "EvaluationFailure",
    "NoViableConfiguration",
    "SearchCancelled",
]

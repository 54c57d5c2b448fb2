"""Metrics scoring predictions against actual results.

A metric scores each (query, predicted, actual) triple with `calculate`,
reduces a fold's pointwise scores with `combine` and reduces a
configuration's fold scores with `combine_folds`. Higher is always better.
Metrics hold no state between calls.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import enum
from typing import Any

import numpy as np

from evalflow.core.evaluation.runner import PredictionTriple


class Aggregation(enum.StrEnum):
    """Policy for combining fold scores into a configuration score."""

    METRIC = "metric"
    MEAN = "mean"
    WEIGHTED = "weighted"


@dataclass(frozen=True, slots=True)
class FoldScore:
    """The score of one successfully evaluated fold.

    Attributes:
        fold_index: The fold that was scored.
        score: The primary metric score.
        size: Number of validation points scored.
        other_scores: Scores of the secondary metrics, in metric order; `None`
            where a metric is undefined on the fold.
    """

    fold_index: int
    score: float
    size: int
    other_scores: tuple[float | None, ...] = ()


class Metric(ABC):
    """Base class for metrics."""

    @property
    def header(self) -> str:
        """Display name used in reports."""
        return type(self).__name__

    @abstractmethod
    def calculate(self, query: Any, predicted: Any, actual: Any) -> float | None:
        """Score a single prediction."""
        ...

    def combine(self, scores: Sequence[float | None]) -> float:
        """Reduce the pointwise scores of one fold. Defaults to the arithmetic mean."""
        if not scores:
            raise ValueError(f"{self.header}: no scores to combine")
        return float(np.mean(scores))

    def evaluate_fold(self, triples: Iterable[PredictionTriple]) -> float:
        """Score every triple of a fold and combine the results."""
        return self.combine([self.calculate(*triple) for triple in triples])

    def combine_folds(self, fold_scores: Sequence[FoldScore]) -> float:
        """Reduce fold scores into a configuration score.

        Uses the same reduction as `combine` unless a subclass overrides it.
        """
        return self.combine([fold.score for fold in fold_scores])

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AverageMetric(Metric):
    """Averages pointwise scores."""


class OptionAverageMetric(Metric):
    """Averages pointwise scores, skipping triples scored as `None`."""

    def combine(self, scores: Sequence[float | None]) -> float:
        present = [s for s in scores if s is not None]
        if not present:
            raise ValueError(f"{self.header}: every pointwise score was undefined")
        return float(np.mean(present))


class SumMetric(Metric):
    """Sums pointwise scores."""

    def combine(self, scores: Sequence[float | None]) -> float:
        return float(np.sum(scores))


class StdevMetric(Metric):
    """Population standard deviation of pointwise scores."""

    def combine(self, scores: Sequence[float | None]) -> float:
        if not scores:
            raise ValueError(f"{self.header}: no scores to combine")
        return float(np.std(scores))


class ZeroMetric(Metric):
    """Scores everything as zero. Useful as a placeholder."""

    def calculate(self, query: Any, predicted: Any, actual: Any) -> float:
        return 0.0


class Accuracy(AverageMetric):
    """Fraction of predictions equal to the actual result."""

    def calculate(self, query: Any, predicted: Any, actual: Any) -> float:
        return 1.0 if predicted == actual else 0.0


class Precision(OptionAverageMetric):
    """Precision for one label: correct among the points predicted as that label."""

    def __init__(self, label: Any) -> None:
        self.label = label

    @property
    def header(self) -> str:
        return f"Precision(label={self.label!r})"

    def calculate(self, query: Any, predicted: Any, actual: Any) -> float | None:
        if predicted != self.label:
            return None
        return 1.0 if actual == self.label else 0.0

    def __repr__(self) -> str:
        return f"Precision(label={self.label!r})"


class Recall(OptionAverageMetric):
    """Recall for one label: found among the points actually of that label."""

    def __init__(self, label: Any) -> None:
        self.label = label

    @property
    def header(self) -> str:
        return f"Recall(label={self.label!r})"

    def calculate(self, query: Any, predicted: Any, actual: Any) -> float | None:
        if actual != self.label:
            return None
        return 1.0 if predicted == self.label else 0.0

    def __repr__(self) -> str:
        return f"Recall(label={self.label!r})"


def aggregate_fold_scores(
    metric: Metric,
    fold_scores: Sequence[FoldScore],
    aggregation: Aggregation = Aggregation.METRIC,
) -> float:
    """Combine fold scores into one configuration score.

    Args:
        metric: The metric that produced the fold scores.
        fold_scores: The successful fold scores.
        aggregation: `METRIC` defers to `metric.combine_folds`, `MEAN` is the
            unweighted mean and `WEIGHTED` weights folds by validation size.

    Returns:
        The configuration score.
    """
    if not fold_scores:
        raise ValueError("No fold scores to aggregate")

    if aggregation == Aggregation.METRIC:
        return float(metric.combine_folds(fold_scores))

    scores = np.asarray([fold.score for fold in fold_scores], dtype=float)
    if aggregation == Aggregation.MEAN:
        return float(scores.mean())
    if aggregation == Aggregation.WEIGHTED:
        weights = np.asarray([fold.size for fold in fold_scores], dtype=float)
        return float(np.average(scores, weights=weights))

    raise ValueError(f"Unknown aggregation policy: {aggregation}")


__all__ = [
    "Aggregation",
    "FoldScore",
    "Metric",
    "AverageMetric",
    "OptionAverageMetric",
    "SumMetric",
    "StdevMetric",
    "ZeroMetric",
    "Accuracy",
    "Precision",
    "Recall",
    "aggregate_fold_scores",
]

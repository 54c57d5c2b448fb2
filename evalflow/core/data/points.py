"""Labeled data points consumed by the evaluation core."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass(frozen=True, slots=True)
class DataPoint:
    """A single labeled record.

    Attributes:
        features: The feature representation, used as the query at prediction time.
        label: The ground-truth value for the record.
    """

    features: Any
    label: Any


def points_from_arrays(X: np.ndarray, y: np.ndarray) -> tuple[DataPoint, ...]:
    """Build data points from a feature matrix and a label vector.

    Feature rows become tuples of Python floats so points stay hashable and
    comparable by value.

    Raises:
        ValueError: If `X` and `y` have a different number of rows.
    """
    if len(X) != len(y):
        raise ValueError(f"Feature rows ({len(X)}) and labels ({len(y)}) differ in length")
    return tuple(
        DataPoint(features=tuple(float(v) for v in row), label=_as_python(label))
        for row, label in zip(np.asarray(X), np.asarray(y))
    )


def _as_python(value: Any) -> Any:
    return value.item() if isinstance(value, np.generic) else value


def points_to_arrays(points: Iterable[DataPoint]) -> tuple[np.ndarray, np.ndarray]:
    """Stack data points back into a feature matrix and a label vector."""
    points = list(points)
    if not points:
        return np.empty((0, 0)), np.empty((0,))
    X = np.asarray([p.features for p in points], dtype=float)
    y = np.asarray([p.label for p in points])
    return X, y


__all__ = ["DataPoint", "points_from_arrays", "points_to_arrays"]

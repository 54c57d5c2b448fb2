"""Protocols for the pluggable engine stages.

An engine is assembled from a preparator, one or more algorithms and a
serving stage. Each stage is instantiated per unit of work from the stage
parameters held in `EngineParams`, so no stage instance is ever shared
between folds or configurations.
"""

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from evalflow.core.data.points import DataPoint


@runtime_checkable
class Preparator(Protocol):
    """Turns the training set into the input expected by the algorithms."""

    def prepare(self, training: Sequence[DataPoint]) -> Any:
        """Prepare training data.

        Args:
            training: The training points of one fold.

        Returns:
            Prepared data handed to every algorithm's `train`.
        """
        ...


@runtime_checkable
class Algorithm(Protocol):
    """A trainable model: the training collaborator of the evaluation core."""

    def train(self, prepared: Any) -> Any:
        """Train a model and return an opaque model handle."""
        ...

    def predict(self, model: Any, query: Any) -> Any:
        """Predict the result for one query with a trained model."""
        ...


@runtime_checkable
class Serving(Protocol):
    """Combines the predictions of every algorithm into one result."""

    def serve(self, query: Any, predictions: Sequence[Any]) -> Any:
        """Combine per-algorithm predictions for a query.

        Args:
            query: The query being answered.
            predictions: One prediction per algorithm, in configuration order.

        Returns:
            The final predicted result.
        """
        ...


class IdentityPreparator:
    """Passes the training points through unchanged."""

    def prepare(self, training: Sequence[DataPoint]) -> Any:
        return tuple(training)


class FirstServing:
    """Serves the prediction of the first algorithm."""

    def serve(self, query: Any, predictions: Sequence[Any]) -> Any:
        return predictions[0]


__all__ = [
    "Preparator",
    "Algorithm",
    "Serving",
    "IdentityPreparator",
    "FirstServing",
]

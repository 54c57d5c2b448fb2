"""Engine assembly and trained engine instances."""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from evalflow.core.data.points import DataPoint
from evalflow.core.engine.params import EngineParams, thaw
from evalflow.core.engine.protocols import (
    Algorithm,
    FirstServing,
    IdentityPreparator,
    Preparator,
    Serving,
)

StageFactory = Callable[..., Any]


def _features(point: DataPoint) -> Any:
    return point.features


def _label(point: DataPoint) -> Any:
    return point.label


@dataclass(slots=True)
class TrainedEngine:
    """An engine trained on one fold of one configuration.

    Attributes:
        algorithms: The algorithm instances, in configuration order.
        models: The trained model handle of each algorithm.
        serving: The serving instance combining algorithm predictions.
    """

    algorithms: list[Algorithm]
    models: list[Any]
    serving: Serving

    def predict(self, query: Any) -> Any:
        predictions = [
            algorithm.predict(model, query)
            for algorithm, model in zip(self.algorithms, self.models)
        ]
        return self.serving.serve(query, predictions)

    def predict_batch(self, queries: Sequence[Any]) -> list[Any]:
        """Predict every query, using an algorithm's `predict_batch` when it has one."""
        per_algorithm = []
        for algorithm, model in zip(self.algorithms, self.models):
            batch = getattr(algorithm, "predict_batch", None)
            if batch is not None:
                per_algorithm.append(list(batch(model, queries)))
            else:
                per_algorithm.append([algorithm.predict(model, q) for q in queries])

        return [
            self.serving.serve(query, [predictions[i] for predictions in per_algorithm])
            for i, query in enumerate(queries)
        ]


class Engine:
    """A pluggable pipeline: preparator -> algorithm(s) -> serving.

    Stage factories are called with the matching stage parameters as keyword
    arguments. Algorithms are looked up by the names used in
    `EngineParams.algorithm_params_list`.
    """

    def __init__(
        self,
        algorithms: Mapping[str, StageFactory],
        preparator: StageFactory = IdentityPreparator,
        serving: StageFactory = FirstServing,
        query_of: Callable[[DataPoint], Any] = _features,
        actual_of: Callable[[DataPoint], Any] = _label,
    ) -> None:
        """Initialize the engine.

        Args:
            algorithms: Algorithm name to algorithm factory.
            preparator: Preparator factory.
            serving: Serving factory.
            query_of: Extracts the query from a validation point.
            actual_of: Extracts the actual result from a validation point.
        """
        if not algorithms:
            raise ValueError("An engine needs at least one algorithm")
        self._algorithms = dict(algorithms)
        self._preparator = preparator
        self._serving = serving
        self.query_of = query_of
        self.actual_of = actual_of

    @property
    def algorithm_names(self) -> list[str]:
        return list(self._algorithms)

    def create_algorithm(self, name: str, params: Mapping[str, Any]) -> Algorithm:
        try:
            factory = self._algorithms[name]
        except KeyError:
            raise KeyError(
                f"Unknown algorithm '{name}', engine provides {self.algorithm_names}"
            ) from None
        return factory(**params)

    def train(self, params: EngineParams, training: Sequence[DataPoint]) -> TrainedEngine:
        """Train a fresh engine instance on a training set.

        Args:
            params: The configuration to train with.
            training: The training points of one fold.

        Returns:
            The trained engine.
        """
        preparator: Preparator = self._preparator(**thaw(params.preparator_params))
        prepared = preparator.prepare(training)

        algorithms = [
            self.create_algorithm(name, params.algorithm_params(name))
            for name in params.algorithm_names
        ]
        models = [algorithm.train(prepared) for algorithm in algorithms]

        return TrainedEngine(
            algorithms=algorithms,
            models=models,
            serving=self._serving(**thaw(params.serving_params)),
        )


__all__ = ["Engine", "TrainedEngine"]

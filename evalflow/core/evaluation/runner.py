"""Runs one configuration against one train/validation split."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, NamedTuple

from evalflow.core.data.points import DataPoint
from evalflow.core.engine.engine import Engine
from evalflow.core.engine.params import EngineParams
from evalflow.core.evaluation.errors import PipelineFailure

if TYPE_CHECKING:
    from evalflow.core.evaluation.splitters import Fold


class PredictionTriple(NamedTuple):
    """A validation query with its predicted and actual results."""

    query: Any
    predicted: Any
    actual: Any


class PipelineRunner:
    """Trains a fresh engine on a training set and predicts a validation set.

    The trained engine only ever sees the training points; validation points
    are used for queries and ground truth after training has finished.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def run(
        self,
        config: EngineParams,
        training: Sequence[DataPoint],
        validation: Sequence[DataPoint],
        fold_index: int = 0,
    ) -> list[PredictionTriple]:
        """Train on `training` and predict every point of `validation`.

        Args:
            config: The configuration to train with.
            training: Training points.
            validation: Validation points.
            fold_index: Index of the fold, used to attribute failures.

        Returns:
            One triple per validation point, in validation order.

        Raises:
            PipelineFailure: If training or prediction fails.
        """
        try:
            trained = self._engine.train(config, training)
            queries = [self._engine.query_of(point) for point in validation]
            actuals = [self._engine.actual_of(point) for point in validation]
            predictions = trained.predict_batch(queries)

            if len(predictions) != len(queries):
                raise ValueError(
                    f"Engine returned {len(predictions)} predictions for {len(queries)} queries"
                )
        except Exception as e:
            raise PipelineFailure(config, fold_index, e) from e

        return [
            PredictionTriple(query, predicted, actual)
            for query, predicted, actual in zip(queries, predictions, actuals)
        ]

    def run_fold(self, config: EngineParams, fold: "Fold") -> list[PredictionTriple]:
        return self.run(config, fold.training, fold.validation, fold.index)


__all__ = ["PredictionTriple", "PipelineRunner"]

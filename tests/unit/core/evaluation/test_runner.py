"""Tests for evalflow.core.evaluation.runner module."""

from unittest.mock import MagicMock

import pytest

from evalflow.core.data.points import DataPoint
from evalflow.core.engine.engine import Engine
from evalflow.core.engine.params import EngineParams
from evalflow.core.evaluation.errors import PipelineFailure
from evalflow.core.evaluation.runner import PipelineRunner, PredictionTriple
from evalflow.core.evaluation.splitters import KFoldSplitter


class RecordingAlgorithm:
    """Remembers the points it was trained on and predicts a constant."""

    trained_on: list[tuple[DataPoint, ...]] = []

    def __init__(self, constant: int = 0) -> None:
        self.constant = constant

    def train(self, prepared):
        RecordingAlgorithm.trained_on.append(tuple(prepared))
        return self.constant

    def predict(self, model, query):
        return model


class ShortBatchAlgorithm:
    """Returns one prediction too few from its batch predictor."""

    def train(self, prepared):
        return None

    def predict(self, model, query):
        return 0

    def predict_batch(self, model, queries):
        return [0] * (len(queries) - 1)


@pytest.fixture(autouse=True)
def reset_recording() -> None:
    """Clear recorded training sets between tests."""
    RecordingAlgorithm.trained_on = []


def params(name: str = "recording", **algorithm_params) -> EngineParams:
    return EngineParams(algorithm_params_list=((name, algorithm_params),))


class DescribePipelineRunner:
    """Tests for PipelineRunner class."""

    class DescribeRun:
        """Tests for run method."""

        def it_returns_one_triple_per_validation_point(self, dataset) -> None:
            """Verify triples come back in validation order."""
            runner = PipelineRunner(Engine({"recording": RecordingAlgorithm}))

            result = runner.run(params(constant=1), dataset[:10], dataset[10:13])

            assert result == [
                PredictionTriple(query=(10.0,), predicted=1, actual=0),
                PredictionTriple(query=(11.0,), predicted=1, actual=1),
                PredictionTriple(query=(12.0,), predicted=1, actual=0),
            ]

        def it_trains_only_on_the_training_points(self, dataset) -> None:
            """Verify validation points never reach training."""
            runner = PipelineRunner(Engine({"recording": RecordingAlgorithm}))

            runner.run(params(), dataset[:10], dataset[10:20])

            assert RecordingAlgorithm.trained_on == [tuple(dataset[:10])]

        def it_wraps_training_errors_in_pipeline_failure(
            self, scripted_engine, make_config, dataset
        ) -> None:
            """Verify a raising algorithm yields PipelineFailure with the cause."""
            runner = PipelineRunner(scripted_engine)
            fold = KFoldSplitter().split(dataset, 5)[2]
            config = make_config(fail_folds=[2])

            with pytest.raises(PipelineFailure) as exc_info:
                runner.run_fold(config, fold)

            assert exc_info.value.fold_index == 2
            assert exc_info.value.config == config
            assert isinstance(exc_info.value.cause, RuntimeError)

        def it_wraps_unknown_algorithms_in_pipeline_failure(self, dataset) -> None:
            """Verify configuration errors surface as unit failures."""
            runner = PipelineRunner(Engine({"recording": RecordingAlgorithm}))

            with pytest.raises(PipelineFailure) as exc_info:
                runner.run(params("missing"), dataset[:10], dataset[10:20], fold_index=3)

            assert isinstance(exc_info.value.cause, KeyError)
            assert exc_info.value.fold_index == 3

        def it_fails_on_a_prediction_count_mismatch(self, dataset) -> None:
            """Verify an engine dropping predictions is treated as a failure."""
            runner = PipelineRunner(Engine({"short": ShortBatchAlgorithm}))

            with pytest.raises(PipelineFailure) as exc_info:
                runner.run(params("short"), dataset[:10], dataset[10:20])

            assert isinstance(exc_info.value.cause, ValueError)

        def it_uses_the_engine_extractors(self, dataset) -> None:
            """Verify query_of and actual_of shape the triples."""
            engine = Engine(
                {"recording": RecordingAlgorithm},
                query_of=lambda point: point.features[0],
                actual_of=lambda point: str(point.label),
            )
            runner = PipelineRunner(engine)

            result = runner.run(params(), dataset[:4], dataset[4:5])

            assert result == [PredictionTriple(query=4.0, predicted=0, actual="0")]

    class DescribeRunFold:
        """Tests for run_fold method."""

        def it_runs_with_the_fold_sets_and_index(self, dataset) -> None:
            """Verify run_fold forwards the fold to run."""
            runner = PipelineRunner(MagicMock())
            runner.run = MagicMock(return_value=[])
            fold = KFoldSplitter().split(dataset, 5)[4]
            config = params()

            runner.run_fold(config, fold)

            runner.run.assert_called_once_with(config, fold.training, fold.validation, 4)

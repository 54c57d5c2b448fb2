"""Tests for evalflow.services.evaluation_workflow module."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from evalflow.core.data.sources import InMemoryDataSource
from evalflow.core.engine.params import StaticParamsGenerator
from evalflow.core.evaluation.definition import Evaluation
from evalflow.core.evaluation.errors import InvalidFoldCount, NoViableConfiguration
from evalflow.core.evaluation.executors import ParallelExecutor, SequentialExecutor
from evalflow.core.evaluation.metrics import Accuracy, Aggregation, Recall
from evalflow.services.evaluation_workflow import (
    EvaluationWorkflow,
    WorkflowConfig,
    WorkflowResult,
)
from evalflow.services.report_exporter import ReportExporter


@pytest.fixture
def mock_resource_calculator() -> MagicMock:
    """A resource calculator allowing two workers."""
    calculator = MagicMock()
    calculator.compute_safe_jobs.return_value = 2
    return calculator


@pytest.fixture
def evaluation(scripted_engine, dataset) -> Evaluation:
    """The scripted engine evaluated by accuracy on the in-memory dataset."""
    return Evaluation(
        engine=scripted_engine,
        metric=Accuracy(),
        data_source=InMemoryDataSource(dataset),
        other_metrics=(Recall(label=1),),
    )


def make_workflow(calculator: MagicMock, exporter=None, **config) -> EvaluationWorkflow:
    return EvaluationWorkflow(
        config=WorkflowConfig(**config),
        resource_calculator=calculator,
        exporter=exporter,
    )


class DescribeEvaluationWorkflow:
    """Tests for EvaluationWorkflow class."""

    class DescribeCreateExecutor:
        """Tests for executor selection."""

        def it_runs_sequentially_when_requested(self, mock_resource_calculator) -> None:
            """Verify the sequential flag wins."""
            workflow = make_workflow(mock_resource_calculator, sequential=True, n_jobs=4)

            assert isinstance(workflow._create_executor(10), SequentialExecutor)
            mock_resource_calculator.compute_safe_jobs.assert_not_called()

        def it_runs_sequentially_for_one_job(self, mock_resource_calculator) -> None:
            """Verify n_jobs=1 means sequential."""
            workflow = make_workflow(mock_resource_calculator, n_jobs=1)

            assert isinstance(workflow._create_executor(10), SequentialExecutor)

        def it_uses_the_requested_number_of_jobs(self, mock_resource_calculator) -> None:
            """Verify an explicit n_jobs is used as is."""
            workflow = make_workflow(mock_resource_calculator, n_jobs=3, backend="threading")

            executor = workflow._create_executor(10)

            assert isinstance(executor, ParallelExecutor)
            assert executor.n_jobs == 3
            mock_resource_calculator.compute_safe_jobs.assert_not_called()

        def it_asks_the_resource_calculator_by_default(self, mock_resource_calculator) -> None:
            """Verify the safe worker count is computed from the unit count."""
            workflow = make_workflow(mock_resource_calculator)

            executor = workflow._create_executor(15)

            assert executor.n_jobs == 2
            mock_resource_calculator.compute_safe_jobs.assert_called_once_with(15)

        def it_falls_back_to_sequential_for_one_safe_job(self, mock_resource_calculator) -> None:
            """Verify a single safe worker runs in process."""
            mock_resource_calculator.compute_safe_jobs.return_value = 1
            workflow = make_workflow(mock_resource_calculator)

            assert isinstance(workflow._create_executor(15), SequentialExecutor)

    class DescribeRun:
        """Tests for run method."""

        def it_runs_the_search_and_builds_the_report(
            self, mock_resource_calculator, evaluation, three_configs
        ) -> None:
            """Verify the result and report of a sequential run."""
            workflow = make_workflow(mock_resource_calculator, sequential=True)

            outcome = workflow.run(evaluation, StaticParamsGenerator(three_configs))

            assert isinstance(outcome, WorkflowResult)
            assert outcome.result.best_config == three_configs[0]
            assert outcome.report.best_score == pytest.approx(0.93)
            assert outcome.report.metric == "Accuracy"
            assert outcome.report.other_metrics == ["Recall(label=1)"]
            assert outcome.report.folds == 5
            assert outcome.paths == {}

        def it_uses_a_fresh_run_id(
            self, mock_resource_calculator, evaluation, three_configs
        ) -> None:
            """Verify each run is identified separately."""
            workflow = make_workflow(mock_resource_calculator, sequential=True)
            generator = StaticParamsGenerator(three_configs)

            first = workflow.run(evaluation, generator)
            second = workflow.run(evaluation, generator)

            assert first.report.run_id != second.report.run_id

        def it_exports_the_report(
            self, tmp_path: Path, mock_resource_calculator, evaluation, three_configs
        ) -> None:
            """Verify the exporter writes the run files."""
            workflow = make_workflow(
                mock_resource_calculator, exporter=ReportExporter(tmp_path), sequential=True
            )

            outcome = workflow.run(evaluation, StaticParamsGenerator(three_configs))

            assert outcome.paths["report"].exists()
            assert outcome.paths["fold_scores"].exists()

        def it_applies_the_configured_aggregation(
            self, mock_resource_calculator, evaluation, three_configs
        ) -> None:
            """Verify the aggregation reaches the evaluator and the report."""
            workflow = make_workflow(
                mock_resource_calculator, sequential=True, aggregation=Aggregation.WEIGHTED
            )

            outcome = workflow.run(evaluation, StaticParamsGenerator(three_configs))

            assert outcome.report.aggregation == "weighted"
            assert outcome.result.best_score == pytest.approx(0.93)

        def it_runs_in_parallel(self, mock_resource_calculator, evaluation, three_configs) -> None:
            """Verify a threaded run ranks like a sequential one."""
            workflow = make_workflow(mock_resource_calculator, n_jobs=2, backend="threading")

            outcome = workflow.run(evaluation, StaticParamsGenerator(three_configs))

            assert [r.config for r in outcome.result.records] == three_configs

        def it_propagates_invalid_fold_counts(
            self, mock_resource_calculator, evaluation, three_configs
        ) -> None:
            """Verify an oversized k is fatal."""
            workflow = make_workflow(mock_resource_calculator, sequential=True, folds=101)

            with pytest.raises(InvalidFoldCount):
                workflow.run(evaluation, StaticParamsGenerator(three_configs))

        def it_propagates_no_viable_configuration(
            self, mock_resource_calculator, evaluation, make_config
        ) -> None:
            """Verify a run where everything failed is fatal."""
            workflow = make_workflow(mock_resource_calculator, sequential=True)
            generator = StaticParamsGenerator([make_config(fail_folds=range(5))])

            with pytest.raises(NoViableConfiguration):
                workflow.run(evaluation, generator)

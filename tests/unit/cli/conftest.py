"""Shared fixtures for CLI unit tests."""

from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest

from evalflow.core.engine.params import EngineParams
from evalflow.services.evaluation_workflow import WorkflowConfig, WorkflowResult
from evalflow.services.report_exporter import (
    ConfigurationReport,
    ConfigurationStatus,
    EvaluationReport,
)


@pytest.fixture
def mock_container() -> Generator[MagicMock, None, None]:
    """Fixture providing a mocked DI container.

    Patches the container in all CLI modules to ensure mock is used.
    """
    mock = MagicMock()
    mock.workflow_config.return_value = WorkflowConfig()

    with (
        patch("evalflow.cli.container", mock),
        patch("evalflow.cli.evaluate.container", mock),
    ):
        yield mock


@pytest.fixture
def workflow_result() -> WorkflowResult:
    """A completed run with one ranked and one failed configuration."""
    best = EngineParams(algorithm_params_list=(("naive_bayes", {}),))
    failed = EngineParams(algorithm_params_list=(("decision_tree", {"max_depth": -1}),))
    report = EvaluationReport(
        run_id="01912345-6789-7abc-8def-0123456789ab",
        metric="Accuracy",
        folds=5,
        aggregation="metric",
        best_config=best,
        best_score=0.93,
        configurations=[
            ConfigurationReport(
                index=0,
                rank=1,
                status=ConfigurationStatus.OK,
                config=best,
                score=0.93,
                fold_scores=[0.95, 0.95, 0.95, 0.9, 0.9],
            ),
            ConfigurationReport(
                index=1,
                status=ConfigurationStatus.FAILED,
                config=failed,
                fold_scores=[None] * 5,
                failed_folds=[0, 1, 2, 3, 4],
                errors=["Fold 0 failed: InvalidParameterError: max_depth"],
            ),
        ],
    )
    return WorkflowResult(result=MagicMock(), report=report)


@pytest.fixture
def mock_workflow(mock_container: MagicMock, workflow_result: WorkflowResult) -> MagicMock:
    """Fixture providing a mocked EvaluationWorkflow from the container."""
    workflow = MagicMock()
    workflow.run.return_value = workflow_result
    mock_container.evaluation_workflow.return_value = workflow
    return workflow


@pytest.fixture
def mock_report_exporter(mock_container: MagicMock) -> MagicMock:
    """Fixture providing a mocked ReportExporter from the container."""
    exporter = MagicMock()
    mock_container.report_exporter.return_value = exporter
    return exporter

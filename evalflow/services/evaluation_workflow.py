"""Definition of the evaluation workflow service.

The workflow is the run invocation surface: it takes an evaluation
definition and a configuration generator, assembles the evaluation core
from its settings, runs the search and exports the report.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger
from uuid_extensions import uuid7str

from evalflow.core.engine.params import EngineParamsGenerator
from evalflow.core.evaluation.definition import Evaluation
from evalflow.core.evaluation.evaluator import Evaluator
from evalflow.core.evaluation.executors import (
    BaseExecutor,
    ParallelExecutor,
    SequentialExecutor,
)
from evalflow.core.evaluation.lifecycle import CancellationToken, SearchObserver
from evalflow.core.evaluation.metrics import Aggregation
from evalflow.core.evaluation.runner import PipelineRunner
from evalflow.core.evaluation.search import SearchController, SearchResult
from evalflow.core.evaluation.splitters import KFoldSplitter
from evalflow.services.report_exporter import EvaluationReport, ReportExporter, build_report
from evalflow.services.resource_calculator import ResourceCalculator


@dataclass
class WorkflowConfig:
    """Configuration for an evaluation run.

    Attributes:
        folds: Number of cross-validation folds.
        shuffle: Whether to shuffle points before fold assignment.
        seed: Seed for the shuffle.
        aggregation: Policy combining fold scores.
        n_jobs: Parallel workers. None lets the resource calculator decide.
        sequential: Run every unit in the calling process.
        backend: joblib backend for parallel runs.
        pre_dispatch: joblib pre-dispatch setting.
    """

    folds: int = 5
    shuffle: bool = False
    seed: int | None = None
    aggregation: Aggregation = Aggregation.METRIC
    n_jobs: int | None = None
    sequential: bool = False
    backend: str | None = None
    pre_dispatch: str = "2*n_jobs"


@dataclass
class WorkflowResult:
    """Outcome of a completed run.

    Attributes:
        result: The ranked search result.
        report: The audit report built from it.
        paths: Files written by the exporter, empty when nothing was exported.
    """

    result: SearchResult
    report: EvaluationReport
    paths: dict[str, Path] = field(default_factory=dict)


class EvaluationWorkflow:
    """Service for running an evaluation from its two references."""

    def __init__(
        self,
        config: WorkflowConfig,
        resource_calculator: ResourceCalculator,
        exporter: ReportExporter | None = None,
        observers: Sequence[SearchObserver] = (),
    ) -> None:
        self._config = config
        self._resource_calculator = resource_calculator
        self._exporter = exporter
        self._observers = list(observers)

    @property
    def config(self) -> WorkflowConfig:
        return self._config

    def _create_executor(self, n_units: int) -> BaseExecutor:
        if self._config.sequential or self._config.n_jobs == 1:
            return SequentialExecutor()

        n_jobs = self._config.n_jobs or self._resource_calculator.compute_safe_jobs(n_units)
        if n_jobs == 1:
            return SequentialExecutor()
        return ParallelExecutor(
            n_jobs=n_jobs,
            pre_dispatch=self._config.pre_dispatch,
            backend=self._config.backend,
        )

    def create_controller(self, evaluation: Evaluation, n_units: int) -> SearchController:
        """Assemble the evaluation core for one run."""
        evaluator = Evaluator(
            runner=PipelineRunner(evaluation.engine),
            metric=evaluation.metric,
            splitter=KFoldSplitter(shuffle=self._config.shuffle, seed=self._config.seed),
            aggregation=self._config.aggregation,
            other_metrics=evaluation.other_metrics,
        )
        return SearchController(
            evaluator=evaluator,
            executor=self._create_executor(n_units),
            observers=self._observers,
        )

    def run(
        self,
        evaluation: Evaluation,
        generator: EngineParamsGenerator,
        token: CancellationToken | None = None,
    ) -> WorkflowResult:
        """Run the search and export its report.

        Args:
            evaluation: The engine under test and its metrics.
            generator: Produces the configurations to search.
            token: Optional cancellation token.

        Returns:
            The search result, its report and the exported paths.

        Raises:
            InvalidFoldCount: If the fold count does not fit the dataset.
            NoViableConfiguration: If every configuration failed.
            SearchCancelled: If the run was cancelled.
        """
        run_id = uuid7str()
        configs = generator.engine_params_list()
        k = self._config.folds

        with logger.contextualize(run_id=run_id):
            logger.info(
                "Run {run_id}: {count} configurations, metric {metric}",
                run_id=run_id,
                count=len(configs),
                metric=evaluation.metric.header,
            )

            controller = self.create_controller(evaluation, len(configs) * k)
            result = controller.search_sources(configs, k, evaluation.data_source, token)

            report = build_report(
                result,
                configs,
                run_id=run_id,
                metric=evaluation.metric.header,
                other_metrics=[m.header for m in evaluation.other_metrics],
                folds=k,
                aggregation=str(self._config.aggregation),
            )
            paths = self._exporter.export(report) if self._exporter is not None else {}

        return WorkflowResult(result=result, report=report, paths=paths)


__all__ = ["WorkflowConfig", "WorkflowResult", "EvaluationWorkflow"]

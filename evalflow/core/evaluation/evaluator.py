"""Cross-validated evaluation of a single configuration."""

from collections.abc import Sequence
from dataclasses import dataclass, field
import math
from typing import Any

from loguru import logger

from evalflow.core.engine.params import EngineParams
from evalflow.core.evaluation.errors import (
    EvaluationFailure,
    PipelineFailure,
    SearchCancelled,
)
from evalflow.core.evaluation.executors import BaseExecutor, SequentialExecutor
from evalflow.core.evaluation.lifecycle import CancellationToken
from evalflow.core.evaluation.metrics import (
    Aggregation,
    FoldScore,
    Metric,
    aggregate_fold_scores,
)
from evalflow.core.evaluation.runner import PipelineRunner
from evalflow.core.evaluation.splitters import Fold, FoldSplitter, KFoldSplitter


@dataclass(frozen=True, slots=True)
class FoldOutcome:
    """Result of one (configuration, fold) unit.

    Exactly one of `score` and `failure` is set.

    Attributes:
        fold_index: The fold that was evaluated.
        score: The fold score when the unit succeeded.
        failure: The failure when training, prediction or scoring failed.
    """

    fold_index: int
    score: FoldScore | None = None
    failure: PipelineFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None


@dataclass(frozen=True, slots=True)
class EvaluationRecord:
    """Aggregated evaluation of one configuration.

    Attributes:
        config: The evaluated configuration.
        fold_scores: One score per fold in fold order; `None` for failed folds.
        score: The aggregate score over the successful folds.
        failed_folds: Indexes of the folds that failed.
        other_scores: Aggregate scores of the secondary metrics; `None` where a
            metric was undefined on every successful fold.
        failures: The failures of the failed folds.
    """

    config: EngineParams
    fold_scores: tuple[float | None, ...]
    score: float
    failed_folds: tuple[int, ...] = ()
    other_scores: tuple[float | None, ...] = ()
    failures: tuple[PipelineFailure, ...] = field(default=(), compare=False)

    @property
    def partial(self) -> bool:
        """Whether some folds are missing from the aggregate."""
        return bool(self.failed_folds)


class Evaluator:
    """Evaluates configurations with k-fold cross-validation.

    Scoring one fold (`score_fold`) is the unit of work; combining the
    outcomes of a configuration (`aggregate`) is its join barrier. A failed
    fold is recorded and excluded from the aggregate; only a configuration
    whose folds all failed raises `EvaluationFailure`.
    """

    def __init__(
        self,
        runner: PipelineRunner,
        metric: Metric,
        splitter: FoldSplitter | None = None,
        executor: BaseExecutor | None = None,
        aggregation: Aggregation = Aggregation.METRIC,
        other_metrics: Sequence[Metric] = (),
    ) -> None:
        """Initialize the evaluator.

        Args:
            runner: Runs a configuration on one fold.
            metric: The metric used for ranking.
            splitter: Splits datasets into folds. Defaults to `KFoldSplitter()`.
            executor: Dispatches fold units. Defaults to `SequentialExecutor()`.
            aggregation: How fold scores are combined into the configuration score.
            other_metrics: Secondary metrics reported next to the primary one.
        """
        self._runner = runner
        self._metric = metric
        self._splitter = splitter or KFoldSplitter()
        self._executor = executor or SequentialExecutor()
        self._aggregation = Aggregation(aggregation)
        self._other_metrics = tuple(other_metrics)

    @property
    def metric(self) -> Metric:
        return self._metric

    @property
    def other_metrics(self) -> tuple[Metric, ...]:
        return self._other_metrics

    def split(self, dataset: Sequence[Any], k: int) -> list[Fold]:
        """Split a dataset into k folds. Raises `InvalidFoldCount` on a bad k."""
        return self._splitter.split(dataset, k)

    def score_fold(self, config: EngineParams, fold: Fold) -> FoldOutcome:
        """Run and score one (configuration, fold) unit.

        Never raises for a failing unit: the failure is returned in the outcome.
        """
        try:
            triples = self._runner.run_fold(config, fold)
        except PipelineFailure as failure:
            return FoldOutcome(fold_index=fold.index, failure=failure)

        try:
            score = float(self._metric.evaluate_fold(triples))
            if math.isnan(score):
                raise ValueError(f"{self._metric.header} returned NaN")
        except Exception as e:
            return FoldOutcome(
                fold_index=fold.index,
                failure=PipelineFailure(config, fold.index, e),
            )

        return FoldOutcome(
            fold_index=fold.index,
            score=FoldScore(
                fold_index=fold.index,
                score=score,
                size=len(fold.validation),
                other_scores=tuple(
                    self._score_other(metric, triples, fold.index)
                    for metric in self._other_metrics
                ),
            ),
        )

    @staticmethod
    def _score_other(metric: Metric, triples: Sequence[Any], fold_index: int) -> float | None:
        """Score a secondary metric, or `None` when it is undefined on the fold."""
        try:
            score = float(metric.evaluate_fold(triples))
        except Exception as e:
            logger.debug(
                "{metric} undefined on fold {fold}: {cause!r}",
                metric=metric.header,
                fold=fold_index,
                cause=e,
            )
            return None
        return None if math.isnan(score) else score

    def aggregate(self, config: EngineParams, outcomes: Sequence[FoldOutcome]) -> EvaluationRecord:
        """Combine the fold outcomes of one configuration.

        Args:
            config: The configuration the outcomes belong to.
            outcomes: One outcome per fold.

        Returns:
            The evaluation record.

        Raises:
            EvaluationFailure: If every fold failed.
        """
        ordered = sorted(outcomes, key=lambda outcome: outcome.fold_index)
        succeeded = [o.score for o in ordered if o.score is not None]
        failures = [o.failure for o in ordered if o.failure is not None]

        for failure in failures:
            with logger.contextualize(fold=failure.fold_index, config=config.model_dump()):
                logger.warning(
                    "Fold {fold} failed: {cause!r}", fold=failure.fold_index, cause=failure.cause
                )

        if not succeeded:
            raise EvaluationFailure(config, failures)

        score = aggregate_fold_scores(self._metric, succeeded, self._aggregation)
        other_scores = tuple(
            self._aggregate_other(metric, i, succeeded)
            for i, metric in enumerate(self._other_metrics)
        )

        return EvaluationRecord(
            config=config,
            fold_scores=tuple(o.score.score if o.score is not None else None for o in ordered),
            score=score,
            failed_folds=tuple(f.fold_index for f in failures),
            other_scores=other_scores,
            failures=tuple(failures),
        )

    def _aggregate_other(
        self, metric: Metric, position: int, succeeded: Sequence[FoldScore]
    ) -> float | None:
        # Folds where the metric was undefined are left out
        defined = [
            FoldScore(s.fold_index, s.other_scores[position], s.size)
            for s in succeeded
            if s.other_scores[position] is not None
        ]
        if not defined:
            return None
        return aggregate_fold_scores(metric, defined, self._aggregation)

    def evaluate(
        self,
        config: EngineParams,
        k: int,
        dataset: Sequence[Any],
        folds: Sequence[Fold] | None = None,
        token: CancellationToken | None = None,
    ) -> EvaluationRecord:
        """Evaluate one configuration across all folds.

        Args:
            config: The configuration to evaluate.
            k: Number of folds.
            dataset: The dataset to split. Ignored when `folds` is given.
            folds: Precomputed folds, shared across configurations.
            token: Optional cancellation token.

        Returns:
            The evaluation record of the configuration.

        Raises:
            InvalidFoldCount: If k is out of range.
            EvaluationFailure: If every fold failed.
            SearchCancelled: If the token was cancelled before every fold ran.
        """
        folds = list(folds) if folds is not None else self.split(dataset, k)
        outcomes = list(
            self._executor.execute(self.score_fold, [(config, fold) for fold in folds], token)
        )
        if len(outcomes) < len(folds):
            raise SearchCancelled(len(outcomes), len(folds))
        return self.aggregate(config, outcomes)


__all__ = ["FoldOutcome", "EvaluationRecord", "Evaluator"]

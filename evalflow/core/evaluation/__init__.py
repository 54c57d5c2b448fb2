"""K-fold evaluation and parameter search.

This package splits a dataset into k folds, runs a pipeline for every
(configuration, fold) pair, scores the predictions with a pluggable
metric and ranks configurations by their aggregate score.

Example usage:
    from evalflow.core.evaluation import (
        Accuracy,
        Evaluator,
        PipelineRunner,
        SearchController,
    )

    evaluator = Evaluator(PipelineRunner(engine), Accuracy())
    result = SearchController(evaluator).search(configs, k=5, dataset=points)
    print(result.best_config, result.best_score)
"""

from evalflow.core.evaluation.definition import Evaluation
from evalflow.core.evaluation.errors import (
    EvaluationError,
    EvaluationFailure,
    InvalidFoldCount,
    NoViableConfiguration,
    PipelineFailure,
    SearchCancelled,
)
from evalflow.core.evaluation.evaluator import EvaluationRecord, Evaluator, FoldOutcome
from evalflow.core.evaluation.executors import (
    BaseExecutor,
    ParallelExecutor,
    SequentialExecutor,
)
from evalflow.core.evaluation.lifecycle import (
    Action,
    CancellationToken,
    IgnoreAllObserver,
    SearchObserver,
)
from evalflow.core.evaluation.metrics import (
    Accuracy,
    Aggregation,
    AverageMetric,
    FoldScore,
    Metric,
    OptionAverageMetric,
    Precision,
    Recall,
    StdevMetric,
    SumMetric,
    ZeroMetric,
    aggregate_fold_scores,
)
from evalflow.core.evaluation.runner import PipelineRunner, PredictionTriple
from evalflow.core.evaluation.search import SearchController, SearchResult
from evalflow.core.evaluation.splitters import (
    Fold,
    FoldSplitter,
    KFoldSplitter,
    validate_fold_count,
)

__all__ = [
    # Protocols
    "FoldSplitter",
    "SearchObserver",
    # Errors
    "EvaluationError",
    "InvalidFoldCount",
    "PipelineFailure",
    "EvaluationFailure",
    "NoViableConfiguration",
    "SearchCancelled",
    # Data classes
    "Fold",
    "PredictionTriple",
    "FoldScore",
    "FoldOutcome",
    "EvaluationRecord",
    "SearchResult",
    "Evaluation",
    # Metrics
    "Aggregation",
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
    # Implementations
    "KFoldSplitter",
    "validate_fold_count",
    "PipelineRunner",
    "Evaluator",
    "SearchController",
    "BaseExecutor",
    "SequentialExecutor",
    "ParallelExecutor",
    # Lifecycle
    "Action",
    "IgnoreAllObserver",
    "CancellationToken",
]

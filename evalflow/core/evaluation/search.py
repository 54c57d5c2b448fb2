"""Search over an explicit list of configurations.

The search is a fan-out/fan-in: every (configuration, fold) pair is an
independent unit dispatched through one executor, outcomes are joined per
configuration by the evaluator, and the configuration records are joined
again into a single ranking. The join points are the only synchronization.
"""

from collections.abc import Sequence
from dataclasses import dataclass
import json
from typing import Any

from loguru import logger

from evalflow.core.data.sources import DataSource
from evalflow.core.engine.params import EngineParams, thaw
from evalflow.core.evaluation.errors import (
    EvaluationFailure,
    NoViableConfiguration,
    SearchCancelled,
)
from evalflow.core.evaluation.evaluator import EvaluationRecord, Evaluator, FoldOutcome
from evalflow.core.evaluation.executors import BaseExecutor, SequentialExecutor
from evalflow.core.evaluation.lifecycle import Action, CancellationToken, SearchObserver
from evalflow.core.evaluation.splitters import Fold


@dataclass(frozen=True, slots=True)
class SearchResult:
    """Outcome of a search.

    Attributes:
        best_config: The first configuration, in input order, with the highest score.
        best_score: The aggregate score of `best_config`.
        records: Successful evaluation records, best first; ties keep input order.
        failures: Configurations excluded from the ranking, in input order.
    """

    best_config: EngineParams
    best_score: float
    records: tuple[EvaluationRecord, ...]
    failures: tuple[EvaluationFailure, ...] = ()

    @property
    def best_record(self) -> EvaluationRecord:
        return self.records[0]


def _data_source_key(config: EngineParams) -> str:
    return json.dumps(thaw(config.data_source_params), sort_keys=True, default=str)


class SearchController:
    """Evaluates every configuration and selects the best one."""

    def __init__(
        self,
        evaluator: Evaluator,
        executor: BaseExecutor | None = None,
        observers: Sequence[SearchObserver] = (),
    ) -> None:
        """Initialize the controller.

        Args:
            evaluator: Scores and aggregates (configuration, fold) units.
            executor: Dispatches the unit matrix. Defaults to `SequentialExecutor()`.
            observers: Lifecycle observers, notified in the driving process.
        """
        self._evaluator = evaluator
        self._executor = executor or SequentialExecutor()
        self._observers = list(observers)

    def search(
        self,
        configs: Sequence[EngineParams],
        k: int,
        dataset: Sequence[Any],
        token: CancellationToken | None = None,
    ) -> SearchResult:
        """Evaluate every configuration on the same k folds of `dataset`.

        Args:
            configs: The configurations, in search order.
            k: Number of folds.
            dataset: The labeled dataset.
            token: Optional cancellation token.

        Returns:
            The ranked search result.

        Raises:
            InvalidFoldCount: If k is out of range; raised before any unit runs.
            NoViableConfiguration: If no configuration could be evaluated.
            SearchCancelled: If the run was cancelled.
        """
        configs = list(configs)
        if not configs:
            raise NoViableConfiguration([])

        folds = self._evaluator.split(dataset, k)
        return self._run([(config, folds) for config in configs], k, token)

    def search_sources(
        self,
        configs: Sequence[EngineParams],
        k: int,
        data_source: DataSource,
        token: CancellationToken | None = None,
    ) -> SearchResult:
        """Evaluate configurations whose datasets come from a data source.

        Configurations sharing the same data source parameters share one
        read and one split. All configurations are ranked together.
        """
        configs = list(configs)
        if not configs:
            raise NoViableConfiguration([])

        folds_by_source: dict[str, list[Fold]] = {}
        for config in configs:
            key = _data_source_key(config)
            if key not in folds_by_source:
                dataset = data_source.read(config.data_source_params)
                logger.info(
                    "Read {size} points for data source params {params}",
                    size=len(dataset),
                    params=key,
                )
                folds_by_source[key] = self._evaluator.split(dataset, k)

        return self._run(
            [(config, folds_by_source[_data_source_key(config)]) for config in configs],
            k,
            token,
        )

    def _notify(self, hook: str, *args: Any) -> Action:
        action = Action.PROCEED
        for observer in self._observers:
            action = max(action, getattr(observer, hook)(*args))
        return action

    def _run(
        self,
        plan: list[tuple[EngineParams, list[Fold]]],
        k: int,
        token: CancellationToken | None,
    ) -> SearchResult:
        token = token or CancellationToken()
        configs = [config for config, _ in plan]

        if self._notify("on_search_start", configs, k) >= Action.ABORT:
            token.cancel()

        units = [
            (index, config, fold)
            for index, (config, folds) in enumerate(plan)
            for fold in folds
        ]
        outcomes: list[list[FoldOutcome]] = [[] for _ in plan]

        logger.info(
            "Evaluating {configs} configurations with k={k} ({units} units)",
            configs=len(plan),
            k=k,
            units=len(units),
        )

        completed = 0
        results = self._executor.execute(
            self._evaluator.score_fold,
            ((config, fold) for _, config, fold in units),
            token,
        )
        for outcome in results:
            index, config, _ = units[completed]
            outcomes[index].append(outcome)
            completed += 1
            if self._notify("on_unit_finish", config, outcome) >= Action.ABORT:
                token.cancel()

        if completed < len(units):
            raise SearchCancelled(completed, len(units))

        ranked: list[tuple[int, EvaluationRecord]] = []
        failures: list[EvaluationFailure] = []
        for index, config in enumerate(configs):
            try:
                record = self._evaluator.aggregate(config, outcomes[index])
            except EvaluationFailure as failure:
                failures.append(failure)
                self._notify("on_configuration_finish", config, None, failure)
            else:
                ranked.append((index, record))
                self._notify("on_configuration_finish", config, record, None)

        if not ranked:
            raise NoViableConfiguration(failures)

        ranked.sort(key=lambda item: (-item[1].score, item[0]))
        records = tuple(record for _, record in ranked)
        result = SearchResult(
            best_config=records[0].config,
            best_score=records[0].score,
            records=records,
            failures=tuple(failures),
        )

        self._notify("on_search_finish", result)
        return result


__all__ = ["SearchResult", "SearchController"]

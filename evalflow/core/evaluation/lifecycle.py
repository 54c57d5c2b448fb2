"""Lifecycle hooks and cancellation for evaluation runs."""

import enum
import threading
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

from evalflow.core.engine.params import EngineParams

if TYPE_CHECKING:
    from evalflow.core.evaluation.errors import EvaluationFailure
    from evalflow.core.evaluation.evaluator import EvaluationRecord, FoldOutcome
    from evalflow.core.evaluation.search import SearchResult


class Action(enum.IntEnum):
    """Actions observers can request during a search.

    Actions are ordered by severity, so the controller aggregates the
    responses of several observers by taking the maximum value.

    - `PROCEED`: Continue normally.
    - `ABORT`: Cancel the run. No new units are dispatched, units already
      running are allowed to finish and the search raises `SearchCancelled`.
    """

    PROCEED = enum.auto()
    ABORT = enum.auto()


class SearchObserver(Protocol):
    """Observer protocol for search lifecycle events.

    Every hook runs in the process driving the search, never inside a
    worker, so observers do not need to be thread-safe.
    """

    def on_search_start(self, configs: Sequence[EngineParams], k: int) -> Action:
        """Called once before any unit is dispatched."""
        ...

    def on_unit_finish(self, config: EngineParams, outcome: "FoldOutcome") -> Action:
        """Called as each (configuration, fold) unit completes, successfully or not."""
        ...

    def on_configuration_finish(
        self,
        config: EngineParams,
        record: "EvaluationRecord | None",
        failure: "EvaluationFailure | None",
    ) -> Action:
        """Called after the join barrier of one configuration."""
        ...

    def on_search_finish(self, result: "SearchResult") -> Action:
        """Called once with the ranked result of the run."""
        ...


class IgnoreAllObserver:
    """Observer that ignores every event and always proceeds."""

    def on_search_start(self, configs: Sequence[EngineParams], k: int) -> Action:
        return Action.PROCEED

    def on_unit_finish(self, config: EngineParams, outcome: Any) -> Action:
        return Action.PROCEED

    def on_configuration_finish(self, config: EngineParams, record: Any, failure: Any) -> Action:
        return Action.PROCEED

    def on_search_finish(self, result: Any) -> Action:
        return Action.PROCEED


class CancellationToken:
    """A one-way flag telling executors to stop dispatching new units."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


__all__ = [
    "Action",
    "SearchObserver",
    "IgnoreAllObserver",
    "CancellationToken",
]

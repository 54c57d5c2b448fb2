"""Configuration and setup for logging in evaluation runs."""

from collections.abc import Sequence
import sys
from typing import Any

from loguru import logger

from evalflow.config.settings import EvalflowSettings
from evalflow.core.engine.params import EngineParams
from evalflow.core.evaluation.lifecycle import Action, IgnoreAllObserver


class LoggingSearchObserver(IgnoreAllObserver):
    """Observer that logs search events.

    Extends IgnoreAllObserver to add logging while returning PROCEED
    for every event.
    """

    def __init__(self) -> None:
        self._config_ids: dict[str, int] = {}

    def _config_id(self, config: EngineParams) -> int:
        return self._config_ids.setdefault(config.model_dump_json(), len(self._config_ids))

    def on_search_start(self, configs: Sequence[EngineParams], k: int) -> Action:
        self._config_ids = {}
        for config in configs:
            self._config_id(config)
        logger.info("Starting search over {count} configurations (k={k})", count=len(configs), k=k)
        return Action.PROCEED

    def on_unit_finish(self, config: EngineParams, outcome: Any) -> Action:
        config_id = self._config_id(config)
        with logger.contextualize(config_id=config_id, fold=outcome.fold_index):
            if outcome.succeeded:
                logger.debug(
                    "config #{config_id} fold {fold}: score={score:.4f}",
                    config_id=config_id,
                    fold=outcome.fold_index,
                    score=outcome.score.score,
                )
            else:
                logger.warning(
                    "config #{config_id} fold {fold}: failed ({error})",
                    config_id=config_id,
                    fold=outcome.fold_index,
                    error=str(outcome.failure),
                )
        return Action.PROCEED

    def on_configuration_finish(self, config: EngineParams, record: Any, failure: Any) -> Action:
        config_id = self._config_id(config)
        with logger.contextualize(config_id=config_id):
            if record is not None:
                logger.info(
                    "config #{config_id}: score={score:.4f} folds={folds}",
                    config_id=config_id,
                    score=record.score,
                    folds=list(record.fold_scores),
                )
            else:
                logger.error(
                    "config #{config_id}: excluded from ranking ({error})",
                    config_id=config_id,
                    error=str(failure),
                )
        return Action.PROCEED

    def on_search_finish(self, result: Any) -> Action:
        logger.success(
            "Search finished: best score {score:.4f} ({failed} configurations failed)",
            score=result.best_score,
            failed=len(result.failures),
        )
        return Action.PROCEED


def configure_logging(settings: EvalflowSettings) -> None:
    logger.remove()  # Remove default handler

    if settings.log_json:
        logger.add(
            sys.stderr,
            serialize=True,
            level=settings.log_level,
            format="{message}",
            backtrace=True,
            diagnose=settings.debug,  # Include stack traces only in debug mode
        )
    else:
        logger.add(
            sys.stderr,
            level=settings.log_level,
            backtrace=True,
            diagnose=settings.debug,
        )

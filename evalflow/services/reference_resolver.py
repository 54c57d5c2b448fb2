"""Resolution of `module:attribute` references given on the command line."""

from collections.abc import Sequence
import importlib
from pathlib import Path
from typing import Any

from evalflow.core.engine.params import (
    EngineParams,
    EngineParamsGenerator,
    JsonParamsGenerator,
    StaticParamsGenerator,
)
from evalflow.core.evaluation.definition import Evaluation
from evalflow.core.evaluation.errors import EvaluationError


class ReferenceResolutionError(EvaluationError):
    """A reference could not be imported or has the wrong type."""


def import_reference(reference: str) -> Any:
    """Import the object named by `package.module:attribute`.

    Raises:
        ReferenceResolutionError: If the reference is malformed or cannot be imported.
    """
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise ReferenceResolutionError(
            f"Invalid reference '{reference}', expected 'package.module:attribute'"
        )

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ReferenceResolutionError(f"Cannot import module '{module_name}': {e}") from e

    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ReferenceResolutionError(
                f"Module '{module_name}' has no attribute '{attribute}'"
            ) from e
    return target


def resolve_evaluation(reference: str) -> Evaluation:
    """Resolve an evaluation definition, calling the target if it is a factory."""
    target = import_reference(reference)
    if not isinstance(target, Evaluation) and callable(target):
        target = target()
    if not isinstance(target, Evaluation):
        raise ReferenceResolutionError(
            f"'{reference}' resolved to {type(target).__name__}, expected an Evaluation"
        )
    return target


def resolve_params_generator(reference: str) -> EngineParamsGenerator:
    """Resolve a configuration generator.

    The reference is either a path to a JSON configuration file or a
    `module:attribute` naming a generator, a list of engine params, or a
    factory returning either of those.
    """
    if reference.endswith(".json") and Path(reference).is_file():
        return JsonParamsGenerator(reference)

    target = import_reference(reference)
    # Classes satisfy the runtime protocol check too, so instantiate them first
    if isinstance(target, type) or (
        callable(target) and not isinstance(target, EngineParamsGenerator)
    ):
        target = target()

    if isinstance(target, EngineParamsGenerator):
        return target
    if isinstance(target, Sequence) and all(isinstance(p, EngineParams) for p in target):
        return StaticParamsGenerator(target)

    raise ReferenceResolutionError(
        f"'{reference}' resolved to {type(target).__name__}, expected an engine params generator"
    )


__all__ = [
    "ReferenceResolutionError",
    "import_reference",
    "resolve_evaluation",
    "resolve_params_generator",
]

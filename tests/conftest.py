"""Shared fixtures for evalflow tests.

The scripted engine predicts the label of point `i` as `i % 2`, except for
the point ids listed in its `errors` parameter, whose prediction is
flipped. With 100 points and k=5 every fold validates 20 points, so the
accuracy of a fold is `1 - errors_in_fold / 20`.
"""

from collections.abc import Callable, Sequence
from typing import Any

import pytest

from evalflow.core.data.points import DataPoint
from evalflow.core.engine.engine import Engine
from evalflow.core.engine.params import EngineParams

DATASET_SIZE = 100
K = 5


class ScriptedAlgorithm:
    """Algorithm whose mistakes and failing folds are scripted by its parameters."""

    def __init__(
        self,
        errors: Sequence[int] = (),
        fail_folds: Sequence[int] = (),
        k: int = K,
    ) -> None:
        self.errors = set(errors)
        self.fail_folds = set(fail_folds)
        self.k = k

    def train(self, prepared: Sequence[DataPoint]) -> int:
        # The fold being trained is the residue missing from the training ids
        residues = {int(point.features[0]) % self.k for point in prepared}
        missing = set(range(self.k)) - residues
        fold = missing.pop() if len(missing) == 1 else -1
        if fold in self.fail_folds:
            raise RuntimeError(f"scripted failure on fold {fold}")
        return fold

    def predict(self, model: int, query: tuple[float, ...]) -> int:
        point_id = int(query[0])
        label = point_id % 2
        return 1 - label if point_id in self.errors else label


def errors_per_fold(counts: Sequence[int], k: int = K) -> list[int]:
    """Point ids producing `counts[f]` mistakes in the validation set of fold `f`."""
    return [fold + k * j for fold, count in enumerate(counts) for j in range(count)]


@pytest.fixture
def dataset() -> tuple[DataPoint, ...]:
    """100 points with `features=(i,)` and `label=i % 2`."""
    return tuple(DataPoint(features=(float(i),), label=i % 2) for i in range(DATASET_SIZE))


@pytest.fixture
def scripted_engine() -> Engine:
    """An engine with the single algorithm "scripted"."""
    return Engine(algorithms={"scripted": ScriptedAlgorithm})


@pytest.fixture
def make_config() -> Callable[..., EngineParams]:
    """Factory for scripted configurations.

    Usage: `make_config(counts=[1, 1, 1, 2, 2], fail_folds=[0])`.
    """

    def _make(
        counts: Sequence[int] = (0,) * K,
        fail_folds: Sequence[int] = (),
        **data_source_params: Any,
    ) -> EngineParams:
        return EngineParams(
            data_source_params=data_source_params,
            algorithm_params_list=(
                (
                    "scripted",
                    {"errors": errors_per_fold(counts), "fail_folds": list(fail_folds)},
                ),
            ),
        )

    return _make


@pytest.fixture
def three_configs(make_config: Callable[..., EngineParams]) -> list[EngineParams]:
    """C1 scores [0.95, 0.95, 0.95, 0.90, 0.90], C2 scores 0.90 and C3 scores 0.40 per fold."""
    return [
        make_config(counts=[1, 1, 1, 2, 2]),
        make_config(counts=[2] * K),
        make_config(counts=[12] * K),
    ]

"""Evaluation definitions: what is evaluated and how it is scored."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from evalflow.core.data.sources import DataSource
from evalflow.core.engine.engine import Engine
from evalflow.core.evaluation.metrics import Metric


@dataclass(frozen=True)
class Evaluation:
    """The engine under test together with the metric used to rank it.

    Attributes:
        engine: The engine evaluated for each configuration.
        metric: The metric used to select the best configuration.
        data_source: Supplies the dataset, read once per distinct data source params.
        other_metrics: Secondary metrics reported alongside the primary metric.
    """

    engine: Engine
    metric: Metric
    data_source: DataSource
    other_metrics: Sequence[Metric] = field(default_factory=tuple)


__all__ = ["Evaluation"]

"""Data source implementations.

A data source supplies the labeled dataset as an ordered sequence of
`DataPoint`s. The evaluation core only relies on that ordering being stable
between reads, so fold assignment is reproducible.
"""

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger
import polars as pl
from sklearn.datasets import make_classification

from evalflow.core.data.points import DataPoint, points_from_arrays


@runtime_checkable
class DataSource(Protocol):
    """Protocol for reading the labeled dataset."""

    def read(self, params: Mapping[str, Any]) -> Sequence[DataPoint]:
        """Read the dataset.

        Args:
            params: The data source parameters of the configuration being evaluated.

        Returns:
            The data points, in a stable order.
        """
        ...


class InMemoryDataSource:
    """Serves a fixed, already materialized sequence of data points."""

    def __init__(self, points: Sequence[DataPoint]) -> None:
        self._points = tuple(points)

    def read(self, params: Mapping[str, Any]) -> Sequence[DataPoint]:
        return self._points


class TabularDataSource:
    """Reads a CSV or Parquet table with Polars.

    Recognized parameters:
        path: File to read. Falls back to the path given at construction.
        label_column: Name of the ground-truth column. Defaults to "label".
        feature_columns: Columns to use as features. Defaults to every other column.
    """

    def __init__(self, path: str | Path | None = None, label_column: str = "label") -> None:
        self._path = Path(path) if path is not None else None
        self._label_column = label_column

    def _resolve_path(self, params: Mapping[str, Any]) -> Path:
        raw = params.get("path", self._path)
        if raw is None:
            raise ValueError("TabularDataSource requires a 'path' parameter")
        return Path(raw)

    def _load(self, path: Path) -> pl.DataFrame:
        if path.suffix == ".parquet":
            return pl.read_parquet(path)
        if path.suffix == ".csv":
            return pl.read_csv(path)
        raise ValueError(f"Unsupported file type '{path.suffix}' for {path}")

    def read(self, params: Mapping[str, Any]) -> Sequence[DataPoint]:
        path = self._resolve_path(params)
        label_column = params.get("label_column", self._label_column)
        frame = self._load(path)

        if label_column not in frame.columns:
            raise ValueError(f"Label column '{label_column}' not found in {path}")

        feature_columns = list(
            params.get("feature_columns") or [c for c in frame.columns if c != label_column]
        )
        logger.debug(
            "Read {rows} rows from {path} ({features} features)",
            rows=frame.height,
            path=str(path),
            features=len(feature_columns),
        )
        return points_from_arrays(
            frame.select(feature_columns).to_numpy(),
            frame.get_column(label_column).to_numpy(),
        )


class SyntheticDataSource:
    """Generates a classification dataset with scikit-learn.

    Parameters are forwarded to `make_classification`; `seed` maps to
    `random_state` so the same parameters always yield the same points.
    """

    _DEFAULTS: dict[str, Any] = {
        "n_samples": 200,
        "n_features": 8,
        "n_informative": 4,
        "n_redundant": 0,
        "n_classes": 2,
        "seed": 0,
    }

    def read(self, params: Mapping[str, Any]) -> Sequence[DataPoint]:
        options = {**self._DEFAULTS, **params}
        seed = options.pop("seed")
        X, y = make_classification(random_state=seed, **options)
        return points_from_arrays(X, y)


__all__ = [
    "DataSource",
    "InMemoryDataSource",
    "TabularDataSource",
    "SyntheticDataSource",
]

"""Data points and data sources."""

from evalflow.core.data.points import (
    DataPoint,
    points_from_arrays,
    points_to_arrays,
)
from evalflow.core.data.sources import (
    DataSource,
    InMemoryDataSource,
    SyntheticDataSource,
    TabularDataSource,
)

__all__ = [
    "DataPoint",
    "points_from_arrays",
    "points_to_arrays",
    "DataSource",
    "InMemoryDataSource",
    "SyntheticDataSource",
    "TabularDataSource",
]

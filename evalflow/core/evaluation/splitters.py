"""K-fold splitting of a dataset into training and validation sets."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import numpy as np

from evalflow.core.evaluation.errors import InvalidFoldCount


@dataclass(frozen=True, slots=True)
class Fold:
    """One train/validation partition.

    Attributes:
        index: The fold index, in `[0, k)`.
        training: Points used to train this fold's model.
        validation: Held-out points scored for this fold.
    """

    index: int
    training: tuple[Any, ...]
    validation: tuple[Any, ...]


@runtime_checkable
class FoldSplitter(Protocol):
    """Protocol for splitting a dataset into k folds."""

    def split(self, dataset: Sequence[Any], k: int) -> list[Fold]:
        """Split the dataset into k (training, validation) folds.

        Args:
            dataset: The points to split, in a stable order.
            k: The number of folds.

        Returns:
            The k folds, ordered by index.

        Raises:
            InvalidFoldCount: If `k < 2` or `k > len(dataset)`.
        """
        ...


def validate_fold_count(k: int, size: int) -> None:
    """Raise `InvalidFoldCount` unless `2 <= k <= size`."""
    if k < 2 or k > size:
        raise InvalidFoldCount(k, size)


class KFoldSplitter:
    """Assigns the point at position `p` of the enumeration order to fold `p mod k`.

    The enumeration order is the dataset order, or a permutation of it
    drawn from `seed` when `shuffle` is set. Either way the split only
    depends on the dataset and k, so it is reproducible.
    """

    def __init__(self, shuffle: bool = False, seed: int | None = None) -> None:
        """Initialize the splitter.

        Args:
            shuffle: Whether to permute the enumeration order before assignment.
            seed: Seed for the permutation. Required for reproducible shuffles.
        """
        self._shuffle = shuffle
        self._seed = seed

    def fold_assignments(self, size: int, k: int) -> np.ndarray:
        """Compute the fold index of every position of the dataset."""
        validate_fold_count(k, size)

        if self._shuffle:
            order = np.random.default_rng(self._seed).permutation(size)
        else:
            order = np.arange(size)

        assignments = np.empty(size, dtype=np.int64)
        assignments[order] = np.arange(size) % k
        return assignments

    def split(self, dataset: Sequence[Any], k: int) -> list[Fold]:
        points = tuple(dataset)
        assignments = self.fold_assignments(len(points), k)

        return [
            Fold(
                index=i,
                training=tuple(p for p, fold in zip(points, assignments) if fold != i),
                validation=tuple(p for p, fold in zip(points, assignments) if fold == i),
            )
            for i in range(k)
        ]


__all__ = [
    "Fold",
    "FoldSplitter",
    "KFoldSplitter",
    "validate_fold_count",
]

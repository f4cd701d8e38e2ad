"""Small helpers over output vectors."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .types import Array


def index_of_highest_value(values: Sequence[float], floor: float = 0.0) -> int:
    """Return the index of the first value strictly greater than all before it.

    A value must beat ``floor`` to count, so an empty or all non-positive
    vector yields ``-1``. Later ties never replace an earlier maximum.
    """

    best_index = -1
    best_value = floor
    for index, value in enumerate(values):
        if value > best_value:
            best_index = index
            best_value = value
    return best_index


def sorted_indices_descending(values: Sequence[float]) -> tuple[Array, Array]:
    """Return ``(indices, values)`` ordered from highest to lowest value.

    Sorts ascending with a stable sort and then reverses the whole array, so
    equal values come out in reverse index order.
    """

    values = np.asarray(values, dtype=np.float32)
    order = np.argsort(values, kind="stable")[::-1]
    return order.astype(np.int64), values[order]


def one_hot(label: int, size: int, into: Array | None = None) -> Array:
    """Encode ``label`` as a float32 one-hot vector of length ``size``."""

    if into is None or into.shape[0] != size:
        into = np.zeros(size, dtype=np.float32)
    else:
        into.fill(0.0)
    if 0 <= label < size:
        into[label] = 1.0
    return into


__all__ = ["index_of_highest_value", "one_hot", "sorted_indices_descending"]

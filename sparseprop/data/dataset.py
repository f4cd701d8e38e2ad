"""In-memory labelled samples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Sequence

import numpy as np

from ..core.rng import Seed, make_rng
from ..core.types import Array

_SCALE = np.float32(255.0)


@dataclass(frozen=True, eq=False)
class DataPoint:
    """A fixed-size byte buffer and its integer label."""

    data: Array
    label: int

    def __post_init__(self) -> None:
        data = np.asarray(self.data)
        if data.dtype != np.uint8:
            data = data.astype(np.uint8)
        object.__setattr__(self, "data", data.reshape(-1))
        object.__setattr__(self, "label", int(self.label))

    def __len__(self) -> int:
        return int(self.data.shape[0])

    def to_normalized_floats(self, into: Array | None = None) -> Array:
        """Return ``data / 255`` as float32, reusing ``into`` when its length matches."""

        if into is None or into.shape[0] != self.data.shape[0]:
            into = np.empty(self.data.shape[0], dtype=np.float32)
        np.divide(self.data, _SCALE, out=into, dtype=np.float32)
        return into


class DataSet:
    """Ordered, indexable collection of :class:`DataPoint` with a fixed length."""

    def __init__(self, points: Sequence[DataPoint], *, name: str = "dataset") -> None:
        self.name = name
        self._points: List[DataPoint] = list(points)

    @classmethod
    def from_arrays(cls, inputs: Array, labels: Sequence[int], *, name: str = "dataset") -> "DataSet":
        """Build a data set from an ``(n, features)`` byte array and ``n`` labels."""

        inputs = np.asarray(inputs, dtype=np.uint8)
        labels = np.asarray(labels, dtype=np.int64).reshape(-1)
        inputs = inputs.reshape(inputs.shape[0], -1) if inputs.ndim > 1 else inputs.reshape(-1, 1)
        if inputs.shape[0] != labels.shape[0]:
            raise ValueError(
                f"Data lengths of labels ({labels.shape[0]}) and inputs ({inputs.shape[0]}) do not match"
            )
        return cls([DataPoint(row, label) for row, label in zip(inputs, labels)], name=name)

    @property
    def feature_count(self) -> int:
        return len(self._points[0]) if self._points else 0

    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index: int) -> DataPoint:
        return self._points[index]

    def __iter__(self) -> Iterator[DataPoint]:
        return iter(self._points)

    def labels(self) -> List[int]:
        return [point.label for point in self._points]

    def head(self, count: int) -> "DataSet":
        """Return a new data set holding the first ``count`` samples."""

        return DataSet(self._points[: max(0, int(count))], name=self.name)

    def shuffle(self, rng: Seed = None) -> None:
        """Permute the samples in place; every permutation is equally likely."""

        rng = make_rng(rng)
        points = self._points
        n = len(points)
        for i in range(n - 1):
            j = int(rng.integers(i, n))
            points[i], points[j] = points[j], points[i]

    def __repr__(self) -> str:
        return f"DataSet(name={self.name!r}, size={len(self)}, features={self.feature_count})"


__all__ = ["DataPoint", "DataSet"]

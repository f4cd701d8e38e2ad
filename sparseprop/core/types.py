"""Core typing contracts for sparseprop."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Protocol, Sequence, Tuple

import numpy as np

Array = np.ndarray

# (previous unit index, weight, next unit index) as supplied by a loader.
Connection = Tuple[int, float, int]


class OutputOptions(enum.Flag, boundary=enum.KEEP):
    """Which fields a progress reporter prints."""

    NONE = 0
    LAST_BATCH_PERCENTAGE = 0b0000_1000
    CURRENT_DATA = 0b0001_0000
    CURRENT_BATCH = 0b0010_0000
    CURRENT_EPOCH = 0b0100_0000
    WHEN_FINISHED = 0b1000_0000
    ALL = 0b1111_1111


class DataPointLike(Protocol):
    """A single labelled sample."""

    label: int

    def to_normalized_floats(self, into: Array | None = None) -> Array:
        """Return the sample scaled into ``[0, 1]``, reusing ``into`` when possible."""


class DataSetLike(Protocol):
    """Ordered, indexable and shuffleable collection of samples."""

    def __len__(self) -> int:
        ...

    def __getitem__(self, index: int) -> DataPointLike:
        ...

    def shuffle(self, rng: np.random.Generator) -> None:
        ...


class ProgressReporter(Protocol):
    """Receives per-sample progress and free-form status text."""

    options: OutputOptions

    def report(
        self,
        epoch: int,
        total_epochs: int,
        batch: int,
        total_batches: int,
        sample: int,
        batch_size: int,
        last_batch_accuracy: float,
    ) -> None:
        ...

    def log(self, text: str) -> None:
        ...


class NetworkSaver(Protocol):
    """Sink for a network's learning rate, layers and edges, in that order."""

    def save_learning_rate(self, learning_rate: float) -> None:
        ...

    def save_layer(self, index: int, biases: Sequence[float]) -> None:
        ...

    def create_connectivity(self, index: int) -> None:
        ...

    def save_weight(self, index: int, previous: int, next_: int, weight: float) -> None:
        ...

    def save(self) -> None:
        ...


class NetworkLoader(Protocol):
    """Source of everything needed to rebuild a network."""

    def layer_count(self) -> int:
        ...

    def learning_rate(self) -> float:
        ...

    def unit_count(self, index: int) -> int:
        ...

    def unit_biases(self, index: int) -> Sequence[float]:
        ...

    def connections(self, index: int) -> Sequence[Connection]:
        ...


@dataclass(frozen=True)
class EpochStats:
    """Summary of one training epoch returned by ``Network.learn_over_data``."""

    epoch: int
    samples: int
    batches: int
    train_accuracy: float
    test_accuracy: float | None = None

    def as_metrics(self) -> dict:
        metrics = {
            "samples": float(self.samples),
            "batches": float(self.batches),
            "accuracy": float(self.train_accuracy),
        }
        if self.test_accuracy is not None:
            metrics["test_accuracy"] = float(self.test_accuracy)
        return metrics


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`sparseprop.training.pipelines.run_pipeline`."""

    epochs: int
    samples: int
    final_accuracy: float
    test_accuracy: float | None
    metrics_path: str
    manifest_path: str
    network_path: str = ""

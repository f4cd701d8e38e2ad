"""Per-batch gradient accumulation buffers."""

from __future__ import annotations

from typing import List

import numpy as np

from .errors import InvariantViolation
from .types import Array


class LayerChange:
    """Bias deltas and per-unit local gradients for one non-input layer."""

    def __init__(self, layer_index: int, size: int) -> None:
        self.layer_index = layer_index
        self.biases = np.zeros(size, dtype=np.float32)
        self.delta = np.zeros(size, dtype=np.float32)

    def bias_of(self, index: int) -> np.float32:
        return self.biases[index]

    def add_bias(self, index: int, value: float) -> None:
        self.biases[index] += value

    def set_delta(self, index: int, value: float) -> None:
        self.delta[index] = value

    def reset(self) -> None:
        self.biases.fill(0.0)
        self.delta.fill(0.0)


class ConnectivityChange:
    """Weight deltas aligned one-to-one with a connectivity's edge arena."""

    def __init__(self, connectivity, *, strict: bool = False) -> None:
        self.connectivity_index = connectivity.index
        self.strict = strict
        self._connectivity = connectivity
        self.deltas = np.zeros(connectivity.edge_count, dtype=np.float32)

    def add_at(self, offsets: Array, values: Array) -> None:
        """Add ``values`` to the cells at arena ``offsets`` (offsets must be unique)."""

        self.deltas[offsets] += values

    def add_between(self, previous, next_, value: float) -> None:
        if value == 0:
            return
        if self.strict:
            self._check_endpoints(previous, next_)
        p = getattr(previous, "index", previous)
        n = getattr(next_, "index", next_)
        self.deltas[self._connectivity.offset_of(p, n)] += value

    def between(self, previous: int, next_: int) -> np.float32:
        return self.deltas[self._connectivity.offset_of(previous, next_)]

    def reset(self) -> None:
        self.deltas.fill(0.0)

    def _check_endpoints(self, previous, next_) -> None:
        connectivity = self._connectivity
        for endpoint, expected, role in (
            (previous, connectivity.previous_layer_index, "previous"),
            (next_, connectivity.next_layer_index, "next"),
        ):
            layer_index = getattr(endpoint, "layer_index", expected)
            if layer_index != expected:
                raise InvariantViolation(
                    f"Neuron mismatch, {role} unit is in layer {layer_index}, expected {expected}"
                )


class GradientAccumulator:
    """All bias and weight deltas collected over one batch for a network.

    Created once per training run, zeroed with :meth:`reset` after every
    batch and read once per batch by ``Network.apply_changes``.
    """

    def __init__(self, network) -> None:
        strict = network.strict
        self.layer_sizes = tuple(len(layer) for layer in network.layers)
        self.edge_counts = tuple(c.edge_count for c in network.connectivities)
        self._layer_changes: List[LayerChange] = [
            LayerChange(layer.index, len(layer)) for layer in network.layers[1:]
        ]
        self._connectivity_changes: List[ConnectivityChange] = [
            ConnectivityChange(connectivity, strict=strict) for connectivity in network.connectivities
        ]

    def layer_change(self, index: int) -> LayerChange:
        """Change for layer ``index``; the input layer (0) has none."""

        if index < 1:
            raise IndexError("The input layer has no bias changes")
        return self._layer_changes[index - 1]

    def connectivity_change(self, index: int) -> ConnectivityChange:
        return self._connectivity_changes[index]

    def matches(self, network) -> bool:
        return self.layer_sizes == tuple(len(layer) for layer in network.layers) and self.edge_counts == tuple(
            c.edge_count for c in network.connectivities
        )

    def reset(self) -> None:
        for change in self._layer_changes:
            change.reset()
        for change in self._connectivity_changes:
            change.reset()


__all__ = ["ConnectivityChange", "GradientAccumulator", "LayerChange"]

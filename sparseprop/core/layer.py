"""Ordered, fixed-size collections of units."""

from __future__ import annotations

from typing import Iterator, List, Sequence

import numpy as np

from .activations import Activation
from .errors import InvariantViolation
from .rng import Seed, make_rng, uniform_centered
from .types import Array
from .unit import Unit


class Layer:
    """One depth of the network.

    Biases and outputs are stored in two float32 arrays owned by the layer;
    each :class:`Unit` is a handle onto one slot of those arrays.
    """

    def __init__(
        self,
        index: int,
        biases: Sequence[float],
        activation: Activation = Activation.TANH,
        *,
        strict: bool = False,
    ) -> None:
        count = len(biases)
        if count <= 0:
            raise ValueError("Cannot make a layer with no or negative units")
        self.index = int(index)
        self.activation = Activation.from_name(activation)
        self.strict = strict
        self.biases = np.asarray(biases, dtype=np.float32).copy()
        self.outputs = np.zeros(count, dtype=np.float32)
        self.units: List[Unit] = [
            Unit(self.index, i, self.biases, self.outputs, self.activation, strict=strict)
            for i in range(count)
        ]

    @classmethod
    def random(
        cls,
        index: int,
        count: int,
        seed: Seed = None,
        activation: Activation = Activation.TANH,
        *,
        strict: bool = False,
    ) -> "Layer":
        """Create ``count`` units with biases drawn from ``[-0.5, 0.5)``."""

        if count <= 0:
            raise ValueError("Cannot make a layer with no or negative units")
        return cls(index, uniform_centered(make_rng(seed), int(count)), activation, strict=strict)

    def __len__(self) -> int:
        return len(self.units)

    def __getitem__(self, index: int) -> Unit:
        return self.units[index]

    def __iter__(self) -> Iterator[Unit]:
        return iter(self.units)

    # ------------------------------------------------------------------
    # Forward

    def pulse(self, previous_layer: "Layer", connectivity) -> None:
        """Recompute every unit's output from ``previous_layer``."""

        if self.strict:
            self._check_neighbours(previous_layer, connectivity)
        for unit in self.units:
            unit.calculate_output(previous_layer, connectivity)

    def set_input(self, values: Sequence[float]) -> None:
        """Copy ``values`` straight into the outputs (identity activation)."""

        if values is None or len(values) != len(self.units):
            raise ValueError(
                f"Input of length {0 if values is None else len(values)} does not match "
                f"layer {self.index} with {len(self.units)} units"
            )
        self.outputs[:] = np.asarray(values, dtype=np.float32)

    def get_output(self, into: Array | None = None) -> Array:
        """Snapshot the outputs, reusing ``into`` when it has the right length."""

        if into is None or into.shape[0] != len(self.units):
            return self.outputs.copy()
        into[:] = self.outputs
        return into

    # ------------------------------------------------------------------
    # Backward

    def calculate_changes(
        self,
        layer_change,
        weight_change,
        previous_layer: "Layer",
        connectivity,
        delta_or_error: Array,
        next_connectivity=None,
    ) -> Array:
        """Compute and store every unit's delta, accumulating its gradients.

        Without ``next_connectivity`` this is the output layer and
        ``delta_or_error`` holds one error value per unit; otherwise it is
        the delta vector of the following layer.
        """

        if self.strict:
            self._check_neighbours(previous_layer, connectivity)
            if layer_change.layer_index != self.index:
                raise InvariantViolation(
                    f"Change for layer {layer_change.layer_index} used by layer {self.index}"
                )
            if weight_change.connectivity_index != connectivity.index:
                raise InvariantViolation(
                    f"Weight change {weight_change.connectivity_index} paired with "
                    f"connectivity {connectivity.index}"
                )
        if next_connectivity is None:
            if len(delta_or_error) != len(self.units):
                raise ValueError(
                    f"Error of length {len(delta_or_error)} does not match output layer "
                    f"with {len(self.units)} units"
                )
            for unit in self.units:
                delta = unit.calculate_changes(
                    layer_change, weight_change, previous_layer, connectivity, delta_or_error[unit.index]
                )
                layer_change.set_delta(unit.index, delta)
        else:
            if self.strict and next_connectivity.previous_layer_index != self.index:
                raise InvariantViolation(
                    f"Connectivity {next_connectivity.index} does not follow layer {self.index}"
                )
            for unit in self.units:
                delta = unit.calculate_error_then_changes(
                    layer_change,
                    weight_change,
                    previous_layer,
                    connectivity,
                    next_connectivity,
                    delta_or_error,
                )
                layer_change.set_delta(unit.index, delta)
        return layer_change.delta

    def apply_changes(self, layer_change, learning_rate: float) -> None:
        if layer_change.layer_index != self.index:
            raise ValueError(
                f"Change for layer {layer_change.layer_index} applied to layer {self.index}"
            )
        for unit in self.units:
            unit.apply_changes(layer_change.bias_of(unit.index), learning_rate)

    # ------------------------------------------------------------------
    # Helpers

    def _check_neighbours(self, previous_layer: "Layer", connectivity) -> None:
        if connectivity.next_layer_index != self.index:
            raise InvariantViolation(
                f"Connectivity {connectivity.index} does not lead into layer {self.index}"
            )
        if previous_layer.index != connectivity.previous_layer_index:
            raise InvariantViolation(
                f"Layer {previous_layer.index} is not the previous layer of connectivity "
                f"{connectivity.index}"
            )

    def __repr__(self) -> str:
        return f"Layer(index={self.index}, units={len(self.units)}, activation={self.activation.value})"


__all__ = ["Layer"]

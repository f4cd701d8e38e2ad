"""A single scalar activation site."""

from __future__ import annotations

import numpy as np

from .activations import Activation
from .errors import InvariantViolation
from .types import Array


class Unit:
    """Handle onto one slot of its layer's bias and output arrays.

    The unit keeps only its layer index and its own index; the arrays it
    reads and writes are owned by the layer, and neighbouring layers and
    connectivities are handed in by the caller on every call.
    """

    __slots__ = ("layer_index", "index", "activation", "strict", "_biases", "_outputs")

    def __init__(
        self,
        layer_index: int,
        index: int,
        biases: Array,
        outputs: Array,
        activation: Activation = Activation.TANH,
        *,
        strict: bool = False,
    ) -> None:
        self.layer_index = layer_index
        self.index = index
        self.activation = activation
        self.strict = strict
        self._biases = biases
        self._outputs = outputs

    @property
    def bias(self) -> np.float32:
        return self._biases[self.index]

    @property
    def output(self) -> np.float32:
        return self._outputs[self.index]

    @output.setter
    def output(self, value: float) -> None:
        self._outputs[self.index] = value

    def calculate_output(self, previous_layer, connectivity) -> None:
        """output = activation(bias + sum(upstream output * weight))."""

        previous, offsets = connectivity.incoming_edges(self.index)
        total = self._biases[self.index] + np.dot(
            previous_layer.outputs[previous], connectivity.weights[offsets]
        )
        self._outputs[self.index] = self.activation.activate(total)

    def calculate_changes(self, layer_change, weight_change, previous_layer, connectivity, error) -> np.float32:
        """Accumulate this unit's bias and incoming-weight gradients for ``error``.

        Returns the unit's delta so the layer can hand it to the layer before.
        """

        derivative = self.activation.derivative(self._outputs[self.index])
        if self.strict and derivative < 0:
            raise InvariantViolation(
                f"Negative {self.activation.value} derivative {derivative} at unit "
                f"{self.index} of layer {self.layer_index}"
            )
        delta = np.float32(derivative * np.float32(error))

        layer_change.add_bias(self.index, delta)
        previous, offsets = connectivity.incoming_edges(self.index)
        if offsets.size:
            weight_change.add_at(offsets, previous_layer.outputs[previous] * delta)
        return delta

    def calculate_error_then_changes(
        self,
        layer_change,
        weight_change,
        previous_layer,
        connectivity,
        next_connectivity,
        next_delta: Array,
    ) -> np.float32:
        """Back-propagate ``next_delta`` over outgoing edges, then accumulate."""

        following, offsets = next_connectivity.outgoing_edges(self.index)
        error = np.dot(next_connectivity.weights[offsets], next_delta[following])
        return self.calculate_changes(layer_change, weight_change, previous_layer, connectivity, error)

    def apply_changes(self, bias_change: float, learning_rate: float) -> None:
        self._biases[self.index] -= np.float32(bias_change) * np.float32(learning_rate)

    def __repr__(self) -> str:
        return f"Unit(layer={self.layer_index}, index={self.index}, bias={self.bias}, output={self.output})"


__all__ = ["Unit"]

"""Activation functions for sparseprop units."""

from __future__ import annotations

import enum

import numpy as np

from .types import Array


def _as_float32(x):
    if np.isscalar(x):
        return np.float32(x)
    return np.asarray(x, dtype=np.float32)


def tanh(x: Array) -> Array:
    """Return the hyperbolic tangent in single precision."""

    return np.tanh(_as_float32(x))


def sigmoid(x: Array) -> Array:
    """Return the logistic function in single precision."""

    return np.float32(1.0) / (np.float32(1.0) + np.exp(-_as_float32(x)))


class Activation(str, enum.Enum):
    """The closed set of activation functions a unit may use.

    Derivatives are expressed in terms of the unit's *output* (the already
    activated value), which is all a unit keeps after a forward pulse.
    """

    TANH = "tanh"
    SIGMOID = "sigmoid"

    def activate(self, value):
        if self is Activation.TANH:
            return tanh(value)
        return sigmoid(value)

    def derivative(self, output):
        """Slope at an already activated ``output``.

        tanh gives ``1 - y**2`` directly; ``y`` is not passed through tanh again.
        """

        output = _as_float32(output)
        if self is Activation.TANH:
            return np.float32(1.0) - output * output
        return output * (np.float32(1.0) - output)

    @classmethod
    def from_name(cls, name: "str | Activation") -> "Activation":
        if isinstance(name, Activation):
            return name
        try:
            return cls(str(name).lower())
        except ValueError as exc:
            available = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown activation {name!r}. Available: {available}") from exc


__all__ = ["Activation", "sigmoid", "tanh"]

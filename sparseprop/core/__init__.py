"""Core engine: units, layers, sparse connectivities and the network."""

from . import activations, arrays, errors, losses, types
from .accumulator import ConnectivityChange, GradientAccumulator, LayerChange
from .activations import Activation
from .connectivity import Connectivity
from .errors import InvariantViolation
from .layer import Layer
from .losses import ErrorFunction
from .network import Network
from .types import EpochStats, OutputOptions, RunResult
from .unit import Unit

__all__ = [
    "Activation",
    "Connectivity",
    "ConnectivityChange",
    "EpochStats",
    "ErrorFunction",
    "GradientAccumulator",
    "InvariantViolation",
    "Layer",
    "LayerChange",
    "Network",
    "OutputOptions",
    "RunResult",
    "Unit",
    "activations",
    "arrays",
    "errors",
    "losses",
    "types",
]

"""sparseprop public API."""

from .core import (
    Activation,
    Connectivity,
    EpochStats,
    ErrorFunction,
    GradientAccumulator,
    InvariantViolation,
    Layer,
    Network,
    OutputOptions,
    RunResult,
    Unit,
)
from .data import DataPoint, DataSet, get_dataset
from .io import XmlNetworkLoader, XmlNetworkSaver
from .training.pipelines import load_preset, presets, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "Activation",
    "Connectivity",
    "DataPoint",
    "DataSet",
    "EpochStats",
    "ErrorFunction",
    "GradientAccumulator",
    "InvariantViolation",
    "Layer",
    "Network",
    "OutputOptions",
    "RunResult",
    "Unit",
    "XmlNetworkLoader",
    "XmlNetworkSaver",
    "get_dataset",
    "load_preset",
    "presets",
    "run_pipeline",
]

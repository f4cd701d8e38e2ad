"""Data sets, IDX files and the dataset registry."""

from . import loaders  # noqa: F401  (register built-in datasets)
from .dataset import DataPoint, DataSet
from .idx import build_offline_fixture, load_idx_dataset
from .registry import DatasetSpec, available_datasets, get_dataset, register_dataset

__all__ = [
    "DataPoint",
    "DataSet",
    "DatasetSpec",
    "available_datasets",
    "build_offline_fixture",
    "get_dataset",
    "load_idx_dataset",
    "register_dataset",
]

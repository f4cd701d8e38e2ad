"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

from .dataset import DataSet


@dataclass(frozen=True)
class DatasetSpec:
    """Train and test splits of a registered dataset.

    Attributes
    ----------
    input_size:
        Number of values in every sample, i.e. the input layer width.
    output_size:
        Number of classes, i.e. the output layer width.
    provenance:
        Where the samples came from (directory, offline fixture, generator
        parameters). Written verbatim into the run manifest.
    """

    name: str
    train: DataSet
    test: DataSet | None
    input_size: int
    output_size: int
    provenance: Dict[str, Any] = field(default_factory=dict)


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    Works as a decorator::

        @register_dataset("xor")
        def make_xor(**options):
            ...

    or directly with ``register_dataset("xor", make_xor)``.
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Build the :class:`DatasetSpec` registered as ``dataset``."""

    if dataset not in _REGISTRY:
        raise KeyError(f"Unknown dataset: {dataset}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if spec.input_size <= 0 or spec.output_size <= 0:
        raise ValueError(f"Dataset {spec.name!r} must have positive input and output sizes")
    for split in (spec.train, spec.test):
        if split is not None and len(split) and split.feature_count != spec.input_size:
            raise ValueError(
                f"Dataset {spec.name!r} declares {spec.input_size} inputs but "
                f"{split.name!r} samples hold {split.feature_count}"
            )


__all__ = ["DatasetSpec", "available_datasets", "get_dataset", "register_dataset"]

"""MNIST digits from IDX files, with an offline fixture fallback."""

from __future__ import annotations

import os
from pathlib import Path

from ..idx import (
    TEST_IMAGES,
    TEST_LABELS,
    TRAIN_IMAGES,
    TRAIN_LABELS,
    build_offline_fixture,
    load_idx_dataset,
)
from ..registry import DatasetSpec, register_dataset

DEFAULT_CACHE_DIR = Path(os.environ.get("SPARSEPROP_CACHE_DIR") or Path.home() / ".cache" / "sparseprop")


def _resolve(directory: Path, *names: str) -> Path:
    """Return the first existing file among ``names``; fall back to the first name."""

    for candidate in names:
        path = directory / candidate
        if path.is_file():
            return path
    return directory / names[0]


@register_dataset("mnist")
def build_mnist(
    *,
    data_dir: str | Path | None = None,
    cache_dir: str | Path | None = None,
    max_items: int | None = None,
    **_: object,
) -> DatasetSpec:
    """Load the digit archives from ``data_dir``.

    Without ``data_dir`` a deterministic fixture is written to
    ``<cache_dir>/offline/mnist`` (once) and loaded instead.
    """

    if data_dir is not None:
        root = Path(data_dir)
        provenance: dict[str, object] = {"mode": "directory", "path": str(root)}
    else:
        root = Path(cache_dir or DEFAULT_CACHE_DIR) / "offline" / "mnist"
        if not (root / TRAIN_LABELS).is_file():
            build_offline_fixture(root)
        provenance = {"mode": "offline", "source": "fixture", "path": str(root)}

    train = load_idx_dataset(
        _resolve(root, TRAIN_LABELS, "labels.idx1-ubyte"),
        _resolve(root, TRAIN_IMAGES, "images.idx3-ubyte"),
        name="mnist-train",
    )
    test = load_idx_dataset(
        _resolve(root, TEST_LABELS, "t10k-labels.idx1-ubyte"),
        _resolve(root, TEST_IMAGES, "t10k-images.idx3-ubyte"),
        name="mnist-test",
    )
    if max_items is not None:
        train = train.head(max_items)
        test = test.head(max(1, min(int(max_items), len(test))))

    provenance["max_items"] = max_items
    provenance["train_items"] = len(train)
    provenance["test_items"] = len(test)
    return DatasetSpec(
        name="mnist",
        train=train,
        test=test,
        input_size=train.feature_count,
        output_size=10,
        provenance=provenance,
    )


__all__ = ["DEFAULT_CACHE_DIR", "build_mnist"]

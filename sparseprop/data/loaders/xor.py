"""The four XOR truth-table rows as a two-class data set."""

from __future__ import annotations

import numpy as np

from ..dataset import DataSet
from ..registry import DatasetSpec, register_dataset

# Inputs are bytes, so 255 normalises to 1.0.
_INPUTS = np.array([[0, 0], [0, 255], [255, 0], [255, 255]], dtype=np.uint8)
_LABELS = np.array([0, 1, 1, 0], dtype=np.int64)


def xor_dataset(repeat: int = 1, *, name: str = "xor") -> DataSet:
    """Return the truth table repeated ``repeat`` times."""

    if repeat < 1:
        raise ValueError("repeat must be at least 1")
    return DataSet.from_arrays(np.tile(_INPUTS, (repeat, 1)), np.tile(_LABELS, repeat), name=name)


@register_dataset("xor")
def build_xor(*, repeat: int = 25, **_: object) -> DatasetSpec:
    return DatasetSpec(
        name="xor",
        train=xor_dataset(repeat, name="xor-train"),
        test=xor_dataset(1, name="xor-test"),
        input_size=2,
        output_size=2,
        provenance={"type": "xor", "repeat": int(repeat)},
    )


__all__ = ["build_xor", "xor_dataset"]

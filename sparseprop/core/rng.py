"""Random number generator helpers."""

from __future__ import annotations

import numpy as np

Seed = int | np.random.Generator | None


def make_rng(seed: Seed = None) -> np.random.Generator:
    """Return ``seed`` if it is already a generator, otherwise seed a new one."""

    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def uniform_centered(rng: np.random.Generator, size: int) -> np.ndarray:
    """Draw ``size`` float32 values uniformly from ``[-0.5, 0.5)``."""

    return (rng.random(size, dtype=np.float32) - np.float32(0.5)).astype(np.float32)

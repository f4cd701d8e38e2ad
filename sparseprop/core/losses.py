"""Error functions used to compare network output against a target."""

from __future__ import annotations

import enum

import numpy as np


class ErrorFunction(str, enum.Enum):
    """Closed set of error functions; only squared error is supported."""

    SQUARED = "squared"

    def error(self, actual, target):
        diff = np.asarray(actual, dtype=np.float32) - np.asarray(target, dtype=np.float32)
        return np.float32(0.5) * diff * diff

    def derivative(self, actual, target, out=None):
        """Return dE/d(actual); ``out`` is filled in place when given."""

        return np.subtract(
            np.asarray(actual, dtype=np.float32),
            np.asarray(target, dtype=np.float32),
            out=out,
        )

    @classmethod
    def from_name(cls, name: "str | ErrorFunction") -> "ErrorFunction":
        if isinstance(name, ErrorFunction):
            return name
        aliases = {"mse": "squared", "squared_error": "squared"}
        key = aliases.get(str(name).lower(), str(name).lower())
        try:
            return cls(key)
        except ValueError as exc:
            raise ValueError(f"Unknown error function: {name!r}") from exc


__all__ = ["ErrorFunction"]

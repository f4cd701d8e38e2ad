"""Exception types and the strict-mode switch."""

from __future__ import annotations

import os

STRICT_ENV = "SPARSEPROP_STRICT"


class InvariantViolation(AssertionError):
    """Raised in strict mode when an internal invariant is broken.

    These indicate programming errors (mismatched layers, an activation whose
    derivative went negative) rather than bad user input.
    """


def resolve_strict(strict: bool | None) -> bool:
    """Return ``strict`` or, when unset, the ``SPARSEPROP_STRICT`` environment flag."""

    if strict is not None:
        return bool(strict)
    return os.environ.get(STRICT_ENV, "0").strip().lower() in {"1", "true", "yes", "on"}

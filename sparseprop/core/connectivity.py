"""Sparse, bidirectionally indexed edge sets between adjacent layers."""

from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

import numpy as np

from .errors import InvariantViolation
from .rng import Seed, make_rng, uniform_centered
from .types import Array

_EMPTY_INDEX = np.zeros(0, dtype=np.int64)


class Connectivity:
    """Weighted edges from layer ``index`` to layer ``index + 1``.

    Edges live in a single arena (previous index, next index, weight) and are
    reached through two adjacency tables of arena offsets, one per previous
    unit and one per next unit, plus an endpoint-pair map for O(1) lookup.
    Both views point at the same arena slot, so they cannot disagree.
    """

    def __init__(
        self,
        index: int,
        previous_size: int,
        next_size: int,
        *,
        strict: bool = False,
    ) -> None:
        if previous_size <= 0 or next_size <= 0:
            raise ValueError("Cannot connect layers with no or negative units")
        self.index = int(index)
        self.previous_size = int(previous_size)
        self.next_size = int(next_size)
        self.strict = strict
        self._previous: List[int] = []
        self._next: List[int] = []
        self._weights = np.zeros(max(previous_size, next_size), dtype=np.float32)
        self._by_previous: List[List[int]] = [[] for _ in range(previous_size)]
        self._by_next: List[List[int]] = [[] for _ in range(next_size)]
        self._offsets: Dict[Tuple[int, int], int] = {}
        self._incoming_cache: List[Tuple[Array, Array] | None] = [None] * next_size
        self._outgoing_cache: List[Tuple[Array, Array] | None] = [None] * previous_size

    @property
    def previous_layer_index(self) -> int:
        return self.index

    @property
    def next_layer_index(self) -> int:
        return self.index + 1

    @property
    def edge_count(self) -> int:
        return len(self._previous)

    @property
    def weights(self) -> Array:
        """View of the arena weights, indexed by edge offset."""

        return self._weights[: self.edge_count]

    # ------------------------------------------------------------------
    # Wiring

    def link_units(self, previous, next_, weight: float) -> int:
        """Add the edge ``previous -> next_`` and return its arena offset.

        Endpoints may be unit indices or :class:`~sparseprop.core.unit.Unit`
        handles; a handle from any layer other than the expected adjacent one
        is rejected.
        """

        p = self._resolve(previous, self.previous_layer_index, self.previous_size, "previous")
        n = self._resolve(next_, self.next_layer_index, self.next_size, "next")
        if (p, n) in self._offsets:
            raise ValueError(f"Units {p} -> {n} are already linked in connectivity {self.index}")

        offset = self.edge_count
        if offset == self._weights.shape[0]:
            grown = np.zeros(max(1, offset * 2), dtype=np.float32)
            grown[:offset] = self._weights
            self._weights = grown
        self._weights[offset] = np.float32(weight)
        self._previous.append(p)
        self._next.append(n)
        self._by_previous[p].append(offset)
        self._by_next[n].append(offset)
        self._offsets[(p, n)] = offset
        self._incoming_cache[n] = None
        self._outgoing_cache[p] = None
        return offset

    def link_all(self, seed: Seed = None) -> None:
        """Fully connect both layers with weights drawn from ``[-0.5, 0.5)``."""

        rng = make_rng(seed)
        for p in range(self.previous_size):
            weights = uniform_centered(rng, self.next_size)
            for n in range(self.next_size):
                self.link_units(p, n, weights[n])

    # ------------------------------------------------------------------
    # Read primitives

    def get_weight(self, previous: int, next_: int) -> np.float32:
        return self._weights[self.offset_of(previous, next_)]

    def offset_of(self, previous: int, next_: int) -> int:
        try:
            return self._offsets[(int(previous), int(next_))]
        except KeyError as exc:
            raise KeyError(
                f"No edge {previous} -> {next_} in connectivity {self.index}"
            ) from exc

    def has_edge(self, previous: int, next_: int) -> bool:
        return (int(previous), int(next_)) in self._offsets

    def outgoing_of(self, previous: int) -> List[int]:
        """Next-layer indices reachable from ``previous``."""

        return [self._next[offset] for offset in self._by_previous[previous]]

    def incoming_of(self, next_: int) -> List[int]:
        """Previous-layer indices feeding ``next_``."""

        return [self._previous[offset] for offset in self._by_next[next_]]

    def incoming_edges(self, next_: int) -> Tuple[Array, Array]:
        """Return ``(previous indices, offsets)`` arrays for edges into ``next_``."""

        cached = self._incoming_cache[next_]
        if cached is None:
            offsets = self._by_next[next_]
            if offsets:
                cached = (
                    np.fromiter((self._previous[o] for o in offsets), dtype=np.int64, count=len(offsets)),
                    np.asarray(offsets, dtype=np.int64),
                )
            else:
                cached = (_EMPTY_INDEX, _EMPTY_INDEX)
            self._incoming_cache[next_] = cached
        return cached

    def outgoing_edges(self, previous: int) -> Tuple[Array, Array]:
        """Return ``(next indices, offsets)`` arrays for edges out of ``previous``."""

        cached = self._outgoing_cache[previous]
        if cached is None:
            offsets = self._by_previous[previous]
            if offsets:
                cached = (
                    np.fromiter((self._next[o] for o in offsets), dtype=np.int64, count=len(offsets)),
                    np.asarray(offsets, dtype=np.int64),
                )
            else:
                cached = (_EMPTY_INDEX, _EMPTY_INDEX)
            self._outgoing_cache[previous] = cached
        return cached

    def edges(self) -> Iterator[Tuple[int, int, float]]:
        """Yield ``(previous, next, weight)`` grouped by previous unit."""

        for p in range(self.previous_size):
            for offset in self._by_previous[p]:
                yield p, self._next[offset], float(self._weights[offset])

    # ------------------------------------------------------------------
    # Learning

    def apply_changes(self, change, learning_rate: float) -> None:
        """Subtract ``accumulated delta * learning_rate`` from every edge weight."""

        if self.strict and change.connectivity_index != self.index:
            raise InvariantViolation(
                f"Change for connectivity {change.connectivity_index} applied to {self.index}"
            )
        deltas = change.deltas
        if deltas.shape[0] != self.edge_count:
            raise ValueError(
                f"Change holds {deltas.shape[0]} edges, connectivity {self.index} has {self.edge_count}"
            )
        moved = deltas != 0
        if moved.any():
            self.weights[moved] -= deltas[moved] * np.float32(learning_rate)

    # ------------------------------------------------------------------
    # Helpers

    def _resolve(self, endpoint, layer_index: int, size: int, role: str) -> int:
        expected = getattr(endpoint, "layer_index", None)
        if expected is not None:
            if expected != layer_index:
                raise ValueError(
                    f"{role.capitalize()} unit belongs to layer {expected}, "
                    f"connectivity {self.index} expects layer {layer_index}"
                )
            endpoint = endpoint.index
        index = int(endpoint)
        if not 0 <= index < size:
            raise IndexError(
                f"{role.capitalize()} unit {index} is outside layer {layer_index} of size {size}"
            )
        return index

    def __repr__(self) -> str:
        return (
            f"Connectivity(index={self.index}, previous_size={self.previous_size}, "
            f"next_size={self.next_size}, edges={self.edge_count})"
        )


__all__ = ["Connectivity"]

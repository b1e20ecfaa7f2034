"""Contiguous embedding storage backed by numpy.

The store owns a single ``(capacity, dim)`` float32 matrix plus parallel
per-slot frequency and timestamp arrays. It grows by reallocating and
copying, so slot indices stay valid across growth but any view into the
old buffer does not: every public read returns a copy.

The store is not thread-safe on its own. Its owner (the concept registry)
serialises access.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

import numpy as np

from ..domain.exceptions import (
    DimensionMismatchError,
    InvariantViolationError,
    SlotOutOfBoundsError,
)

logger = logging.getLogger(__name__)

DEFAULT_GROWTH_INCREMENT = 1000


def as_vector(values: Sequence[float] | np.ndarray, dim: int) -> np.ndarray:
    """Coerce values into a float32 vector of exactly ``dim`` entries.

    Shorter inputs are zero-padded and longer ones truncated. Anything that
    is not one-dimensional is rejected.

    Args:
        values: Input values.
        dim: Target dimension.

    Returns:
        A new float32 array of shape ``(dim,)``.
    """
    arr = np.asarray(values, dtype=np.float32)
    if arr.ndim != 1:
        raise DimensionMismatchError(dim, arr.shape)

    out = np.zeros(dim, dtype=np.float32)
    n = min(dim, arr.shape[0])
    out[:n] = arr[:n]
    return out


def normalized(vector: np.ndarray) -> np.ndarray:
    """Return a unit-length copy of a vector (zero vectors stay zero)."""
    vec = np.array(vector, dtype=np.float32)
    magnitude = float(np.linalg.norm(vec))
    if magnitude == 0.0:
        return vec
    return vec / magnitude


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors; 0.0 if either is zero or lengths differ."""
    if a is None or b is None or len(a) != len(b):
        return 0.0

    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


class VectorStore:
    """Growable fixed-dimension embedding storage."""

    def __init__(
        self,
        initial_capacity: int,
        dim: int,
        growth_increment: int = DEFAULT_GROWTH_INCREMENT,
        growth_strategy: str = "fixed",
    ) -> None:
        """Allocate zeroed storage.

        Args:
            initial_capacity: Number of slots reserved up front.
            dim: Embedding dimension.
            growth_increment: Slots added per growth with the "fixed" strategy.
            growth_strategy: "fixed" (add growth_increment) or
                "multiplicative" (double the capacity).
        """
        self.dim = dim
        self.growth_increment = growth_increment
        self.growth_strategy = growth_strategy
        self._embeddings = np.zeros((initial_capacity, dim), dtype=np.float32)
        self._frequencies = np.zeros(initial_capacity, dtype=np.uint32)
        self._timestamps = np.zeros(initial_capacity, dtype=np.float64)
        self.growth_count = 0

    @property
    def capacity(self) -> int:
        """Number of allocated slots."""
        return self._embeddings.shape[0]

    def _check_slot(self, slot: int) -> None:
        if slot < 0 or slot >= self.capacity:
            raise SlotOutOfBoundsError(slot, self.capacity)

    # =========================================================================
    # Vector access
    # =========================================================================

    def write(self, slot: int, values: Sequence[float] | np.ndarray) -> None:
        """Copy values into a slot, padding or truncating to ``dim``."""
        self._check_slot(slot)
        self._embeddings[slot] = as_vector(values, self.dim)

    def normalize(self, slot: int) -> None:
        """L2-normalize a slot in place. A zero vector is left untouched."""
        self._check_slot(slot)
        magnitude = float(np.linalg.norm(self._embeddings[slot]))
        if magnitude == 0.0:
            return
        self._embeddings[slot] /= magnitude

    def read(self, slot: int) -> np.ndarray:
        """Return a copy of the vector stored in a slot."""
        self._check_slot(slot)
        return self._embeddings[slot].copy()

    def similarities(self, query: np.ndarray, count: int) -> np.ndarray:
        """Cosine similarity of ``query`` against the first ``count`` slots.

        Args:
            query: Query vector of length ``dim``.
            count: Number of leading slots to scan.

        Returns:
            float64 array of length ``count``; zero rows score 0.0.
        """
        count = max(0, min(count, self.capacity))
        rows = self._embeddings[:count]
        q = normalized(as_vector(query, self.dim))

        norms = np.linalg.norm(rows, axis=1)
        safe_norms = np.where(norms > 0, norms, 1.0)
        return (rows @ q).astype(np.float64) / safe_norms

    # =========================================================================
    # Metadata
    # =========================================================================

    def touch(self, slot: int, timestamp: float | None = None) -> int:
        """Increment a slot's frequency and stamp its last-use time.

        Returns:
            The new frequency.
        """
        self._check_slot(slot)
        self._frequencies[slot] += 1
        self._timestamps[slot] = time.time() if timestamp is None else timestamp
        return int(self._frequencies[slot])

    def frequency(self, slot: int) -> int:
        self._check_slot(slot)
        return int(self._frequencies[slot])

    def set_frequency(self, slot: int, value: int) -> None:
        """Overwrite a slot's frequency (used when consolidating concepts)."""
        self._check_slot(slot)
        if value < 0:
            raise InvariantViolationError(
                f"Frequency of slot {slot} cannot be negative ({value})"
            )
        self._frequencies[slot] = value

    def timestamp(self, slot: int) -> float:
        self._check_slot(slot)
        return float(self._timestamps[slot])

    def frequencies(self, count: int) -> np.ndarray:
        """Copy of the first ``count`` frequencies."""
        return self._frequencies[:count].copy()

    # =========================================================================
    # Growth
    # =========================================================================

    def grow(self, extra: int | None = None) -> int:
        """Reallocate with more slots, preserving every existing slot.

        Args:
            extra: Slots to add. Defaults to the configured strategy.

        Returns:
            The new capacity.
        """
        old_capacity = self.capacity
        if extra is None:
            if self.growth_strategy == "multiplicative":
                extra = max(1, old_capacity)
            else:
                extra = self.growth_increment
        if extra <= 0:
            return old_capacity

        new_capacity = old_capacity + extra
        logger.info(f"Growing vector store from {old_capacity} to {new_capacity}")

        embeddings = np.zeros((new_capacity, self.dim), dtype=np.float32)
        frequencies = np.zeros(new_capacity, dtype=np.uint32)
        timestamps = np.zeros(new_capacity, dtype=np.float64)

        embeddings[:old_capacity] = self._embeddings
        frequencies[:old_capacity] = self._frequencies
        timestamps[:old_capacity] = self._timestamps

        self._embeddings = embeddings
        self._frequencies = frequencies
        self._timestamps = timestamps
        self.growth_count += 1
        return new_capacity

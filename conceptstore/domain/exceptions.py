"""Custom exceptions for the concept store.

Caller-input problems (unknown ids, unknown pattern keys, empty input) are
reported as ``None`` or empty results, never as exceptions. The classes
below cover configuration errors and internal invariant breaches.
"""

from __future__ import annotations


class ConceptStoreError(Exception):
    """Base exception for the concept store."""

    pass


class ConfigurationError(ConceptStoreError):
    """Raised when a configuration value is invalid."""

    pass


class SlotOutOfBoundsError(ConceptStoreError):
    """Raised when a vector store slot lies beyond the allocated capacity."""

    def __init__(self, slot: int, capacity: int) -> None:
        self.slot = slot
        self.capacity = capacity
        super().__init__(f"Slot {slot} is out of bounds (capacity {capacity})")


class DimensionMismatchError(ConceptStoreError):
    """Raised when a vector cannot be coerced into a 1-D embedding."""

    def __init__(self, expected: int, shape: tuple[int, ...]) -> None:
        self.expected = expected
        self.shape = shape
        super().__init__(
            f"Expected a 1-D vector of length {expected}, got shape {shape}"
        )


class InvariantViolationError(ConceptStoreError):
    """Raised when an internal invariant of the store is broken."""

    pass

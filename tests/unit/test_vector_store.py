"""Unit tests for the numpy-backed vector store."""

from __future__ import annotations

import numpy as np
import pytest

from conceptstore.domain.exceptions import (
    DimensionMismatchError,
    InvariantViolationError,
    SlotOutOfBoundsError,
)
from conceptstore.infra.vector_store import (
    VectorStore,
    as_vector,
    cosine_similarity,
    normalized,
)


class TestVectorHelpers:
    """Tests for the module-level vector helpers."""

    def test_as_vector_pads_short_input(self):
        """Short inputs are zero-padded."""
        vec = as_vector([1.0, 2.0], 4)

        assert vec.dtype == np.float32
        assert vec.tolist() == [1.0, 2.0, 0.0, 0.0]

    def test_as_vector_truncates_long_input(self):
        """Long inputs are truncated."""
        assert as_vector([1, 2, 3, 4, 5], 3).tolist() == [1.0, 2.0, 3.0]

    def test_as_vector_rejects_matrix(self):
        """Two-dimensional input is rejected."""
        with pytest.raises(DimensionMismatchError) as exc_info:
            as_vector([[1.0, 2.0], [3.0, 4.0]], 4)

        assert exc_info.value.expected == 4
        assert exc_info.value.shape == (2, 2)

    def test_normalized(self):
        """Normalization yields unit length, zero stays zero."""
        np.testing.assert_allclose(normalized(np.array([3.0, 4.0])), [0.6, 0.8])
        assert normalized(np.zeros(3)).tolist() == [0.0, 0.0, 0.0]

    def test_cosine_similarity_edge_cases(self):
        """Zero vectors, None and length mismatches score 0."""
        a = np.array([1.0, 0.0])

        assert cosine_similarity(a, np.array([0.0, 0.0])) == 0.0
        assert cosine_similarity(a, None) == 0.0
        assert cosine_similarity(a, np.array([1.0, 0.0, 0.0])) == 0.0
        assert cosine_similarity(a, a) == pytest.approx(1.0)
        assert cosine_similarity(a, np.array([0.0, 1.0])) == pytest.approx(0.0)


class TestVectorStore:
    """Tests for VectorStore."""

    def test_new_slots_are_zeroed(self):
        """Every slot starts as a zero vector with zero frequency."""
        store = VectorStore(initial_capacity=3, dim=4)

        assert store.capacity == 3
        for slot in range(3):
            assert store.read(slot).tolist() == [0.0] * 4
            assert store.frequency(slot) == 0
            assert store.timestamp(slot) == 0.0

    def test_write_and_read(self):
        """Written values come back padded to the dimension."""
        store = VectorStore(initial_capacity=2, dim=4)
        store.write(1, [1.0, 2.0])

        assert store.read(1).tolist() == [1.0, 2.0, 0.0, 0.0]

    def test_read_returns_copy(self):
        """Mutating a read vector does not touch the store."""
        store = VectorStore(initial_capacity=1, dim=2)
        store.write(0, [1.0, 1.0])

        vec = store.read(0)
        vec[0] = 42.0

        assert store.read(0).tolist() == [1.0, 1.0]

    @pytest.mark.parametrize("slot", [-1, 2, 100])
    def test_out_of_bounds_slot(self, slot):
        """Slots outside the capacity raise SlotOutOfBoundsError."""
        store = VectorStore(initial_capacity=2, dim=2)

        with pytest.raises(SlotOutOfBoundsError) as exc_info:
            store.write(slot, [1.0, 0.0])
        assert exc_info.value.slot == slot
        assert exc_info.value.capacity == 2

        with pytest.raises(SlotOutOfBoundsError):
            store.read(slot)
        with pytest.raises(SlotOutOfBoundsError):
            store.touch(slot)

    def test_normalize(self):
        """Normalize scales a slot to unit length."""
        store = VectorStore(initial_capacity=1, dim=2)
        store.write(0, [3.0, 4.0])
        store.normalize(0)

        np.testing.assert_allclose(store.read(0), [0.6, 0.8], rtol=1e-6)

    def test_normalize_zero_vector_is_noop(self):
        """A zero vector stays zero (no NaN)."""
        store = VectorStore(initial_capacity=1, dim=3)
        store.normalize(0)

        assert store.read(0).tolist() == [0.0, 0.0, 0.0]

    def test_touch_increments_frequency(self):
        """Touch bumps the frequency and stamps the time."""
        store = VectorStore(initial_capacity=1, dim=2)

        assert store.touch(0, timestamp=123.0) == 1
        assert store.touch(0, timestamp=456.0) == 2
        assert store.frequency(0) == 2
        assert store.timestamp(0) == 456.0

    def test_negative_frequency_rejected(self):
        """Frequencies can never go negative."""
        store = VectorStore(initial_capacity=1, dim=2)

        with pytest.raises(InvariantViolationError):
            store.set_frequency(0, -1)

    def test_similarities_skip_zero_rows(self):
        """Zero rows score 0 and normalized rows score their cosine."""
        store = VectorStore(initial_capacity=3, dim=2)
        store.write(0, [1.0, 0.0])
        store.write(2, [0.0, 2.0])

        scores = store.similarities(np.array([1.0, 1.0]), 3)

        assert scores.dtype == np.float64
        np.testing.assert_allclose(scores, [np.sqrt(0.5), 0.0, np.sqrt(0.5)], rtol=1e-6)

    def test_fixed_growth_preserves_slots(self):
        """Fixed growth adds the increment and keeps existing data."""
        store = VectorStore(initial_capacity=2, dim=3, growth_increment=5)
        store.write(0, [1.0, 2.0, 3.0])
        store.touch(1, timestamp=9.0)

        assert store.grow() == 7
        assert store.capacity == 7
        assert store.growth_count == 1
        assert store.read(0).tolist() == [1.0, 2.0, 3.0]
        assert store.frequency(1) == 1
        assert store.timestamp(1) == 9.0
        assert store.read(6).tolist() == [0.0, 0.0, 0.0]

    def test_multiplicative_growth_doubles(self):
        """Multiplicative growth doubles the capacity."""
        store = VectorStore(
            initial_capacity=4, dim=2, growth_strategy="multiplicative"
        )

        assert store.grow() == 8
        assert store.grow() == 16

    def test_explicit_growth(self):
        """An explicit extra overrides the strategy."""
        store = VectorStore(initial_capacity=4, dim=2)

        assert store.grow(extra=3) == 7
        assert store.grow(extra=0) == 7

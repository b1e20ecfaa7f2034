"""Unit encoders and boundary scorers used by the segmenter.

Both are strategies: the segmenter only relies on the ``UnitEncoder`` and
``BoundaryScorer`` protocols, so a learned model can replace the default
sine/cosine heuristics without touching segment extraction or concept
resolution.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import numpy as np

from ...infra.vector_store import cosine_similarity
from ..hippocampus.encoding import FEATURES_PER_CHAR, char_features

WHITESPACE_BOUNDARY_SCORE = 0.9


class UnitEncoder(Protocol):
    """Maps one atomic unit (character or token) to a vector."""

    dim: int

    def encode(self, unit: str) -> np.ndarray: ...


class BoundaryScorer(Protocol):
    """Scores the gap between each pair of adjacent units."""

    def score(self, units: Sequence[str], embeddings: Sequence[np.ndarray]) -> list[float]:
        """Return ``len(units) - 1`` scores; score ``i`` is the gap after unit ``i``."""
        ...


class PositionalCharEncoder:
    """Repeats the four sine/cosine features of a character code.

    Multi-character tokens are encoded as the mean of their characters.
    """

    def __init__(self, dim: int, char_dim: int = 256, repeats: int = 8) -> None:
        """Initialize the encoder.

        Args:
            dim: Output dimension.
            char_dim: Character codes are reduced modulo this value.
            repeats: Number of feature blocks written (capped by ``dim // 4``).
        """
        self.dim = dim
        self.char_dim = char_dim
        self.blocks = min(repeats, dim // FEATURES_PER_CHAR)
        self._cache: dict[str, np.ndarray] = {}

    def _encode_char(self, char: str) -> np.ndarray:
        cached = self._cache.get(char)
        if cached is not None:
            return cached

        vec = np.zeros(self.dim, dtype=np.float32)
        features = char_features(ord(char) % self.char_dim)
        for block in range(self.blocks):
            pos = block * FEATURES_PER_CHAR
            vec[pos : pos + FEATURES_PER_CHAR] = features
        self._cache[char] = vec
        return vec

    def encode(self, unit: str) -> np.ndarray:
        if not unit:
            return np.zeros(self.dim, dtype=np.float32)
        if len(unit) == 1:
            return self._encode_char(unit).copy()
        return np.mean([self._encode_char(c) for c in unit], axis=0).astype(np.float32)


class CosineBoundaryScorer:
    """Boundary score ``1 - cosine(u_i, u_{i+1})``, forced high after whitespace."""

    def __init__(self, whitespace_score: float = WHITESPACE_BOUNDARY_SCORE) -> None:
        self.whitespace_score = whitespace_score

    def score(self, units: Sequence[str], embeddings: Sequence[np.ndarray]) -> list[float]:
        scores: list[float] = []
        for i in range(len(units) - 1):
            if units[i].isspace():
                scores.append(self.whitespace_score)
            else:
                scores.append(1.0 - cosine_similarity(embeddings[i], embeddings[i + 1]))
        return scores

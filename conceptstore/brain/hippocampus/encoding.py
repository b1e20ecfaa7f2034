"""Deterministic sine/cosine character encodings.

Each character contributes a block of four features
``[sin(x), cos(x), sin(2x), cos(2x)]`` with ``x = code / 128``, similar to
positional encodings in transformers. The block position depends on the
character's position in the sequence, so "ab" and "ba" encode differently.
"""

from __future__ import annotations

import math

import numpy as np

FEATURES_PER_CHAR = 4


def char_features(code: int) -> tuple[float, float, float, float]:
    """Return the four sine/cosine features of a character code."""
    x = code / 128
    return (math.sin(x), math.cos(x), math.sin(2 * x), math.cos(2 * x))


def encode_character_sequence(sequence: str, dim: int) -> np.ndarray:
    """Encode a character sequence into an (unnormalized) float32 vector.

    Positions wrap around once ``dim // 4`` blocks are used; later
    characters overwrite the block of the same wrapped position.

    Args:
        sequence: Characters to encode.
        dim: Output dimension.

    Returns:
        Vector of shape ``(dim,)``.
    """
    vec = np.zeros(dim, dtype=np.float32)
    blocks = dim // FEATURES_PER_CHAR
    if blocks == 0:
        # Too small for a full block: keep the leading features of the last char
        if sequence:
            vec[:] = char_features(ord(sequence[-1]))[:dim]
        return vec

    for i, char in enumerate(sequence):
        pos = (i % blocks) * FEATURES_PER_CHAR
        vec[pos : pos + FEATURES_PER_CHAR] = char_features(ord(char))
    return vec

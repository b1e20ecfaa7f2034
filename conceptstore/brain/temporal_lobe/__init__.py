"""Temporal lobe module - Sequential Processing.

Turns character and token streams into segments and resolves each
segment to a concept.
"""

from .encoding import (
    BoundaryScorer,
    CosineBoundaryScorer,
    PositionalCharEncoder,
    UnitEncoder,
)
from .segmentation import Segmenter

__all__ = [
    "BoundaryScorer",
    "CosineBoundaryScorer",
    "PositionalCharEncoder",
    "Segmenter",
    "UnitEncoder",
]

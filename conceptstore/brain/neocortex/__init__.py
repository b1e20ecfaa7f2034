"""Neocortex module - Pattern Recognition & Abstraction.

In the concept store, this module handles:
- Pattern frequency and utility scoring
- Capacity-bounded eviction
- Compound pattern generation
"""

from .patterns import PatternTracker

__all__ = ["PatternTracker"]

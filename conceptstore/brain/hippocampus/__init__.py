"""Hippocampus module - Memory Formation & Retrieval.

The hippocampus is crucial for:
- Encoding new memories
- Consolidating short-term to long-term memory

In the concept store, this module handles:
- Concept creation and embedding storage
- Similarity-based retrieval
- Merged concepts and usage tracking
"""

from .registry import ConceptRegistry

__all__ = ["ConceptRegistry"]

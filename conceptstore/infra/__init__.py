"""Infrastructure layer - Embedding storage."""

from .vector_store import VectorStore, as_vector, cosine_similarity, normalized

__all__ = [
    "VectorStore",
    "as_vector",
    "cosine_similarity",
    "normalized",
]

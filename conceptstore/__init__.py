"""Concept store - adaptive concept memory with pattern tracking.

Stores recurring units of input as concepts with normalized embeddings,
tracks recurring segments as patterns with utility-based eviction, and
segments character streams into concept references.
"""

from .brain import ConceptRegistry, PatternTracker, Segmenter
from .config import Config
from .container import Container
from .domain.models import (
    ConceptKind,
    ConceptRef,
    ConceptSequence,
    Modality,
    SingleConcept,
    Visibility,
)
from .infra.vector_store import VectorStore
from .worker.dream import DreamWorker

__version__ = "0.1.0"

__all__ = [
    "Config",
    "Container",
    "ConceptRegistry",
    "PatternTracker",
    "Segmenter",
    "VectorStore",
    "DreamWorker",
    "ConceptKind",
    "ConceptRef",
    "ConceptSequence",
    "Modality",
    "SingleConcept",
    "Visibility",
]

"""Domain models for the concept store.

This package provides all domain models, organized by concern:
- enums: Modality, ConceptKind, Visibility
- concept: Concept, ConceptRef (SingleConcept | ConceptSequence)
- pattern: Pattern
- results: sync records, stats and segmentation results
"""

from .concept import Concept, ConceptRef, ConceptSequence, SingleConcept
from .enums import ConceptKind, Modality, Visibility
from .pattern import Pattern
from .results import (
    ConceptStats,
    ConceptSyncRecord,
    ConsolidationReport,
    PatternStats,
    PatternSyncRecord,
    ProcessTextResult,
    Segment,
    SegmentationResult,
    SegmentationStats,
)

__all__ = [
    # Enums
    "Modality",
    "ConceptKind",
    "Visibility",
    # Core models
    "Concept",
    "ConceptRef",
    "SingleConcept",
    "ConceptSequence",
    "Pattern",
    # Result models
    "ConceptSyncRecord",
    "PatternSyncRecord",
    "ConceptStats",
    "PatternStats",
    "SegmentationStats",
    "ConsolidationReport",
    "Segment",
    "SegmentationResult",
    "ProcessTextResult",
]

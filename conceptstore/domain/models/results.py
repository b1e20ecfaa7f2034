"""Result models for store operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import numpy as np
from pydantic import BaseModel, Field

from .concept import ConceptRef
from .enums import ConceptKind, Modality


class ConceptSyncRecord(BaseModel):
    """A shared concept awaiting export to an external collaborator."""

    local_id: int
    source: str = ""
    kind: ConceptKind
    frequency: int
    embedding: list[float]
    created_at: datetime
    modality: Modality


class PatternSyncRecord(BaseModel):
    """A shared pattern awaiting export to an external collaborator."""

    pattern: str
    frequency: int
    utility: float
    timestamp: datetime
    modality: Modality


class ConceptStats(BaseModel):
    """Statistics about the concept registry."""

    total_concepts: int
    character_concepts: int
    semantic_concepts: int
    merged_concepts: int
    by_modality: dict[str, int]
    top_concepts: list[tuple[int, str, int]] = Field(
        default_factory=list, description="(id, source or 'N/A', frequency)"
    )
    growth_events: int = Field(default=0, description="Concepts created so far")
    shared: int = 0
    private: int = 0
    sync_pending: int = 0
    capacity: int = 0


class PatternStats(BaseModel):
    """Statistics about the pattern tracker."""

    total_patterns: int
    capacity: int
    frequent_patterns: int
    by_modality: dict[str, int]
    contexts: int
    shared: int
    private: int
    sync_pending: int
    evicted: int


class SegmentationStats(BaseModel):
    """Statistics about segmentation performance."""

    total_segmentations: int
    cache_hits: int
    cache_hit_rate: float
    cached_entries: int
    frequent_patterns: int
    current_modality: Modality


class ConsolidationReport(BaseModel):
    """Summary of one or more consolidation ("dream") cycles."""

    cycles: int = 0
    concepts_merged: int = 0
    concepts_pruned: int = 0
    patterns_merged: int = 0
    patterns_pruned: int = 0
    cross_modal_merges: int = 0
    syntheses: int = Field(default=0, description="Total synthesis history length")
    duration_seconds: float = 0.0


@dataclass
class Segment:
    """One contiguous span produced by boundary detection."""

    text: str
    units: list[str]
    start: int
    end: int
    embedding: np.ndarray


@dataclass
class SegmentationResult:
    """Concept references together with the raw segments."""

    concept_refs: list[ConceptRef]
    segments: list[Segment] = field(default_factory=list)


@dataclass
class ProcessTextResult:
    """Analysis of a processed text."""

    original_text: str
    concept_refs: list[ConceptRef]
    embeddings: list[list[np.ndarray]]
    segmentation_stats: SegmentationStats
    concept_stats: ConceptStats

    @property
    def concept_count(self) -> int:
        return len(self.concept_refs)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary (embeddings omitted)."""
        return {
            "original_text": self.original_text,
            "concept_ids": [list(ref.ids) for ref in self.concept_refs],
            "concept_count": self.concept_count,
            "segmentation_stats": self.segmentation_stats.model_dump(mode="json"),
            "concept_stats": self.concept_stats.model_dump(mode="json"),
        }

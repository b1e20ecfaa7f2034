"""Dynamic Segmentation - Character streams to concept references.

Replaces fixed tokenization with boundary detection:
1. Split the input into atomic units and encode each one
2. Score the gap between adjacent units and cut where the score is high
3. Resolve every segment to a concept: an existing concept, a freshly
   promoted one once its pattern is frequent enough, or a sequence of
   single-unit concepts otherwise
4. Cache the result for plain-string inputs
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from ...domain.models import (
    ConceptRef,
    ConceptSequence,
    Modality,
    Segment,
    SegmentationResult,
    SegmentationStats,
    SingleConcept,
)
from .encoding import BoundaryScorer, CosineBoundaryScorer, PositionalCharEncoder, UnitEncoder

if TYPE_CHECKING:
    from ..hippocampus.registry import ConceptRegistry
    from ..neocortex.patterns import PatternTracker

logger = logging.getLogger(__name__)

MAX_CODE_POINT = 0x10FFFF


class Segmenter:
    """Segments character or token streams into concept references.

    The registry and tracker are shared collaborators; the segmenter does
    not own them.
    """

    def __init__(
        self,
        registry: ConceptRegistry,
        tracker: PatternTracker,
        max_segment_length: int = 16,
        min_segment_frequency: int = 5,
        boundary_threshold: float = 0.5,
        char_dim: int = 256,
        encoder: UnitEncoder | None = None,
        scorer: BoundaryScorer | None = None,
    ) -> None:
        """Initialize the segmenter.

        Args:
            registry: Concept registry used to resolve segments.
            tracker: Pattern tracker counting segment observations.
            max_segment_length: Longer spans are chopped into chunks of this size.
            min_segment_frequency: Observations needed to promote a segment.
            boundary_threshold: Gaps scoring above this value become cuts.
            char_dim: Character code range of the default encoder.
            encoder: Unit encoder (default: PositionalCharEncoder).
            scorer: Boundary scorer (default: CosineBoundaryScorer).
        """
        self._registry = registry
        self._tracker = tracker
        self.max_segment_length = max_segment_length
        self.min_segment_frequency = min_segment_frequency
        self.boundary_threshold = boundary_threshold
        self.encoder = encoder or PositionalCharEncoder(
            dim=registry.concept_dim, char_dim=char_dim
        )
        self.scorer = scorer or CosineBoundaryScorer()

        self._lock = threading.RLock()
        self._cache: dict[str, tuple[ConceptRef, ...]] = {}

        self.current_modality = Modality.TEXT
        self.private_context: str | None = None
        self.in_private_context = False

        self.total_segmentations = 0
        self.cache_hits = 0

    # =========================================================================
    # State
    # =========================================================================

    def set_modality(self, modality: Modality | str) -> bool:
        """Switch the modality applied to new concepts and patterns.

        Returns:
            False (and no change) if the modality is unknown.
        """
        parsed = Modality.parse(modality)
        if parsed is None:
            return False
        with self._lock:
            self.current_modality = parsed
        return True

    def set_private_context(self, name: str) -> None:
        """Mark everything created from now on as private to ``name``."""
        with self._lock:
            self.private_context = name
            self.in_private_context = True

    def clear_private_context(self) -> None:
        with self._lock:
            self.private_context = None
            self.in_private_context = False

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    # =========================================================================
    # Segmentation
    # =========================================================================

    def segment(
        self,
        data: str | Sequence[str | int],
        modality: Modality | str | None = None,
        return_segments: bool = False,
    ) -> list[ConceptRef] | SegmentationResult:
        """Segment an input into concept references.

        Args:
            data: A string, or pre-tokenized units (strings or code points).
            modality: Modality for this call; also becomes the current one.
            return_segments: Return the raw segments along with the refs.
                Such calls bypass the cache.

        Returns:
            The concept refs, or a SegmentationResult when
            ``return_segments`` is set.
        """
        with self._lock:
            if modality is not None:
                self.set_modality(modality)

            cacheable = isinstance(data, str) and not return_segments
            if cacheable:
                cached = self._cache.get(data)
                if cached is not None:
                    self.cache_hits += 1
                    logger.debug(f"Segmentation cache hit ({len(cached)} refs)")
                    return list(cached)

            self.total_segmentations += 1

            units = self._to_units(data)
            embeddings = [self.encoder.encode(unit) for unit in units]
            scores = self.scorer.score(units, embeddings) if len(units) > 1 else []

            refs: list[ConceptRef] = []
            segments: list[Segment] = []
            for start, end in self._spans(len(units), scores):
                seg_units = units[start:end]
                pooled = np.mean(embeddings[start:end], axis=0).astype(np.float32)
                refs.append(self._resolve(seg_units))
                segments.append(
                    Segment(
                        text="".join(seg_units),
                        units=seg_units,
                        start=start,
                        end=end,
                        embedding=pooled,
                    )
                )

            if cacheable:
                self._cache[data] = tuple(refs)

            if return_segments:
                return SegmentationResult(concept_refs=refs, segments=segments)
            return refs

    def _to_units(self, data: str | Sequence[str | int] | None) -> list[str]:
        """Split input into atomic units, skipping anything unusable."""
        if data is None:
            return []
        if isinstance(data, str):
            return list(data)

        units: list[str] = []
        try:
            items = list(data)
        except TypeError:
            return []
        for item in items:
            if isinstance(item, str):
                if item:
                    units.append(item)
            elif isinstance(item, (int, np.integer)) and 0 <= item <= MAX_CODE_POINT:
                units.append(chr(item))
        return units

    def _spans(self, length: int, scores: Sequence[float]) -> list[tuple[int, int]]:
        """Cut points from boundary scores, with oversized spans chopped."""
        cuts = [0]
        for i, score in enumerate(scores):
            if score > self.boundary_threshold:
                cuts.append(i + 1)
        if cuts[-1] != length:
            cuts.append(length)

        spans: list[tuple[int, int]] = []
        for start, end in zip(cuts, cuts[1:]):
            if end - start > self.max_segment_length:
                for chunk in range(start, end, self.max_segment_length):
                    spans.append((chunk, min(chunk + self.max_segment_length, end)))
            else:
                spans.append((start, end))
        return spans

    def _resolve(self, seg_units: list[str]) -> ConceptRef:
        """Find, promote or spell out the concept for one segment."""
        text = "".join(seg_units)
        private = self.in_private_context
        context = self.private_context

        concept_id = self._registry.find_by_source(text)
        if concept_id is not None:
            self._registry.update_usage(concept_id, context)
            self._tracker.observe(
                text, context=context, private=private, modality=self.current_modality
            )
            return SingleConcept(concept_id)

        frequency = self._tracker.observe(
            text, context=context, private=private, modality=self.current_modality
        )
        if frequency >= self.min_segment_frequency:
            concept_id = self._registry.add_character_concept(
                text, modality=self.current_modality, private=private
            )
            logger.debug(f"Promoted segment {text!r} to concept {concept_id}")
            return SingleConcept(concept_id)

        unit_ids: list[int] = []
        for unit in seg_units:
            unit_id = self._registry.find_by_source(unit)
            if unit_id is None:
                unit_id = self._registry.add_character_concept(
                    unit, modality=self.current_modality, private=private
                )
            unit_ids.append(unit_id)
        return ConceptSequence(tuple(unit_ids))

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self) -> SegmentationStats:
        """Get statistics about segmentation performance."""
        with self._lock:
            return SegmentationStats(
                total_segmentations=self.total_segmentations,
                cache_hits=self.cache_hits,
                cache_hit_rate=self.cache_hits / max(1, self.total_segmentations),
                cached_entries=len(self._cache),
                frequent_patterns=self._tracker.stats().frequent_patterns,
                current_modality=self.current_modality,
            )

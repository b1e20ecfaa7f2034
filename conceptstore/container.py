"""Dependency injection container for the concept store.

Each container is an explicitly constructed, caller-owned instance. There
is no module-level container: two containers never share state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import numpy as np

from .brain.hippocampus.registry import ConceptRegistry
from .brain.neocortex.patterns import PatternTracker
from .brain.temporal_lobe.segmentation import Segmenter
from .config import Config
from .domain.models import ConsolidationReport, Modality, ProcessTextResult
from .worker.dream import DreamWorker

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Dependency injection container.

    Manages the lifecycle of all store components with proper
    dependency injection.
    """

    config: Config
    _registry: ConceptRegistry | None = None
    _tracker: PatternTracker | None = None
    _segmenter: Segmenter | None = None
    _dream_worker: DreamWorker | None = None
    counters: dict[str, int] = field(
        default_factory=lambda: {"total_processed": 0, "dream_cycles": 0}
    )

    @classmethod
    def create(cls, config: Config | None = None) -> Container:
        """Create a new container with the given config.

        Args:
            config: Optional config. Read from the environment if not provided.

        Returns:
            A new Container instance.
        """
        return cls(config=config or Config.from_env())

    @property
    def registry(self) -> ConceptRegistry:
        """Get the concept registry (lazy initialization)."""
        if self._registry is None:
            self._registry = ConceptRegistry(
                concept_dim=self.config.concept_dim,
                initial_capacity=self.config.initial_capacity,
                growth_increment=self.config.growth_increment,
                growth_strategy=self.config.growth_strategy,
                seed_basic_concepts=self.config.seed_basic_concepts,
            )
        return self._registry

    @property
    def tracker(self) -> PatternTracker:
        """Get the pattern tracker (lazy initialization)."""
        if self._tracker is None:
            self._tracker = PatternTracker(
                capacity=self.config.pattern_capacity,
                min_frequency=self.config.min_segment_frequency,
            )
        return self._tracker

    @property
    def segmenter(self) -> Segmenter:
        """Get the segmenter (lazy initialization)."""
        if self._segmenter is None:
            self._segmenter = Segmenter(
                registry=self.registry,
                tracker=self.tracker,
                max_segment_length=self.config.max_segment_length,
                min_segment_frequency=self.config.min_segment_frequency,
                boundary_threshold=self.config.boundary_threshold,
                char_dim=self.config.char_dim,
            )
        return self._segmenter

    @property
    def dream_worker(self) -> DreamWorker:
        """Get the dream worker (lazy initialization)."""
        if self._dream_worker is None:
            self._dream_worker = DreamWorker(
                registry=self.registry,
                tracker=self.tracker,
                multimodal_enabled=self.config.multimodal_enabled,
                interval_seconds=self.config.dream_interval_seconds,
            )
        return self._dream_worker

    # =========================================================================
    # Facade
    # =========================================================================

    def process_text(
        self, text: str, modality: Modality = Modality.TEXT
    ) -> ProcessTextResult:
        """Segment text and collect the embeddings of every referenced concept.

        Args:
            text: Input text.
            modality: Content modality.

        Returns:
            Concept refs, their embeddings and statistics snapshots.
        """
        refs = self.segmenter.segment(text, modality=modality)

        embeddings: list[list[np.ndarray]] = []
        for ref in refs:
            vectors = [
                vec
                for vec in (self.registry.get_embedding(cid) for cid in ref.ids)
                if vec is not None
            ]
            if vectors:
                embeddings.append(vectors)

        self.counters["total_processed"] += 1
        return ProcessTextResult(
            original_text=text,
            concept_refs=refs,
            embeddings=embeddings,
            segmentation_stats=self.segmenter.stats(),
            concept_stats=self.registry.stats(),
        )

    def load_vocabulary(self, words: Iterable[str]) -> int:
        """Register a vocabulary as character concepts."""
        return self.registry.load_vocabulary(words)

    def dream(self, max_cycles: int = 1) -> ConsolidationReport:
        """Run consolidation cycles synchronously."""
        report = self.dream_worker.dream_cycle(max_cycles=max_cycles)
        self.counters["dream_cycles"] += report.cycles
        return report

    def reset(self) -> None:
        """Clear the segmentation cache and the processing counters."""
        if self._segmenter is not None:
            self._segmenter.clear_cache()
        self.counters = {"total_processed": 0, "dream_cycles": 0}
        logger.info("Container state reset")

    def close(self) -> None:
        """Stop background work and release components."""
        if self._dream_worker is not None:
            self._dream_worker.stop()
            self._dream_worker = None
        self._segmenter = None
        self._tracker = None
        self._registry = None

"""Dream Worker - Background consolidation for the concept store.

This module implements the "Sleep" mechanism that periodically organizes
concepts and patterns. Each cycle performs:

1. Reinforcement: Merge related (but not near-identical) top concepts
2. Concept Pruning: Fold rarely used semantic concepts into close neighbours
3. Pattern Consolidation: Merge frequent adjacent patterns into compounds
4. Cross-Modal Association: Merge top concepts across modalities

Everything a dream creates is private, so it never leaves the process
through sync export. Concepts are never deleted; pruning only moves their
usage onto a neighbour.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any

from ..brain.hippocampus.registry import ConceptRegistry
from ..brain.neocortex.patterns import PatternTracker
from ..domain.models import ConceptKind, ConsolidationReport, Modality
from ..infra.vector_store import cosine_similarity

logger = logging.getLogger(__name__)

# Reinforcement merges pairs inside this similarity band
MERGE_SIMILARITY_LOW = 0.3
MERGE_SIMILARITY_HIGH = 0.7


# =============================================================================
# Dream Worker Class
# =============================================================================


class DreamWorker:
    """Consolidation scheduler driving merge and prune on the store.

    Cycles can be run synchronously with :meth:`dream_cycle` or on a
    background thread with :meth:`start` / :meth:`stop`.
    """

    def __init__(
        self,
        registry: ConceptRegistry,
        tracker: PatternTracker,
        multimodal_enabled: bool = True,
        interval_seconds: float = 60.0,
        prune_min_concepts: int = 200,
        prune_max_frequency: int = 5,
        prune_similarity: float = 0.7,
        pattern_prune_utility: float | None = None,
    ) -> None:
        """Initialize the dream worker.

        Args:
            registry: Concept registry to consolidate.
            tracker: Pattern tracker to consolidate.
            multimodal_enabled: Run cross-modal association.
            interval_seconds: Pause between background cycles.
            prune_min_concepts: Skip concept pruning below this many concepts.
            prune_max_frequency: Semantic concepts used less than this are
                pruning candidates.
            prune_similarity: Minimum similarity of the neighbour receiving
                a pruned concept's usage.
            pattern_prune_utility: When set, patterns whose utility is below
                this value are dropped each cycle.
        """
        self._registry = registry
        self._tracker = tracker
        self.multimodal_enabled = multimodal_enabled
        self.interval_seconds = interval_seconds
        self.prune_min_concepts = prune_min_concepts
        self.prune_max_frequency = prune_max_frequency
        self.prune_similarity = prune_similarity
        self.pattern_prune_utility = pattern_prune_utility

        self.synthesis_history: list[dict[str, Any]] = []
        self._merged_pairs: set[tuple[int, int]] = set()

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._cycle_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _record(self, kind: str, **details: Any) -> None:
        self.synthesis_history.append(
            {"type": kind, "timestamp": datetime.now(timezone.utc), **details}
        )

    def _merge_once(
        self, id_a: int, id_b: int, modality: Modality | None = None
    ) -> int | None:
        """Merge a pair into a private concept unless it was merged before."""
        pair = (min(id_a, id_b), max(id_a, id_b))
        if pair in self._merged_pairs:
            return None

        merged_id = self._registry.merge(id_a, id_b, private=True, modality=modality)
        if merged_id is not None:
            self._merged_pairs.add(pair)
        return merged_id

    # =========================================================================
    # Cycles
    # =========================================================================

    def dream_cycle(self, max_cycles: int = 1) -> ConsolidationReport:
        """Run one or more consolidation cycles.

        Args:
            max_cycles: Number of cycles to run.

        Returns:
            Summary of what the cycles changed.
        """
        report = ConsolidationReport()
        start_time = time.time()

        with self._cycle_lock:
            for _ in range(max_cycles):
                report.concepts_merged += self._task_reinforcement()
                report.concepts_pruned += self._task_concept_pruning()

                merged, pruned = self._task_pattern_consolidation()
                report.patterns_merged += merged
                report.patterns_pruned += pruned

                if self.multimodal_enabled:
                    report.cross_modal_merges += self._task_cross_modal()

                report.cycles += 1

        report.syntheses = len(self.synthesis_history)
        report.duration_seconds = time.time() - start_time
        logger.info(
            f"Dream completed: {report.cycles} cycles, "
            f"{report.concepts_merged} merges, {report.concepts_pruned} prunes, "
            f"{report.patterns_merged} compound patterns"
        )
        return report

    def _task_reinforcement(self) -> int:
        """Merge pairs of top concepts that are related but distinct."""
        top = [entry for entry in self._registry.stats().top_concepts if entry[2] > 0]
        merged = 0

        for i in range(min(3, len(top))):
            id_a, source_a, _ = top[i]
            for j in range(i + 1, min(i + 3, len(top))):
                id_b, source_b, _ = top[j]

                embedding_a = self._registry.get_embedding(id_a)
                embedding_b = self._registry.get_embedding(id_b)
                if embedding_a is None or embedding_b is None:
                    continue

                similarity = cosine_similarity(embedding_a, embedding_b)
                if not MERGE_SIMILARITY_LOW < similarity < MERGE_SIMILARITY_HIGH:
                    continue

                concept_a = self._registry.get_concept(id_a)
                concept_b = self._registry.get_concept(id_b)
                multimodal = concept_a.modality != concept_b.modality
                merged_id = self._merge_once(
                    id_a,
                    id_b,
                    modality=Modality.MULTIMODAL if multimodal else concept_a.modality,
                )
                if merged_id is None:
                    continue

                merged += 1
                self._record(
                    "concept_merge",
                    source1=source_a,
                    source2=source_b,
                    similarity=similarity,
                    merged_id=merged_id,
                    multimodal=multimodal,
                )
        return merged

    def _task_concept_pruning(self) -> int:
        """Fold rarely used semantic concepts into their nearest neighbour."""
        if len(self._registry) < self.prune_min_concepts:
            return 0

        candidates = []
        for concept_id in self._registry.concept_ids(kind=ConceptKind.SEMANTIC):
            frequency = self._registry.frequency(concept_id)
            if 0 < frequency < self.prune_max_frequency:
                candidates.append((concept_id, frequency))
        candidates.sort(key=lambda item: item[1])

        pruned = 0
        for concept_id, _ in candidates[:5]:
            embedding = self._registry.get_embedding(concept_id)
            if embedding is None:
                continue

            for similar_id, similarity in self._registry.find_similar(embedding, top_k=3):
                if similar_id == concept_id or similarity <= self.prune_similarity:
                    continue
                if self._registry.transfer_frequency(concept_id, similar_id):
                    pruned += 1
                    self._record(
                        "concept_pruning",
                        pruned_id=concept_id,
                        merged_with=similar_id,
                        similarity=similarity,
                    )
                break
        return pruned

    def _task_pattern_consolidation(self) -> tuple[int, int]:
        """Merge adjacent frequent patterns and drop low-utility ones."""
        frequent = self._tracker.frequent_patterns(limit=20)
        merged = 0

        for (key_a, _), (key_b, _) in list(zip(frequent, frequent[1:]))[:5]:
            if key_a + key_b in self._tracker:
                continue
            compound = self._tracker.merge(key_a, key_b, private=True)
            if compound is not None:
                merged += 1
                self._record("pattern_merge", pattern1=key_a, pattern2=key_b)

        pruned = 0
        if self.pattern_prune_utility is not None:
            pruned = self._tracker.prune(self.pattern_prune_utility)
            if pruned:
                logger.debug(f"Pruned {pruned} low-utility patterns")
        return merged, pruned

    def _task_cross_modal(self) -> int:
        """Associate top concepts of different modalities."""
        by_modality = self._registry.stats().by_modality
        if not any(
            count > 0
            for modality, count in by_modality.items()
            if modality != Modality.TEXT.value
        ):
            return 0

        top_by_modality: dict[Modality, list[int]] = {}
        for modality in (Modality.TEXT, Modality.IMAGE, Modality.AUDIO):
            ids = self._registry.concept_ids(modality=modality)
            ids.sort(key=lambda cid: -self._registry.frequency(cid))
            if ids:
                top_by_modality[modality] = ids[:5]

        created = 0
        modalities = list(top_by_modality)
        for a, modality_a in enumerate(modalities):
            for modality_b in modalities[a + 1 :]:
                concepts_a = top_by_modality[modality_a]
                concepts_b = top_by_modality[modality_b]
                for i in range(min(2, len(concepts_a), len(concepts_b))):
                    merged_id = self._merge_once(
                        concepts_a[i], concepts_b[i], modality=Modality.MULTIMODAL
                    )
                    if merged_id is None:
                        continue
                    created += 1
                    self._record(
                        "cross_modal_merge",
                        concept1=concepts_a[i],
                        concept2=concepts_b[i],
                        modality1=modality_a.value,
                        modality2=modality_b.value,
                    )

        if created:
            logger.info(f"Created {created} cross-modal concept associations")
        return created

    # =========================================================================
    # Background scheduling
    # =========================================================================

    def start(self, interval_seconds: float | None = None) -> bool:
        """Start dreaming on a background thread.

        Returns:
            False if a background loop is already running.
        """
        if self.is_running:
            return False

        interval = interval_seconds or self.interval_seconds
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, args=(interval,), name="dream-worker", daemon=True
        )
        self._thread.start()
        logger.info(f"Background dreaming started (interval {interval}s)")
        return True

    def stop(self, timeout: float | None = 5.0) -> bool:
        """Stop the background loop.

        Returns:
            False if no background loop was running, or if the loop did not
            finish within ``timeout`` (it stays registered as running).
        """
        if not self.is_running:
            return False

        self._stop_event.set()
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning(f"Dream worker did not stop within {timeout}s")
            return False

        self._thread = None
        logger.info("Background dreaming stopped")
        return True

    def _run(self, interval: float) -> None:
        while not self._stop_event.is_set():
            try:
                self.dream_cycle()
            except Exception as e:
                logger.exception(f"Dream cycle error: {e}")
            if self._stop_event.wait(interval):
                break

"""Unit tests for the dream worker (consolidation)."""

from __future__ import annotations

import threading

import pytest

from conceptstore.brain import ConceptRegistry, PatternTracker
from conceptstore.domain.models import (
    ConceptKind,
    ConsolidationReport,
    Modality,
    Visibility,
)
from conceptstore.worker.dream import DreamWorker


def unit(index: int, dim: int = 8) -> list[float]:
    vec = [0.0] * dim
    vec[index] = 1.0
    return vec


def use(registry: ConceptRegistry, concept_id: int, times: int) -> None:
    for _ in range(times):
        registry.update_usage(concept_id)


@pytest.fixture
def dream_registry() -> ConceptRegistry:
    return ConceptRegistry(concept_dim=8, initial_capacity=16, seed_basic_concepts=False)


@pytest.fixture
def dream_tracker() -> PatternTracker:
    return PatternTracker(capacity=100, min_frequency=2)


@pytest.fixture
def worker(dream_registry: ConceptRegistry, dream_tracker: PatternTracker) -> DreamWorker:
    return DreamWorker(dream_registry, dream_tracker)


class TestReinforcement:
    """Tests for merging related top concepts."""

    def test_merges_pairs_in_similarity_band(
        self, worker: DreamWorker, dream_registry: ConceptRegistry
    ) -> None:
        """Related but distinct top concepts produce one private merge."""
        a = dream_registry.add_semantic_concept(unit(0))
        b = dream_registry.add_semantic_concept([0.5, 0.8660254])
        c = dream_registry.add_semantic_concept(unit(2))
        use(dream_registry, a, 3)
        use(dream_registry, b, 2)
        use(dream_registry, c, 1)

        report = worker.dream_cycle()

        assert report.cycles == 1
        assert report.concepts_merged == 1
        merged = dream_registry.related_concepts(a)[0]
        concept = dream_registry.get_concept(merged)
        assert concept.kind == ConceptKind.MERGED
        assert concept.parents == (a, b)
        assert concept.visibility == Visibility.PRIVATE
        assert dream_registry.related_concepts(c) == []
        assert worker.synthesis_history[0]["type"] == "concept_merge"

    def test_pairs_are_merged_once(
        self, worker: DreamWorker, dream_registry: ConceptRegistry
    ) -> None:
        """Repeated cycles do not merge the same pair again."""
        a = dream_registry.add_semantic_concept(unit(0))
        b = dream_registry.add_semantic_concept([0.5, 0.8660254])
        use(dream_registry, a, 2)
        use(dream_registry, b, 1)

        report = worker.dream_cycle(max_cycles=3)

        assert report.cycles == 3
        assert report.concepts_merged == 1
        assert len(dream_registry) == 3

    def test_near_duplicates_and_unused_are_skipped(
        self, worker: DreamWorker, dream_registry: ConceptRegistry
    ) -> None:
        """Near-identical pairs and unused concepts are left alone."""
        a = dream_registry.add_semantic_concept(unit(0))
        b = dream_registry.add_semantic_concept([1.0, 0.05])
        dream_registry.add_semantic_concept([0.5, 0.8660254])
        use(dream_registry, a, 2)
        use(dream_registry, b, 1)

        report = worker.dream_cycle()

        assert report.concepts_merged == 0
        assert len(dream_registry) == 3

    def test_dream_output_is_not_exported(
        self, worker: DreamWorker, dream_registry: ConceptRegistry
    ) -> None:
        """Merged concepts never enter the sync queue."""
        a = dream_registry.add_semantic_concept(unit(0))
        b = dream_registry.add_semantic_concept([0.5, 0.8660254])
        use(dream_registry, a, 2)
        use(dream_registry, b, 1)

        worker.dream_cycle()
        merged = dream_registry.related_concepts(a)[0]

        assert merged not in [r.local_id for r in dream_registry.get_concepts_for_sync()]


class TestConceptPruning:
    """Tests for folding rarely used semantic concepts."""

    def test_rare_concept_folds_into_neighbour(
        self, dream_registry: ConceptRegistry, dream_tracker: PatternTracker
    ) -> None:
        """Usage moves to a close neighbour and both ids survive."""
        worker = DreamWorker(dream_registry, dream_tracker, prune_min_concepts=1)
        target = dream_registry.add_semantic_concept(unit(0))
        rare = dream_registry.add_semantic_concept([1.0, 0.1])
        use(dream_registry, target, 10)
        use(dream_registry, rare, 2)

        report = worker.dream_cycle()

        assert report.concepts_pruned == 1
        assert dream_registry.frequency(rare) == 0
        assert dream_registry.frequency(target) == 12
        assert dream_registry.get_concept(rare) is not None
        assert worker.synthesis_history[-1]["type"] == "concept_pruning"

    def test_small_registry_is_not_pruned(
        self, worker: DreamWorker, dream_registry: ConceptRegistry
    ) -> None:
        """Pruning waits until the registry holds enough concepts."""
        target = dream_registry.add_semantic_concept(unit(0))
        rare = dream_registry.add_semantic_concept([1.0, 0.1])
        use(dream_registry, target, 10)
        use(dream_registry, rare, 2)

        assert worker.dream_cycle().concepts_pruned == 0
        assert dream_registry.frequency(rare) == 2

    def test_no_close_neighbour(
        self, dream_registry: ConceptRegistry, dream_tracker: PatternTracker
    ) -> None:
        """A concept without a similar neighbour keeps its usage."""
        worker = DreamWorker(dream_registry, dream_tracker, prune_min_concepts=1)
        rare = dream_registry.add_semantic_concept(unit(0))
        dream_registry.add_semantic_concept(unit(1))
        use(dream_registry, rare, 2)

        assert worker.dream_cycle().concepts_pruned == 0
        assert dream_registry.frequency(rare) == 2


class TestPatternConsolidation:
    """Tests for compound pattern creation and pattern pruning."""

    def test_adjacent_frequent_patterns_merge(
        self, worker: DreamWorker, dream_tracker: PatternTracker
    ) -> None:
        """Neighbouring frequent patterns become a private compound."""
        for _ in range(3):
            dream_tracker.observe("ab")
        for _ in range(2):
            dream_tracker.observe("cd")

        report = worker.dream_cycle()

        assert report.patterns_merged == 1
        assert "abcd" in dream_tracker
        assert dream_tracker.get_pattern("abcd").visibility == Visibility.PRIVATE

    def test_pattern_pruning_is_opt_in(
        self, dream_registry: ConceptRegistry, dream_tracker: PatternTracker
    ) -> None:
        """Low-utility patterns are dropped only when a floor is configured."""
        dream_tracker.observe("x")
        dream_tracker.observe("y")
        dream_tracker.observe("y")

        assert DreamWorker(dream_registry, dream_tracker).dream_cycle().patterns_pruned == 0

        worker = DreamWorker(dream_registry, dream_tracker, pattern_prune_utility=1.05)
        report = worker.dream_cycle()

        assert report.patterns_pruned == 1
        assert "x" not in dream_tracker
        assert "y" in dream_tracker


class TestCrossModal:
    """Tests for cross-modal association."""

    def test_merges_across_modalities(
        self, worker: DreamWorker, dream_registry: ConceptRegistry
    ) -> None:
        """Top concepts of different modalities merge into multimodal ones."""
        text = dream_registry.add_semantic_concept(unit(0))
        image = dream_registry.add_semantic_concept(unit(1), modality=Modality.IMAGE)

        report = worker.dream_cycle()

        assert report.cross_modal_merges == 1
        merged = dream_registry.related_concepts(text)[0]
        concept = dream_registry.get_concept(merged)
        assert concept.parents == (text, image)
        assert concept.modality == Modality.MULTIMODAL
        assert concept.visibility == Visibility.PRIVATE

        assert worker.dream_cycle().cross_modal_merges == 0

    def test_text_only_registry(
        self, worker: DreamWorker, dream_registry: ConceptRegistry
    ) -> None:
        """Nothing happens without a non-text modality."""
        dream_registry.add_semantic_concept(unit(0))
        dream_registry.add_semantic_concept(unit(1))

        assert worker.dream_cycle().cross_modal_merges == 0

    def test_disabled(
        self, dream_registry: ConceptRegistry, dream_tracker: PatternTracker
    ) -> None:
        """Cross-modal association can be switched off."""
        worker = DreamWorker(dream_registry, dream_tracker, multimodal_enabled=False)
        dream_registry.add_semantic_concept(unit(0))
        dream_registry.add_semantic_concept(unit(1), modality=Modality.AUDIO)

        assert worker.dream_cycle().cross_modal_merges == 0
        assert len(dream_registry) == 2


class BlockingWorker(DreamWorker):
    """Dream worker whose cycle blocks until released."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.entered = threading.Event()
        self.release = threading.Event()

    def dream_cycle(self, max_cycles: int = 1) -> ConsolidationReport:
        self.entered.set()
        self.release.wait(5)
        return ConsolidationReport()


class TestBackgroundLoop:
    """Tests for background scheduling."""

    def test_start_and_stop(self, worker: DreamWorker) -> None:
        """The loop starts once and stops cleanly."""
        assert worker.start(interval_seconds=0.01) is True
        assert worker.is_running is True
        assert worker.start() is False

        assert worker.stop() is True
        assert worker.is_running is False
        assert worker.stop() is False

    def test_synchronous_cycle_after_stop(self, worker: DreamWorker) -> None:
        """Stopping the loop does not cut later synchronous cycles short."""
        worker.start(interval_seconds=0.01)
        worker.stop()

        assert worker.dream_cycle(max_cycles=2).cycles == 2

    def test_stop_timeout_keeps_loop_registered(
        self, dream_registry: ConceptRegistry, dream_tracker: PatternTracker
    ) -> None:
        """A loop that outlives the stop timeout is still tracked as running."""
        worker = BlockingWorker(dream_registry, dream_tracker)
        worker.start(interval_seconds=0.01)
        assert worker.entered.wait(2)

        assert worker.stop(timeout=0.05) is False
        assert worker.is_running is True
        assert worker.start() is False

        worker.release.set()
        assert worker.stop() is True
        assert worker.is_running is False

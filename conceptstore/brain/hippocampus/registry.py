"""Concept Registry - Stable identities for recurring units of input.

Maps source keys and semantic vectors to dense integer concept ids and owns
the vector store holding their embeddings. Concepts are never deleted:
consolidation zeroes a concept's frequency and folds it into a neighbour,
but the id and its storage slot stay allocated, since ids may be held by
callers outside the registry.

Every public method runs under a single re-entrant lock, which serialises
mutations and gives reads a consistent snapshot.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import Any

import numpy as np

from ...domain.exceptions import InvariantViolationError
from ...domain.models import (
    Concept,
    ConceptKind,
    ConceptStats,
    ConceptSyncRecord,
    Modality,
    Visibility,
)
from ...infra.vector_store import VectorStore, as_vector, normalized
from .encoding import encode_character_sequence

logger = logging.getLogger(__name__)

# Printable ASCII plus common English word pieces and programming keywords.
BASIC_CHARACTERS = [chr(code) for code in range(32, 127)]
COMMON_PIECES = [
    "the", "and", "of", "to", "in", "is", "you", "that", "it", "he", "she",
    "was", "for", "on", "are", "with", "as", "they", "be", "at", "this",
    "have", "from", "or", "by", "not", "what", "all", "were", "we", "when",
    "your", "can", "said", "there", "use", "an", "each", "which", "do",
    "how", "their", "if", "will",
    "function", "const", "let", "var", "return", "class", "import", "export",
    "default", "async", "await", "try", "catch", "else", "while", "switch",
    "case", "break", "continue",
]  # fmt: skip


def _utc(timestamp: float) -> datetime | None:
    if timestamp <= 0:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class ConceptRegistry:
    """Registry of concepts backed by a growable vector store."""

    def __init__(
        self,
        concept_dim: int = 768,
        initial_capacity: int = 10000,
        growth_increment: int = 1000,
        growth_strategy: str = "fixed",
        seed_basic_concepts: bool = True,
    ) -> None:
        """Initialize the registry.

        Args:
            concept_dim: Embedding dimension.
            initial_capacity: Slots reserved in the vector store.
            growth_increment: Slots added whenever the store is full.
            growth_strategy: "fixed" or "multiplicative" store growth.
            seed_basic_concepts: Pre-register printable ASCII characters and
                common word pieces.
        """
        self.concept_dim = concept_dim
        self._store = VectorStore(
            initial_capacity=initial_capacity,
            dim=concept_dim,
            growth_increment=growth_increment,
            growth_strategy=growth_strategy,
        )
        self._lock = threading.RLock()

        self._next_id = 0
        self._concepts: dict[int, Concept] = {}
        self._source_index: dict[str, int] = {}
        self._related: dict[int, list[int]] = {}
        self._by_modality: dict[Modality, set[int]] = {m: set() for m in Modality}

        self._shared: set[int] = set()
        self._private: set[int] = set()
        # Insertion-ordered so sync export is deterministic
        self._pending_sync: dict[int, None] = {}

        self.creation_history: list[dict[str, Any]] = []

        if seed_basic_concepts:
            for piece in BASIC_CHARACTERS + COMMON_PIECES:
                self.add_character_concept(piece)

    def __len__(self) -> int:
        return self._next_id

    @property
    def next_id(self) -> int:
        """The id the next concept will receive."""
        return self._next_id

    @property
    def capacity(self) -> int:
        return self._store.capacity

    def _in_range(self, concept_id: int) -> bool:
        return 0 <= concept_id < self._next_id

    def _members(self, modality: Modality | str) -> set[int]:
        """Ids of a modality; an unknown modality matches nothing."""
        parsed = Modality.parse(modality)
        return self._by_modality[parsed] if parsed is not None else set()

    # =========================================================================
    # Creation
    # =========================================================================

    def _allocate(
        self,
        embedding: np.ndarray,
        kind: ConceptKind,
        modality: Modality,
        private: bool,
        source: str | None = None,
        related_sources: list[str] | None = None,
        parents: tuple[int, int] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Assign the next id, store the normalized embedding and index it."""
        if self._next_id >= self._store.capacity:
            self._store.grow()

        concept_id = self._next_id
        if concept_id != len(self._concepts):
            raise InvariantViolationError(
                f"Concept id {concept_id} does not follow {len(self._concepts)} "
                "existing concepts"
            )
        self._next_id += 1

        self._store.write(concept_id, embedding)
        self._store.normalize(concept_id)

        now = datetime.now(timezone.utc)
        visibility = Visibility.PRIVATE if private else Visibility.SHARED
        self._concepts[concept_id] = Concept(
            id=concept_id,
            kind=kind,
            source=source,
            modality=modality,
            visibility=visibility,
            created_at=now,
            related_sources=related_sources or [],
            parents=parents,
            metadata=metadata or {},
        )
        self._by_modality[modality].add(concept_id)

        if private:
            self._private.add(concept_id)
        else:
            self._shared.add(concept_id)
            self._pending_sync[concept_id] = None

        self.creation_history.append(
            {
                "concept_id": concept_id,
                "kind": kind.value,
                "source": source,
                "timestamp": now,
                "modality": modality.value,
            }
        )
        return concept_id

    def add_character_concept(
        self,
        key: str,
        modality: Modality = Modality.TEXT,
        private: bool = False,
    ) -> int:
        """Register a character sequence as a concept.

        Idempotent: an already-registered key returns its existing id and
        nothing is modified.

        Args:
            key: Source character sequence.
            modality: Content modality; unknown values fall back to text.
            private: Exclude the concept from sync export.

        Returns:
            The concept id.
        """
        with self._lock:
            existing = self._source_index.get(key)
            if existing is not None:
                return existing

            concept_id = self._allocate(
                encode_character_sequence(key, self.concept_dim),
                kind=ConceptKind.CHARACTER_SEQUENCE,
                modality=Modality.parse(modality) or Modality.TEXT,
                private=private,
                source=key,
            )
            self._source_index[key] = concept_id
            return concept_id

    def add_semantic_concept(
        self,
        vector: Sequence[float] | np.ndarray,
        modality: Modality = Modality.TEXT,
        private: bool = False,
        related_sources: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> int:
        """Register a concept from a caller-supplied meaning vector.

        The vector is copied, padded or truncated to the concept dimension
        and normalized.

        Args:
            vector: Meaning vector.
            modality: Content modality; unknown values fall back to text.
            private: Exclude the concept from sync export.
            related_sources: Source keys this concept relates to.
            metadata: Free-form provenance notes.

        Returns:
            The new concept id.
        """
        with self._lock:
            return self._allocate(
                as_vector(vector, self.concept_dim),
                kind=ConceptKind.SEMANTIC,
                modality=Modality.parse(modality) or Modality.TEXT,
                private=private,
                related_sources=related_sources,
                metadata=metadata,
            )

    def load_vocabulary(self, words: Iterable[str]) -> int:
        """Add every non-empty, unseen word as a character concept.

        Returns:
            Number of concepts added.
        """
        count = 0
        with self._lock:
            for word in words:
                if word and word not in self._source_index:
                    self.add_character_concept(word)
                    count += 1
        logger.info(f"Loaded {count} vocabulary concepts")
        return count

    def merge(
        self,
        id_a: int,
        id_b: int,
        private: bool | None = None,
        modality: Modality | None = None,
    ) -> int | None:
        """Create a merged concept whose embedding is the mean of two parents.

        The parents are left untouched. The result is private if either
        parent is private or ``private`` is True; its modality is the
        override, else "multimodal" when the parents differ.

        Args:
            id_a: First parent id.
            id_b: Second parent id.
            private: Force the merged concept private.
            modality: Modality override.

        Returns:
            The merged concept id, or None if either parent is unknown.
        """
        with self._lock:
            if not self._in_range(id_a) or not self._in_range(id_b):
                return None

            parent_a = self._concepts[id_a]
            parent_b = self._concepts[id_b]
            mean = (self._store.read(id_a) + self._store.read(id_b)) / 2

            is_private = bool(private) or parent_a.is_private or parent_b.is_private
            override = Modality.parse(modality)
            if override is not None:
                merged_modality = override
            elif parent_a.modality != parent_b.modality:
                merged_modality = Modality.MULTIMODAL
            else:
                merged_modality = parent_a.modality

            sources = [s for s in (parent_a.source, parent_b.source) if s]
            merged_id = self._allocate(
                mean,
                kind=ConceptKind.MERGED,
                modality=merged_modality,
                private=is_private,
                related_sources=sources,
                parents=(id_a, id_b),
                metadata={"parent_concepts": [id_a, id_b]},
            )

            if parent_a.source and parent_b.source:
                self._source_index.setdefault(
                    parent_a.source + parent_b.source, merged_id
                )

            self._related.setdefault(id_a, []).append(merged_id)
            self._related.setdefault(id_b, []).append(merged_id)
            return merged_id

    # =========================================================================
    # Usage
    # =========================================================================

    def update_usage(
        self,
        concept_id: int,
        context: str | None = None,
        register_for_sync: bool = True,
    ) -> None:
        """Record one use of a concept. Unknown ids are ignored."""
        with self._lock:
            if not self._in_range(concept_id):
                return

            self._store.touch(concept_id)
            if context:
                contexts = self._concepts[concept_id].contexts
                contexts[context] = contexts.get(context, 0) + 1

            if register_for_sync and concept_id not in self._private:
                self._pending_sync[concept_id] = None

    def transfer_frequency(self, source_id: int, target_id: int) -> bool:
        """Fold one concept's usage into another.

        The target's frequency grows by the source's and the source's is
        zeroed. Both concepts stay allocated.

        Returns:
            False if either id is unknown or they are the same concept.
        """
        with self._lock:
            if source_id == target_id:
                return False
            if not self._in_range(source_id) or not self._in_range(target_id):
                return False

            moved = self._store.frequency(source_id)
            self._store.set_frequency(
                target_id, self._store.frequency(target_id) + moved
            )
            self._store.set_frequency(source_id, 0)
            return True

    def frequency(self, concept_id: int) -> int:
        """Usage count of a concept (0 if unknown)."""
        with self._lock:
            if not self._in_range(concept_id):
                return 0
            return self._store.frequency(concept_id)

    # =========================================================================
    # Lookup
    # =========================================================================

    def get_embedding(self, concept_id: int) -> np.ndarray | None:
        """Return a copy of a concept's embedding, or None if unknown."""
        with self._lock:
            if not self._in_range(concept_id):
                return None
            return self._store.read(concept_id)

    def get_concept(self, concept_id: int) -> Concept | None:
        """Return a snapshot of a concept's metadata, or None if unknown."""
        with self._lock:
            if not self._in_range(concept_id):
                return None
            concept = self._concepts[concept_id]
            return concept.model_copy(
                deep=True,
                update={
                    "frequency": self._store.frequency(concept_id),
                    "last_used_at": _utc(self._store.timestamp(concept_id)),
                },
            )

    def find_by_source(self, key: str) -> int | None:
        """Return the concept id registered for a source key."""
        with self._lock:
            return self._source_index.get(key)

    def related_concepts(self, concept_id: int) -> list[int]:
        """Ids of merged concepts derived from this concept."""
        with self._lock:
            return list(self._related.get(concept_id, []))

    def concept_ids(
        self,
        kind: ConceptKind | None = None,
        modality: Modality | None = None,
    ) -> list[int]:
        """List concept ids in id order, optionally filtered."""
        with self._lock:
            ids = range(self._next_id)
            if modality is not None:
                members = self._members(modality)
                ids = [i for i in ids if i in members]
            if kind is not None:
                ids = [i for i in ids if self._concepts[i].kind == kind]
            return list(ids)

    def find_similar(
        self,
        query: Sequence[float] | np.ndarray,
        top_k: int = 5,
        modality: Modality | None = None,
    ) -> list[tuple[int, float]]:
        """Find the concepts most similar to a query vector.

        Performs a full scan with cosine similarity. Results are sorted by
        similarity descending; ties keep the lower id first.

        Args:
            query: Query vector (padded or truncated to the concept dimension).
            top_k: Maximum number of results.
            modality: Only consider concepts of this modality (unknown values
                match nothing).

        Returns:
            List of (concept_id, similarity) tuples.
        """
        with self._lock:
            if top_k <= 0 or self._next_id == 0:
                return []

            scores = self._store.similarities(np.asarray(query), self._next_id)
            ids = np.arange(self._next_id)

            if modality is not None:
                members = self._members(modality)
                mask = np.fromiter(
                    (i in members for i in range(self._next_id)),
                    dtype=bool,
                    count=self._next_id,
                )
                ids = ids[mask]
                scores = scores[mask]

            order = np.argsort(-scores, kind="stable")[:top_k]
            return [(int(ids[i]), float(scores[i])) for i in order]

    # =========================================================================
    # Sync export
    # =========================================================================

    def get_concepts_for_sync(self, limit: int = 100) -> list[ConceptSyncRecord]:
        """Pull shared concepts not yet acknowledged by the sync collaborator."""
        records: list[ConceptSyncRecord] = []
        with self._lock:
            for concept_id in self._pending_sync:
                if len(records) >= limit:
                    break
                if concept_id in self._private:
                    continue

                concept = self._concepts[concept_id]
                records.append(
                    ConceptSyncRecord(
                        local_id=concept_id,
                        source=concept.source or "",
                        kind=concept.kind,
                        frequency=self._store.frequency(concept_id),
                        embedding=self._store.read(concept_id).tolist(),
                        created_at=concept.created_at,
                        modality=concept.modality,
                    )
                )
        return records

    def mark_synced(self, concept_ids: Iterable[int]) -> None:
        """Acknowledge exported concepts."""
        with self._lock:
            for concept_id in concept_ids:
                self._pending_sync.pop(concept_id, None)

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(self, top_n: int = 10) -> ConceptStats:
        """Get statistics about concept usage."""
        with self._lock:
            by_kind = {kind: 0 for kind in ConceptKind}
            for concept in self._concepts.values():
                by_kind[concept.kind] += 1

            frequencies = self._store.frequencies(self._next_id)
            order = np.argsort(-frequencies.astype(np.int64), kind="stable")[:top_n]
            top_concepts = [
                (
                    int(i),
                    self._concepts[int(i)].source or "N/A",
                    int(frequencies[i]),
                )
                for i in order
            ]

            return ConceptStats(
                total_concepts=self._next_id,
                character_concepts=by_kind[ConceptKind.CHARACTER_SEQUENCE],
                semantic_concepts=by_kind[ConceptKind.SEMANTIC],
                merged_concepts=by_kind[ConceptKind.MERGED],
                by_modality={m.value: len(ids) for m, ids in self._by_modality.items()},
                top_concepts=top_concepts,
                growth_events=len(self.creation_history),
                shared=len(self._shared),
                private=len(self._private),
                sync_pending=len(self._pending_sync),
                capacity=self._store.capacity,
            )

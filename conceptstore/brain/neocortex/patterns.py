"""Pattern Tracking - Frequency and utility of recurring segments.

Implements pattern memory that:
- Counts observations of segment keys, globally and per context
- Scores each key with a utility (exponential moving average of frequency)
- Evicts the lowest-utility keys once capacity is exceeded
- Merges frequent neighbours into compound patterns
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from datetime import datetime, timezone

from ...domain.models import (
    Modality,
    Pattern,
    PatternStats,
    PatternSyncRecord,
    Visibility,
)

logger = logging.getLogger(__name__)

UTILITY_DECAY = 0.9
UTILITY_GAIN = 0.1


class PatternTracker:
    """Capacity-bounded store of pattern statistics.

    Capacity is enforced lazily: a write may briefly leave ``capacity + 1``
    entries before eviction brings the count back down.
    """

    def __init__(self, capacity: int = 10000, min_frequency: int = 5) -> None:
        """Initialize the tracker.

        Args:
            capacity: Soft bound on the number of tracked patterns.
            min_frequency: Frequency at which a pattern counts as frequent.
        """
        self.capacity = capacity
        self.min_frequency = min_frequency
        self._lock = threading.RLock()

        self._frequencies: dict[str, int] = {}
        self._timestamps: dict[str, datetime] = {}
        self._utilities: dict[str, float] = {}
        self._contexts: dict[str, dict[str, int]] = {}
        self._by_modality: dict[Modality, set[str]] = {m: set() for m in Modality}

        self._shared: set[str] = set()
        self._private: set[str] = set()
        self._pending_sync: dict[str, None] = {}

        self.evicted = 0

    def __len__(self) -> int:
        return len(self._frequencies)

    def __contains__(self, key: object) -> bool:
        return key in self._frequencies

    # =========================================================================
    # Observation
    # =========================================================================

    def observe(
        self,
        key: str,
        context: str | None = None,
        private: bool = False,
        modality: Modality = Modality.TEXT,
    ) -> int:
        """Record one observation of a pattern.

        Args:
            key: Pattern key (segment text).
            context: Optional context name for the per-context tally.
            private: Mark the pattern private (excluded from sync export).
                A private pattern stays private on later shared observations.
            modality: Content modality; unknown values fall back to text.

        Returns:
            The pattern's frequency after this observation.
        """
        with self._lock:
            previous = self._frequencies.get(key, 0)
            frequency = previous + 1
            self._frequencies[key] = frequency
            self._timestamps[key] = datetime.now(timezone.utc)

            if key in self._utilities:
                self._utilities[key] = (
                    UTILITY_DECAY * self._utilities[key]
                    + UTILITY_GAIN * frequency
                )
            else:
                self._utilities[key] = float(frequency)

            if context:
                tally = self._contexts.setdefault(context, {})
                tally[key] = tally.get(key, 0) + 1

            self._set_visibility(key, private or key in self._private)
            self._by_modality[Modality.parse(modality) or Modality.TEXT].add(key)

            if len(self._frequencies) > self.capacity:
                self._evict()

            return frequency

    def _set_visibility(self, key: str, private: bool) -> None:
        """Record a key's visibility. Callers never downgrade a private key."""
        if private:
            self._private.add(key)
            self._shared.discard(key)
            self._pending_sync.pop(key, None)
        else:
            self._shared.add(key)
            self._private.discard(key)
            self._pending_sync[key] = None

    def _modality_of(self, key: str) -> Modality:
        for modality in Modality:
            if key in self._by_modality[modality]:
                return modality
        return Modality.TEXT

    def _members(self, modality: Modality | str | None) -> set[str] | None:
        """Keys of a modality filter; None means no filter, unknown matches nothing."""
        if modality is None:
            return None
        parsed = Modality.parse(modality)
        return self._by_modality[parsed] if parsed is not None else set()

    # =========================================================================
    # Eviction
    # =========================================================================

    def _remove(self, key: str) -> None:
        self._frequencies.pop(key, None)
        self._timestamps.pop(key, None)
        self._utilities.pop(key, None)
        self._shared.discard(key)
        self._private.discard(key)
        self._pending_sync.pop(key, None)
        for keys in self._by_modality.values():
            keys.discard(key)
        for tally in self._contexts.values():
            tally.pop(key, None)

    def _evict(self) -> None:
        """Drop the lowest-utility patterns until back within capacity."""
        overflow = len(self._frequencies) - self.capacity
        if overflow <= 0:
            return

        # Stable sort: equal utilities evict the earliest-inserted key first
        ranked = sorted(self._frequencies, key=lambda k: self._utilities.get(k, 0.0))
        for key in ranked[:overflow]:
            self._remove(key)
        self.evicted += overflow
        logger.debug(f"Evicted {overflow} low-utility patterns")

    def prune(self, min_utility: float) -> int:
        """Remove every pattern whose utility is below ``min_utility``.

        Returns:
            Number of patterns removed.
        """
        with self._lock:
            doomed = [k for k, u in self._utilities.items() if u < min_utility]
            for key in doomed:
                self._remove(key)
            self.evicted += len(doomed)
            return len(doomed)

    # =========================================================================
    # Queries
    # =========================================================================

    def frequency_of(self, key: str) -> int:
        """Observation count of a pattern (0 if absent)."""
        with self._lock:
            return self._frequencies.get(key, 0)

    def utility_of(self, key: str) -> float | None:
        with self._lock:
            return self._utilities.get(key)

    def get_pattern(self, key: str) -> Pattern | None:
        """Snapshot of a tracked pattern, or None if absent."""
        with self._lock:
            if key not in self._frequencies:
                return None
            return Pattern(
                key=key,
                frequency=self._frequencies[key],
                utility=self._utilities.get(key, 0.0),
                last_seen_at=self._timestamps.get(key),
                visibility=(
                    Visibility.PRIVATE if key in self._private else Visibility.SHARED
                ),
                modality=self._modality_of(key),
            )

    def frequent_patterns(
        self,
        limit: int = 100,
        modality: Modality | None = None,
        include_private: bool = True,
    ) -> list[tuple[str, int]]:
        """Patterns at or above the frequency threshold, most frequent first.

        Args:
            limit: Maximum number of results.
            modality: Only include patterns seen in this modality.
            include_private: Include private patterns.

        Returns:
            List of (key, frequency) tuples.
        """
        with self._lock:
            members = self._members(modality)
            frequent = [
                (key, freq)
                for key, freq in self._frequencies.items()
                if freq >= self.min_frequency
                and (include_private or key not in self._private)
                and (members is None or key in members)
            ]
        frequent.sort(key=lambda item: -item[1])
        return frequent[:limit]

    def context_patterns(
        self,
        context: str,
        limit: int = 20,
        modality: Modality | None = None,
    ) -> list[tuple[str, int]]:
        """Patterns observed within a context, most frequent first."""
        with self._lock:
            tally = self._contexts.get(context)
            if not tally:
                return []
            members = self._members(modality)
            patterns = [
                (key, freq)
                for key, freq in tally.items()
                if members is None or key in members
            ]
        patterns.sort(key=lambda item: -item[1])
        return patterns[:limit]

    # =========================================================================
    # Merging
    # =========================================================================

    def merge(
        self,
        key_a: str,
        key_b: str,
        private: bool = False,
        modality: Modality | None = None,
    ) -> str | None:
        """Combine two patterns into a compound pattern.

        The compound key is the concatenation of both keys; its frequency is
        the smaller of the two and its utility their mean. Nothing is
        written unless that frequency reaches half the frequency threshold.

        Args:
            key_a: First pattern key.
            key_b: Second pattern key.
            private: Force the compound pattern private.
            modality: Modality override.

        Returns:
            The compound key, or None if a key is absent or the compound is
            not significant.
        """
        with self._lock:
            if key_a not in self._frequencies or key_b not in self._frequencies:
                return None

            frequency = min(self._frequencies[key_a], self._frequencies[key_b])
            if frequency < self.min_frequency / 2:
                return None

            compound = key_a + key_b
            self._frequencies[compound] = frequency
            self._timestamps[compound] = datetime.now(timezone.utc)
            self._utilities[compound] = (
                self._utilities.get(key_a, 0.0) + self._utilities.get(key_b, 0.0)
            ) / 2

            is_private = (
                private
                or key_a in self._private
                or key_b in self._private
                or compound in self._private
            )
            self._set_visibility(compound, is_private)

            override = Modality.parse(modality)
            if override is not None:
                merged_modality = override
            else:
                modality_a = self._modality_of(key_a)
                modality_b = self._modality_of(key_b)
                merged_modality = (
                    modality_a if modality_a == modality_b else Modality.MULTIMODAL
                )
            self._by_modality[merged_modality].add(compound)

            if len(self._frequencies) > self.capacity:
                self._evict()

            return compound

    # =========================================================================
    # Sync export
    # =========================================================================

    def get_patterns_for_sync(self, limit: int = 100) -> list[PatternSyncRecord]:
        """Pull shared patterns not yet acknowledged by the sync collaborator."""
        records: list[PatternSyncRecord] = []
        with self._lock:
            for key in self._pending_sync:
                if len(records) >= limit:
                    break
                if key not in self._frequencies or key in self._private:
                    continue
                records.append(
                    PatternSyncRecord(
                        pattern=key,
                        frequency=self._frequencies[key],
                        utility=self._utilities.get(key, 0.0),
                        timestamp=self._timestamps[key],
                        modality=self._modality_of(key),
                    )
                )
        return records

    def mark_synced(self, keys: Iterable[str]) -> None:
        """Acknowledge exported patterns."""
        with self._lock:
            for key in keys:
                self._pending_sync.pop(key, None)

    def stats(self) -> PatternStats:
        with self._lock:
            return PatternStats(
                total_patterns=len(self._frequencies),
                capacity=self.capacity,
                frequent_patterns=sum(
                    1 for f in self._frequencies.values() if f >= self.min_frequency
                ),
                by_modality={m.value: len(k) for m, k in self._by_modality.items()},
                contexts=len(self._contexts),
                shared=len(self._shared),
                private=len(self._private),
                sync_pending=len(self._pending_sync),
                evicted=self.evicted,
            )

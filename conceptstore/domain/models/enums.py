"""Enumeration types for concept store domain models."""

from __future__ import annotations

from enum import Enum


class Modality(str, Enum):
    """Coarse content type used to scope queries and indexes."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    MULTIMODAL = "multimodal"

    @classmethod
    def parse(cls, value: Modality | str | None) -> Modality | None:
        """Coerce a modality or its string value; None if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class ConceptKind(str, Enum):
    """How a concept came into existence."""

    CHARACTER_SEQUENCE = "character_sequence"  # Keyed by a source string
    SEMANTIC = "semantic"  # Caller-supplied meaning vector
    MERGED = "merged"  # Mean of two parent concepts


class Visibility(str, Enum):
    """Whether an entry may leave the process through sync export."""

    SHARED = "shared"
    PRIVATE = "private"

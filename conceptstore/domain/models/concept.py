"""Concept domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from pydantic import BaseModel, Field

from .enums import ConceptKind, Modality, Visibility


class Concept(BaseModel):
    """A stable identity for a recurring unit of input.

    The embedding itself lives in the vector store; this model carries the
    metadata snapshot returned to callers.
    """

    id: int = Field(..., ge=0, description="Dense, monotonically assigned id")
    kind: ConceptKind = Field(..., description="How the concept was created")
    source: str | None = Field(
        default=None, description="Source key for character-sequence concepts"
    )
    modality: Modality = Field(default=Modality.TEXT)
    visibility: Visibility = Field(default=Visibility.SHARED)
    frequency: int = Field(default=0, ge=0, description="Usage count")
    created_at: datetime = Field(..., description="Creation timestamp")
    last_used_at: datetime | None = Field(
        default=None, description="Last time the concept was used"
    )
    contexts: dict[str, int] = Field(
        default_factory=dict, description="Usage tally per context name"
    )
    related_sources: list[str] = Field(default_factory=list)
    parents: tuple[int, int] | None = Field(
        default=None, description="Parent ids of a merged concept (provenance only)"
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Free-form provenance notes"
    )

    @property
    def is_private(self) -> bool:
        return self.visibility is Visibility.PRIVATE


@dataclass(frozen=True)
class SingleConcept:
    """A segment resolved to one concept."""

    concept_id: int

    @property
    def ids(self) -> tuple[int, ...]:
        return (self.concept_id,)


@dataclass(frozen=True)
class ConceptSequence:
    """A segment resolved unit by unit to single-unit concepts."""

    concept_ids: tuple[int, ...]

    @property
    def ids(self) -> tuple[int, ...]:
        return self.concept_ids


ConceptRef = Union[SingleConcept, ConceptSequence]

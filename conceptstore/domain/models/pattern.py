"""Pattern models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import Modality, Visibility


class Pattern(BaseModel):
    """A recurring segment signature tracked by frequency and utility.

    A pattern lives independently of any concept: once it is promoted the
    concept shares its key, but the pattern keeps collecting statistics.
    """

    key: str = Field(..., description="Segment text")
    frequency: int = Field(default=0, ge=0, description="Observation count")
    utility: float = Field(
        default=0.0,
        ge=0.0,
        description="Exponential moving average of frequency, sole eviction criterion",
    )
    last_seen_at: datetime | None = Field(None, description="Last observation time")
    visibility: Visibility = Field(default=Visibility.SHARED)
    modality: Modality = Field(default=Modality.TEXT)

"""Configuration settings for the concept store."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .domain.exceptions import ConfigurationError

GROWTH_STRATEGIES = ("fixed", "multiplicative")


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Concept store configuration."""

    # Concept storage
    concept_dim: int = 768
    initial_capacity: int = 10000
    growth_increment: int = 1000
    growth_strategy: str = "fixed"
    seed_basic_concepts: bool = True

    # Segmentation
    max_segment_length: int = 16
    min_segment_frequency: int = 5
    char_dim: int = 256
    boundary_threshold: float = 0.5

    # Pattern memory
    pattern_capacity: int = 10000

    # Consolidation ("dreaming")
    multimodal_enabled: bool = True
    dream_interval_seconds: float = 60.0

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate numeric bounds and the growth strategy."""
        for name in (
            "concept_dim",
            "initial_capacity",
            "growth_increment",
            "max_segment_length",
            "min_segment_frequency",
            "char_dim",
            "pattern_capacity",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

        if self.growth_strategy not in GROWTH_STRATEGIES:
            raise ConfigurationError(
                f"growth_strategy must be one of {GROWTH_STRATEGIES}, "
                f"got '{self.growth_strategy}'"
            )
        if self.dream_interval_seconds <= 0:
            raise ConfigurationError("dream_interval_seconds must be positive")

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables."""
        return cls(
            concept_dim=int(os.environ.get("CONCEPTSTORE_CONCEPT_DIM", "768")),
            initial_capacity=int(
                os.environ.get("CONCEPTSTORE_INITIAL_CAPACITY", "10000")
            ),
            growth_increment=int(
                os.environ.get("CONCEPTSTORE_GROWTH_INCREMENT", "1000")
            ),
            growth_strategy=os.environ.get("CONCEPTSTORE_GROWTH_STRATEGY", "fixed"),
            seed_basic_concepts=_env_bool("CONCEPTSTORE_SEED_BASIC_CONCEPTS", True),
            max_segment_length=int(
                os.environ.get("CONCEPTSTORE_MAX_SEGMENT_LENGTH", "16")
            ),
            min_segment_frequency=int(
                os.environ.get("CONCEPTSTORE_MIN_SEGMENT_FREQUENCY", "5")
            ),
            char_dim=int(os.environ.get("CONCEPTSTORE_CHAR_DIM", "256")),
            boundary_threshold=float(
                os.environ.get("CONCEPTSTORE_BOUNDARY_THRESHOLD", "0.5")
            ),
            pattern_capacity=int(
                os.environ.get("CONCEPTSTORE_PATTERN_CAPACITY", "10000")
            ),
            multimodal_enabled=_env_bool("CONCEPTSTORE_MULTIMODAL", True),
            dream_interval_seconds=float(
                os.environ.get("CONCEPTSTORE_DREAM_INTERVAL", "60.0")
            ),
            log_level=os.environ.get("CONCEPTSTORE_LOG_LEVEL", "INFO").upper(),
        )

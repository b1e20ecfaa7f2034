"""Domain layer - Core models and exceptions."""

from .exceptions import (
    ConceptStoreError,
    ConfigurationError,
    DimensionMismatchError,
    InvariantViolationError,
    SlotOutOfBoundsError,
)
from .models import (
    Concept,
    ConceptKind,
    ConceptRef,
    ConceptSequence,
    Modality,
    Pattern,
    SingleConcept,
    Visibility,
)

__all__ = [
    # Exceptions
    "ConceptStoreError",
    "ConfigurationError",
    "DimensionMismatchError",
    "InvariantViolationError",
    "SlotOutOfBoundsError",
    # Models
    "Concept",
    "ConceptKind",
    "ConceptRef",
    "ConceptSequence",
    "Modality",
    "Pattern",
    "SingleConcept",
    "Visibility",
]

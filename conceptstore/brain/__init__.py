"""Brain-inspired cognitive modules for the concept store.

This package organizes the store's functions using neuroscience-inspired naming:

## Module Structure

### hippocampus/ - Memory Formation & Retrieval
- Concept registration (character sequences, semantic vectors)
- Similarity-based recall over the vector store
- Concept merging with provenance

### neocortex/ - Pattern Recognition & Abstraction
- Frequency and utility tracking of recurring segments
- Least-utility eviction
- Compound pattern merging

### temporal_lobe/ - Sequential Processing
- Boundary detection over character streams
- Segment to concept resolution with promotion
- Pluggable unit encoders and boundary scorers
"""

from .hippocampus import ConceptRegistry
from .neocortex import PatternTracker
from .temporal_lobe import Segmenter

__all__ = [
    "ConceptRegistry",
    "PatternTracker",
    "Segmenter",
]

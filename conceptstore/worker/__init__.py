"""Background workers for the concept store."""

from .dream import DreamWorker

__all__ = ["DreamWorker"]

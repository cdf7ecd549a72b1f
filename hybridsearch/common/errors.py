"""Exceptions raised by hybrid search components."""

from typing import Optional


class HybridSearchError(Exception):
    """Base exception for hybrid search operations."""
    pass


class VectorDimensionError(HybridSearchError, ValueError):
    """Two vectors passed to a similarity function differ in length."""

    def __init__(self, left: int, right: int):
        super().__init__(f"Vectors must have the same dimension (got {left} and {right})")
        self.left = left
        self.right = right


class ScoringCancelledError(HybridSearchError):
    """A document scan was abandoned through its cancel event."""

    def __init__(self, scored: int, total: int):
        super().__init__(f"Scoring cancelled after {scored} of {total} documents")
        self.scored = scored
        self.total = total


class ProviderError(HybridSearchError):
    """An embedding or hypothetical-document provider call failed."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code

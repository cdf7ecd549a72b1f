"""Provider interfaces consumed by the semantic scorer.

Defines the contracts for turning text into vectors and for generating a
hypothetical answer document from a query, independent of the backing model
(OpenAI-compatible API, local model, deterministic mock).

All methods are asynchronous. Failures surface as ``ProviderError`` and are
never retried here; retry policy belongs to the caller.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

import numpy as np


class EmbeddingProvider(ABC):
    """Abstract text embedding provider."""

    name: str = "embedding"

    @abstractmethod
    async def embed(self, text: str) -> np.ndarray:
        """Embed a single text."""
        pass

    @abstractmethod
    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        """Embed several texts in one call.

        Returns one vector per input, in input order.
        """
        pass

    async def close(self) -> None:
        """Release any underlying resources."""
        return None


class HypotheticalDocumentGenerator(ABC):
    """Abstract generator of hypothetical answer documents (HyDE)."""

    name: str = "generator"

    @abstractmethod
    async def generate(self, query: str) -> str:
        """Write a passage that would answer ``query``."""
        pass

    async def close(self) -> None:
        """Release any underlying resources."""
        return None

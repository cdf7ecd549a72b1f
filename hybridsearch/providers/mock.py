"""Deterministic offline providers.

Used for local development, demos and tests. Embeddings are built from
per-word patterns so texts sharing vocabulary end up with higher cosine
similarity than unrelated texts; the same text always yields the same vector.
"""

import hashlib
import re
from typing import List, Sequence

import numpy as np

from .base import EmbeddingProvider, HypotheticalDocumentGenerator

DEFAULT_DIMENSION = 384
_WORD_SPLIT = re.compile(r"[^\w]+")


def _stable_seed(value: str) -> int:
    return int.from_bytes(hashlib.sha256(value.encode("utf-8")).digest()[:8], "big")


class MockEmbeddingProvider(EmbeddingProvider):
    """Word-hash embedding provider.

    Each meaningful word (longer than two characters, first ``max_words``
    only) adds a fixed random pattern to a small shared base vector; the
    result is scaled to unit length.
    """

    name = "mock"

    def __init__(self, dimension: int = DEFAULT_DIMENSION, max_words: int = 20, pattern_width: int = 50):
        self.dimension = dimension
        self.max_words = max_words
        self.pattern_width = min(pattern_width, dimension)
        self._base = np.random.default_rng(42).uniform(-0.05, 0.05, size=dimension)
        self.calls = 0

    def _embed_sync(self, text: str) -> np.ndarray:
        words = [w for w in _WORD_SPLIT.split(text.lower()) if len(w) > 2][: self.max_words]
        vector = self._base.copy()
        for word in words:
            seed = _stable_seed(word)
            rng = np.random.default_rng(seed)
            offsets = (seed % self.dimension + np.arange(self.pattern_width)) % self.dimension
            vector[offsets] += rng.uniform(0.0, 0.3, size=self.pattern_width)

        magnitude = np.linalg.norm(vector)
        if magnitude > 0:
            vector = vector / magnitude
        return vector

    async def embed(self, text: str) -> np.ndarray:
        self.calls += 1
        return self._embed_sync(text)

    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        self.calls += 1
        return [self._embed_sync(text) for text in texts]


class MockHypotheticalDocumentGenerator(HypotheticalDocumentGenerator):
    """Template-based hypothetical document generator."""

    name = "mock"

    def __init__(self):
        self.calls = 0

    async def generate(self, query: str) -> str:
        self.calls += 1
        topic = query.strip().lower()
        return (
            f"This is a comprehensive explanation about {topic}. "
            f"The topic involves various aspects and considerations related to {topic}. "
            f"Key concepts include the fundamental principles and practical applications of {topic}."
        )

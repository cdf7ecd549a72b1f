"""Shared fixtures for hybrid search tests."""

import pytest
from prometheus_client import CollectorRegistry

from hybridsearch.common.config import HybridSearchConfig
from hybridsearch.common.errors import ProviderError
from hybridsearch.common.metrics import MetricsCollector
from hybridsearch.hybrid.search_manager import HybridSearchManager
from hybridsearch.models import Document
from hybridsearch.providers.base import HypotheticalDocumentGenerator
from hybridsearch.providers.mock import MockEmbeddingProvider, MockHypotheticalDocumentGenerator


class FailingGenerator(HypotheticalDocumentGenerator):
    """Generator whose every call fails like an unreachable model endpoint."""

    name = "failing"

    def __init__(self):
        self.calls = 0

    async def generate(self, query: str) -> str:
        self.calls += 1
        raise ProviderError(self.name, "service unavailable", status_code=503)


def make_document(doc_id, content, title="", embedding=None):
    return Document(id=doc_id, title=title, content=content, embedding=embedding)


@pytest.fixture
def metrics():
    """Metrics collector with its own registry."""
    return MetricsCollector("test-service", registry=CollectorRegistry())


@pytest.fixture
def embedding_provider():
    return MockEmbeddingProvider(dimension=64)


@pytest.fixture
def generator():
    return MockHypotheticalDocumentGenerator()


@pytest.fixture
def failing_generator():
    return FailingGenerator()


@pytest.fixture
def corpus():
    """Three topical documents plus unrelated filler.

    The filler keeps "learning" (in two documents) below half the corpus so
    its IDF stays positive.
    """
    return [
        make_document("d1", "machine learning algorithms"),
        make_document("d2", "deep learning networks"),
        make_document("d3", "cooking recipes"),
        make_document("f1", "gardening tips"),
        make_document("f2", "travel guide"),
        make_document("f3", "history books"),
        make_document("f4", "music theory"),
    ]


@pytest.fixture
def fusion_config():
    return HybridSearchConfig(
        bm25_weight=0.3,
        semantic_weight=0.7,
        max_results=10,
        score_threshold=0.01,
        normalization_strategy="MinMax",
        reranking_strategy="WeightedSum",
    )


@pytest.fixture
def manager_factory(embedding_provider, generator, metrics, fusion_config):
    """Build a search manager with isolated metrics and mock providers."""
    def factory(config=None, hypothetical_generator=None):
        return HybridSearchManager(
            embedding_provider=embedding_provider,
            hypothetical_generator=hypothetical_generator or generator,
            config=config or fusion_config,
            metrics=metrics,
        )
    return factory

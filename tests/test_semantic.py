"""Tests for HyDE semantic scoring."""

import numpy as np
import pytest

from hybridsearch.common.config import HydeConfig
from hybridsearch.common.errors import ProviderError
from hybridsearch.models import Document
from hybridsearch.semantic.hyde import HydeSearchService, SemanticCombiner


def _doc(doc_id, embedding=None, content="text"):
    return Document(id=doc_id, title="", content=content, embedding=embedding)


def test_combine_weights():
    """Test the weighted combination of both similarities."""
    combiner = SemanticCombiner()
    traditional, hyde, combined = combiner.combine([1.0, 0.0], [0.0, 1.0], [1.0, 0.0])
    assert traditional == pytest.approx(1.0)
    assert hyde == pytest.approx(0.0)
    assert combined == pytest.approx(0.3)


def test_weights_are_not_normalized():
    """Test that weights are applied as configured."""
    combiner = SemanticCombiner(traditional_weight=1.0, hyde_weight=1.0)
    _, _, combined = combiner.combine([1.0, 0.0], [1.0, 0.0], [1.0, 0.0])
    assert combined == pytest.approx(2.0)


def test_score_documents_filters_and_skips():
    """Test threshold exclusion and documents without embeddings."""
    combiner = SemanticCombiner(similarity_threshold=0.1)
    documents = [
        _doc("near", [1.0, 1.0]),
        _doc("far", [0.0, -1.0]),
        _doc("unembedded"),
        _doc("hyde_only", [0.0, 1.0]),
    ]
    results = combiner.score_documents([1.0, 0.0], [0.0, 1.0], documents, hypothetical_document="hypo")

    assert [r.document.id for r in results] == ["near", "hyde_only"]
    hyde_only = results[1]
    assert hyde_only.similarity == pytest.approx(0.7)
    assert hyde_only.traditional_similarity == pytest.approx(0.0)
    assert hyde_only.hyde_similarity == pytest.approx(1.0)
    assert hyde_only.hypothetical_document == "hypo"


def test_score_documents_limit():
    """Test truncation to the configured maximum."""
    combiner = SemanticCombiner(max_results=2)
    documents = [_doc(str(i), [1.0, i / 10.0]) for i in range(5)]
    results = combiner.score_documents([1.0, 0.0], [1.0, 0.0], documents)
    assert [r.document.id for r in results] == ["0", "1"]


def test_from_config():
    """Test combiner construction from settings."""
    combiner = SemanticCombiner.from_config(HydeConfig(hyde_weight=0.5, traditional_weight=0.5, hyde_max_results=3))
    assert combiner.hyde_weight == 0.5
    assert combiner.traditional_weight == 0.5
    assert combiner.max_results == 3


@pytest.mark.asyncio
async def test_score_semantic_batches_provider_calls(embedding_provider, generator, corpus):
    """Test one generation and one batched embedding call per query."""
    service = HydeSearchService(embedding_provider, generator)
    documents = await service.embed_documents(corpus)
    embedding_provider.calls = 0

    results = await service.score_semantic("machine learning", documents)

    assert generator.calls == 1
    assert embedding_provider.calls == 1
    assert results
    assert all(r.similarity >= service.config.similarity_threshold for r in results)
    assert results[0].hypothetical_document.startswith("This is a comprehensive explanation")


@pytest.mark.asyncio
async def test_score_semantic_ranks_shared_vocabulary_higher(embedding_provider, generator, corpus):
    """Test that related documents outrank unrelated ones."""
    service = HydeSearchService(embedding_provider, generator)
    documents = await service.embed_documents(corpus)

    results = await service.score_semantic("machine learning", documents)
    similarity = {r.document.id: r.traditional_similarity for r in results}

    assert results[0].document.id == "d1"
    assert similarity["d1"] > similarity.get("d3", -1.0)


@pytest.mark.asyncio
async def test_score_semantic_empty_inputs(embedding_provider, generator, corpus):
    """Test that empty queries or candidates make no provider calls."""
    service = HydeSearchService(embedding_provider, generator)

    assert await service.score_semantic("", corpus) == []
    assert await service.score_semantic("machine learning", []) == []
    assert generator.calls == 0
    assert embedding_provider.calls == 0


@pytest.mark.asyncio
async def test_score_semantic_propagates_provider_errors(embedding_provider, failing_generator, corpus):
    """Test that generation failures reach the caller."""
    service = HydeSearchService(embedding_provider, failing_generator)
    documents = await service.embed_documents(corpus)

    with pytest.raises(ProviderError):
        await service.score_semantic("machine learning", documents)


@pytest.mark.asyncio
async def test_embed_documents_only_fills_missing(embedding_provider, generator):
    """Test that existing embeddings are kept."""
    service = HydeSearchService(embedding_provider, generator)
    embedded = _doc("a", [0.5] * embedding_provider.dimension)
    missing = _doc("b", content="deep learning networks")

    documents = await service.embed_documents([embedded, missing])

    assert documents[0] is embedded
    assert documents[1].has_embedding
    assert missing.embedding is None
    assert np.allclose(documents[1].embedding, await embedding_provider.embed("deep learning networks"))
    again = await service.embed_documents([embedded])
    assert again[0] is embedded

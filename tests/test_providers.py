"""Tests for embedding and hypothetical-document providers."""

import json

import httpx
import numpy as np
import pytest

from hybridsearch.common.config import HydeConfig, ProviderConfig
from hybridsearch.common.errors import ProviderError
from hybridsearch.providers.factory import create_providers
from hybridsearch.providers.mock import MockEmbeddingProvider, MockHypotheticalDocumentGenerator
from hybridsearch.providers.openai import OpenAIEmbeddingProvider, OpenAIHypotheticalDocumentGenerator
from hybridsearch.scoring.similarity import cosine_similarity

BASE_URL = "https://llm.test/v1"


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)


def _config(**overrides):
    values = {"provider": "openai", "openai_api_key": "test-key", "openai_base_url": BASE_URL}
    values.update(overrides)
    return ProviderConfig(**values)


@pytest.mark.asyncio
async def test_mock_embeddings_are_deterministic_unit_vectors():
    """Test mock embedding determinism and normalization."""
    provider = MockEmbeddingProvider(dimension=32)
    first = await provider.embed("machine learning")
    second = await provider.embed("machine learning")

    assert first.shape == (32,)
    assert np.array_equal(first, second)
    assert np.linalg.norm(first) == pytest.approx(1.0)
    assert provider.calls == 2


@pytest.mark.asyncio
async def test_mock_embeddings_reflect_shared_vocabulary():
    """Test that texts sharing words are more similar than unrelated texts."""
    provider = MockEmbeddingProvider()
    query, related, unrelated = await provider.embed_batch([
        "machine learning",
        "machine learning algorithms",
        "cooking recipes",
    ])

    assert provider.calls == 1
    assert cosine_similarity(query, related) > cosine_similarity(query, unrelated)


@pytest.mark.asyncio
async def test_mock_generator_mentions_query():
    """Test the template hypothetical document."""
    generator = MockHypotheticalDocumentGenerator()
    text = await generator.generate("  Vector Search ")
    assert "vector search" in text
    assert generator.calls == 1


@pytest.mark.asyncio
async def test_openai_embed_batch():
    """Test embedding requests and index ordering."""
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"data": [
            {"index": 1, "embedding": [0.0, 1.0]},
            {"index": 0, "embedding": [1.0, 0.0]},
        ]})

    client = _client(handler)
    provider = OpenAIEmbeddingProvider(_config(embedding_model="embed-small"), client=client)
    vectors = await provider.embed_batch(["first", "second"])

    assert [v.tolist() for v in vectors] == [[1.0, 0.0], [0.0, 1.0]]
    assert requests[0].url.path == "/v1/embeddings"
    assert json.loads(requests[0].content) == {"model": "embed-small", "input": ["first", "second"]}
    assert await provider.embed_batch([]) == []
    await client.aclose()


@pytest.mark.asyncio
async def test_openai_embedding_count_mismatch():
    """Test that a short embedding response is rejected."""
    def handler(request):
        return httpx.Response(200, json={"data": [{"index": 0, "embedding": [1.0]}]})

    client = _client(handler)
    provider = OpenAIEmbeddingProvider(_config(), client=client)
    with pytest.raises(ProviderError):
        await provider.embed_batch(["one", "two"])
    await client.aclose()


@pytest.mark.asyncio
async def test_openai_error_status():
    """Test that non-200 responses raise ProviderError."""
    def handler(request):
        return httpx.Response(500, json={"error": "overloaded"})

    client = _client(handler)
    provider = OpenAIEmbeddingProvider(_config(), client=client)
    with pytest.raises(ProviderError) as excinfo:
        await provider.embed("text")
    assert excinfo.value.status_code == 500
    assert excinfo.value.provider == "openai"
    await client.aclose()


@pytest.mark.asyncio
async def test_openai_transport_error():
    """Test that connection failures raise ProviderError."""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    generator = OpenAIHypotheticalDocumentGenerator(_config(), client=client)
    with pytest.raises(ProviderError):
        await generator.generate("what is bm25")
    await client.aclose()


@pytest.mark.asyncio
async def test_openai_generate():
    """Test chat completion requests for hypothetical documents."""
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "  BM25 ranks documents.  "}}]})

    client = _client(handler)
    generator = OpenAIHypotheticalDocumentGenerator(
        _config(completion_model="chat-mini", max_tokens=64),
        hyde_config=HydeConfig(prompt_template="Answer: {query}"),
        client=client,
    )
    text = await generator.generate("what is bm25")

    assert text == "BM25 ranks documents."
    payload = json.loads(requests[0].content)
    assert requests[0].url.path == "/v1/chat/completions"
    assert payload["model"] == "chat-mini"
    assert payload["max_tokens"] == 64
    assert payload["messages"] == [{"role": "user", "content": "Answer: what is bm25"}]

    await generator.close()
    assert not client.is_closed
    await client.aclose()


@pytest.mark.asyncio
async def test_openai_malformed_completion():
    """Test that a completion without choices is rejected."""
    def handler(request):
        return httpx.Response(200, json={"choices": []})

    client = _client(handler)
    generator = OpenAIHypotheticalDocumentGenerator(_config(), client=client)
    with pytest.raises(ProviderError):
        await generator.generate("query")
    await client.aclose()


@pytest.mark.asyncio
async def test_create_providers():
    """Test provider selection."""
    embedding, generator = create_providers(ProviderConfig(provider="mock", mock_embedding_dimension=16))
    assert isinstance(embedding, MockEmbeddingProvider)
    assert embedding.dimension == 16
    assert isinstance(generator, MockHypotheticalDocumentGenerator)

    embedding, generator = create_providers(_config(provider="OpenAI"))
    assert isinstance(embedding, OpenAIEmbeddingProvider)
    assert isinstance(generator, OpenAIHypotheticalDocumentGenerator)
    await embedding.close()
    await generator.close()

    with pytest.raises(ValueError):
        create_providers(ProviderConfig(provider="unknown"))

"""OpenAI-compatible HTTP providers.

Talks to any endpoint implementing the OpenAI ``/embeddings`` and
``/chat/completions`` APIs (OpenAI, Azure-style gateways, Ollama's OpenAI
compatibility layer). Requests go through ``httpx.AsyncClient``; transport
errors, non-2xx responses and malformed payloads are raised as
``ProviderError``. Nothing is retried.
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx
import numpy as np
import structlog

from ..common.config import HydeConfig, ProviderConfig
from ..common.errors import ProviderError
from .base import EmbeddingProvider, HypotheticalDocumentGenerator

logger = structlog.get_logger("hybridsearch.providers.openai")


class _OpenAIClient:
    """Shared request plumbing for the OpenAI-compatible providers."""

    name = "openai"

    def __init__(self, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._owns_client = client is None
        headers = {"Content-Type": "application/json"}
        if config.openai_api_key:
            headers["Authorization"] = f"Bearer {config.openai_api_key}"
        self.http_client = client or httpx.AsyncClient(
            base_url=config.openai_base_url.rstrip("/"),
            headers=headers,
            timeout=config.timeout_seconds,
        )

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self.http_client.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.error("Provider request failed", path=path, error=str(e))
            raise ProviderError(self.name, f"request to {path} failed: {e}") from e

        if response.status_code != 200:
            logger.error("Provider returned error status", path=path, status_code=response.status_code)
            raise ProviderError(
                self.name,
                f"{path} returned status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(self.name, f"{path} returned invalid JSON") from e

    async def close(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()


class OpenAIEmbeddingProvider(_OpenAIClient, EmbeddingProvider):
    """Embeddings from an OpenAI-compatible ``/embeddings`` endpoint."""

    async def embed(self, text: str) -> np.ndarray:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: Sequence[str]) -> List[np.ndarray]:
        if not texts:
            return []

        data = await self._post("/embeddings", {
            "model": self.config.embedding_model,
            "input": list(texts),
        })

        try:
            items = sorted(data["data"], key=lambda item: item.get("index", 0))
            vectors = [np.asarray(item["embedding"], dtype=np.float64) for item in items]
        except (KeyError, TypeError) as e:
            raise ProviderError(self.name, "embedding response missing 'data[].embedding'") from e

        if len(vectors) != len(texts):
            raise ProviderError(self.name, f"expected {len(texts)} embeddings, got {len(vectors)}")

        logger.debug("Generated embeddings", count=len(vectors), model=self.config.embedding_model)
        return vectors


class OpenAIHypotheticalDocumentGenerator(_OpenAIClient, HypotheticalDocumentGenerator):
    """Hypothetical documents from an OpenAI-compatible chat completion endpoint."""

    def __init__(
        self,
        config: ProviderConfig,
        hyde_config: Optional[HydeConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(config, client=client)
        self.hyde_config = hyde_config or HydeConfig()

    def build_prompt(self, query: str) -> str:
        return self.hyde_config.prompt_template.replace("{query}", query)

    async def generate(self, query: str) -> str:
        data = await self._post("/chat/completions", {
            "model": self.config.completion_model,
            "messages": [{"role": "user", "content": self.build_prompt(query)}],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        })

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.name, "completion response missing 'choices[0].message.content'") from e

        return (content or "").strip()

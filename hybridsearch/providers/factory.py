"""Provider factory.

Centralizes creation of concrete providers so callers don't depend on
implementation details.
"""

from enum import Enum
from typing import Optional, Tuple

import structlog

from ..common.config import HydeConfig, ProviderConfig
from .base import EmbeddingProvider, HypotheticalDocumentGenerator
from .mock import MockEmbeddingProvider, MockHypotheticalDocumentGenerator
from .openai import OpenAIEmbeddingProvider, OpenAIHypotheticalDocumentGenerator

logger = structlog.get_logger("hybridsearch.providers.factory")


class ProviderType(Enum):
    """Supported provider backends."""
    MOCK = "mock"
    OPENAI = "openai"


def create_providers(
    config: Optional[ProviderConfig] = None,
    hyde_config: Optional[HydeConfig] = None,
) -> Tuple[EmbeddingProvider, HypotheticalDocumentGenerator]:
    """Create an embedding provider and a hypothetical document generator.

    Raises ``ValueError`` for unknown provider names.
    """
    config = config or ProviderConfig()
    try:
        provider_type = ProviderType(config.provider.strip().lower())
    except ValueError:
        raise ValueError(f"Unknown provider: {config.provider}") from None

    if provider_type == ProviderType.OPENAI:
        if not config.openai_api_key:
            logger.warning("OpenAI provider configured without an API key")
        embedding = OpenAIEmbeddingProvider(config)
        generator = OpenAIHypotheticalDocumentGenerator(config, hyde_config=hyde_config)
    else:
        embedding = MockEmbeddingProvider(dimension=config.mock_embedding_dimension)
        generator = MockHypotheticalDocumentGenerator()

    logger.info("Created providers", provider=provider_type.value)
    return embedding, generator

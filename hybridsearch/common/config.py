"""Configuration management for hybrid search.

This module centralizes environment-driven configuration for the scoring
engines, the HyDE semantic scorer, rank fusion and the model providers. It
builds on ``pydantic_settings.BaseSettings`` so configuration can be provided
via environment variables, ``.env`` files, or defaults.

Highlights
- Strongly-typed settings with the defaults the engines are tuned for
- One place to discover the ``HYBRID_*`` environment variables
- Small concern-specific classes so each component only sees its own knobs

Usage
- Construct directly: ``config = HybridSearchConfig()``
- Or select dynamically: ``config = get_config("fusion")``
"""

from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..ranking.strategies import RerankingStrategy
from ..scoring.normalization import NormalizationStrategy


class BaseConfig(BaseSettings):
    """Base configuration class for all components.

    Every setting is read from the environment as ``HYBRID_<FIELD_NAME>``.

    Notes
    - Add shared settings here so component configs inherit them.
    - Prefer declaring a field over reading ``os.environ`` directly.
    """

    model_config = SettingsConfigDict(
        env_prefix="HYBRID_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")


class LoggingConfig(BaseConfig):
    """Logging level and renderer used by ``configure_logging``."""

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")
    service_name: str = Field(default="hybrid-search")


class BM25Config(BaseConfig):
    """BM25 term-frequency saturation (``k1``) and length normalization (``b``)."""

    k1: float = Field(default=1.2, ge=0.0)
    b: float = Field(default=0.75, ge=0.0, le=1.0)


class HydeConfig(BaseConfig):
    """Configuration for HyDE semantic scoring.

    ``hyde_weight`` and ``traditional_weight`` are applied as given; they are
    not required to sum to one.
    """

    hyde_weight: float = Field(default=0.7)
    traditional_weight: float = Field(default=0.3)
    hyde_max_results: int = Field(default=10, ge=1)
    similarity_threshold: float = Field(default=0.1)
    prompt_template: str = Field(
        default="Write a passage that would answer this question: {query}\n\nPassage:"
    )


class HybridSearchConfig(BaseConfig):
    """Configuration for fusing BM25 and HyDE results.

    Extends ``BaseConfig`` with signal weights, the normalization and
    reranking strategies, and the final threshold/limit applied to fused
    results.
    """

    bm25_weight: float = Field(default=0.3)
    semantic_weight: float = Field(default=0.7)
    max_results: int = Field(default=10, ge=1)
    score_threshold: float = Field(default=0.01)
    enable_bm25: bool = Field(default=True)
    enable_hyde: bool = Field(default=True)
    normalization_strategy: NormalizationStrategy = Field(default=NormalizationStrategy.MIN_MAX)
    reranking_strategy: RerankingStrategy = Field(default=RerankingStrategy.WEIGHTED_SUM)
    rrf_k: float = Field(default=60.0, gt=0.0)
    degrade_on_semantic_failure: bool = Field(default=True)

    @field_validator("normalization_strategy", mode="before")
    @classmethod
    def _parse_normalization(cls, value: Any) -> NormalizationStrategy:
        return NormalizationStrategy.parse(value)

    @field_validator("reranking_strategy", mode="before")
    @classmethod
    def _parse_reranking(cls, value: Any) -> RerankingStrategy:
        # Unknown names resolve to weighted sum.
        return RerankingStrategy.parse(value)


class ProviderConfig(BaseConfig):
    """Configuration for the embedding and hypothetical-document providers.

    ``provider`` selects ``mock`` (offline, deterministic) or ``openai`` (any
    OpenAI-compatible HTTP endpoint).
    """

    provider: str = Field(default="mock")
    openai_api_key: Optional[str] = Field(default=None)
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    embedding_model: str = Field(default="text-embedding-3-small")
    completion_model: str = Field(default="gpt-4o-mini")
    max_tokens: int = Field(default=1000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0)
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    mock_embedding_dimension: int = Field(default=384, ge=1)


def get_config(name: str, env_file: Optional[str] = None) -> BaseConfig:
    """Get configuration for a specific component.

    Parameters
    - name: Literal name: ``logging``, ``bm25``, ``hyde``, ``fusion`` or
      ``providers``.
    - env_file: Optional dotenv file read instead of ``.env``.

    Returns
    - A concrete ``BaseConfig`` subclass pre-wired to read the right env vars.
    """
    config_map = {
        "logging": LoggingConfig,
        "bm25": BM25Config,
        "hyde": HydeConfig,
        "fusion": HybridSearchConfig,
        "providers": ProviderConfig,
    }

    # Default to ``BaseConfig`` to avoid surprising crashes for unknown names.
    config_class = config_map.get(name, BaseConfig)
    if env_file:
        return config_class(_env_file=env_file)
    return config_class()


"""Tests for common utilities."""

import pytest
from prometheus_client import CollectorRegistry

from hybridsearch.common.config import (
    BaseConfig,
    BM25Config,
    HybridSearchConfig,
    HydeConfig,
    LoggingConfig,
    ProviderConfig,
    get_config,
)
from hybridsearch.common.errors import HybridSearchError, ProviderError, VectorDimensionError
from hybridsearch.common.logging import configure_logging, configure_logging_from_config, get_logger, log_performance
from hybridsearch.common.metrics import MetricsCollector, measure_time
from hybridsearch.ranking.strategies import RerankingStrategy
from hybridsearch.scoring.normalization import NormalizationStrategy


def test_config_loading():
    """Test configuration loading."""
    config = BaseConfig()
    assert config.env == "local"


def test_hybrid_search_config_defaults():
    """Test fusion configuration defaults."""
    config = HybridSearchConfig()
    assert config.bm25_weight == 0.3
    assert config.semantic_weight == 0.7
    assert config.max_results == 10
    assert config.score_threshold == 0.01
    assert config.rrf_k == 60.0
    assert config.normalization_strategy is NormalizationStrategy.MIN_MAX
    assert config.reranking_strategy is RerankingStrategy.WEIGHTED_SUM
    assert config.enable_bm25 and config.enable_hyde


def test_bm25_and_hyde_config_defaults():
    """Test scorer configuration defaults."""
    assert BM25Config().k1 == 1.2
    assert BM25Config().b == 0.75
    hyde = HydeConfig()
    assert hyde.traditional_weight == 0.3
    assert hyde.hyde_weight == 0.7
    assert hyde.similarity_threshold == 0.1


def test_config_from_environment(monkeypatch):
    """Test configuration from HYBRID_* environment variables."""
    monkeypatch.setenv("HYBRID_BM25_WEIGHT", "0.5")
    monkeypatch.setenv("HYBRID_RERANKING_STRATEGY", "rrf")
    monkeypatch.setenv("HYBRID_NORMALIZATION_STRATEGY", "zscore")
    monkeypatch.setenv("HYBRID_K1", "2.0")

    config = HybridSearchConfig()
    assert config.bm25_weight == 0.5
    assert config.reranking_strategy is RerankingStrategy.RECIPROCAL_RANK_FUSION
    assert config.normalization_strategy is NormalizationStrategy.Z_SCORE
    assert BM25Config().k1 == 2.0


def test_unknown_reranking_strategy_falls_back():
    """Test that an unknown reranking strategy resolves to weighted sum."""
    config = HybridSearchConfig(reranking_strategy="Nonsense")
    assert config.reranking_strategy is RerankingStrategy.WEIGHTED_SUM


def test_unknown_normalization_strategy_rejected():
    """Test that an unknown normalization strategy fails validation."""
    with pytest.raises(ValueError):
        HybridSearchConfig(normalization_strategy="Nonsense")


def test_get_config():
    """Test component configuration lookup."""
    assert isinstance(get_config("fusion"), HybridSearchConfig)
    assert isinstance(get_config("providers"), ProviderConfig)
    assert type(get_config("unknown")) is BaseConfig


def test_get_config_reads_env_file(tmp_path):
    """Test reading settings from an explicit dotenv file."""
    env_file = tmp_path / "search.env"
    env_file.write_text(
        "# comment\n"
        "HYBRID_MAX_RESULTS=5\n"
        "OTHER_SETTING=1\n"
        "HYBRID_PROVIDER=openai\n"
    )

    assert get_config("fusion", str(env_file)).max_results == 5
    assert get_config("providers", str(env_file)).provider == "openai"
    assert get_config("fusion").max_results == 10


def test_logging_configuration():
    """Test logging configuration."""
    # This should not raise an exception
    configure_logging("test-service", "INFO", "json")
    configure_logging("test-service", "debug", "console")
    get_logger("tests").info("configured", check=True)
    log_performance("unit_test", 1.5, items=3)
    configure_logging_from_config(LoggingConfig(log_level="WARNING", log_format="console"))


def test_logging_rejects_unknown_level():
    """Test that an unknown log level is rejected."""
    with pytest.raises(ValueError):
        configure_logging("test-service", "LOUD", "json")


def test_metrics_collector():
    """Test metrics collector."""
    registry = CollectorRegistry()
    collector = MetricsCollector("test-service", registry=registry)
    assert collector.service_name == "test-service"

    collector.record_search("WeightedSum", 0.1)
    collector.record_signal_results("bm25", 4)
    collector.record_index(12, 0.2)
    collector.record_semantic_failure("openai")

    assert registry.get_sample_value("hybrid_search_requests_total", {"strategy": "WeightedSum"}) == 1.0
    assert registry.get_sample_value("hybrid_search_indexed_documents") == 12.0
    assert registry.get_sample_value("hybrid_search_semantic_failures_total", {"provider": "openai"}) == 1.0

    metrics = collector.get_metrics()
    assert isinstance(metrics, str)
    assert "hybrid_search_duration_seconds" in metrics


def test_measure_time_reraises():
    """Test that measure_time passes results through and re-raises failures."""
    @measure_time("ok")
    def succeed(value):
        return value * 2

    @measure_time("broken")
    def fail():
        raise RuntimeError("boom")

    assert succeed(21) == 42
    with pytest.raises(RuntimeError):
        fail()


def test_error_hierarchy():
    """Test exception types."""
    error = VectorDimensionError(3, 4)
    assert isinstance(error, HybridSearchError)
    assert isinstance(error, ValueError)
    assert error.left == 3 and error.right == 4

    provider_error = ProviderError("openai", "timeout", status_code=504)
    assert provider_error.provider == "openai"
    assert provider_error.status_code == 504
    assert "timeout" in str(provider_error)

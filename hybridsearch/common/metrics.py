"""Metrics collection for hybrid search.

Provides a thin convenience wrapper around ``prometheus_client`` so the search
manager records searches, per-signal result counts, index size and semantic
failures consistently.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- Each collector owns its registry (inject one for testing)
- ``measure_time`` is provided for quick timing of synchronous operations
"""

import time
from functools import wraps
from typing import Any, Callable, Optional

import structlog
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

logger = structlog.get_logger("hybridsearch.metrics")


class MetricsCollector:
    """Centralized metrics collection for hybrid search.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.search_requests = Counter(
            'hybrid_search_requests_total',
            'Total hybrid search requests',
            ['strategy'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'hybrid_search_duration_seconds',
            'Hybrid search duration',
            ['strategy'],
            registry=self.registry
        )

        self.signal_results = Histogram(
            'hybrid_search_signal_results',
            'Number of results produced by each retrieval signal',
            ['signal'],
            buckets=(0, 1, 5, 10, 25, 50, 100, 250, 1000),
            registry=self.registry
        )

        self.indexed_documents = Gauge(
            'hybrid_search_indexed_documents',
            'Number of documents in the BM25 corpus snapshot',
            registry=self.registry
        )

        self.index_duration = Histogram(
            'hybrid_search_index_duration_seconds',
            'Duration of a full index rebuild',
            registry=self.registry
        )

        self.semantic_failures = Counter(
            'hybrid_search_semantic_failures_total',
            'Semantic scoring failures caused by provider errors',
            ['provider'],
            registry=self.registry
        )

    def record_search(self, strategy: str, duration: float) -> None:
        """Record a completed search.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.search_requests.labels(strategy=strategy).inc()
        self.search_duration.labels(strategy=strategy).observe(duration)

    def record_signal_results(self, signal: str, count: int) -> None:
        """Record how many results a signal (``bm25`` or ``hyde``) produced."""
        self.signal_results.labels(signal=signal).observe(count)

    def record_index(self, document_count: int, duration: float) -> None:
        """Record an index rebuild."""
        self.indexed_documents.set(document_count)
        self.index_duration.observe(duration)

    def record_semantic_failure(self, provider: str) -> None:
        """Record a semantic scoring failure."""
        self.semantic_failures.labels(provider=provider).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str = "hybrid-search") -> MetricsCollector:
    """Get or create the process-wide metrics collector.

    Returns a singleton to avoid duplicate collectors/labels.
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
    return _metrics_collector


def measure_time(operation: str, **labels: Any) -> Callable:
    """Decorator to log the execution time of a synchronous function.

    Example
    >>> @measure_time("bm25_index", engine="memory")
    ... def index(documents):
    ...     ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.error(
                    f"Operation {operation} failed",
                    operation=operation,
                    duration_ms=duration * 1000,
                    error=str(e),
                    **labels
                )
                raise
            duration = time.perf_counter() - start_time
            logger.debug(
                f"Operation {operation} completed",
                operation=operation,
                duration_ms=duration * 1000,
                **labels
            )
            return result
        return wrapper
    return decorator

"""Search manager for hybrid lexical and semantic search.

Combines BM25 (lexical) with HyDE embedding similarity (semantic) and merges
the two result lists with a configurable rank fusion strategy. Both signals
are computed concurrently for every query; fusion waits for both.
"""

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Union

import structlog

from ..common.config import BM25Config, HybridSearchConfig, HydeConfig
from ..common.errors import ProviderError
from ..common.logging import log_performance
from ..common.metrics import MetricsCollector, get_metrics_collector
from ..models import Document, FusedResult, LexicalResult, SemanticResult
from ..providers.base import EmbeddingProvider, HypotheticalDocumentGenerator
from ..ranking.fusion import FusionEngine
from ..ranking.strategies import RerankingStrategy
from ..scoring.bm25 import BM25Engine
from ..semantic.hyde import HydeSearchService
from ..store.document_store import DocumentStore, InMemoryDocumentStore

logger = structlog.get_logger("hybridsearch.search_manager")


@dataclass(frozen=True)
class SearchOutcome:
    """Fused results plus the per-signal details of one search."""
    query: str
    results: List[FusedResult]
    strategy: RerankingStrategy
    bm25_enabled: bool
    hyde_enabled: bool
    bm25_result_count: int
    hyde_result_count: int
    bm25_weight: float
    semantic_weight: float
    latency_ms: float
    semantic_error: Optional[str] = None

    @property
    def total_results(self) -> int:
        return len(self.results)


@dataclass(frozen=True)
class _SignalResults:
    lexical: List[LexicalResult] = field(default_factory=list)
    semantic: List[SemanticResult] = field(default_factory=list)
    semantic_error: Optional[str] = None


class HybridSearchManager:
    """Manages hybrid search operations.

    Responsibilities
    - Keep document embeddings and the BM25 corpus statistics in step with
      the document store
    - Score each query lexically and semantically in parallel
    - Fuse, filter and return ranked results

    Usage:
        manager = HybridSearchManager(
            document_store=InMemoryDocumentStore(),
            embedding_provider=embedding,
            hypothetical_generator=generator,
        )
        await manager.index_documents(documents)
        results = await manager.search("machine learning")
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        hypothetical_generator: HypotheticalDocumentGenerator,
        document_store: Optional[DocumentStore] = None,
        config: Optional[HybridSearchConfig] = None,
        bm25_config: Optional[BM25Config] = None,
        hyde_config: Optional[HydeConfig] = None,
        bm25_engine: Optional[BM25Engine] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Construct a search manager.

        Parameters
        - embedding_provider / hypothetical_generator: semantic collaborators
        - document_store: defaults to an ``InMemoryDocumentStore``
        - config: fusion settings; ``bm25_config`` / ``hyde_config`` tune
          the individual scorers
        - bm25_engine: prebuilt engine (overrides ``bm25_config``)
        - metrics: defaults to the process-wide collector
        """
        self.config = config or HybridSearchConfig()
        self.document_store = document_store or InMemoryDocumentStore()
        self.bm25_engine = bm25_engine or BM25Engine.from_config(bm25_config or BM25Config())
        self.hyde_service = HydeSearchService(embedding_provider, hypothetical_generator, hyde_config)
        self.fusion_engine = FusionEngine(self.config)
        self.metrics = metrics or get_metrics_collector()
        # Serializes store writes with the BM25 rebuild that follows them.
        self._index_lock = asyncio.Lock()

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        return self.hyde_service.embedding_provider

    async def index_documents(self, documents: Iterable[Document]) -> int:
        """Embed, store and lexically index ``documents``.

        Documents without an embedding are embedded in one batch call. The
        BM25 statistics are then rebuilt over the store's full contents.
        Concurrent calls rebuild one at a time in the order they reach the
        store, so the last rebuild always reflects every stored document.
        Returns the number of documents written.
        """
        start_time = time.perf_counter()
        documents = list(documents)
        logger.info("Indexing documents for hybrid search", document_count=len(documents))

        documents = await self.hyde_service.embed_documents(documents)
        async with self._index_lock:
            written = await self.document_store.add_documents(documents)
            corpus = await self.document_store.get_all_documents()
            if self.config.enable_bm25:
                await asyncio.to_thread(self.bm25_engine.index, corpus)

        duration = time.perf_counter() - start_time
        self.metrics.record_index(len(corpus), duration)
        logger.info(
            "Indexed documents for hybrid search",
            document_count=written,
            corpus_size=len(corpus),
            duration_ms=round(duration * 1000, 3),
        )
        return written

    async def search(
        self,
        query: str,
        strategy: Union[RerankingStrategy, str, None] = None,
    ) -> List[FusedResult]:
        """Perform hybrid search and return fused results, best first."""
        outcome = await self.search_with_details(query, strategy=strategy)
        return outcome.results

    async def search_with_details(
        self,
        query: str,
        strategy: Union[RerankingStrategy, str, None] = None,
    ) -> SearchOutcome:
        """Perform hybrid search and report per-signal counts and latency."""
        start_time = time.perf_counter()
        params = self.fusion_engine.resolve(strategy=strategy)

        if not query or not query.strip():
            logger.warning("Empty query provided to hybrid search")
            return self._outcome(query, [], params.strategy, _SignalResults(), start_time)

        documents = await self.document_store.get_all_documents()
        if not documents:
            logger.warning("No documents found in the index")
            return self._outcome(query, [], params.strategy, _SignalResults(), start_time)

        signals = await self._score_signals(query, documents)
        results = self.fusion_engine.fuse_with(signals.lexical, signals.semantic, params)

        outcome = self._outcome(query, results, params.strategy, signals, start_time)
        self.metrics.record_search(params.strategy.value, outcome.latency_ms / 1000)
        logger.info(
            "Hybrid search completed",
            query=query,
            strategy=params.strategy.value,
            bm25_results=outcome.bm25_result_count,
            hyde_results=outcome.hyde_result_count,
            results_count=outcome.total_results,
        )
        return outcome

    async def compare_strategies(self, query: str) -> Dict[RerankingStrategy, List[FusedResult]]:
        """Score ``query`` once and fuse it with every reranking strategy."""
        comparison: Dict[RerankingStrategy, List[FusedResult]] = {strategy: [] for strategy in RerankingStrategy}
        if not query or not query.strip():
            return comparison

        documents = await self.document_store.get_all_documents()
        if not documents:
            return comparison

        signals = await self._score_signals(query, documents)
        for strategy in RerankingStrategy:
            params = self.fusion_engine.resolve(strategy=strategy)
            comparison[strategy] = self.fusion_engine.fuse_with(signals.lexical, signals.semantic, params)
        return comparison

    async def get_indexed_document_count(self) -> int:
        return await self.document_store.count()

    async def clear_index(self) -> None:
        """Remove every document and drop the BM25 statistics."""
        logger.info("Clearing hybrid search index")
        async with self._index_lock:
            await self.document_store.clear()
            self.bm25_engine.clear()
        self.metrics.record_index(0, 0.0)

    async def close(self) -> None:
        """Release provider resources."""
        await self.hyde_service.embedding_provider.close()
        await self.hyde_service.hypothetical_generator.close()

    async def _score_signals(self, query: str, documents: Sequence[Document]) -> _SignalResults:
        """Run both scorers concurrently and wait for both to finish."""
        lexical_task = self._score_lexical(query, documents)
        semantic_task = self._score_semantic(query, documents)
        lexical, semantic = await asyncio.gather(lexical_task, semantic_task, return_exceptions=True)

        if isinstance(lexical, BaseException):
            raise lexical

        semantic_error = None
        if isinstance(semantic, ProviderError):
            self.metrics.record_semantic_failure(semantic.provider)
            if not self.config.degrade_on_semantic_failure:
                raise semantic
            logger.error("Semantic scoring failed, using lexical results only", error=str(semantic))
            semantic_error = str(semantic)
            semantic = []
        elif isinstance(semantic, BaseException):
            raise semantic

        self.metrics.record_signal_results("bm25", len(lexical))
        self.metrics.record_signal_results("hyde", len(semantic))
        logger.debug("Signals scored", bm25_results=len(lexical), hyde_results=len(semantic))
        return _SignalResults(lexical=lexical, semantic=semantic, semantic_error=semantic_error)

    async def _score_lexical(self, query: str, documents: Sequence[Document]) -> List[LexicalResult]:
        if not self.config.enable_bm25:
            return []

        cancel_event = threading.Event()
        try:
            return await asyncio.to_thread(self.bm25_engine.score, query, documents, cancel_event)
        except asyncio.CancelledError:
            cancel_event.set()
            raise

    async def _score_semantic(self, query: str, documents: Sequence[Document]) -> List[SemanticResult]:
        if not self.config.enable_hyde:
            return []
        start_time = time.perf_counter()
        results = await self.hyde_service.score_semantic(query, documents)
        log_performance("hyde_scoring", (time.perf_counter() - start_time) * 1000, results=len(results))
        return results

    def _outcome(
        self,
        query: str,
        results: List[FusedResult],
        strategy: RerankingStrategy,
        signals: _SignalResults,
        start_time: float,
    ) -> SearchOutcome:
        return SearchOutcome(
            query=query,
            results=results,
            strategy=strategy,
            bm25_enabled=self.config.enable_bm25,
            hyde_enabled=self.config.enable_hyde,
            bm25_result_count=len(signals.lexical),
            hyde_result_count=len(signals.semantic),
            bm25_weight=self.config.bm25_weight,
            semantic_weight=self.config.semantic_weight,
            latency_ms=(time.perf_counter() - start_time) * 1000,
            semantic_error=signals.semantic_error,
        )

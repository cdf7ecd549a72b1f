"""Result fusion algorithms for hybrid search.

Merges a BM25 result list and a HyDE semantic result list into one ranked
list. The output is the union of both inputs keyed by document id; raw and
(where the strategy uses them) normalized per-signal scores are attached to
every fused result.

Strategies
- ``WeightedSum``: normalized scores times signal weights, summed
- ``ReciprocalRankFusion``: ``Σ weight / (k + rank)`` over the signals
- ``CombSum``: normalized scores summed without weights
- ``CombMax``: the larger normalized score
- ``BordaCount``: rank positions converted to points, weighted and summed

After scoring, results below the score threshold are dropped, the rest are
sorted by combined score (stable for ties) and truncated to the limit.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import structlog

from ..common.config import HybridSearchConfig
from ..models import Document, FusedResult, LexicalResult, SemanticResult
from ..scoring.normalization import NormalizationStrategy, normalize_scores
from .strategies import RerankingStrategy

logger = structlog.get_logger("hybridsearch.fusion")


@dataclass
class _Entry:
    """Per-document accumulator used while a fusion pass is running."""
    document: Document
    combined: float = 0.0
    bm25_score: Optional[float] = None
    semantic_score: Optional[float] = None
    normalized_bm25: Optional[float] = None
    normalized_semantic: Optional[float] = None
    traditional_similarity: Optional[float] = None
    hypothetical_document: Optional[str] = None

    def freeze(self) -> FusedResult:
        return FusedResult(
            document=self.document,
            combined_score=self.combined,
            bm25_score=self.bm25_score,
            semantic_score=self.semantic_score,
            normalized_bm25_score=self.normalized_bm25,
            normalized_semantic_score=self.normalized_semantic,
            traditional_similarity=self.traditional_similarity,
            hypothetical_document=self.hypothetical_document,
        )


@dataclass(frozen=True)
class FusionParameters:
    """Resolved knobs for one fusion pass."""
    strategy: RerankingStrategy
    bm25_weight: float
    semantic_weight: float
    normalization: NormalizationStrategy
    rrf_k: float
    score_threshold: float
    max_results: int


def _rank_positions(ids_and_scores: Sequence[Tuple[str, float]]) -> Dict[str, int]:
    """Map document id to its 0-based position after a stable descending sort."""
    ordered = sorted(ids_and_scores, key=lambda item: item[1], reverse=True)
    positions: Dict[str, int] = {}
    for position, (doc_id, _) in enumerate(ordered):
        positions.setdefault(doc_id, position)
    return positions


class FusionEngine:
    """Fuse lexical and semantic result lists.

    Usage:
        engine = FusionEngine(HybridSearchConfig())
        fused = engine.fuse(bm25_results, semantic_results)
        fused = engine.fuse(bm25_results, semantic_results, strategy="CombMax")
    """

    def __init__(self, config: Optional[HybridSearchConfig] = None):
        self.config = config or HybridSearchConfig()
        self._dispatch: Dict[RerankingStrategy, Callable] = {
            RerankingStrategy.WEIGHTED_SUM: self._weighted_sum,
            RerankingStrategy.RECIPROCAL_RANK_FUSION: self._reciprocal_rank_fusion,
            RerankingStrategy.COMB_SUM: self._comb_sum,
            RerankingStrategy.COMB_MAX: self._comb_max,
            RerankingStrategy.BORDA_COUNT: self._borda_count,
        }

    def resolve(
        self,
        strategy: Union[RerankingStrategy, str, None] = None,
        bm25_weight: Optional[float] = None,
        semantic_weight: Optional[float] = None,
        normalization: Union[NormalizationStrategy, str, None] = None,
        rrf_k: Optional[float] = None,
        score_threshold: Optional[float] = None,
        max_results: Optional[int] = None,
    ) -> FusionParameters:
        """Fill unspecified parameters from the engine configuration."""
        config = self.config
        if normalization is None:
            normalization = config.normalization_strategy
        return FusionParameters(
            strategy=RerankingStrategy.parse(strategy if strategy is not None else config.reranking_strategy),
            bm25_weight=config.bm25_weight if bm25_weight is None else bm25_weight,
            semantic_weight=config.semantic_weight if semantic_weight is None else semantic_weight,
            normalization=normalization if isinstance(normalization, NormalizationStrategy)
            else _parse_normalization(normalization),
            rrf_k=config.rrf_k if rrf_k is None else rrf_k,
            score_threshold=config.score_threshold if score_threshold is None else score_threshold,
            max_results=config.max_results if max_results is None else max_results,
        )

    def fuse(
        self,
        lexical_results: Sequence[LexicalResult],
        semantic_results: Sequence[SemanticResult],
        strategy: Union[RerankingStrategy, str, None] = None,
        bm25_weight: Optional[float] = None,
        semantic_weight: Optional[float] = None,
        normalization: Union[NormalizationStrategy, str, None] = None,
        rrf_k: Optional[float] = None,
        score_threshold: Optional[float] = None,
        max_results: Optional[int] = None,
    ) -> List[FusedResult]:
        """Fuse the two result lists into one ranked list.

        Parameters left as ``None`` come from the engine's configuration.
        """
        params = self.resolve(
            strategy=strategy,
            bm25_weight=bm25_weight,
            semantic_weight=semantic_weight,
            normalization=normalization,
            rrf_k=rrf_k,
            score_threshold=score_threshold,
            max_results=max_results,
        )
        return self.fuse_with(lexical_results, semantic_results, params)

    def fuse_with(
        self,
        lexical_results: Sequence[LexicalResult],
        semantic_results: Sequence[SemanticResult],
        params: FusionParameters,
    ) -> List[FusedResult]:
        """Fuse with fully resolved parameters."""
        apply = self._dispatch.get(params.strategy, self._weighted_sum)
        entries = apply(list(lexical_results), list(semantic_results), params)

        fused = [entry.freeze() for entry in entries.values() if entry.combined >= params.score_threshold]
        fused.sort(key=lambda r: r.combined_score, reverse=True)
        fused = fused[:max(params.max_results, 0)]

        logger.debug(
            "Fusion completed",
            strategy=params.strategy.value,
            lexical_count=len(lexical_results),
            semantic_count=len(semantic_results),
            candidate_count=len(entries),
            fused_count=len(fused),
        )
        return fused

    def _normalized_lookups(
        self,
        lexical: List[LexicalResult],
        semantic: List[SemanticResult],
        params: FusionParameters,
    ) -> Tuple[Dict[str, float], Dict[str, float]]:
        lexical_norm = normalize_scores([r.score for r in lexical], params.normalization)
        semantic_norm = normalize_scores([r.similarity for r in semantic], params.normalization)
        lexical_lookup: Dict[str, float] = {}
        for result, value in zip(lexical, lexical_norm):
            lexical_lookup.setdefault(result.document.id, value)
        semantic_lookup: Dict[str, float] = {}
        for result, value in zip(semantic, semantic_norm):
            semantic_lookup.setdefault(result.document.id, value)
        return lexical_lookup, semantic_lookup

    @staticmethod
    def _collect(lexical: List[LexicalResult], semantic: List[SemanticResult]) -> Dict[str, _Entry]:
        """Union of both lists keyed by id, carrying raw per-signal scores."""
        entries: Dict[str, _Entry] = {}
        for result in lexical:
            if result.document.id in entries:
                continue
            entries[result.document.id] = _Entry(document=result.document, bm25_score=result.score)
        for result in semantic:
            entry = entries.get(result.document.id)
            if entry is None:
                entry = _Entry(document=result.document)
                entries[result.document.id] = entry
            elif entry.semantic_score is not None:
                continue
            entry.semantic_score = result.similarity
            entry.traditional_similarity = result.traditional_similarity
            entry.hypothetical_document = result.hypothetical_document
        return entries

    def _weighted_sum(self, lexical, semantic, params: FusionParameters) -> Dict[str, _Entry]:
        """Normalize each list, weight, and add per document."""
        entries = self._collect(lexical, semantic)
        lexical_norm, semantic_norm = self._normalized_lookups(lexical, semantic, params)
        for doc_id, value in lexical_norm.items():
            entry = entries[doc_id]
            entry.normalized_bm25 = value
            entry.combined += value * params.bm25_weight
        for doc_id, value in semantic_norm.items():
            entry = entries[doc_id]
            entry.normalized_semantic = value
            entry.combined += value * params.semantic_weight
        return entries

    def _reciprocal_rank_fusion(self, lexical, semantic, params: FusionParameters) -> Dict[str, _Entry]:
        """RRF(d) = Σ weight / (k + rank(d)) with rank 1 the best position."""
        entries = self._collect(lexical, semantic)
        lexical_positions = _rank_positions([(r.document.id, r.score) for r in lexical])
        semantic_positions = _rank_positions([(r.document.id, r.similarity) for r in semantic])
        for doc_id, entry in entries.items():
            if doc_id in lexical_positions:
                entry.combined += params.bm25_weight / (params.rrf_k + lexical_positions[doc_id] + 1)
            if doc_id in semantic_positions:
                entry.combined += params.semantic_weight / (params.rrf_k + semantic_positions[doc_id] + 1)
        return entries

    def _comb_sum(self, lexical, semantic, params: FusionParameters) -> Dict[str, _Entry]:
        """Sum of normalized scores; a missing signal contributes zero."""
        entries = self._collect(lexical, semantic)
        lexical_norm, semantic_norm = self._normalized_lookups(lexical, semantic, params)
        for doc_id, entry in entries.items():
            entry.normalized_bm25 = lexical_norm.get(doc_id, 0.0)
            entry.normalized_semantic = semantic_norm.get(doc_id, 0.0)
            entry.combined = entry.normalized_bm25 + entry.normalized_semantic
        return entries

    def _comb_max(self, lexical, semantic, params: FusionParameters) -> Dict[str, _Entry]:
        """Larger of the normalized scores; a missing signal counts as zero."""
        entries = self._collect(lexical, semantic)
        lexical_norm, semantic_norm = self._normalized_lookups(lexical, semantic, params)
        for doc_id, entry in entries.items():
            entry.normalized_bm25 = lexical_norm.get(doc_id, 0.0)
            entry.normalized_semantic = semantic_norm.get(doc_id, 0.0)
            entry.combined = max(entry.normalized_bm25, entry.normalized_semantic)
        return entries

    def _borda_count(self, lexical, semantic, params: FusionParameters) -> Dict[str, _Entry]:
        """Each signal awards ``total - position`` points, scaled by its weight.

        ``total`` is the length of the longer list, so the best document of
        either list receives ``total`` points before weighting.
        """
        entries = self._collect(lexical, semantic)
        total = max(len(lexical), len(semantic))
        lexical_positions = _rank_positions([(r.document.id, r.score) for r in lexical])
        semantic_positions = _rank_positions([(r.document.id, r.similarity) for r in semantic])
        for doc_id, entry in entries.items():
            if doc_id in lexical_positions:
                entry.combined += (total - lexical_positions[doc_id]) * params.bm25_weight
            if doc_id in semantic_positions:
                entry.combined += (total - semantic_positions[doc_id]) * params.semantic_weight
        return entries


def _parse_normalization(value) -> NormalizationStrategy:
    try:
        return NormalizationStrategy.parse(value)
    except ValueError:
        logger.warning("Unknown normalization strategy, using raw scores", strategy=str(value))
        return NormalizationStrategy.NONE


def fuse_results(
    lexical_results: Sequence[LexicalResult],
    semantic_results: Sequence[SemanticResult],
    strategy: Union[RerankingStrategy, str] = RerankingStrategy.WEIGHTED_SUM,
    bm25_weight: float = 0.3,
    semantic_weight: float = 0.7,
    normalization: Union[NormalizationStrategy, str] = NormalizationStrategy.MIN_MAX,
    score_threshold: float = 0.01,
    max_results: int = 10,
    rrf_k: float = 60.0,
) -> List[FusedResult]:
    """Fuse two result lists with explicit parameters.

    Formula (weighted sum): score = w_bm25 * norm(s_bm25) + w_sem * norm(s_sem)
    """
    engine = FusionEngine(HybridSearchConfig(
        bm25_weight=bm25_weight,
        semantic_weight=semantic_weight,
        rrf_k=rrf_k,
        score_threshold=score_threshold,
        max_results=max(max_results, 1),
    ))
    return engine.fuse(
        lexical_results,
        semantic_results,
        strategy=strategy,
        normalization=normalization,
        max_results=max_results,
    )


def create_fusion_engine(config: Optional[HybridSearchConfig] = None) -> FusionEngine:
    """Create a fusion engine instance."""
    return FusionEngine(config)

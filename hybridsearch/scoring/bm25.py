"""In-memory BM25 lexical scoring.

Captures exact term matches that embedding similarity misses (product codes,
names, rare technical terms).

The engine owns one corpus statistics snapshot. ``index`` builds a complete
new snapshot and swaps it in under a lock, so concurrent scorers observe
either the previous snapshot or the new one and never a partial rebuild.
Scoring before the first ``index`` call returns no results.
"""

import math
import re
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

import structlog

from ..common.errors import ScoringCancelledError
from ..common.metrics import measure_time
from ..models import Document, LexicalResult

logger = structlog.get_logger("hybridsearch.bm25")

DEFAULT_K1 = 1.2
DEFAULT_B = 0.75

STOP_WORDS: FrozenSet[str] = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
    "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
    "to", "was", "will", "with", "this", "but", "they", "have",
    "had", "what", "said", "each", "which", "she", "do", "how", "their",
    "if", "up", "other", "about", "out", "many", "then", "them",
})

_TOKEN_SPLIT = re.compile(r"[^\w\d]+")


def tokenize(text: str) -> List[str]:
    """Lower-case, split on non-alphanumeric runs, drop short tokens and stop words."""
    if not text or not text.strip():
        return []
    return [
        token
        for token in _TOKEN_SPLIT.split(text.lower())
        if len(token) >= 2 and token not in STOP_WORDS
    ]


def inverse_document_frequency(document_frequency: int, total_documents: int) -> float:
    """Classic BM25 IDF: ``ln((N - df + 0.5) / (df + 0.5))``.

    Negative for terms present in more than half the corpus; not clamped.
    """
    if document_frequency == 0 or total_documents == 0:
        return 0.0
    return math.log((total_documents - document_frequency + 0.5) / (document_frequency + 0.5))


@dataclass(frozen=True)
class DocumentStats:
    length: int
    term_counts: Mapping[str, int]


@dataclass(frozen=True)
class CorpusStatistics:
    """Immutable snapshot of everything BM25 needs to score a query."""
    documents: Mapping[str, DocumentStats] = field(default_factory=dict)
    idf: Mapping[str, float] = field(default_factory=dict)
    average_document_length: float = 0.0

    @property
    def document_count(self) -> int:
        return len(self.documents)

    @classmethod
    def build(cls, documents: Iterable[Document]) -> "CorpusStatistics":
        stats: Dict[str, DocumentStats] = {}
        document_frequency: Counter = Counter()
        total_length = 0

        for document in documents:
            terms = tokenize(document.text)
            term_counts = Counter(terms)
            total_length += len(terms)
            previous = stats.get(document.id)
            if previous is not None:
                # Same id indexed twice: the later copy replaces the earlier one.
                total_length -= previous.length
                document_frequency.subtract(previous.term_counts.keys())
            stats[document.id] = DocumentStats(length=len(terms), term_counts=dict(term_counts))
            document_frequency.update(term_counts.keys())

        total_documents = len(stats)
        average_length = total_length / total_documents if total_documents else 0.0
        idf = {
            term: inverse_document_frequency(df, total_documents)
            for term, df in document_frequency.items()
            if df > 0
        }
        return cls(documents=stats, idf=idf, average_document_length=average_length)


EMPTY_STATISTICS = CorpusStatistics()


class BM25Engine:
    """BM25 scorer over an indexed document collection.

    Usage:
        engine = BM25Engine()
        engine.index(documents)
        results = engine.score("search query", documents)
    """

    def __init__(self, k1: float = DEFAULT_K1, b: float = DEFAULT_B):
        self.k1 = k1
        self.b = b
        self._lock = threading.Lock()
        self._statistics: CorpusStatistics = EMPTY_STATISTICS
        self._indexed = False

    @classmethod
    def from_config(cls, config) -> "BM25Engine":
        """Build an engine from a ``BM25Config``."""
        return cls(k1=config.k1, b=config.b)

    @property
    def statistics(self) -> CorpusStatistics:
        with self._lock:
            return self._statistics

    @property
    def is_indexed(self) -> bool:
        with self._lock:
            return self._indexed

    @property
    def document_count(self) -> int:
        return self.statistics.document_count

    @property
    def average_document_length(self) -> float:
        return self.statistics.average_document_length

    def idf(self, term: str) -> Optional[float]:
        """IDF of ``term`` in the current snapshot, or ``None`` if unseen."""
        return self.statistics.idf.get(term)

    @measure_time("bm25_index")
    def index(self, documents: Iterable[Document]) -> CorpusStatistics:
        """Rebuild corpus statistics from ``documents``, replacing any previous index."""
        statistics = CorpusStatistics.build(documents)
        with self._lock:
            self._statistics = statistics
            self._indexed = True

        logger.info(
            "Indexed documents for BM25",
            document_count=statistics.document_count,
            unique_terms=len(statistics.idf),
            average_document_length=round(statistics.average_document_length, 1),
        )
        return statistics

    def clear(self) -> None:
        """Drop all corpus statistics."""
        with self._lock:
            self._statistics = EMPTY_STATISTICS
            self._indexed = False
        logger.info("Cleared BM25 index")

    def score(
        self,
        query: str,
        documents: Sequence[Document],
        cancel_event: Optional[threading.Event] = None,
    ) -> List[LexicalResult]:
        """Score ``documents`` against ``query``.

        Args:
            query: Search query
            documents: Candidate documents; ones missing from the index are skipped
            cancel_event: Checked between documents; when set the scan is
                abandoned with ``ScoringCancelledError``

        Returns:
            Documents with a positive score, best first
        """
        if not query or not query.strip() or not documents:
            return []

        statistics = self.statistics
        if statistics.document_count == 0:
            return []

        query_terms = list(dict.fromkeys(tokenize(query)))
        if not query_terms:
            return []

        results: List[LexicalResult] = []
        skipped = 0
        for position, document in enumerate(documents):
            if cancel_event is not None and cancel_event.is_set():
                raise ScoringCancelledError(position, len(documents))

            doc_stats = statistics.documents.get(document.id)
            if doc_stats is None:
                skipped += 1
                continue

            score = self._score_document(query_terms, doc_stats, statistics)
            if score > 0:
                results.append(LexicalResult(document=document, score=score))

        if skipped:
            logger.warning("Skipped documents missing from the BM25 index", skipped=skipped)

        results.sort(key=lambda r: r.score, reverse=True)
        logger.debug("BM25 scoring completed", query=query, candidates=len(documents), results=len(results))
        return results

    def _score_document(
        self,
        query_terms: Sequence[str],
        doc_stats: DocumentStats,
        statistics: CorpusStatistics,
    ) -> float:
        score = 0.0
        avg_len = statistics.average_document_length
        for term in query_terms:
            idf = statistics.idf.get(term)
            if idf is None:
                continue  # Term not in corpus
            tf = doc_stats.term_counts.get(term, 0)
            if tf == 0:
                continue

            length_ratio = doc_stats.length / avg_len if avg_len else 0.0
            numerator = tf * (self.k1 + 1)
            denominator = tf + self.k1 * (1 - self.b + self.b * length_ratio)
            score += idf * (numerator / denominator)
        return score

    def get_stats(self) -> Dict[str, Any]:
        """Get index statistics."""
        statistics = self.statistics
        return {
            "total_documents": statistics.document_count,
            "unique_terms": len(statistics.idf),
            "avg_doc_length": statistics.average_document_length,
            "k1": self.k1,
            "b": self.b,
        }

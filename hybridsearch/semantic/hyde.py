"""HyDE semantic scoring.

Scores documents by combining two cosine similarities against each
document's precomputed embedding:

- traditional: the query embedding vs. the document
- hyde: the embedding of a hypothetical answer document vs. the document

``combined = traditional * traditional_weight + hyde * hyde_weight``.
Documents below the similarity threshold are dropped; documents without an
embedding are skipped with a warning.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..common.config import HydeConfig
from ..models import Document, SemanticResult
from ..providers.base import EmbeddingProvider, HypotheticalDocumentGenerator
from ..scoring.similarity import VectorLike, cosine_similarity

logger = structlog.get_logger("hybridsearch.semantic")


class SemanticCombiner:
    """Weighted combination of query and hypothetical-document similarity.

    Vectors are supplied by the caller; nothing is generated here.
    """

    def __init__(
        self,
        traditional_weight: float = 0.3,
        hyde_weight: float = 0.7,
        similarity_threshold: float = 0.1,
        max_results: Optional[int] = 10,
    ):
        self.traditional_weight = traditional_weight
        self.hyde_weight = hyde_weight
        self.similarity_threshold = similarity_threshold
        self.max_results = max_results

    @classmethod
    def from_config(cls, config: HydeConfig) -> "SemanticCombiner":
        return cls(
            traditional_weight=config.traditional_weight,
            hyde_weight=config.hyde_weight,
            similarity_threshold=config.similarity_threshold,
            max_results=config.hyde_max_results,
        )

    def combine(
        self,
        query_vector: VectorLike,
        hypothetical_vector: VectorLike,
        document_vector: VectorLike,
    ) -> Tuple[float, float, float]:
        """Return ``(traditional, hyde, combined)`` similarities for one document."""
        traditional = cosine_similarity(query_vector, document_vector)
        hyde = cosine_similarity(hypothetical_vector, document_vector)
        combined = traditional * self.traditional_weight + hyde * self.hyde_weight
        return traditional, hyde, combined

    def score_documents(
        self,
        query_vector: VectorLike,
        hypothetical_vector: VectorLike,
        documents: Sequence[Document],
        hypothetical_document: Optional[str] = None,
    ) -> List[SemanticResult]:
        """Score every document carrying an embedding, best first."""
        results: List[SemanticResult] = []
        for document in documents:
            if document.embedding is None:
                logger.warning("Document has no embedding, skipping", document_id=document.id)
                continue

            traditional, hyde, combined = self.combine(query_vector, hypothetical_vector, document.embedding)
            if combined < self.similarity_threshold:
                continue

            results.append(SemanticResult(
                document=document,
                similarity=combined,
                traditional_similarity=traditional,
                hyde_similarity=hyde,
                hypothetical_document=hypothetical_document,
            ))

        results.sort(key=lambda r: r.similarity, reverse=True)
        if self.max_results is not None:
            results = results[:self.max_results]
        return results


class HydeSearchService:
    """Semantic scorer backed by embedding and generation providers.

    Usage:
        service = HydeSearchService(embedding_provider, generator)
        documents = await service.embed_documents(documents)
        results = await service.score_semantic("what is bm25?", documents)
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        hypothetical_generator: HypotheticalDocumentGenerator,
        config: Optional[HydeConfig] = None,
    ):
        self.embedding_provider = embedding_provider
        self.hypothetical_generator = hypothetical_generator
        self.config = config or HydeConfig()
        self.combiner = SemanticCombiner.from_config(self.config)

    async def score_semantic(self, query: str, documents: Sequence[Document]) -> List[SemanticResult]:
        """Score ``documents`` for ``query``.

        Generates the hypothetical document once, then embeds the query and
        the hypothetical document in a single batch call. Provider failures
        propagate to the caller.
        """
        if not query or not query.strip() or not documents:
            return []

        hypothetical_document = await self.hypothetical_generator.generate(query)
        logger.debug("Generated hypothetical document", length=len(hypothetical_document))

        query_vector, hypothetical_vector = await self.embedding_provider.embed_batch(
            [query, hypothetical_document]
        )

        results = self.combiner.score_documents(
            query_vector,
            hypothetical_vector,
            documents,
            hypothetical_document=hypothetical_document,
        )
        logger.info("HyDE scoring completed", candidates=len(documents), results=len(results))
        return results

    async def embed_documents(self, documents: Sequence[Document]) -> List[Document]:
        """Attach embeddings of the document body to documents lacking one.

        Returns the documents in input order; the ones already embedded are
        returned unchanged.
        """
        documents = list(documents)
        missing = [i for i, document in enumerate(documents) if document.embedding is None]
        if not missing:
            return documents

        vectors = await self.embedding_provider.embed_batch([documents[i].content for i in missing])
        for i, vector in zip(missing, vectors):
            documents[i] = documents[i].with_embedding(np.asarray(vector, dtype=np.float64))

        logger.debug("Generated document embeddings", count=len(missing))
        return documents

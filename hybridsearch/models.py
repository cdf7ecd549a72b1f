"""Document and result models shared by the scoring and fusion components.

Result types are frozen: they are created fresh per query and never mutated
after construction. ``Document`` is owned by the document store; indexing
attaches an embedding by producing a copy through ``with_embedding``.
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

import numpy as np


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Document:
    """A searchable document.

    ``embedding`` is present only after the document has been indexed for
    semantic search.
    """
    id: str
    title: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    embedding: Optional[np.ndarray] = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if self.embedding is not None:
            self.embedding = np.asarray(self.embedding, dtype=np.float64)

    @property
    def text(self) -> str:
        """Title and body joined as the lexical scorer sees them."""
        return f"{self.title} {self.content}"

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def with_embedding(self, vector: Sequence[float]) -> "Document":
        """Return a copy of this document carrying ``vector``."""
        return replace(self, embedding=np.asarray(vector, dtype=np.float64))

    def to_dict(self, include_embedding: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat(),
        }
        if include_embedding and self.embedding is not None:
            data["embedding"] = self.embedding.tolist()
        return data


@dataclass(frozen=True)
class LexicalResult:
    """A document scored by BM25. ``score`` is always positive."""
    document: Document
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"document": self.document.to_dict(), "score": self.score}


@dataclass(frozen=True)
class SemanticResult:
    """A document scored by HyDE semantic similarity."""
    document: Document
    similarity: float
    traditional_similarity: Optional[float] = None
    hyde_similarity: Optional[float] = None
    hypothetical_document: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["document"] = self.document.to_dict()
        return data


@dataclass(frozen=True)
class FusedResult:
    """Final output unit of rank fusion.

    Raw and normalized per-signal scores are attached for observability;
    a signal that did not return the document leaves its fields as ``None``.
    """
    document: Document
    combined_score: float
    bm25_score: Optional[float] = None
    semantic_score: Optional[float] = None
    normalized_bm25_score: Optional[float] = None
    normalized_semantic_score: Optional[float] = None
    traditional_similarity: Optional[float] = None
    hypothetical_document: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["document"] = self.document.to_dict()
        return data

"""Document store interface and in-memory implementation.

The store owns documents; scorers only read them. Implementations should
treat ``add_document`` as an upsert keyed by document id.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

import structlog

from ..models import Document

logger = structlog.get_logger("hybridsearch.store")


class DocumentStore(ABC):
    """Abstract key-value document store."""

    @abstractmethod
    async def add_document(self, document: Document) -> None:
        """Insert or replace a document."""
        pass

    async def add_documents(self, documents: Iterable[Document]) -> int:
        """Insert or replace several documents.

        Returns the number of documents written.
        """
        count = 0
        for document in documents:
            await self.add_document(document)
            count += 1
        return count

    @abstractmethod
    async def get_document(self, document_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    async def get_all_documents(self) -> List[Document]:
        pass

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete a document. Returns ``True`` if it existed."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed store guarded by an ``asyncio.Lock``.

    Enumeration preserves insertion order; replacing a document keeps its
    original position.
    """

    def __init__(self):
        self._documents: Dict[str, Document] = {}
        self._lock = asyncio.Lock()

    async def add_document(self, document: Document) -> None:
        async with self._lock:
            self._documents[document.id] = document

    async def add_documents(self, documents: Iterable[Document]) -> int:
        documents = list(documents)
        async with self._lock:
            for document in documents:
                self._documents[document.id] = document
        logger.debug("Stored documents", count=len(documents))
        return len(documents)

    async def get_document(self, document_id: str) -> Optional[Document]:
        async with self._lock:
            return self._documents.get(document_id)

    async def get_all_documents(self) -> List[Document]:
        async with self._lock:
            return list(self._documents.values())

    async def delete_document(self, document_id: str) -> bool:
        async with self._lock:
            return self._documents.pop(document_id, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self._documents.clear()
        logger.info("Cleared document store")

    async def count(self) -> int:
        async with self._lock:
            return len(self._documents)

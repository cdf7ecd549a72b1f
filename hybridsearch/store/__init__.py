"""Document storage.

- ``document_store``: abstract ``DocumentStore`` and ``InMemoryDocumentStore``.
"""

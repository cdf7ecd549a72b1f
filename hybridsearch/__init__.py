"""Hybrid retrieval scoring and fusion.

Layout:
- ``scoring``: BM25, vector similarity and score normalization.
- ``semantic``: HyDE combination of query and hypothetical document vectors.
- ``ranking``: reranking strategies and the fusion engine.
- ``hybrid``: the ``HybridSearchManager`` that ties the pieces together.
- ``providers`` / ``store``: embedding and generation backends, document storage.
- ``common``: configuration, logging, metrics and errors.
"""

__version__ = "0.1.0"

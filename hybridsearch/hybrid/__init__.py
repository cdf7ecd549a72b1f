"""Hybrid search orchestration.

Includes the ``HybridSearchManager`` which coordinates BM25 (lexical) and
HyDE (semantic) scoring and merges their results.
"""

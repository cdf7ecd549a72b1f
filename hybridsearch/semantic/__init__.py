"""Semantic (HyDE) scoring.

Contents
- ``hyde``: ``SemanticCombiner`` and the provider-backed ``HydeSearchService``
"""

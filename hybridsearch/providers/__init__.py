"""Embedding and hypothetical-document providers.

Primary components:
- ``base``: abstract ``EmbeddingProvider`` / ``HypotheticalDocumentGenerator``.
- ``mock``: deterministic offline implementations.
- ``openai``: OpenAI-compatible HTTP implementations.
- ``factory``: ``create_providers`` selects a pair from ``ProviderConfig``.
"""

"""Tests for hybrid search components.

Unit tests cover the scoring primitives, normalization and fusion; the
search manager and CLI tests run end to end against the deterministic mock
providers, so no network access or model downloads are needed.
"""

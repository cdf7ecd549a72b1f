"""Common utilities shared across hybrid search components.

Includes:
- ``config``: pydantic-settings configuration read from ``HYBRID_*`` variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers.
- ``errors``: the package's exception hierarchy.

Import pattern:
- from hybridsearch.common.config import HybridSearchConfig
- from hybridsearch.common.logging import configure_logging
"""

"""Common utilities shared by the retrieval layer.

Includes:
- ``config``: Pydantic-based configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers for strategy calls.

Import pattern:
- from hybrid_search.common.config import SearchStrategyConfig
- from hybrid_search.common.logging import configure_logging
"""

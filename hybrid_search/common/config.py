"""Configuration management for the retrieval strategy layer.

This module centralizes environment-driven configuration for the search
engine connection, the external embedding service, and the collection and
field names the strategies target. It builds on ``pydantic_settings`` so
configuration can be provided via environment variables, ``.env`` files, or
defaults.

Highlights
- Strongly-typed settings with sensible defaults
- One place to discover the environment variables the strategies consume
- Field names match their environment variables (case-insensitive)

Usage
- Construct at the entrypoint and hand it to the factory:
  ``strategies = create_search_strategies(SearchStrategyConfig())``
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchStrategyConfig(BaseSettings):
    """Configuration for the retrieval strategies.

    Parameters are read from the process environment using the upper-cased
    field name (e.g. ``search_engine_hosts`` <- ``SEARCH_ENGINE_HOSTS``).

    Notes
    - The vector field name is index specific; confirm it against the index
      mapping rather than relying on the default.
    - The engine model id and the embedding model must name the same model,
      otherwise engine-side and client-side vectors are not comparable.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    search_env: str = Field(default="local")

    # Logging
    search_log_level: str = Field(default="INFO")
    search_log_format: str = Field(default="json")

    # Search engine
    search_engine_hosts: str = Field(default="http://localhost:9200")
    search_engine_username: Optional[str] = Field(default=None)
    search_engine_password: Optional[str] = Field(default=None)
    search_engine_api_key: Optional[str] = Field(default=None)
    search_engine_verify_certs: bool = Field(default=False)
    search_engine_timeout: Optional[float] = Field(default=None)

    # Collections and fields
    search_keyword_collection: str = Field(default="search-rodents")
    search_vector_collection: str = Field(default="vector-search-rodents")
    search_vector_field: str = Field(default="text_embedding.predicted_value")
    search_engine_model_id: str = Field(default="sentence-transformers__msmarco-minilm-l-12-v3")

    # Embedding service
    hugging_face_token: Optional[str] = Field(default=None)
    search_embedding_url: str = Field(default="https://api-inference.huggingface.co")
    search_embedding_model: str = Field(default="sentence-transformers/msmarco-minilm-l-12-v3")
    search_embedding_dimension: Optional[int] = Field(default=None)
    search_embedding_timeout: Optional[float] = Field(default=None)

    def engine_hosts(self) -> List[str]:
        """Split ``search_engine_hosts`` into a list of host URLs."""
        return [host.strip() for host in self.search_engine_hosts.split(",") if host.strip()]

"""Factory for wiring the strategy facade from configuration.

Centralizes creation of the engine client, the embedding client and the
facade so callers never reach for module-level client handles. Everything
created here is owned by the returned ``SearchStrategies`` and released by its
``cleanup``.
"""

from typing import Optional

from opensearchpy import OpenSearch
import structlog

from ..common.config import SearchStrategyConfig
from ..common.metrics import MetricsCollector
from .embedding import HuggingFaceEmbeddingClient
from .executor import RetrievalExecutor
from .mapper import ResultMapper
from .query_builder import QueryBuilder
from .strategies import SearchStrategies

logger = structlog.get_logger("search_strategies.factory")


def create_engine_client(config: SearchStrategyConfig) -> OpenSearch:
    """Create the search engine client described by ``config``.

    The client sets no request timeout unless ``SEARCH_ENGINE_TIMEOUT`` is
    given; deadlines otherwise belong to the caller.
    """
    hosts = config.engine_hosts()
    if not hosts:
        raise ValueError("SEARCH_ENGINE_HOSTS must name at least one host")

    username = config.search_engine_username
    password = config.search_engine_password
    # An API key takes precedence over basic auth
    api_key = config.search_engine_api_key
    return OpenSearch(
        hosts=hosts,
        headers={"Authorization": f"ApiKey {api_key}"} if api_key else None,
        http_auth=(username, password) if username and password and not api_key else None,
        timeout=config.search_engine_timeout,
        verify_certs=config.search_engine_verify_certs,
        ssl_show_warn=config.search_engine_verify_certs,
        use_ssl=hosts[0].startswith("https"),
    )


def create_embedding_client(
    config: SearchStrategyConfig,
    metrics: Optional[MetricsCollector] = None
) -> HuggingFaceEmbeddingClient:
    """Create the embedding client described by ``config``."""
    if not config.hugging_face_token:
        logger.warning("HUGGING_FACE_TOKEN is not set; embedding requests are unauthenticated")

    return HuggingFaceEmbeddingClient(
        token=config.hugging_face_token,
        model=config.search_embedding_model,
        base_url=config.search_embedding_url,
        dimension=config.search_embedding_dimension,
        timeout=config.search_embedding_timeout,
        metrics=metrics,
    )


def create_search_strategies(
    config: Optional[SearchStrategyConfig] = None,
    metrics: Optional[MetricsCollector] = None,
    engine_client: Optional[OpenSearch] = None
) -> SearchStrategies:
    """Build a ready-to-use ``SearchStrategies``.

    Parameters
    - config: Settings; read from the environment when omitted
    - metrics: Optional collector shared by the facade and embedding client
    - engine_client: Pre-built engine client (skips ``create_engine_client``)
    """
    config = config or SearchStrategyConfig()

    strategies = SearchStrategies(
        executor=RetrievalExecutor(engine_client or create_engine_client(config)),
        query_builder=QueryBuilder(
            vector_field=config.search_vector_field,
            model_id=config.search_engine_model_id,
        ),
        mapper=ResultMapper(),
        embedding_provider=create_embedding_client(config, metrics),
        keyword_collection=config.search_keyword_collection,
        vector_collection=config.search_vector_collection,
        metrics=metrics,
    )

    logger.info(
        "Search strategies created",
        env=config.search_env,
        keyword_collection=config.search_keyword_collection,
        vector_collection=config.search_vector_collection,
        vector_field=config.search_vector_field,
        embedding_model=config.search_embedding_model
    )
    return strategies

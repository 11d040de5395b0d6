"""Tests for common utilities."""

import pytest
from opensearchpy import OpenSearch
from prometheus_client import CollectorRegistry

from hybrid_search.common.config import SearchStrategyConfig
from hybrid_search.common.logging import configure_logging
from hybrid_search.common.metrics import MetricsCollector
from hybrid_search.retrieval.embedding import HuggingFaceEmbeddingClient
from hybrid_search.retrieval.factory import create_engine_client, create_search_strategies

from .fakes import FakeEngineClient

CONFIG_ENV_VARS = [
    "SEARCH_ENGINE_HOSTS",
    "SEARCH_ENGINE_USERNAME",
    "SEARCH_ENGINE_PASSWORD",
    "SEARCH_ENGINE_API_KEY",
    "SEARCH_ENGINE_TIMEOUT",
    "SEARCH_KEYWORD_COLLECTION",
    "SEARCH_VECTOR_COLLECTION",
    "SEARCH_VECTOR_FIELD",
    "SEARCH_ENGINE_MODEL_ID",
    "SEARCH_EMBEDDING_MODEL",
    "SEARCH_EMBEDDING_DIMENSION",
    "HUGGING_FACE_TOKEN",
    "SEARCH_LOG_LEVEL",
    "SEARCH_LOG_FORMAT",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove configuration variables inherited from the environment."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_config_defaults(clean_env):
    """Test configuration loading."""
    config = SearchStrategyConfig(_env_file=None)
    assert config.search_log_level == "INFO"
    assert config.search_keyword_collection == "search-rodents"
    assert config.search_vector_collection == "vector-search-rodents"
    assert config.search_vector_field == "text_embedding.predicted_value"
    assert config.search_engine_model_id == "sentence-transformers__msmarco-minilm-l-12-v3"
    assert config.search_embedding_model == "sentence-transformers/msmarco-minilm-l-12-v3"
    assert config.search_embedding_dimension is None
    assert config.search_embedding_timeout is None
    assert config.engine_hosts() == ["http://localhost:9200"]


def test_config_from_environment(clean_env):
    clean_env.setenv("SEARCH_ENGINE_HOSTS", "https://es-1:9200, https://es-2:9200")
    clean_env.setenv("SEARCH_VECTOR_FIELD", "ml.inference.predicted_value")
    clean_env.setenv("HUGGING_FACE_TOKEN", "hf_secret")
    clean_env.setenv("SEARCH_EMBEDDING_DIMENSION", "384")

    config = SearchStrategyConfig(_env_file=None)

    assert config.engine_hosts() == ["https://es-1:9200", "https://es-2:9200"]
    assert config.search_vector_field == "ml.inference.predicted_value"
    assert config.hugging_face_token == "hf_secret"
    assert config.search_embedding_dimension == 384


def test_logging_configuration():
    """This should not raise an exception."""
    configure_logging("test-service", "INFO", "json")
    configure_logging("test-service", "debug", "console", env="test")


def test_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("test-service", "LOUD")


def test_logging_rejects_unknown_format():
    with pytest.raises(ValueError):
        configure_logging("test-service", "INFO", "xml")


def test_metrics_collector():
    """Test metrics collector."""
    collector = MetricsCollector("test-service", registry=CollectorRegistry())
    assert collector.service_name == "test-service"

    collector.record_search("keyword", 0.1)
    collector.record_search_failure("generated-vector", "embedding")
    collector.record_embedding("test-model", "ok", 0.05)

    metrics = collector.get_metrics()
    assert isinstance(metrics, str)
    assert "search_strategy_requests_total" in metrics
    assert "search_strategy_failures_total" in metrics
    assert "search_embedding_duration_seconds" in metrics


def test_create_engine_client(clean_env):
    config = SearchStrategyConfig(_env_file=None, search_engine_hosts="http://localhost:9200")
    assert isinstance(create_engine_client(config), OpenSearch)

    with pytest.raises(ValueError):
        create_engine_client(SearchStrategyConfig(_env_file=None, search_engine_hosts=" , "))


def test_engine_client_sets_no_timeout_by_default(clean_env):
    """Deadlines belong to the caller unless a timeout is configured."""
    client = create_engine_client(SearchStrategyConfig(_env_file=None))
    assert client.transport.get_connection().timeout is None

    clean_env.setenv("SEARCH_ENGINE_TIMEOUT", "30")
    client = create_engine_client(SearchStrategyConfig(_env_file=None))
    assert client.transport.get_connection().timeout == 30


def test_engine_client_api_key(clean_env):
    config = SearchStrategyConfig(
        _env_file=None,
        search_engine_hosts="https://es.example:9243",
        search_engine_api_key="c2VjcmV0",
    )

    connection = create_engine_client(config).transport.get_connection()

    assert connection.headers["authorization"] == "ApiKey c2VjcmV0"


def test_engine_client_basic_auth(clean_env):
    config = SearchStrategyConfig(
        _env_file=None,
        search_engine_username="elastic",
        search_engine_password="changeme",
    )

    connection = create_engine_client(config).transport.get_connection()

    assert connection.headers["authorization"].startswith("Basic ")


def test_create_search_strategies(clean_env):
    """The factory wires configuration into every collaborator."""
    config = SearchStrategyConfig(
        _env_file=None,
        search_vector_collection="vectors",
        search_vector_field="ml.inference.predicted_value",
        hugging_face_token="hf_secret",
        search_embedding_dimension=384,
    )
    engine = FakeEngineClient()

    strategies = create_search_strategies(config, engine_client=engine)

    assert strategies.executor.client is engine
    assert strategies.keyword_collection == "search-rodents"
    assert strategies.vector_collection == "vectors"
    assert strategies.query_builder.vector_field == "ml.inference.predicted_value"
    assert isinstance(strategies.embedding_provider, HuggingFaceEmbeddingClient)
    assert strategies.embedding_provider.token == "hf_secret"
    assert strategies.embedding_provider.dimension == 384

"""Shared fixtures: an in-memory engine client and a mocked embedding service."""

import pytest

from hybrid_search.retrieval.executor import RetrievalExecutor
from hybrid_search.retrieval.query_builder import QueryBuilder
from hybrid_search.retrieval.strategies import SearchStrategies

from .fakes import EmbeddingService, FakeEngineClient, hits_response

GOPHER_HIT = {
    "_id": "1",
    "_score": 1.2,
    "_source": {"title": "Gopher diet", "url": "/g1", "body_content": "Gophers eat roots"},
}


@pytest.fixture
def query_builder():
    """Query builder with the default field and model."""
    return QueryBuilder()


@pytest.fixture
def engine():
    """Engine holding the single gopher document."""
    return FakeEngineClient(response=hits_response(GOPHER_HIT))


@pytest.fixture
def embedding_service():
    """Embedding service returning a 3-dimensional vector."""
    return EmbeddingService()


@pytest.fixture
def strategies(engine, embedding_service):
    """Facade wired to the fake engine and mocked embedding service."""
    return SearchStrategies(
        executor=RetrievalExecutor(engine),
        embedding_provider=embedding_service.client(),
    )

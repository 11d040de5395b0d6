"""Strategy facade: the public retrieval operations.

Each strategy is a fixed recipe composing query building, optional query
embedding, one engine round trip, and result mapping. The first failure is
propagated as a ``SearchStrategyError`` whose ``stage`` names where it
happened; nothing is retried, no strategy falls back to another, and a failure
is never turned into an empty result.
"""

import time
from typing import Callable, Dict, List, Optional

import structlog

from ..common.metrics import MetricsCollector
from .base import (
    STAGE_BUILD,
    STAGE_EMBEDDING,
    STAGE_EXECUTE,
    STAGE_MAP,
    EmbeddingError,
    EmbeddingProvider,
    MappingError,
    QueryBuildError,
    RetrievalError,
    SearchStrategyError,
)
from .executor import RetrievalExecutor
from .mapper import ResultMapper
from .models import Document, QueryVector, RetrievalRequest
from .query_builder import (
    DEFAULT_FILTER_TERM,
    DEFAULT_RRF_RANK_CONSTANT,
    DEFAULT_VECTOR_BOOST,
    MIN_RRF_WINDOW_SIZE,
    QueryBuilder,
)

logger = structlog.get_logger("search_strategies.facade")

DEFAULT_KEYWORD_COLLECTION = "search-rodents"
DEFAULT_VECTOR_COLLECTION = "vector-search-rodents"

# Strategy name -> facade method, for callers that dispatch by name
STRATEGY_METHODS: Dict[str, str] = {
    "keyword": "keyword_search",
    "vector": "vector_search",
    "filtered-vector": "vector_search_with_filter",
    "generated-vector": "vector_search_with_generated_vector",
    "hybrid-boost": "hybrid_search_with_boost",
    "hybrid-rrf": "hybrid_search_with_rrf",
}


def _stage_error(stage: str, error: Exception) -> SearchStrategyError:
    """Wrap an unexpected exception in the error type of the stage that raised it."""
    message = f"Unexpected failure in {stage} stage: {error}"
    if stage == STAGE_EMBEDDING:
        return EmbeddingError(message, EmbeddingError.UNEXPECTED)
    if stage == STAGE_BUILD:
        return QueryBuildError(message)
    if stage == STAGE_MAP:
        return MappingError(message, hit_id="")
    return RetrievalError(message)


class SearchStrategies:
    """The named retrieval strategies.

    Collaborators are passed in explicitly so tests and callers can supply
    their own; instances hold no per-call state and can serve concurrent
    calls.

    Parameters
    - executor: ``RetrievalExecutor`` bound to the search engine
    - query_builder: ``QueryBuilder`` (defaults to the standard field/model)
    - mapper: ``ResultMapper``
    - embedding_provider: Needed only by the generated-vector strategy
    - keyword_collection: Collection searched by the keyword strategy
    - vector_collection: Collection searched by vector and hybrid strategies
    - metrics: Optional ``MetricsCollector``
    """

    def __init__(
        self,
        executor: RetrievalExecutor,
        query_builder: Optional[QueryBuilder] = None,
        mapper: Optional[ResultMapper] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        keyword_collection: str = DEFAULT_KEYWORD_COLLECTION,
        vector_collection: str = DEFAULT_VECTOR_COLLECTION,
        metrics: Optional[MetricsCollector] = None
    ):
        self.executor = executor
        self.query_builder = query_builder or QueryBuilder()
        self.mapper = mapper or ResultMapper()
        self.embedding_provider = embedding_provider
        self.keyword_collection = keyword_collection
        self.vector_collection = vector_collection
        self.metrics = metrics

    async def keyword_search(self, term: str) -> List[Document]:
        """Lexical match of ``term`` on document titles."""
        return await self._search(
            "keyword",
            term,
            lambda: self.query_builder.keyword(self.keyword_collection, term)
        )

    async def vector_search(self, term: str) -> List[Document]:
        """kNN search; the engine embeds ``term`` with its deployed model."""
        return await self._search(
            "vector",
            term,
            lambda: self.query_builder.vector(self.vector_collection, term)
        )

    async def vector_search_with_filter(
        self,
        term: str,
        filter_term: str = DEFAULT_FILTER_TERM
    ) -> List[Document]:
        """Engine-side kNN search over documents whose body matches ``filter_term``."""
        return await self._search(
            "filtered-vector",
            term,
            lambda: self.query_builder.filtered_vector(self.vector_collection, term, filter_term)
        )

    async def vector_search_with_generated_vector(self, term: str) -> List[Document]:
        """kNN search with the query vector computed by the embedding service.

        Issues one embedding call, then one engine call with the vector as
        returned. If embedding fails the engine is not called.
        """
        strategy = "generated-vector"
        start_time = time.time()
        try:
            query_vector = await self._embed(term)
        except SearchStrategyError as e:
            self._fail(strategy, term, e)
            raise
        except Exception as e:
            error = _stage_error(STAGE_EMBEDDING, e)
            self._fail(strategy, term, error)
            raise error from e

        return await self._search(
            strategy,
            term,
            lambda: self.query_builder.generated_vector(self.vector_collection, query_vector),
            start_time=start_time
        )

    vector_search_with_generated_query_vector = vector_search_with_generated_vector

    async def hybrid_search_with_boost(
        self,
        term: str,
        vector_boost: float = DEFAULT_VECTOR_BOOST
    ) -> List[Document]:
        """Title match and kNN blended by boosts (vector ``vector_boost``, lexical the rest)."""
        return await self._search(
            "hybrid-boost",
            term,
            lambda: self.query_builder.hybrid_boost(self.vector_collection, term, vector_boost)
        )

    async def hybrid_search_with_rrf(
        self,
        term: str,
        window_size: int = MIN_RRF_WINDOW_SIZE,
        rank_constant: int = DEFAULT_RRF_RANK_CONSTANT
    ) -> List[Document]:
        """Title match and kNN fused by reciprocal rank."""
        return await self._search(
            "hybrid-rrf",
            term,
            lambda: self.query_builder.hybrid_rrf(
                self.vector_collection, term, window_size, rank_constant
            )
        )

    async def _embed(self, term: str) -> QueryVector:
        if self.embedding_provider is None:
            raise EmbeddingError("No embedding provider configured", EmbeddingError.UNAVAILABLE)
        return await self.embedding_provider.embed(term)

    async def _search(
        self,
        strategy: str,
        term: str,
        build: Callable[[], RetrievalRequest],
        start_time: Optional[float] = None
    ) -> List[Document]:
        """Run build -> execute -> map, tagging any failure with its stage."""
        if start_time is None:
            start_time = time.time()

        stage = STAGE_BUILD
        try:
            request = build()
            stage = STAGE_EXECUTE
            hits = await self.executor.execute(request)
            stage = STAGE_MAP
            documents = self.mapper.map(hits)
        except SearchStrategyError as e:
            self._fail(strategy, term, e)
            raise
        except Exception as e:
            error = _stage_error(stage, e)
            self._fail(strategy, term, error)
            raise error from e

        duration = time.time() - start_time
        if self.metrics is not None:
            self.metrics.record_search(strategy, duration)
        logger.info(
            "Strategy search completed",
            strategy=strategy,
            collection=request.collection,
            results_count=len(documents),
            latency_ms=duration * 1000
        )
        return documents

    def _fail(self, strategy: str, term: str, error: SearchStrategyError) -> None:
        if self.metrics is not None:
            self.metrics.record_search_failure(strategy, error.stage)
        logger.error(
            "Strategy search failed",
            strategy=strategy,
            stage=error.stage,
            term=term,
            error=str(error)
        )

    async def cleanup(self) -> None:
        """Close the embedding provider and the engine client."""
        try:
            if self.embedding_provider is not None:
                await self.embedding_provider.aclose()
        finally:
            self.executor.close()
        logger.info("Search strategies cleanup completed")

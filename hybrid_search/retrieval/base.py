"""Base contracts and exceptions for the retrieval layer.

Defines the abstract embedding contract the strategies depend on and the
error taxonomy every stage raises. Each error carries the stage that produced
it so callers at the boundary can tell an embedding outage from an engine
failure or a corrupt document.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

STAGE_EMBEDDING = "embedding"
STAGE_BUILD = "build"
STAGE_EXECUTE = "execute"
STAGE_MAP = "map"


class EmbeddingProvider(ABC):
    """Abstract text-in/vector-out contract.

    Implementations issue exactly one external call per ``embed`` and never
    retry; retry policy belongs to the caller.
    """

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embed ``text`` into a dense vector.

        Raises ``EmbeddingError`` on any failure; never returns an empty vector.
        """
        pass

    async def aclose(self) -> None:
        """Release any resources held by the provider."""
        return None


class SearchStrategyError(Exception):
    """Base exception for the retrieval layer.

    ``stage`` names where the failure happened: ``embedding``, ``build``,
    ``execute`` or ``map``.
    """

    stage: str = ""


class EmbeddingError(SearchStrategyError):
    """Failure talking to the embedding service.

    ``reason`` is one of ``request``, ``transport``, ``status``, ``decode``,
    ``unavailable`` (no provider configured) or ``unexpected``.
    """

    stage = STAGE_EMBEDDING

    REQUEST = "request"
    TRANSPORT = "transport"
    STATUS = "status"
    DECODE = "decode"
    UNAVAILABLE = "unavailable"
    UNEXPECTED = "unexpected"

    def __init__(self, message: str, reason: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code


class QueryBuildError(SearchStrategyError, ValueError):
    """A retrieval request could not be built from the given parameters."""

    stage = STAGE_BUILD


class RetrievalError(SearchStrategyError):
    """Failure talking to the search engine.

    The underlying exception, when there is one, is chained as ``__cause__``.
    """

    stage = STAGE_EXECUTE


class MappingError(SearchStrategyError):
    """A hit body could not be decoded into a ``Document``."""

    stage = STAGE_MAP

    def __init__(self, message: str, hit_id: str):
        super().__init__(message)
        self.hit_id = hit_id

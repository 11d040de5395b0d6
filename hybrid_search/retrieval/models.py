"""Data shapes shared by the retrieval components.

Requests are immutable dataclasses built fresh for every strategy call and
rendered to the engine's query DSL with ``to_body``. ``Document`` is the
normalized result shape returned to callers.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, StrictStr

from .base import QueryBuildError

QueryVector = List[float]


class Document(BaseModel):
    """A retrieved document.

    ``id`` is the engine-assigned identifier of the hit; ``title`` and ``url``
    come from the stored body. Serializes as ``{"id", "title", "url"}``.
    """

    model_config = ConfigDict(extra="ignore")

    id: StrictStr = ""
    title: StrictStr = ""
    url: StrictStr = ""


@dataclass(frozen=True)
class RawHit:
    """One hit as returned by the engine: its identifier and opaque body."""
    id: str
    source: Union[Mapping[str, Any], str, bytes, None]


@dataclass(frozen=True)
class LexicalClause:
    """A ``match`` condition on a single text field."""
    field: str
    query: str
    boost: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render as a ``match`` query."""
        match: Dict[str, Any] = {"query": self.query}
        if self.boost is not None:
            match["boost"] = self.boost
        return {"match": {self.field: match}}


@dataclass(frozen=True)
class VectorClause:
    """An approximate nearest-neighbour condition over a dense vector field.

    Exactly one vector source is allowed: an explicit ``query_vector`` computed
    client-side, or a ``model_id``/``model_text`` builder directive that lets
    the engine embed the text itself.
    """
    field: str
    k: int
    num_candidates: int
    query_vector: Optional[Tuple[float, ...]] = None
    model_id: Optional[str] = None
    model_text: Optional[str] = None
    boost: Optional[float] = None
    filters: Tuple[LexicalClause, ...] = ()

    def __post_init__(self):
        has_vector = self.query_vector is not None
        has_builder = self.model_id is not None
        if has_vector == has_builder:
            raise QueryBuildError(
                "Vector clause needs exactly one of an explicit query vector or a vector builder"
            )
        if has_vector and len(self.query_vector) == 0:
            raise QueryBuildError("Query vector must not be empty")
        if has_builder and self.model_text is None:
            raise QueryBuildError("Vector builder needs model text")
        if self.k < 1 or self.num_candidates < self.k:
            raise QueryBuildError(
                f"Invalid neighbour counts: k={self.k}, num_candidates={self.num_candidates}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Render as a ``knn`` section."""
        knn: Dict[str, Any] = {
            "field": self.field,
            "k": self.k,
            "num_candidates": self.num_candidates,
        }
        if self.query_vector is not None:
            knn["query_vector"] = list(self.query_vector)
        else:
            knn["query_vector_builder"] = {
                "text_embedding": {
                    "model_id": self.model_id,
                    "model_text": self.model_text,
                }
            }
        if self.boost is not None:
            knn["boost"] = self.boost
        if self.filters:
            knn["filter"] = [clause.to_dict() for clause in self.filters]
        return knn


@dataclass(frozen=True)
class FusionParameters:
    """Reciprocal rank fusion settings."""
    window_size: int
    rank_constant: int

    def to_dict(self) -> Dict[str, Any]:
        """Render as a ``rank`` section."""
        return {
            "rrf": {
                "window_size": self.window_size,
                "rank_constant": self.rank_constant,
            }
        }


@dataclass(frozen=True)
class RetrievalRequest:
    """Everything needed for one engine round trip against one collection."""
    collection: str
    size: int
    lexical: Optional[LexicalClause] = None
    vector: Optional[VectorClause] = None
    fusion: Optional[FusionParameters] = None

    def __post_init__(self):
        if not self.collection:
            raise QueryBuildError("Collection name is required")
        if self.lexical is None and self.vector is None:
            raise QueryBuildError("Request needs a lexical clause, a vector clause, or both")
        if self.fusion is not None and (self.lexical is None or self.vector is None):
            raise QueryBuildError("Rank fusion needs both a lexical and a vector clause")
        if self.size < 1:
            raise QueryBuildError(f"Page size must be positive, got {self.size}")

    def to_body(self) -> Dict[str, Any]:
        """Render the engine search body."""
        body: Dict[str, Any] = {"size": self.size}
        if self.lexical is not None:
            body["query"] = self.lexical.to_dict()
        if self.vector is not None:
            body["knn"] = self.vector.to_dict()
        if self.fusion is not None:
            body["rank"] = self.fusion.to_dict()
        return body

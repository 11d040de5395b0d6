"""Query construction for each named retrieval strategy.

Every method is a pure function of ``(collection, term, parameters)`` that
returns a fresh ``RetrievalRequest``. Terms are not validated here; an empty
term yields a well-formed empty-string match.

Hybrid strategies
- Boost: lexical and vector scores are blended linearly with query-time
  weights that always sum to 1.0 (default 0.8 lexical, 0.2 vector).
- RRF: raw scores are ignored and each document scores
  ``sum(1 / (rank_constant + rank))`` over the lexical and vector rank lists,
  considering the top ``window_size`` of each. The window must cover the
  requested page or the fused page can miss documents.
"""

from typing import Sequence

from .base import QueryBuildError
from .models import FusionParameters, LexicalClause, RetrievalRequest, VectorClause

TITLE_FIELD = "title"
BODY_FIELD = "body_content"
DEFAULT_VECTOR_FIELD = "text_embedding.predicted_value"
DEFAULT_MODEL_ID = "sentence-transformers__msmarco-minilm-l-12-v3"

DEFAULT_PAGE_SIZE = 10
BOOST_PAGE_SIZE = 2
DEFAULT_VECTOR_BOOST = 0.2
DEFAULT_FILTER_TERM = "rodent"
# Smallest window that still covers a full default page
MIN_RRF_WINDOW_SIZE = DEFAULT_PAGE_SIZE
DEFAULT_RRF_RANK_CONSTANT = 42


class QueryBuilder:
    """Builds strategy-specific retrieval requests.

    Parameters
    - vector_field: Dense vector field of the vector collection
    - model_id: Engine-side embedding model used by the vector builder
    - k: Number of nearest neighbours to return
    - num_candidates: Candidate pool size considered before truncating to ``k``
    """

    def __init__(
        self,
        vector_field: str = DEFAULT_VECTOR_FIELD,
        model_id: str = DEFAULT_MODEL_ID,
        k: int = 10,
        num_candidates: int = 10
    ):
        if not vector_field:
            raise ValueError("vector_field is required")
        if not model_id:
            raise ValueError("model_id is required")
        self.vector_field = vector_field
        self.model_id = model_id
        self.k = k
        self.num_candidates = num_candidates

    def _title_match(self, term: str, boost=None) -> LexicalClause:
        return LexicalClause(field=TITLE_FIELD, query=term, boost=boost)

    def _text_embedding_knn(self, term: str, boost=None, filters=()) -> VectorClause:
        return VectorClause(
            field=self.vector_field,
            k=self.k,
            num_candidates=self.num_candidates,
            model_id=self.model_id,
            model_text=term,
            boost=boost,
            filters=tuple(filters),
        )

    def keyword(self, collection: str, term: str, size: int = DEFAULT_PAGE_SIZE) -> RetrievalRequest:
        """Match ``term`` against the title field."""
        return RetrievalRequest(
            collection=collection,
            size=size,
            lexical=self._title_match(term),
        )

    def vector(self, collection: str, term: str, size: int = DEFAULT_PAGE_SIZE) -> RetrievalRequest:
        """kNN search with the query vector computed by the engine from ``term``."""
        return RetrievalRequest(
            collection=collection,
            size=size,
            vector=self._text_embedding_knn(term),
        )

    def generated_vector(
        self,
        collection: str,
        query_vector: Sequence[float],
        size: int = DEFAULT_PAGE_SIZE
    ) -> RetrievalRequest:
        """kNN search with a query vector computed client-side, sent verbatim."""
        if query_vector is None or len(query_vector) == 0:
            raise QueryBuildError("A non-empty query vector is required")
        vector = VectorClause(
            field=self.vector_field,
            k=self.k,
            num_candidates=self.num_candidates,
            query_vector=tuple(float(component) for component in query_vector),
        )
        return RetrievalRequest(collection=collection, size=size, vector=vector)

    def filtered_vector(
        self,
        collection: str,
        term: str,
        filter_term: str = DEFAULT_FILTER_TERM,
        size: int = DEFAULT_PAGE_SIZE
    ) -> RetrievalRequest:
        """Engine-side kNN search restricted to documents whose body matches ``filter_term``."""
        body_filter = LexicalClause(field=BODY_FIELD, query=filter_term)
        return RetrievalRequest(
            collection=collection,
            size=size,
            vector=self._text_embedding_knn(term, filters=(body_filter,)),
        )

    def hybrid_boost(
        self,
        collection: str,
        term: str,
        vector_boost: float = DEFAULT_VECTOR_BOOST,
        size: int = BOOST_PAGE_SIZE
    ) -> RetrievalRequest:
        """Title match plus kNN, blended by boosts that sum to 1.0."""
        if not 0.0 <= vector_boost <= 1.0:
            raise QueryBuildError(f"vector_boost must be within [0, 1], got {vector_boost}")
        lexical_boost = round(1.0 - vector_boost, 10)
        return RetrievalRequest(
            collection=collection,
            size=size,
            lexical=self._title_match(term, boost=lexical_boost),
            vector=self._text_embedding_knn(term, boost=vector_boost),
        )

    def hybrid_rrf(
        self,
        collection: str,
        term: str,
        window_size: int = MIN_RRF_WINDOW_SIZE,
        rank_constant: int = DEFAULT_RRF_RANK_CONSTANT,
        size: int = DEFAULT_PAGE_SIZE
    ) -> RetrievalRequest:
        """Title match plus kNN, fused by reciprocal rank."""
        if window_size < size:
            raise QueryBuildError(
                f"RRF window_size {window_size} is smaller than the page size {size}"
            )
        if rank_constant < 1:
            raise QueryBuildError(f"RRF rank_constant must be >= 1, got {rank_constant}")
        return RetrievalRequest(
            collection=collection,
            size=size,
            lexical=self._title_match(term),
            vector=self._text_embedding_knn(term),
            fusion=FusionParameters(window_size=window_size, rank_constant=rank_constant),
        )

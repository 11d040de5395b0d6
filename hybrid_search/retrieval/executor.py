"""Search engine executor.

Sends one built ``RetrievalRequest`` to the engine and returns the raw hits in
engine relevance order. Failures raise ``RetrievalError`` with the underlying
cause chained; an empty hit list is a legitimate result, never a failure
placeholder.
"""

import asyncio
import time
from typing import Any, List, Mapping

from opensearchpy import OpenSearch
from opensearchpy.exceptions import OpenSearchException
import structlog

from .base import RetrievalError
from .models import RawHit, RetrievalRequest

logger = structlog.get_logger("search_strategies.executor")


class RetrievalExecutor:
    """Runs retrieval requests against a search engine.

    Parameters
    - client: An ``OpenSearch`` client, or any object exposing the same
      ``search(index=..., body=...)`` call. The client is shared across calls
      and holds no per-call state.
    """

    def __init__(self, client: OpenSearch):
        self.client = client

    async def execute(self, request: RetrievalRequest) -> List[RawHit]:
        """Execute ``request`` with a single engine round trip."""
        body = request.to_body()
        start_time = time.time()

        try:
            # The client is synchronous; keep the event loop free while it blocks
            response = await asyncio.to_thread(
                self.client.search, index=request.collection, body=body
            )
        except OpenSearchException as e:
            logger.error(
                "Search request failed",
                collection=request.collection,
                error=str(e)
            )
            raise RetrievalError(f"Search against '{request.collection}' failed: {e}") from e

        hits = self._extract_hits(response, request.collection)

        logger.info(
            "Search request completed",
            collection=request.collection,
            hits_count=len(hits),
            latency_ms=(time.time() - start_time) * 1000
        )
        return hits

    def _extract_hits(self, response: Any, collection: str) -> List[RawHit]:
        try:
            raw_hits = response["hits"]["hits"]
        except (KeyError, TypeError) as e:
            logger.error("Malformed search response", collection=collection, error=str(e))
            raise RetrievalError(f"Malformed search response from '{collection}': missing hits") from e

        if not isinstance(raw_hits, list):
            raise RetrievalError(f"Malformed search response from '{collection}': hits is not a list")

        hits = []
        for position, hit in enumerate(raw_hits):
            if not isinstance(hit, Mapping) or hit.get("_id") is None:
                raise RetrievalError(
                    f"Malformed search response from '{collection}': hit {position} has no _id"
                )
            hits.append(RawHit(id=str(hit["_id"]), source=hit.get("_source")))
        return hits

    def close(self) -> None:
        """Close the engine client connection."""
        if hasattr(self.client, "close"):
            self.client.close()
            logger.info("Search engine client connection closed")

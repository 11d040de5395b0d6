"""Mapping from raw engine hits to ``Document``s."""

import json
from typing import Any, List, Mapping, Sequence

from pydantic import ValidationError
import structlog

from .base import MappingError
from .models import Document, RawHit

logger = structlog.get_logger("search_strategies.mapper")


class ResultMapper:
    """Converts raw hits into documents, preserving engine order.

    The document ``id`` always comes from the hit envelope. Any body field
    named ``id`` is discarded before decoding, and null fields decode as
    empty strings. A single undecodable hit fails the whole batch.
    """

    def map(self, hits: Sequence[RawHit]) -> List[Document]:
        """Map ``hits`` to documents in the same order."""
        return [self._map_hit(hit) for hit in hits]

    def _map_hit(self, hit: RawHit) -> Document:
        try:
            body = self._decode_body(hit.source)
            return Document.model_validate({**body, "id": hit.id})
        except (ValueError, TypeError, ValidationError) as e:
            logger.error("Failed to decode hit body", hit_id=hit.id, error=str(e))
            raise MappingError(f"Hit '{hit.id}' could not be decoded: {e}", hit_id=hit.id) from e

    def _decode_body(self, source: Any) -> Mapping[str, Any]:
        if isinstance(source, (str, bytes, bytearray)):
            source = json.loads(source)
        if not isinstance(source, Mapping):
            raise TypeError(f"hit body must be a JSON object, got {type(source).__name__}")
        # JSON null reads as a missing field
        return {
            key: value for key, value in source.items()
            if key != "id" and value is not None
        }

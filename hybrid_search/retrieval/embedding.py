"""HuggingFace inference API client for query embeddings.

Converts free text into a dense vector with the feature-extraction pipeline
of a sentence-embedding model. The request body is a typed model serialized
by the JSON encoder; the response must be a flat array of numbers.

Every failure surfaces as an ``EmbeddingError`` with a distinct ``reason``.
There is no retry and, unless one is configured, no timeout: the caller's
deadline bounds the call.
"""

import json
import time
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field
import structlog

from ..common.metrics import MetricsCollector
from .base import EmbeddingError, EmbeddingProvider
from .models import QueryVector

logger = structlog.get_logger("search_strategies.embedding")

DEFAULT_EMBEDDING_URL = "https://api-inference.huggingface.co"
DEFAULT_EMBEDDING_MODEL = "sentence-transformers/msmarco-minilm-l-12-v3"


class EmbeddingOptions(BaseModel):
    """Inference API options."""
    wait_for_model: bool = Field(True, description="Block until the model is loaded")


class EmbeddingRequest(BaseModel):
    """Request body for the feature-extraction pipeline."""
    inputs: str = Field(..., description="Text to embed")
    options: EmbeddingOptions = Field(default_factory=EmbeddingOptions)


class HuggingFaceEmbeddingClient(EmbeddingProvider):
    """Embedding provider backed by the HuggingFace inference API.

    Parameters
    - token: Bearer token for the inference API
    - model: Model repository name (must match the engine-side model)
    - base_url: Inference API root
    - dimension: Expected vector length; ``None`` skips the check
    - timeout: Per-request timeout in seconds; ``None`` disables it
    - http_client: Shared ``httpx.AsyncClient``; created (and owned) if omitted
    - metrics: Optional ``MetricsCollector``
    """

    def __init__(
        self,
        token: Optional[str],
        model: str = DEFAULT_EMBEDDING_MODEL,
        base_url: str = DEFAULT_EMBEDDING_URL,
        dimension: Optional[int] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.token = token
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.dimension = dimension
        self.metrics = metrics
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def endpoint(self) -> str:
        """Feature-extraction URL for the configured model."""
        return f"{self.base_url}/pipeline/feature-extraction/{self.model}"

    async def embed(self, text: str) -> QueryVector:
        """Embed ``text`` with a single inference API call."""
        start_time = time.time()
        try:
            vector = await self._embed(text)
        except EmbeddingError as e:
            self._record(e.reason, start_time)
            logger.error(
                "Query embedding failed",
                model=self.model,
                reason=e.reason,
                status_code=e.status_code,
                error=str(e)
            )
            raise

        self._record("ok", start_time)
        logger.info(
            "Query embedding generated",
            model=self.model,
            dimension=len(vector),
            latency_ms=(time.time() - start_time) * 1000
        )
        return vector

    async def _embed(self, text: str) -> QueryVector:
        if not isinstance(text, str) or not text.strip():
            raise EmbeddingError("Embedding text must be a non-empty string", EmbeddingError.REQUEST)

        try:
            payload = EmbeddingRequest(inputs=text).model_dump_json()
            headers = {"Content-Type": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            request = self.http_client.build_request(
                "POST", self.endpoint, content=payload, headers=headers
            )
        except (ValueError, TypeError, httpx.InvalidURL) as e:
            raise EmbeddingError(
                f"Could not build embedding request: {e}", EmbeddingError.REQUEST
            ) from e

        try:
            response = await self.http_client.send(request)
        except httpx.HTTPError as e:
            raise EmbeddingError(
                f"Embedding service unreachable: {e}", EmbeddingError.TRANSPORT
            ) from e

        if not response.is_success:
            raise EmbeddingError(
                f"Embedding service returned status {response.status_code}",
                EmbeddingError.STATUS,
                status_code=response.status_code
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise EmbeddingError(
                f"Embedding response is not valid JSON: {e}", EmbeddingError.DECODE,
                status_code=response.status_code
            ) from e

        return self._decode_vector(data, response.status_code)

    def _decode_vector(self, data: Any, status_code: int) -> QueryVector:
        if not isinstance(data, list) or not data:
            raise EmbeddingError(
                "Embedding response is not a non-empty array", EmbeddingError.DECODE,
                status_code=status_code
            )
        # bool is an int subclass; reject it explicitly
        if not all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in data):
            raise EmbeddingError(
                "Embedding response is not a flat array of numbers", EmbeddingError.DECODE,
                status_code=status_code
            )
        if self.dimension is not None and len(data) != self.dimension:
            raise EmbeddingError(
                f"Embedding has dimension {len(data)}, expected {self.dimension}",
                EmbeddingError.DECODE,
                status_code=status_code
            )
        return [float(value) for value in data]

    def _record(self, status: str, start_time: float) -> None:
        if self.metrics is not None:
            self.metrics.record_embedding(self.model, status, time.time() - start_time)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.http_client.aclose()
            logger.info("Embedding HTTP client closed")

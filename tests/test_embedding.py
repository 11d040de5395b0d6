"""Tests for the HuggingFace embedding client."""

import json

import httpx
import pytest
from prometheus_client import CollectorRegistry

from hybrid_search.common.metrics import MetricsCollector
from hybrid_search.retrieval.base import EmbeddingError
from hybrid_search.retrieval.embedding import HuggingFaceEmbeddingClient

from .fakes import EmbeddingService


@pytest.mark.asyncio
async def test_embed_returns_vector(embedding_service):
    """A flat numeric array comes back as the query vector."""
    client = embedding_service.client()

    vector = await client.embed("gopher")

    assert vector == [0.1, 0.2, 0.3]
    assert len(embedding_service.requests) == 1


@pytest.mark.asyncio
async def test_embed_request_shape(embedding_service):
    """POST to the model pipeline with a bearer token and the JSON body."""
    client = embedding_service.client()

    await client.embed('He said "gophers"\n')

    request = embedding_service.requests[0]
    assert request.method == "POST"
    assert str(request.url) == (
        "https://api-inference.huggingface.co/pipeline/feature-extraction/"
        "sentence-transformers/msmarco-minilm-l-12-v3"
    )
    assert request.headers["Authorization"] == "Bearer test-token"
    assert json.loads(request.content) == {
        "inputs": 'He said "gophers"\n',
        "options": {"wait_for_model": True},
    }


@pytest.mark.asyncio
async def test_embed_rejects_empty_text(embedding_service):
    client = embedding_service.client()

    with pytest.raises(EmbeddingError) as exc_info:
        await client.embed("   ")

    assert exc_info.value.reason == EmbeddingError.REQUEST
    assert embedding_service.requests == []


@pytest.mark.asyncio
async def test_embed_non_success_status():
    """HTTP 503 is a status failure carrying the code."""
    service = EmbeddingService(status_code=503, json_body={"error": "Model is loading"})
    client = service.client()

    with pytest.raises(EmbeddingError) as exc_info:
        await client.embed("gopher")

    assert exc_info.value.reason == EmbeddingError.STATUS
    assert exc_info.value.status_code == 503
    assert exc_info.value.stage == "embedding"


@pytest.mark.asyncio
async def test_embed_transport_failure():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
    client = HuggingFaceEmbeddingClient(token="t", http_client=http_client)

    with pytest.raises(EmbeddingError) as exc_info:
        await client.embed("gopher")

    assert exc_info.value.reason == EmbeddingError.TRANSPORT
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
@pytest.mark.parametrize("service", [
    EmbeddingService(content=b"not json"),
    EmbeddingService(json_body={"vector": [0.1]}),
    EmbeddingService(json_body=[[0.1, 0.2], [0.3, 0.4]]),
    EmbeddingService(json_body=[0.1, "0.2"]),
    EmbeddingService(json_body=[True, False]),
])
async def test_embed_undecodable_body(service):
    """Anything but a flat array of numbers is a decode failure."""
    client = service.client()

    with pytest.raises(EmbeddingError) as exc_info:
        await client.embed("gopher")

    assert exc_info.value.reason == EmbeddingError.DECODE


@pytest.mark.asyncio
async def test_embed_empty_array_is_decode_failure():
    client = EmbeddingService(content=b"[]").client()

    with pytest.raises(EmbeddingError) as exc_info:
        await client.embed("gopher")

    assert exc_info.value.reason == EmbeddingError.DECODE


@pytest.mark.asyncio
async def test_embed_dimension_check(embedding_service):
    """A configured dimension must match the returned vector."""
    assert await embedding_service.client(dimension=3).embed("gopher") == [0.1, 0.2, 0.3]

    with pytest.raises(EmbeddingError) as exc_info:
        await embedding_service.client(dimension=384).embed("gopher")
    assert exc_info.value.reason == EmbeddingError.DECODE


@pytest.mark.asyncio
async def test_embed_records_metrics():
    metrics = MetricsCollector("test-service", registry=CollectorRegistry())
    ok_client = EmbeddingService().client(metrics=metrics)
    failing_client = EmbeddingService(status_code=503).client(metrics=metrics)

    await ok_client.embed("gopher")
    with pytest.raises(EmbeddingError):
        await failing_client.embed("gopher")

    exposition = metrics.get_metrics()
    assert 'search_embedding_requests_total{model_name="sentence-transformers/msmarco-minilm-l-12-v3",status="ok"} 1.0' in exposition
    assert 'status="status"} 1.0' in exposition


@pytest.mark.asyncio
async def test_aclose_only_closes_owned_client(embedding_service):
    """A shared client stays open; an owned one is closed."""
    shared = httpx.AsyncClient(transport=httpx.MockTransport(embedding_service.handler))
    client = HuggingFaceEmbeddingClient(token="t", http_client=shared)
    await client.aclose()
    assert not shared.is_closed
    await shared.aclose()

    owned = HuggingFaceEmbeddingClient(token="t")
    await owned.aclose()
    assert owned.http_client.is_closed

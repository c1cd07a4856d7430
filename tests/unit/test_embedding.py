"""
Unit tests for the embedding clients.
"""
import asyncio
import json

import httpx
import pytest

from feed_engine.clients.embedding import DisabledEmbeddingService, OpenAIEmbeddingClient
from feed_engine.core.circuit_breaker import CircuitBreaker, CircuitState
from feed_engine.models.schemas import EmbeddingOk, EmbeddingUnavailable


def _client(handler, api_key="sk-test", breaker=None, timeout_ms=2000):
    http_client = httpx.AsyncClient(
        base_url="https://embeddings.test/v1",
        transport=httpx.MockTransport(handler),
    )
    return OpenAIEmbeddingClient(
        api_key=api_key,
        base_url="https://embeddings.test/v1",
        model="text-embedding-ada-002",
        timeout_ms=timeout_ms,
        breaker=breaker or CircuitBreaker("embedding_test", failure_threshold=5),
        http_client=http_client,
    )


def _ok(request):
    return httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3]}]})


def _server_error(request):
    return httpx.Response(500, json={"error": "overloaded"})


@pytest.mark.asyncio
async def test_disabled_service():
    result = await DisabledEmbeddingService().embed("anything")

    assert isinstance(result, EmbeddingUnavailable)
    assert result.reason == "not_configured"


@pytest.mark.asyncio
async def test_successful_embedding():
    seen = []

    def handler(request):
        seen.append(request)
        return _ok(request)

    client = _client(handler)
    result = await client.embed("spicy paneer")
    await client.aclose()

    assert isinstance(result, EmbeddingOk)
    assert result.vector == [0.1, 0.2, 0.3]
    assert seen[0].url.path == "/v1/embeddings"
    assert json.loads(seen[0].content) == {
        "model": "text-embedding-ada-002",
        "input": "spicy paneer",
    }


@pytest.mark.asyncio
async def test_missing_api_key():
    result = await _client(_ok, api_key=None).embed("text")

    assert isinstance(result, EmbeddingUnavailable)
    assert result.reason == "not_configured"


@pytest.mark.asyncio
async def test_http_error():
    result = await _client(_server_error).embed("text")

    assert isinstance(result, EmbeddingUnavailable)
    assert result.reason == "http_error"


@pytest.mark.asyncio
async def test_malformed_response():
    client = _client(lambda request: httpx.Response(200, json={"data": []}))

    result = await client.embed("text")

    assert isinstance(result, EmbeddingUnavailable)
    assert result.reason == "malformed_response"


@pytest.mark.asyncio
async def test_timeout():
    async def slow(request):
        await asyncio.sleep(1)
        return _ok(request)

    result = await _client(slow, timeout_ms=20).embed("text")

    assert isinstance(result, EmbeddingUnavailable)
    assert result.reason == "timeout"


@pytest.mark.asyncio
async def test_circuit_opens_after_failures():
    calls = []

    def handler(request):
        calls.append(request)
        return _server_error(request)

    breaker = CircuitBreaker("embedding_test", failure_threshold=2, recovery_timeout_sec=60)
    client = _client(handler, breaker=breaker)

    await client.embed("a")
    await client.embed("b")
    result = await client.embed("c")

    assert breaker.state == CircuitState.OPEN
    assert result.reason == "circuit_open"
    assert len(calls) == 2

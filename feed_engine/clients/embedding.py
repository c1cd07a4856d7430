"""
Semantic embedding service clients.

OpenAIEmbeddingClient calls an OpenAI-compatible `/embeddings` endpoint.
Every failure mode (no API key, timeout, HTTP error, malformed body, open
circuit) is reported as EmbeddingUnavailable so callers can fall back
without exception handling.
"""
import asyncio
import logging
from typing import List, Optional

import httpx

from feed_engine.core.circuit_breaker import CircuitBreaker
from feed_engine.core.exceptions import CircuitBreakerOpenError
from feed_engine.models.schemas import (
    EmbeddingOk,
    EmbeddingResult,
    EmbeddingUnavailable,
)

logger = logging.getLogger(__name__)


class DisabledEmbeddingService:
    """Embedding service used when none is configured."""

    async def embed(self, text: str) -> EmbeddingResult:
        return EmbeddingUnavailable(reason="not_configured")


class OpenAIEmbeddingClient:
    """
    Async client for an OpenAI-compatible embeddings API.

    Usage:
        client = OpenAIEmbeddingClient(api_key="sk-...", breaker=breaker)
        result = await client.embed("spicy paneer tikka")
        if isinstance(result, EmbeddingOk):
            use(result.vector)
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.openai.com/v1",
        model: str = "text-embedding-ada-002",
        timeout_ms: int = 2000,
        breaker: Optional[CircuitBreaker] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout_sec = timeout_ms / 1000
        self._breaker = breaker or CircuitBreaker(name="embedding_service")
        self._http = http_client

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def embed(self, text: str) -> EmbeddingResult:
        """Embed text, failing open into EmbeddingUnavailable."""
        if not self._api_key:
            return EmbeddingUnavailable(reason="not_configured")

        try:
            vector = await self._breaker.call(lambda: self._request_embedding(text))
        except CircuitBreakerOpenError:
            return EmbeddingUnavailable(reason="circuit_open")
        except asyncio.TimeoutError:
            logger.warning(f"Embedding request timed out after {self._timeout_sec:.2f}s")
            return EmbeddingUnavailable(reason="timeout")
        except httpx.HTTPError as e:
            logger.warning(f"Embedding service error: {e}")
            return EmbeddingUnavailable(reason="http_error")
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(f"Malformed embedding response: {e}")
            return EmbeddingUnavailable(reason="malformed_response")

        return EmbeddingOk(vector=vector)

    async def aclose(self) -> None:
        """Release the underlying HTTP connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _request_embedding(self, text: str) -> List[float]:
        response = await asyncio.wait_for(
            self._get_http().post(
                "/embeddings",
                json={"model": self._model, "input": text},
            ),
            timeout=self._timeout_sec,
        )
        response.raise_for_status()
        vector = response.json()["data"][0]["embedding"]
        return [float(x) for x in vector]

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout_sec,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        return self._http

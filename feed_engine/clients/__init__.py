"""Clients for external services."""
from .embedding import DisabledEmbeddingService, OpenAIEmbeddingClient

__all__ = ["DisabledEmbeddingService", "OpenAIEmbeddingClient"]

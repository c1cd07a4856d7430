"""Store implementations package."""
from .memory import (
    InMemoryContentCatalog,
    InMemoryInteractionLogStore,
    InMemoryOrderHistoryStore,
)

__all__ = [
    "InMemoryContentCatalog",
    "InMemoryInteractionLogStore",
    "InMemoryOrderHistoryStore",
]

"""
Collaborator interfaces (abstractions).
Using Protocol for structural subtyping (duck typing with type hints).
These define the contracts that external stores and services must follow.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from feed_engine.models.schemas import (
    CandidateFilter,
    EmbeddingResult,
    InteractionEvent,
    Order,
)


@runtime_checkable
class InteractionLogStore(Protocol):
    """
    Append-only store of engagement events.
    Production: event table / log topic.
    Testing: In-memory implementation.
    """

    async def append(self, event: InteractionEvent) -> None:
        """
        Persist a new event. Events are never mutated or deleted.

        Args:
            event: Event to append
        """
        ...

    async def query(
        self,
        user_id: str,
        limit: int,
        since: Optional[float] = None,
    ) -> List[InteractionEvent]:
        """
        Fetch a user's events, most recent first.

        Args:
            user_id: User identifier
            limit: Maximum number of events
            since: Optional lower bound on the event timestamp

        Returns:
            Events (may be empty)
        """
        ...

    async def query_recent(self, limit: int) -> List[InteractionEvent]:
        """
        Fetch the most recent events across all users, newest first.

        Args:
            limit: Maximum number of events
        """
        ...


@runtime_checkable
class ContentCatalog(Protocol):
    """
    Read-only source of content candidates.
    Records are raw JSON-like mappings; the engine validates them.
    """

    async def list_candidates(
        self,
        candidate_filter: CandidateFilter,
        limit: int,
    ) -> List[Dict[str, Any]]:
        """
        Fetch the most recent candidates matching the filter.

        Args:
            candidate_filter: Selection criteria
            limit: Maximum number of records

        Returns:
            Raw candidate records, newest first
        """
        ...

    async def get_candidate(self, candidate_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a single candidate record.

        Returns:
            The raw record, or None if unknown
        """
        ...


@runtime_checkable
class OrderHistoryStore(Protocol):
    """Read-only access to a user's past orders."""

    async def list_orders(self, user_id: str, limit: int) -> List[Order]:
        """
        Fetch a user's orders, most recent first.

        Args:
            user_id: User identifier
            limit: Maximum number of orders
        """
        ...


@runtime_checkable
class EmbeddingService(Protocol):
    """
    Semantic embedding service.
    May be absent or unconfigured; never raises, returns a tagged result.
    """

    async def embed(self, text: str) -> EmbeddingResult:
        """
        Embed text into a vector.

        Returns:
            EmbeddingOk with the vector, or EmbeddingUnavailable with a reason
        """
        ...


class FeatureFlagService(ABC):
    """
    Abstract base class for feature flag evaluation.
    Supports kill switch and gradual rollout.
    """

    @abstractmethod
    def is_personalization_enabled(self, user_id: str) -> bool:
        """
        Check if personalization is enabled for this request.

        Args:
            user_id: User identifier for percentage rollout

        Returns:
            True if personalization should be applied
        """
        pass

    @abstractmethod
    def is_kill_switch_active(self) -> bool:
        """
        Check if global kill switch is activated.

        Returns:
            True if all personalization should be disabled
        """
        pass

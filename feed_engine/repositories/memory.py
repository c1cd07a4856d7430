"""
In-memory implementations of the external stores.
Used for prototyping and testing.
Production would replace these with Postgres/event-log implementations.
"""
import time
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional

from feed_engine.models.schemas import (
    CandidateFilter,
    InteractionEvent,
    InteractionType,
    Order,
)

HOUR = 3600
DAY = 24 * HOUR


class InMemoryInteractionLogStore:
    """
    In-memory implementation of InteractionLogStore.
    Events are kept in arrival order and never mutated.
    """

    def __init__(self, seed: bool = False) -> None:
        self._events: List[InteractionEvent] = []
        self._lock = Lock()
        if seed:
            self._initialize_mock_data()

    def _initialize_mock_data(self) -> None:
        """Load mock interactions for the demo users."""
        now = time.time()
        mock_events = [
            ("user_curry", "vid_butter_chicken", "creator_priya", InteractionType.VIEW, 45, ["Indian", "curry"], 30 * HOUR),
            ("user_curry", "vid_butter_chicken", "creator_priya", InteractionType.LIKE, None, ["Indian", "curry"], 29 * HOUR),
            ("user_curry", "vid_dosa", "creator_priya", InteractionType.VIEW, 70, ["Indian", "breakfast"], 20 * HOUR),
            ("user_curry", "vid_dosa", "creator_priya", InteractionType.SHARE, None, ["Indian", "breakfast"], 19 * HOUR),
            ("user_curry", "vid_tacos", "creator_luis", InteractionType.VIEW, 12, ["Mexican", "street-food"], 5 * HOUR),
            ("user_pasta", "vid_carbonara", "creator_marco", InteractionType.VIEW, 90, ["Italian", "pasta"], 10 * HOUR),
            ("user_pasta", "vid_carbonara", "creator_marco", InteractionType.LIKE, None, ["Italian", "pasta"], 9 * HOUR),
            ("user_pasta", "vid_margherita", "creator_marco", InteractionType.ORDER, None, ["Italian", "pizza"], 3 * HOUR),
        ]
        for user_id, video_id, creator_id, kind, watch_time, tags, age in mock_events:
            self._events.append(
                InteractionEvent(
                    user_id=user_id,
                    video_id=video_id,
                    creator_id=creator_id,
                    type=kind,
                    watch_time_seconds=watch_time,
                    tags=tags,
                    timestamp=now - age,
                    session_id=f"seed_{user_id}",
                )
            )

    async def append(self, event: InteractionEvent) -> None:
        """Append an event to the log."""
        with self._lock:
            self._events.append(event)

    async def query(
        self,
        user_id: str,
        limit: int,
        since: Optional[float] = None,
    ) -> List[InteractionEvent]:
        """Fetch a user's events, most recent first."""
        with self._lock:
            events = [e for e in self._events if e.user_id == user_id]
        if since is not None:
            events = [e for e in events if e.timestamp >= since]
        return _newest_first(events)[:limit]

    async def query_recent(self, limit: int) -> List[InteractionEvent]:
        """Fetch the most recent events across all users."""
        with self._lock:
            events = list(self._events)
        return _newest_first(events)[:limit]

    def count(self) -> int:
        """Number of stored events."""
        with self._lock:
            return len(self._events)


class InMemoryContentCatalog:
    """
    In-memory implementation of ContentCatalog.
    Stores raw candidate records, as a catalog API would return them.
    """

    def __init__(
        self,
        records: Optional[Iterable[Dict[str, Any]]] = None,
        seed: bool = False,
    ) -> None:
        self._records: Dict[str, Dict[str, Any]] = {}
        if seed:
            self._initialize_mock_data()
        for record in records or []:
            self.add(record)

    def _initialize_mock_data(self) -> None:
        """Load mock food videos for testing."""
        now = time.time()
        mock_videos = [
            {
                "id": "vid_butter_chicken",
                "creator_id": "creator_priya",
                "title": "Butter Chicken in 10 Minutes",
                "description": "Creamy tomato curry, restaurant style",
                "tags": ["Indian", "curry"],
                "duration_seconds": 50,
                "created_at": now - 2 * HOUR,
                "views": 1200,
                "likes": 140,
                "order_count": 12,
            },
            {
                "id": "vid_dosa",
                "creator_id": "creator_priya",
                "title": "Crispy Masala Dosa",
                "description": "South Indian breakfast classic",
                "tags": ["Indian", "breakfast"],
                "duration_seconds": 80,
                "created_at": now - 30 * HOUR,
                "views": 800,
                "likes": 60,
                "order_count": 4,
            },
            {
                "id": "vid_carbonara",
                "creator_id": "creator_marco",
                "title": "Real Roman Carbonara",
                "description": "No cream, ever",
                "tags": ["Italian", "pasta"],
                "duration_seconds": 120,
                "created_at": now - 4 * DAY,
                "views": 5000,
                "likes": 300,
                "order_count": 20,
            },
            {
                "id": "vid_margherita",
                "creator_id": "creator_marco",
                "title": "Neapolitan Margherita",
                "description": "Wood-fired pizza at home",
                "tags": ["Italian", "pizza"],
                "duration_seconds": 300,
                "created_at": now - 9 * DAY,
                "views": 3000,
                "likes": 90,
                "order_count": 5,
            },
            {
                "id": "vid_tacos",
                "creator_id": "creator_luis",
                "title": "Tacos al Pastor",
                "description": "Street food from Mexico City",
                "tags": ["Mexican", "street-food"],
                "duration_seconds": 40,
                "created_at": now - 12 * HOUR,
                "views": 2000,
                "likes": 250,
                "order_count": 30,
            },
            {
                "id": "vid_ramen",
                "creator_id": "creator_aiko",
                "title": "Tonkotsu Ramen Deep Dive",
                "description": "Eighteen-hour pork broth",
                "tags": ["Japanese", "noodles"],
                "duration_seconds": 600,
                "created_at": now - 20 * DAY,
                "views": 9000,
                "likes": 400,
                "order_count": 8,
            },
            {
                "id": "vid_draft_biryani",
                "creator_id": "creator_priya",
                "title": "Hyderabadi Biryani (draft)",
                "tags": ["Indian", "rice"],
                "created_at": now - 1 * HOUR,
                "published": False,
            },
        ]
        for video in mock_videos:
            self.add(video)

    def add(self, record: Dict[str, Any]) -> None:
        """Insert or replace a raw candidate record (keyed by its id)."""
        self._records[str(record.get("id"))] = dict(record)

    async def list_candidates(
        self,
        candidate_filter: CandidateFilter,
        limit: int,
    ) -> List[Dict[str, Any]]:
        """Fetch the most recent matching records."""
        records = list(self._records.values())
        if candidate_filter.published_only:
            records = [r for r in records if r.get("published", True)]
        if candidate_filter.created_after is not None:
            records = [
                r for r in records
                if _as_float(r.get("created_at")) >= candidate_filter.created_after
            ]
        records.sort(key=lambda r: _as_float(r.get("created_at")), reverse=True)
        return [dict(r) for r in records[:limit]]

    async def get_candidate(self, candidate_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a single record by id."""
        record = self._records.get(candidate_id)
        return dict(record) if record is not None else None


class InMemoryOrderHistoryStore:
    """In-memory implementation of OrderHistoryStore."""

    def __init__(self, seed: bool = False) -> None:
        self._orders: Dict[str, List[Order]] = {}
        self._lock = Lock()
        if seed:
            self._initialize_mock_data()

    def _initialize_mock_data(self) -> None:
        """Load mock order history."""
        now = time.time()
        self.add_order("user_curry", Order(amount=18.5, timestamp=now - 2 * DAY))
        self.add_order("user_curry", Order(amount=24.0, timestamp=now - 5 * DAY))
        self.add_order(
            "user_pasta",
            Order(amount=32.0, timestamp=now - 1 * DAY, dietary_tags=["vegetarian"]),
        )

    def add_order(self, user_id: str, order: Order) -> None:
        """Record an order for a user."""
        with self._lock:
            self._orders.setdefault(user_id, []).append(order)

    async def list_orders(self, user_id: str, limit: int) -> List[Order]:
        """Fetch a user's orders, most recent first."""
        with self._lock:
            orders = list(self._orders.get(user_id, []))
        orders.sort(key=lambda o: o.timestamp, reverse=True)
        return orders[:limit]


def _newest_first(events: List[InteractionEvent]) -> List[InteractionEvent]:
    # Stable sort keeps arrival order for equal timestamps, newest arrival first
    return sorted(reversed(events), key=lambda e: e.timestamp, reverse=True)


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0

"""
Profile builder service.
Aggregates recent interactions and order history into a UserProfile,
cached per user with lazy TTL expiry.
"""
import asyncio
import logging
import time
from collections import Counter
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from feed_engine.core.cache import CacheInterface, InMemoryCache
from feed_engine.core.exceptions import ProfileBuildError
from feed_engine.core.singleflight import SingleFlight
from feed_engine.models.interfaces import InteractionLogStore, OrderHistoryStore
from feed_engine.models.schemas import (
    InteractionEvent,
    InteractionType,
    Order,
    PriceRange,
    UserBehaviors,
    UserPreferences,
    UserProfile,
)

logger = logging.getLogger(__name__)

TOP_CUISINES = 5
TOP_CREATORS = 5
TOP_PEAK_TIMES = 3
PRICE_MIN_FACTOR = 0.7
PRICE_MAX_FACTOR = 1.5
SECONDS_PER_DAY = 86400
TIME_BUCKETS = ("morning", "afternoon", "evening")

CREATOR_SIGNAL_TYPES = {InteractionType.LIKE, InteractionType.SHARE}


class ProfileBuilder:
    """
    Builds and caches user profiles.

    Responsibilities:
    - Fetch interaction and order history for a user
    - Aggregate preferences and behaviors
    - Serve cached profiles until their TTL expires
    - Collapse concurrent rebuilds for the same user
    """

    def __init__(
        self,
        log_store: InteractionLogStore,
        order_store: OrderHistoryStore,
        cache: Optional[CacheInterface[UserProfile]] = None,
        interaction_limit: int = 1000,
        order_limit: int = 100,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize profile builder with dependencies.

        Args:
            log_store: Interaction log store
            order_store: Order history store
            cache: Profile cache keyed by user_id (TTL-based)
            interaction_limit: Most recent events considered per build
            order_limit: Most recent orders considered per build
            clock: Time source (Unix seconds)
        """
        self._log_store = log_store
        self._order_store = order_store
        self._cache = cache or InMemoryCache[UserProfile](default_ttl_seconds=300)
        self._interaction_limit = interaction_limit
        self._order_limit = order_limit
        self._clock = clock
        self._single_flight: SingleFlight[UserProfile] = SingleFlight()

    @property
    def cache(self) -> CacheInterface[UserProfile]:
        return self._cache

    async def get_profile(self, user_id: str) -> UserProfile:
        """
        Return the cached profile, rebuilding it if missing or expired.

        Raises:
            ProfileBuildError: If the log or order store is unreachable
        """
        cached = self._cache.get(user_id)
        if cached is not None:
            return cached
        return await self._single_flight.do(user_id, lambda: self._rebuild(user_id))

    async def _rebuild(self, user_id: str) -> UserProfile:
        profile = await self.build_profile(user_id)
        self._cache.set(user_id, profile)
        logger.debug(f"Profile rebuilt for user={user_id}")
        return profile

    async def build_profile(self, user_id: str) -> UserProfile:
        """
        Build a fresh profile from the stores, bypassing the cache.
        Always returns a complete profile, even for users with no history.
        """
        try:
            events, orders = await asyncio.gather(
                self._log_store.query(user_id, self._interaction_limit),
                self._order_store.list_orders(user_id, self._order_limit),
            )
        except Exception as e:
            logger.error(f"Profile build failed: user={user_id}, error={e}")
            raise ProfileBuildError(user_id, str(e)) from e

        now = self._clock()
        return UserProfile(
            user_id=user_id,
            preferences=UserPreferences(
                cuisines=top_cuisines(events),
                price_range=price_range(orders),
                dietary_restrictions=dietary_restrictions(orders),
            ),
            behaviors=UserBehaviors(
                avg_watch_time=average_watch_time(events),
                order_frequency=order_frequency(orders, now),
                favorite_creators=favorite_creators(events),
                peak_order_times=peak_order_times(orders),
            ),
            built_at=now,
        )


# =============================================================================
# Aggregations
# =============================================================================


def top_cuisines(events: List[InteractionEvent], top_n: int = TOP_CUISINES) -> List[str]:
    """Most frequent event tags; ties go to the most recently seen tag."""
    return _top_by_count_then_recency(
        ((tag, event.timestamp) for event in events for tag in event.tags),
        top_n,
    )


def favorite_creators(
    events: List[InteractionEvent],
    top_n: int = TOP_CREATORS,
) -> List[str]:
    """Creators the user liked or shared most often."""
    return _top_by_count_then_recency(
        (
            (event.creator_id, event.timestamp)
            for event in events
            if event.type in CREATOR_SIGNAL_TYPES and event.creator_id
        ),
        top_n,
    )


def average_watch_time(events: List[InteractionEvent]) -> float:
    """Mean watch time over events that report one; 0 if none do."""
    watch_times = [
        e.watch_time_seconds for e in events if e.watch_time_seconds is not None
    ]
    if not watch_times:
        return 0.0
    return sum(watch_times) / len(watch_times)


def price_range(orders: List[Order]) -> PriceRange:
    """Band around the average order value; default {0, 1000} without orders."""
    if not orders:
        return PriceRange()
    avg_order_value = sum(o.amount for o in orders) / len(orders)
    return PriceRange(
        min=max(0.0, avg_order_value * PRICE_MIN_FACTOR),
        max=avg_order_value * PRICE_MAX_FACTOR,
    )


def dietary_restrictions(orders: List[Order]) -> List[str]:
    """Union of dietary tags across orders."""
    return sorted({tag for order in orders for tag in order.dietary_tags})


def order_frequency(orders: List[Order], now: float) -> float:
    """Orders per day between the oldest fetched order and now (at least one day)."""
    if not orders:
        return 0.0
    oldest = min(o.timestamp for o in orders)
    window_days = max(1.0, (now - oldest) / SECONDS_PER_DAY)
    return len(orders) / window_days


def time_bucket(hour: int) -> str:
    """Map an hour of day (0-23) to morning/afternoon/evening."""
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    return "evening"


def peak_order_times(orders: List[Order], top_n: int = TOP_PEAK_TIMES) -> List[str]:
    """Time buckets ordered by number of orders placed in them (UTC hours)."""
    counts = Counter(
        time_bucket(datetime.fromtimestamp(o.timestamp, tz=timezone.utc).hour)
        for o in orders
    )
    ranked = sorted(counts, key=lambda b: (-counts[b], TIME_BUCKETS.index(b)))
    return ranked[:top_n]


def _top_by_count_then_recency(
    observations: Iterable[tuple],
    top_n: int,
) -> List[str]:
    counts: Dict[str, int] = {}
    last_seen: Dict[str, float] = {}
    for key, timestamp in observations:
        counts[key] = counts.get(key, 0) + 1
        last_seen[key] = max(last_seen.get(key, timestamp), timestamp)

    ranked = sorted(counts, key=lambda k: (-counts[k], -last_seen[k], k))
    return ranked[:top_n]

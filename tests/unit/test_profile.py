"""
Unit tests for the profile builder and its aggregations.
"""
import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from feed_engine.core.cache import InMemoryCache
from feed_engine.core.exceptions import ProfileBuildError
from feed_engine.models.schemas import InteractionEvent, InteractionType, Order, UserProfile
from feed_engine.repositories.memory import (
    InMemoryInteractionLogStore,
    InMemoryOrderHistoryStore,
)
from feed_engine.services.profile import (
    ProfileBuilder,
    average_watch_time,
    favorite_creators,
    order_frequency,
    peak_order_times,
    price_range,
    time_bucket,
    top_cuisines,
)

NOW = 1_700_000_000.0
DAY = 86400


def _event(ts, tags=(), kind=InteractionType.VIEW, creator="creator_a", watch=None):
    return InteractionEvent(
        user_id="user_1",
        video_id=f"vid_{ts}",
        creator_id=creator,
        type=kind,
        watch_time_seconds=watch,
        tags=list(tags),
        timestamp=ts,
        session_id="s1",
    )


def _at_utc_hour(hour):
    return datetime(2024, 3, 1, hour, 30, tzinfo=timezone.utc).timestamp()


class CountingLogStore(InMemoryInteractionLogStore):
    """Log store that counts queries and yields control while answering."""

    def __init__(self):
        super().__init__()
        self.queries = 0

    async def query(self, user_id, limit, since=None):
        self.queries += 1
        await asyncio.sleep(0.01)
        return await super().query(user_id, limit, since)


class TestAggregations:
    def test_top_cuisines_by_frequency(self):
        events = [
            _event(1, ["Indian", "curry"]),
            _event(2, ["Indian"]),
            _event(3, ["Italian"]),
            _event(4, ["Indian", "Italian"]),
        ]
        assert top_cuisines(events) == ["Indian", "Italian", "curry"]

    def test_top_cuisines_ties_prefer_recent(self):
        events = [
            _event(10, ["old"]),
            _event(20, ["new"]),
        ]
        assert top_cuisines(events) == ["new", "old"]

    def test_top_cuisines_keeps_five(self):
        events = [_event(i, [f"tag{i}"]) for i in range(8)]
        result = top_cuisines(events)

        assert len(result) == 5
        assert result == ["tag7", "tag6", "tag5", "tag4", "tag3"]

    def test_favorite_creators_count_likes_and_shares_only(self):
        events = [
            _event(1, kind=InteractionType.VIEW, creator="viewed_only"),
            _event(2, kind=InteractionType.VIEW, creator="viewed_only"),
            _event(3, kind=InteractionType.LIKE, creator="creator_b"),
            _event(4, kind=InteractionType.SHARE, creator="creator_c"),
            _event(5, kind=InteractionType.LIKE, creator="creator_c"),
        ]
        assert favorite_creators(events) == ["creator_c", "creator_b"]

    def test_average_watch_time_ignores_missing(self):
        events = [_event(1, watch=30), _event(2, watch=90), _event(3)]
        assert average_watch_time(events) == pytest.approx(60.0)
        assert average_watch_time([_event(1)]) == 0.0

    def test_price_range_from_orders(self):
        orders = [Order(amount=10, timestamp=NOW), Order(amount=30, timestamp=NOW)]
        result = price_range(orders)

        assert result.min == pytest.approx(14.0)
        assert result.max == pytest.approx(30.0)

    def test_price_range_default_without_orders(self):
        result = price_range([])
        assert (result.min, result.max) == (0, 1000)

    def test_order_frequency(self):
        orders = [
            Order(amount=10, timestamp=NOW - 4 * DAY),
            Order(amount=10, timestamp=NOW - DAY),
        ]
        assert order_frequency(orders, NOW) == pytest.approx(0.5)
        assert order_frequency([], NOW) == 0.0

    def test_order_frequency_window_at_least_one_day(self):
        orders = [Order(amount=10, timestamp=NOW - 60), Order(amount=10, timestamp=NOW)]
        assert order_frequency(orders, NOW) == pytest.approx(2.0)

    def test_time_bucket(self):
        assert time_bucket(0) == "morning"
        assert time_bucket(11) == "morning"
        assert time_bucket(12) == "afternoon"
        assert time_bucket(16) == "afternoon"
        assert time_bucket(17) == "evening"
        assert time_bucket(23) == "evening"

    def test_peak_order_times(self):
        hours = [8, 9, 13, 19, 20, 21]
        orders = [Order(amount=10, timestamp=_at_utc_hour(h)) for h in hours]

        assert peak_order_times(orders) == ["evening", "morning", "afternoon"]
        assert peak_order_times([]) == []


class TestProfileBuilder:
    @pytest.mark.asyncio
    async def test_cold_start_profile(self):
        builder = ProfileBuilder(
            InMemoryInteractionLogStore(),
            InMemoryOrderHistoryStore(),
            clock=lambda: NOW,
        )

        profile = await builder.get_profile("nobody")

        assert profile.user_id == "nobody"
        assert profile.is_cold_start
        assert profile.preferences.cuisines == []
        assert profile.preferences.price_range.min == 0
        assert profile.preferences.price_range.max == 1000
        assert profile.preferences.spice_level == 2
        assert profile.behaviors.avg_watch_time == 0
        assert profile.behaviors.order_frequency == 0
        assert profile.built_at == NOW

    @pytest.mark.asyncio
    async def test_profile_from_history(self):
        log_store = InMemoryInteractionLogStore()
        order_store = InMemoryOrderHistoryStore()
        await log_store.append(_event(NOW - 100, ["Indian"], InteractionType.LIKE, "creator_p", 40))
        await log_store.append(_event(NOW - 50, ["Indian", "vegan"], watch=80))
        order_store.add_order(
            "user_1", Order(amount=20, timestamp=NOW - DAY, dietary_tags=["vegan"])
        )

        profile = await ProfileBuilder(log_store, order_store, clock=lambda: NOW).get_profile("user_1")

        assert profile.preferences.cuisines == ["Indian", "vegan"]
        assert profile.preferences.dietary_restrictions == ["vegan"]
        assert profile.preferences.price_range.max == pytest.approx(30.0)
        assert profile.behaviors.favorite_creators == ["creator_p"]
        assert profile.behaviors.avg_watch_time == pytest.approx(60.0)
        assert not profile.is_cold_start

    @pytest.mark.asyncio
    async def test_store_failure_raises_profile_build_error(self):
        log_store = MagicMock()
        log_store.query = AsyncMock(side_effect=ConnectionError("log store down"))
        builder = ProfileBuilder(log_store, InMemoryOrderHistoryStore())

        with pytest.raises(ProfileBuildError) as exc_info:
            await builder.get_profile("user_1")

        assert exc_info.value.details["user_id"] == "user_1"
        assert builder.cache.get("user_1") is None

    @pytest.mark.asyncio
    async def test_cached_profile_is_reused(self):
        log_store = CountingLogStore()
        builder = ProfileBuilder(log_store, InMemoryOrderHistoryStore())

        first = await builder.get_profile("user_1")
        second = await builder.get_profile("user_1")

        assert first == second
        assert log_store.queries == 1

    @pytest.mark.asyncio
    async def test_expired_profile_is_rebuilt(self):
        log_store = CountingLogStore()
        cache = InMemoryCache[UserProfile](default_ttl_seconds=0.05)
        builder = ProfileBuilder(log_store, InMemoryOrderHistoryStore(), cache=cache)

        await builder.get_profile("user_1")
        await asyncio.sleep(0.1)
        await builder.get_profile("user_1")

        assert log_store.queries == 2

    @pytest.mark.asyncio
    async def test_concurrent_rebuilds_collapse(self):
        log_store = CountingLogStore()
        builder = ProfileBuilder(log_store, InMemoryOrderHistoryStore())

        profiles = await asyncio.gather(*(builder.get_profile("user_1") for _ in range(10)))

        assert log_store.queries == 1
        assert all(p == profiles[0] for p in profiles)

"""
Unit tests for the interaction tracker.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from feed_engine.core.cache import InMemoryCache
from feed_engine.core.exceptions import StoreUnavailableError
from feed_engine.models.schemas import (
    InteractionType,
    InteractionValue,
    UserBehaviors,
    UserProfile,
)
from feed_engine.repositories.memory import InMemoryContentCatalog, InMemoryInteractionLogStore
from feed_engine.services.tracker import InteractionTracker, updated_watch_time

NOW = 1_700_000_000.0


@pytest.fixture
def log_store():
    return InMemoryInteractionLogStore()


@pytest.fixture
def catalog():
    return InMemoryContentCatalog(records=[{
        "id": "vid_dal",
        "creator_id": "creator_priya",
        "title": "Tadka Dal",
        "tags": ["Indian", "lentils"],
        "created_at": NOW,
    }])


@pytest.fixture
def profile_cache():
    return InMemoryCache[UserProfile](default_ttl_seconds=300)


@pytest.fixture
def tracker(log_store, catalog, profile_cache):
    return InteractionTracker(log_store, catalog, profile_cache, clock=lambda: NOW)


def test_updated_watch_time():
    assert updated_watch_time(60, 120) == 90
    assert updated_watch_time(0, 30) == 15


class TestInteractionTracker:
    @pytest.mark.asyncio
    async def test_event_is_appended_and_enriched(self, tracker, log_store):
        event = await tracker.track("user_1", "vid_dal", InteractionType.LIKE)

        assert event.creator_id == "creator_priya"
        assert event.tags == ["Indian", "lentils"]
        assert event.timestamp == NOW
        assert event.device_type == "web"
        assert event.session_id == "session_1700000000000"
        assert await log_store.query("user_1", 10) == [event]

    @pytest.mark.asyncio
    async def test_client_values_are_kept(self, tracker):
        value = InteractionValue(
            watch_time_seconds=42,
            device_type="ios",
            session_id="abc",
            tags=["lentils", "comfort"],
        )

        event = await tracker.track("user_1", "vid_dal", InteractionType.VIEW, value)

        assert event.watch_time_seconds == 42
        assert event.device_type == "ios"
        assert event.session_id == "abc"
        assert event.tags == ["Indian", "lentils", "comfort"]

    @pytest.mark.asyncio
    async def test_view_updates_cached_watch_time(self, tracker, profile_cache):
        profile_cache.set("user_1", UserProfile(
            user_id="user_1",
            behaviors=UserBehaviors(avg_watch_time=60),
        ))

        await tracker.track(
            "user_1", "vid_dal", InteractionType.VIEW,
            InteractionValue(watch_time_seconds=120),
        )

        assert profile_cache.get("user_1").behaviors.avg_watch_time == 90

    @pytest.mark.asyncio
    async def test_view_without_cached_profile_creates_nothing(self, tracker, profile_cache):
        await tracker.track(
            "user_1", "vid_dal", InteractionType.VIEW,
            InteractionValue(watch_time_seconds=120),
        )

        assert profile_cache.get("user_1") is None

    @pytest.mark.asyncio
    async def test_like_leaves_cached_profile_alone(self, tracker, profile_cache):
        profile = UserProfile(user_id="user_1", behaviors=UserBehaviors(avg_watch_time=60))
        profile_cache.set("user_1", profile)

        await tracker.track("user_1", "vid_dal", InteractionType.LIKE)

        assert profile_cache.get("user_1") == profile

    @pytest.mark.asyncio
    async def test_unknown_video_is_still_recorded(self, tracker):
        event = await tracker.track("user_1", "vid_missing", InteractionType.VIEW)

        assert event.creator_id is None
        assert event.tags == []

    @pytest.mark.asyncio
    async def test_non_list_catalog_tags_are_ignored(self, tracker, catalog):
        catalog.add({
            "id": "vid_stew",
            "creator_id": "creator_x",
            "title": "Stew",
            "tags": "Irish",
            "created_at": NOW,
        })

        event = await tracker.track("user_1", "vid_stew", InteractionType.LIKE)

        assert event.creator_id == "creator_x"
        assert event.tags == []

    @pytest.mark.asyncio
    async def test_catalog_outage_does_not_lose_event(self, log_store, profile_cache):
        catalog = MagicMock()
        catalog.get_candidate = AsyncMock(side_effect=ConnectionError("catalog down"))
        tracker = InteractionTracker(log_store, catalog, profile_cache, clock=lambda: NOW)

        await tracker.track("user_1", "vid_dal", InteractionType.SHARE)

        assert log_store.count() == 1

    @pytest.mark.asyncio
    async def test_log_store_failure_raises(self, catalog, profile_cache):
        log_store = MagicMock()
        log_store.append = AsyncMock(side_effect=ConnectionError("log down"))
        tracker = InteractionTracker(log_store, catalog, profile_cache, clock=lambda: NOW)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await tracker.track("user_1", "vid_dal", InteractionType.ORDER)

        assert exc_info.value.details["store"] == "interaction_log"

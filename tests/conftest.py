"""
Pytest configuration and fixtures.
"""
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from feed_engine.api.dependencies import get_feed_service
from feed_engine.clients.embedding import DisabledEmbeddingService
from feed_engine.core.cache import InMemoryCache
from feed_engine.main import app
from feed_engine.models.schemas import (
    Candidate,
    UserBehaviors,
    UserPreferences,
    UserProfile,
)
from feed_engine.repositories.memory import (
    InMemoryContentCatalog,
    InMemoryInteractionLogStore,
    InMemoryOrderHistoryStore,
)
from feed_engine.services.feature_flags import ConfigBasedFeatureFlagService
from feed_engine.services.feed import FeedService
from feed_engine.services.profile import ProfileBuilder
from feed_engine.services.ranking import FeedRanker
from feed_engine.services.retrainer import ModelRetrainer, NoOpWeightAdjuster, WeightAdjuster
from feed_engine.services.scoring import ContentSimilarityScorer
from feed_engine.services.tracker import InteractionTracker
from feed_engine.services.weights import WeightRegistry

NOW = 1_700_000_000.0
HOUR = 3600
DAY = 24 * HOUR


@pytest.fixture
def now():
    """Fixed clock value used by unit tests."""
    return NOW


@pytest.fixture
def demo_log_store():
    """Interaction log seeded with the demo users."""
    return InMemoryInteractionLogStore(seed=True)


@pytest.fixture
def demo_catalog():
    """Content catalog seeded with the demo videos."""
    return InMemoryContentCatalog(seed=True)


@pytest.fixture
def demo_order_store():
    """Order history seeded with the demo users."""
    return InMemoryOrderHistoryStore(seed=True)


@pytest.fixture
def feature_flags():
    """Feature flag service with full rollout."""
    return ConfigBasedFeatureFlagService(rollout_percentage=100.0)


@pytest.fixture
def make_feed_service(feature_flags):
    """Factory wiring a FeedService over the given stores."""

    def _make(
        log_store,
        catalog,
        order_store,
        embedding_service=None,
        weights: Optional[WeightRegistry] = None,
        adjuster: Optional[WeightAdjuster] = None,
    ) -> FeedService:
        profile_cache = InMemoryCache[UserProfile](default_ttl_seconds=300)
        weights = weights or WeightRegistry()
        return FeedService(
            profile_builder=ProfileBuilder(
                log_store=log_store,
                order_store=order_store,
                cache=profile_cache,
            ),
            catalog=catalog,
            ranker=FeedRanker(
                content_scorer=ContentSimilarityScorer(
                    embedding_service or DisabledEmbeddingService()
                ),
                weights=weights,
            ),
            tracker=InteractionTracker(
                log_store=log_store,
                catalog=catalog,
                profile_cache=profile_cache,
            ),
            retrainer=ModelRetrainer(
                log_store=log_store,
                adjuster=adjuster or NoOpWeightAdjuster(weights),
            ),
            feature_flag_service=feature_flags,
        )

    return _make


@pytest.fixture
def feed_service(make_feed_service, demo_log_store, demo_catalog, demo_order_store):
    """FeedService over the seeded demo stores."""
    return make_feed_service(demo_log_store, demo_catalog, demo_order_store)


@pytest.fixture
def test_client(feed_service):
    """
    TestClient fixture with dependency overrides.
    Uses a fresh feed service over in-memory stores for isolation.
    """
    app.dependency_overrides[get_feed_service] = lambda: feed_service

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_candidate():
    """Fixture for a fresh Indian food video."""
    return Candidate(
        id="vid_paneer",
        creator_id="creator_priya",
        title="Paneer Tikka",
        description="Smoky grilled cottage cheese",
        tags=["Indian", "grill"],
        duration_seconds=45,
        created_at=NOW - HOUR,
        views=100,
        likes=10,
        order_count=2,
    )


@pytest.fixture
def sample_profile():
    """Fixture for a user who likes Indian food."""
    return UserProfile(
        user_id="user_test",
        preferences=UserPreferences(cuisines=["Indian"]),
        behaviors=UserBehaviors(
            avg_watch_time=60.0,
            favorite_creators=["creator_priya"],
        ),
        built_at=NOW,
    )

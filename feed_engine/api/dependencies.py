"""
Dependency injection container.
Creates and wires all application components.
Uses FastAPI's dependency injection system.
"""
from functools import lru_cache
from typing import List, Union

from feed_engine.clients.embedding import DisabledEmbeddingService, OpenAIEmbeddingClient
from feed_engine.config import get_settings
from feed_engine.core.cache import InMemoryCache
from feed_engine.core.circuit_breaker import CircuitBreaker
from feed_engine.models.schemas import UserProfile
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


# =============================================================================
# Singleton Instances (Application Lifetime)
# =============================================================================


@lru_cache()
def get_interaction_log_store() -> InMemoryInteractionLogStore:
    """Get singleton interaction log store."""
    return InMemoryInteractionLogStore(seed=get_settings().SEED_DEMO_DATA)


@lru_cache()
def get_content_catalog() -> InMemoryContentCatalog:
    """Get singleton content catalog."""
    return InMemoryContentCatalog(seed=get_settings().SEED_DEMO_DATA)


@lru_cache()
def get_order_history_store() -> InMemoryOrderHistoryStore:
    """Get singleton order history store."""
    return InMemoryOrderHistoryStore(seed=get_settings().SEED_DEMO_DATA)


@lru_cache()
def get_profile_cache() -> InMemoryCache[UserProfile]:
    """Get singleton profile cache."""
    return InMemoryCache[UserProfile](
        default_ttl_seconds=get_settings().PROFILE_CACHE_TTL_SEC
    )


@lru_cache()
def get_embedding_circuit_breaker() -> CircuitBreaker:
    """Get singleton circuit breaker for the embedding service."""
    settings = get_settings()
    return CircuitBreaker(
        name="embedding_service",
        failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
        recovery_timeout_sec=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC,
    )


@lru_cache()
def get_embedding_service() -> Union[OpenAIEmbeddingClient, DisabledEmbeddingService]:
    """Get singleton embedding client, disabled when no API key is set."""
    settings = get_settings()
    if not settings.EMBEDDING_API_KEY:
        return DisabledEmbeddingService()
    return OpenAIEmbeddingClient(
        api_key=settings.EMBEDDING_API_KEY,
        base_url=settings.EMBEDDING_API_BASE,
        model=settings.EMBEDDING_MODEL,
        timeout_ms=settings.EMBEDDING_TIMEOUT_MS,
        breaker=get_embedding_circuit_breaker(),
    )


@lru_cache()
def get_feature_flag_service() -> ConfigBasedFeatureFlagService:
    """Get singleton feature flag service."""
    return ConfigBasedFeatureFlagService(
        rollout_percentage=get_settings().ROLLOUT_PERCENTAGE
    )


@lru_cache()
def get_weight_registry() -> WeightRegistry:
    """Get singleton ranking weight registry."""
    return WeightRegistry()


@lru_cache()
def get_weight_adjuster() -> WeightAdjuster:
    """Get singleton weight adjuster, reinforcing the shared registry."""
    return NoOpWeightAdjuster(get_weight_registry())


@lru_cache()
def get_feed_service() -> FeedService:
    """
    Get feed service with all dependencies wired.
    This is the main entry point for the feed endpoints.
    """
    settings = get_settings()
    log_store = get_interaction_log_store()
    catalog = get_content_catalog()
    profile_cache = get_profile_cache()

    content_scorer = ContentSimilarityScorer(
        embedding_service=get_embedding_service(),
        vector_cache=InMemoryCache[List[float]](
            default_ttl_seconds=settings.EMBEDDING_CACHE_TTL_SEC
        ),
    )

    return FeedService(
        profile_builder=ProfileBuilder(
            log_store=log_store,
            order_store=get_order_history_store(),
            cache=profile_cache,
            interaction_limit=settings.PROFILE_INTERACTION_LIMIT,
            order_limit=settings.PROFILE_ORDER_LIMIT,
        ),
        catalog=catalog,
        ranker=FeedRanker(
            content_scorer=content_scorer,
            weights=get_weight_registry(),
            max_concurrency=settings.EMBEDDING_MAX_CONCURRENCY,
        ),
        tracker=InteractionTracker(
            log_store=log_store,
            catalog=catalog,
            profile_cache=profile_cache,
        ),
        retrainer=ModelRetrainer(
            log_store=log_store,
            adjuster=get_weight_adjuster(),
            event_limit=settings.RETRAIN_EVENT_LIMIT,
            learning_rate=settings.RETRAIN_LEARNING_RATE,
        ),
        feature_flag_service=get_feature_flag_service(),
        candidate_pool_multiplier=settings.CANDIDATE_POOL_MULTIPLIER,
        max_candidate_pool=settings.MAX_CANDIDATE_POOL,
        trending_candidate_pool=settings.TRENDING_CANDIDATE_POOL,
    )


# =============================================================================
# Cleanup Functions
# =============================================================================


def clear_caches() -> None:
    """Clear all cached singleton instances (for testing)."""
    get_interaction_log_store.cache_clear()
    get_content_catalog.cache_clear()
    get_order_history_store.cache_clear()
    get_profile_cache.cache_clear()
    get_embedding_circuit_breaker.cache_clear()
    get_embedding_service.cache_clear()
    get_feature_flag_service.cache_clear()
    get_weight_registry.cache_clear()
    get_weight_adjuster.cache_clear()
    get_feed_service.cache_clear()

"""
Signal scorers.
Each scorer maps a (candidate, profile) pair to a value in [0, 1].
"""
import logging
import math
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from feed_engine.core.cache import CacheInterface, InMemoryCache
from feed_engine.core.singleflight import SingleFlight
from feed_engine.core.telemetry import EMBEDDING_FALLBACK_TOTAL
from feed_engine.models.interfaces import EmbeddingService
from feed_engine.models.schemas import (
    Candidate,
    EmbeddingOk,
    EmbeddingResult,
    EmbeddingUnavailable,
    UserProfile,
)

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


def clamp_unit(value: float) -> float:
    """Clamp to [0, 1]; NaN becomes 0."""
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between two vectors; 0 for zero-length vectors."""
    if len(a) != len(b):
        raise ValueError(f"Vector dimensions differ: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def jaccard_similarity(a: Sequence[str], b: Sequence[str]) -> float:
    """|A ∩ B| / |A ∪ B| over tag sets; 0 when both are empty."""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


# =============================================================================
# Scoring Strategy (Strategy Pattern)
# =============================================================================


class SignalScorer(ABC):
    """Abstract base class for synchronous, side-effect-free signals."""

    name: str = "signal"

    @abstractmethod
    def score(self, candidate: Candidate, profile: UserProfile, now: float) -> float:
        """
        Calculate the signal for one candidate.

        Returns:
            Value in [0, 1]
        """
        pass


class BehaviorMatchScorer(SignalScorer):
    """Reward favorite creators and videos short enough for the user."""

    name = "behavior_match"

    FAVORITE_CREATOR_BOOST = 0.4
    DURATION_FIT_BOOST = 0.3
    DURATION_TOLERANCE = 1.2

    def score(self, candidate: Candidate, profile: UserProfile, now: float) -> float:
        score = 0.0
        if candidate.creator_id in profile.behaviors.favorite_creators:
            score += self.FAVORITE_CREATOR_BOOST

        max_duration = profile.behaviors.avg_watch_time * self.DURATION_TOLERANCE
        if candidate.duration_seconds <= max_duration:
            score += self.DURATION_FIT_BOOST

        return min(1.0, score)


class PopularityScorer(SignalScorer):
    """Engagement rate with linear age decay over 30 days, floored at 0.1."""

    name = "popularity"

    ORDER_WEIGHT = 5
    DECAY_DAYS = 30
    MIN_AGE_FACTOR = 0.1

    def score(self, candidate: Candidate, profile: Optional[UserProfile], now: float) -> float:
        if candidate.views <= 0:
            return 0.0

        engagement_rate = (
            candidate.likes + self.ORDER_WEIGHT * candidate.order_count
        ) / candidate.views
        age_days = max(0.0, now - candidate.created_at) / SECONDS_PER_DAY
        age_factor = max(self.MIN_AGE_FACTOR, 1.0 - age_days / self.DECAY_DAYS)

        return min(1.0, engagement_rate * age_factor)


class TimeRelevanceScorer(SignalScorer):
    """Step function on content age."""

    name = "time_relevance"

    # (max age in hours, score), checked in order
    STEPS = ((24, 1.0), (72, 0.8), (168, 0.6))
    STALE_SCORE = 0.3

    def score(self, candidate: Candidate, profile: Optional[UserProfile], now: float) -> float:
        age_hours = max(0.0, now - candidate.created_at) / SECONDS_PER_HOUR
        for max_hours, step_score in self.STEPS:
            if age_hours < max_hours:
                return step_score
        return self.STALE_SCORE


class LocationScorer(SignalScorer):
    """Extension point for geolocation relevance."""

    name = "location_relevance"


class ConstantLocationScorer(LocationScorer):
    """Neutral relevance used while no geolocation signal exists."""

    def __init__(self, value: float = 0.5) -> None:
        self._value = clamp_unit(value)

    def score(self, candidate: Candidate, profile: UserProfile, now: float) -> float:
        return self._value


# =============================================================================
# Content Similarity (embedding with keyword fallback)
# =============================================================================


class ContentSimilarityScorer:
    """
    Semantic similarity between a user's tastes and a candidate.

    Embeds a preference text and the candidate's title/description and takes
    their cosine similarity. Whenever the embedding service cannot answer,
    falls back to counting profile cuisines found in the candidate's tags or
    title. Never raises.
    """

    name = "content_similarity"

    FALLBACK_INCREMENT = 0.3

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_cache: Optional[CacheInterface[List[float]]] = None,
    ) -> None:
        """
        Args:
            embedding_service: Semantic embedding service (may be disabled)
            vector_cache: Cache of successful embeddings keyed by text
        """
        self._embedding_service = embedding_service
        self._vector_cache = vector_cache or InMemoryCache[List[float]](default_ttl_seconds=600)
        self._single_flight: SingleFlight[EmbeddingResult] = SingleFlight()

    async def score(self, candidate: Candidate, profile: UserProfile) -> float:
        preference_text = self.preference_text(profile)
        if preference_text is None:
            # Nothing to describe; keyword matching gives the same answer (0)
            return self.fallback_score(candidate, profile)

        try:
            user_result = await self._embed(preference_text)
            content_result = await self._embed(self.content_text(candidate))
        except Exception as e:
            logger.warning(f"Embedding lookup failed for candidate={candidate.id}: {e}")
            return self._fallback(candidate, profile, "error")

        if isinstance(user_result, EmbeddingUnavailable):
            return self._fallback(candidate, profile, user_result.reason)
        if isinstance(content_result, EmbeddingUnavailable):
            return self._fallback(candidate, profile, content_result.reason)

        try:
            similarity = cosine_similarity(user_result.vector, content_result.vector)
        except ValueError as e:
            logger.warning(f"Cannot compare embeddings for candidate={candidate.id}: {e}")
            return self._fallback(candidate, profile, "dimension_mismatch")

        return clamp_unit(similarity)

    def fallback_score(self, candidate: Candidate, profile: UserProfile) -> float:
        """+0.3 per profile cuisine found in the tags or title, capped at 1."""
        tags = {tag.lower() for tag in candidate.tags or ()}
        title = candidate.title.lower()

        score = 0.0
        for cuisine in profile.preferences.cuisines:
            needle = cuisine.lower()
            if needle in tags or needle in title:
                score += self.FALLBACK_INCREMENT

        return min(1.0, score)

    @staticmethod
    def preference_text(profile: UserProfile) -> Optional[str]:
        """Text describing the user's tastes, or None if there is nothing to say."""
        cuisines = profile.preferences.cuisines
        dietary = profile.preferences.dietary_restrictions
        if not cuisines and not dietary:
            return None
        return f"User likes: {', '.join(cuisines)}. Dietary: {', '.join(dietary)}"

    @staticmethod
    def content_text(candidate: Candidate) -> str:
        return f"{candidate.title} {candidate.description or ''}".strip()

    def _fallback(self, candidate: Candidate, profile: UserProfile, reason: str) -> float:
        EMBEDDING_FALLBACK_TOTAL.labels(reason=reason).inc()
        return self.fallback_score(candidate, profile)

    async def _embed(self, text: str) -> EmbeddingResult:
        cached = self._vector_cache.get(text)
        if cached is not None:
            return EmbeddingOk(vector=cached)
        return await self._single_flight.do(text, lambda: self._fetch(text))

    async def _fetch(self, text: str) -> EmbeddingResult:
        result = await self._embedding_service.embed(text)
        if isinstance(result, EmbeddingOk):
            self._vector_cache.set(text, result.vector)
        return result

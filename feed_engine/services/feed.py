"""
Feed service - main business logic orchestrator.
Exposes the engine's operations: personalized feed, trending, interaction
tracking, video similarity and retraining.
Implements graceful degradation to the trending feed when asked to.
"""
import logging
import time
from typing import List, Optional

from feed_engine.core.exceptions import (
    ProfileBuildError,
    StoreUnavailableError,
    ValidationError,
)
from feed_engine.core.telemetry import SCORER_FAILURES_TOTAL
from feed_engine.models.interfaces import ContentCatalog, FeatureFlagService
from feed_engine.models.schemas import (
    Candidate,
    CandidateFilter,
    FeedResponse,
    InteractionEvent,
    InteractionType,
    InteractionValue,
    RankedEntry,
    RetrainReport,
)
from feed_engine.services.profile import ProfileBuilder
from feed_engine.services.ranking import FeedRanker, validate_candidates
from feed_engine.services.retrainer import ModelRetrainer
from feed_engine.services.scoring import PopularityScorer, clamp_unit, jaccard_similarity
from feed_engine.services.tracker import InteractionTracker

logger = logging.getLogger(__name__)


class FeedService:
    """
    Facade over the ranking engine.

    Responsibilities:
    - Build or reuse the user's profile
    - Fetch the candidate pool from the catalog
    - Rank through the FeedRanker
    - Serve trending content and handle graceful degradation
    """

    def __init__(
            self,
            profile_builder: ProfileBuilder,
            catalog: ContentCatalog,
            ranker: FeedRanker,
            tracker: InteractionTracker,
            retrainer: ModelRetrainer,
            feature_flag_service: FeatureFlagService,
            popularity_scorer: Optional[PopularityScorer] = None,
            candidate_pool_multiplier: int = 3,
            max_candidate_pool: int = 200,
            trending_candidate_pool: int = 200,
    ) -> None:
        """
        Initialize feed service with dependencies.

        Args:
            profile_builder: Cache-or-build access to user profiles
            catalog: Content catalog supplying candidates
            ranker: Multi-signal feed ranker
            tracker: Interaction tracker
            retrainer: Model retrainer
            feature_flag_service: Service for feature flag evaluation
            popularity_scorer: Scorer used for trending content
            candidate_pool_multiplier: Candidates fetched per requested item
            max_candidate_pool: Upper bound on the personalized candidate pool
            trending_candidate_pool: Candidates considered for trending
        """
        self._profile_builder = profile_builder
        self._catalog = catalog
        self._ranker = ranker
        self._tracker = tracker
        self._retrainer = retrainer
        self._feature_flags = feature_flag_service
        self._popularity_scorer = popularity_scorer or PopularityScorer()
        self._candidate_pool_multiplier = candidate_pool_multiplier
        self._max_candidate_pool = max_candidate_pool
        self._trending_candidate_pool = trending_candidate_pool

    @property
    def retrainer(self) -> ModelRetrainer:
        return self._retrainer

    # -------------------------------------------------------------------------
    # Personalized feed
    # -------------------------------------------------------------------------

    async def get_personalized_feed(self, user_id: str, limit: int = 20) -> List[str]:
        """
        Ranked candidate IDs for a user.

        Raises:
            ProfileBuildError: If the user's history cannot be read
            StoreUnavailableError: If the catalog cannot be read
        """
        entries = await self.rank_for_user(user_id, limit)
        return [entry.candidate_id for entry in entries]

    async def rank_for_user(self, user_id: str, limit: int = 20) -> List[RankedEntry]:
        """Same as get_personalized_feed, keeping the combined scores."""
        _validate_limit(limit)
        start_time = time.time()

        profile = await self._profile_builder.get_profile(user_id)

        # Candidate bounding
        pool_size = min(limit * self._candidate_pool_multiplier, self._max_candidate_pool)
        candidates = await self._list_candidates(CandidateFilter(), pool_size)

        entries = await self._ranker.rank(candidates, profile, limit)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Personalized feed served: user={user_id}, candidates={len(candidates)}, "
            f"items={len(entries)}, elapsed_ms={elapsed_ms:.2f}"
        )
        return entries

    async def get_feed(self, user_id: str, limit: int = 20) -> FeedResponse:
        """
        Feed for the outer application.

        Applies feature flags and falls back to trending content when
        personalization is off or the user's profile cannot be built.
        """
        if not self._feature_flags.is_personalization_enabled(user_id):
            logger.info(f"Personalization disabled for user={user_id}")
            return await self._get_fallback_feed(limit)

        try:
            entries = await self.rank_for_user(user_id, limit)
        except ProfileBuildError as e:
            logger.error(
                f"Personalization failed, falling back: user={user_id}, error={e.message}"
            )
            return await self._get_fallback_feed(limit, degraded=True)

        return FeedResponse(
            items=entries,
            candidate_ids=[entry.candidate_id for entry in entries],
            is_personalized=True,
            degraded=False,
        )

    async def _get_fallback_feed(self, limit: int, degraded: bool = False) -> FeedResponse:
        entries = await self.trending_entries(limit)
        logger.info(f"Fallback feed served: items={len(entries)}, degraded={degraded}")
        return FeedResponse(
            items=entries,
            candidate_ids=[entry.candidate_id for entry in entries],
            is_personalized=False,
            degraded=degraded,
        )

    # -------------------------------------------------------------------------
    # Trending & similarity
    # -------------------------------------------------------------------------

    async def get_trending_content(self, limit: int = 10) -> List[str]:
        """Candidate IDs ranked by popularity alone."""
        entries = await self.trending_entries(limit)
        return [entry.candidate_id for entry in entries]

    async def trending_entries(self, limit: int = 10) -> List[RankedEntry]:
        """Popularity-only ranking, ties broken by candidate id."""
        _validate_limit(limit)
        raw = await self._list_candidates(CandidateFilter(), self._trending_candidate_pool)
        now = time.time()

        entries = [
            RankedEntry(
                candidate_id=candidate.id,
                final_score=self._popularity_score(candidate, now),
            )
            for candidate in validate_candidates(raw)
        ]
        entries.sort(key=lambda e: (-e.final_score, e.candidate_id))
        return entries[:limit]

    def _popularity_score(self, candidate: Candidate, now: float) -> float:
        try:
            return clamp_unit(self._popularity_scorer.score(candidate, None, now))
        except Exception as e:
            SCORER_FAILURES_TOTAL.labels(signal=self._popularity_scorer.name).inc()
            logger.warning(f"Popularity failed for candidate={candidate.id}, scoring 0: {e}")
            return 0.0

    async def get_video_similarity(self, video_a: str, video_b: str) -> float:
        """Jaccard similarity of two videos' tags; 0 if either is unknown."""
        first = await self._get_candidate(video_a)
        second = await self._get_candidate(video_b)
        if first is None or second is None:
            return 0.0
        return jaccard_similarity(first.tags or [], second.tags or [])

    # -------------------------------------------------------------------------
    # Tracking & retraining
    # -------------------------------------------------------------------------

    async def track_interaction(
            self,
            user_id: str,
            video_id: str,
            interaction_type: InteractionType,
            value: Optional[InteractionValue] = None,
    ) -> InteractionEvent:
        """Record an interaction and refresh the cached profile."""
        return await self._tracker.track(user_id, video_id, interaction_type, value)

    async def retrain_model(self) -> RetrainReport:
        """Run one retraining pass (skipped if one is already running)."""
        return await self._retrainer.retrain()

    # -------------------------------------------------------------------------
    # Catalog access
    # -------------------------------------------------------------------------

    async def _list_candidates(self, candidate_filter: CandidateFilter, limit: int) -> list:
        try:
            return await self._catalog.list_candidates(candidate_filter, limit)
        except Exception as e:
            logger.error(f"Catalog unavailable: {e}")
            raise StoreUnavailableError("content_catalog", str(e)) from e

    async def _get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        try:
            record = await self._catalog.get_candidate(candidate_id)
        except Exception as e:
            logger.error(f"Catalog unavailable: {e}")
            raise StoreUnavailableError("content_catalog", str(e)) from e
        if record is None:
            logger.info(f"Unknown video in similarity lookup: {candidate_id}")
            return None
        valid = validate_candidates([record])
        return valid[0] if valid else None


def _validate_limit(limit: int) -> None:
    if limit < 1:
        raise ValidationError("limit must be at least 1", details={"limit": limit})

"""
Feed ranker.
Scores every candidate on all signals, combines them with the live weights,
sorts and truncates.
"""
import asyncio
import logging
import time
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from feed_engine.core.telemetry import MALFORMED_CANDIDATES_TOTAL, SCORER_FAILURES_TOTAL
from feed_engine.models.schemas import (
    Candidate,
    RankedEntry,
    ScoreVector,
    UserProfile,
)
from feed_engine.services.scoring import (
    BehaviorMatchScorer,
    ConstantLocationScorer,
    ContentSimilarityScorer,
    LocationScorer,
    PopularityScorer,
    SignalScorer,
    TimeRelevanceScorer,
    clamp_unit,
)
from feed_engine.services.weights import WeightRegistry

logger = logging.getLogger(__name__)

RawCandidate = Union[Candidate, Mapping[str, Any]]


def validate_candidates(raw_candidates: Sequence[RawCandidate]) -> List[Candidate]:
    """
    Turn raw catalog records into Candidates.
    Malformed records and repeated ids are dropped.
    """
    candidates: List[Candidate] = []
    seen = set()
    for raw in raw_candidates:
        try:
            candidate = raw if isinstance(raw, Candidate) else Candidate.model_validate(raw)
        except (PydanticValidationError, TypeError) as e:
            MALFORMED_CANDIDATES_TOTAL.inc()
            raw_id = raw.get("id") if isinstance(raw, Mapping) else None
            logger.warning(f"Skipping malformed candidate id={raw_id}: {e}")
            continue
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        candidates.append(candidate)
    return candidates


class FeedRanker:
    """
    Main ranking engine.

    Candidates are scored concurrently (content similarity may call the
    embedding service); a failing signal scores 0 for that candidate only.
    """

    def __init__(
        self,
        content_scorer: ContentSimilarityScorer,
        behavior_scorer: Optional[SignalScorer] = None,
        popularity_scorer: Optional[SignalScorer] = None,
        time_scorer: Optional[SignalScorer] = None,
        location_scorer: Optional[LocationScorer] = None,
        weights: Optional[WeightRegistry] = None,
        max_concurrency: int = 8,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the ranker with its scorers.

        Args:
            content_scorer: Embedding-backed content similarity
            behavior_scorer: Creator/duration match (default BehaviorMatchScorer)
            popularity_scorer: Engagement with age decay (default PopularityScorer)
            time_scorer: Recency steps (default TimeRelevanceScorer)
            location_scorer: Location strategy (default constant 0.5)
            weights: Live ranking weights (default fixed weights)
            max_concurrency: Candidates scored at once
            clock: Time source (Unix seconds)
        """
        self._content_scorer = content_scorer
        self._sync_scorers: List[SignalScorer] = [
            behavior_scorer or BehaviorMatchScorer(),
            popularity_scorer or PopularityScorer(),
            time_scorer or TimeRelevanceScorer(),
            location_scorer or ConstantLocationScorer(),
        ]
        self._weights = weights or WeightRegistry()
        self._max_concurrency = max(1, max_concurrency)
        self._clock = clock

    async def rank(
        self,
        candidates: Sequence[RawCandidate],
        profile: UserProfile,
        limit: int = 20,
    ) -> List[RankedEntry]:
        """
        Rank candidates for a user.

        Args:
            candidates: Raw catalog records or validated Candidates
            profile: The user's profile
            limit: Maximum entries to return

        Returns:
            Entries sorted by score descending, then candidate id
        """
        if limit <= 0:
            return []

        valid = validate_candidates(candidates)
        now = self._clock()
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded(candidate: Candidate) -> ScoreVector:
            async with semaphore:
                return await self.score_candidate(candidate, profile, now)

        # Cancelling this coroutine cancels every pending candidate task
        vectors = await asyncio.gather(*(bounded(c) for c in valid))

        weights = self._weights.current()
        entries = [
            RankedEntry(candidate_id=c.id, final_score=weights.combine(v))
            for c, v in zip(valid, vectors)
        ]
        entries.sort(key=lambda e: (-e.final_score, e.candidate_id))

        logger.debug(
            f"Ranked {len(candidates)} candidates -> {len(valid)} valid -> "
            f"returning {min(limit, len(entries))} entries"
        )
        return entries[:limit]

    async def score_candidate(
        self,
        candidate: Candidate,
        profile: UserProfile,
        now: float,
    ) -> ScoreVector:
        """Compute every signal for one candidate, isolating failures."""
        scores = {}

        try:
            scores[self._content_scorer.name] = clamp_unit(
                await self._content_scorer.score(candidate, profile)
            )
        except Exception as e:
            self._record_failure(self._content_scorer.name, candidate, e)

        for scorer in self._sync_scorers:
            try:
                scores[scorer.name] = clamp_unit(scorer.score(candidate, profile, now))
            except Exception as e:
                self._record_failure(scorer.name, candidate, e)

        return ScoreVector(**scores)

    @staticmethod
    def _record_failure(signal: str, candidate: Candidate, error: Exception) -> None:
        SCORER_FAILURES_TOTAL.labels(signal=signal).inc()
        logger.warning(
            f"Signal '{signal}' failed for candidate={candidate.id}, scoring 0: {error}"
        )

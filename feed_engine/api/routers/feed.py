"""
Feed API router.
Implements the feed, trending and video-similarity endpoints with cache headers.
"""
import hashlib
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response, status

from feed_engine.api.dependencies import get_feed_service
from feed_engine.config import get_settings
from feed_engine.models.schemas import (
    FeedResponse,
    SimilarityResponse,
    TrendingResponse,
)
from feed_engine.services.feed import FeedService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["feed"])


@router.get(
    "/feed",
    response_model=FeedResponse,
    summary="Get Personalized Feed",
    description="""
    Retrieve a personalized feed of video IDs for the specified user.

    Candidates are ranked by a weighted blend of:
    - Content similarity with the user's cuisine preferences
    - Behavior match (favorite creators, typical watch time)
    - Popularity with age decay
    - Recency
    - Location relevance

    **Features:**
    - Graceful degradation to the trending feed when history is unavailable
    - Feature flag controlled with kill switch
    """,
    responses={
        200: {"description": "Ranked feed returned successfully"},
        304: {"description": "Feed not modified"},
        503: {"description": "Content catalog unavailable"},
    },
)
async def get_feed(
    response: Response,
    user_id: str = Query(
        ...,
        min_length=1,
        description="User identifier",
    ),
    limit: Optional[int] = Query(
        default=None,
        ge=1,
        le=50,
        description="Number of items to return (server default when omitted)",
    ),
    if_none_match: Optional[str] = Header(
        default=None,
        description="ETag from previous response",
    ),
    feed_service: FeedService = Depends(get_feed_service),
) -> FeedResponse:
    """Get personalized feed endpoint."""
    settings = get_settings()

    effective_limit = min(limit or settings.DEFAULT_FEED_LIMIT, settings.MAX_FEED_LIMIT)

    feed_response = await feed_service.get_feed(user_id=user_id, limit=effective_limit)

    # -------------------------------------------------------------------------
    # ETag / 304 Logic
    # -------------------------------------------------------------------------
    etag: Optional[str] = None
    if feed_response.candidate_ids:
        # Weak ETag based on the ranked IDs
        content_str = ",".join(feed_response.candidate_ids)
        etag_hash = hashlib.md5(content_str.encode()).hexdigest()[:16]
        etag = f'W/"{etag_hash}"'
        response.headers["ETag"] = etag

    if if_none_match and etag and if_none_match == etag:
        logger.debug(f"Feed not modified for user={user_id}")
        return Response(status_code=status.HTTP_304_NOT_MODIFIED)

    # -------------------------------------------------------------------------
    # Cache-Control Logic
    # -------------------------------------------------------------------------
    # 1. Personalized: private, short TTL, keyed by the user_id query
    if feed_response.is_personalized and not feed_response.degraded:
        response.headers["Cache-Control"] = "private, max-age=30"

    # 2. Fallback / Degraded: public, short TTL + SWR
    else:
        response.headers["Cache-Control"] = "public, max-age=30, stale-while-revalidate=15"
        response.headers["Vary"] = "Accept-Encoding"

    response.headers["X-Personalized"] = str(feed_response.is_personalized).lower()

    return feed_response


@router.get(
    "/feed/trending",
    response_model=TrendingResponse,
    summary="Get Trending Content",
    description="Videos ranked by popularity alone, without personalization.",
)
async def get_trending(
    response: Response,
    limit: Optional[int] = Query(
        default=None,
        ge=1,
        le=50,
        description="Number of items to return (server default when omitted)",
    ),
    feed_service: FeedService = Depends(get_feed_service),
) -> TrendingResponse:
    """Get trending content endpoint."""
    if limit is None:
        limit = get_settings().DEFAULT_TRENDING_LIMIT
    entries = await feed_service.trending_entries(limit)
    response.headers["Cache-Control"] = "public, max-age=30, stale-while-revalidate=15"
    return TrendingResponse(
        items=entries,
        candidate_ids=[entry.candidate_id for entry in entries],
    )


@router.get(
    "/videos/{video_a}/similarity/{video_b}",
    response_model=SimilarityResponse,
    summary="Get Video Similarity",
    description="Tag-overlap (Jaccard) similarity between two videos; 0 if either is unknown.",
)
async def get_video_similarity(
    video_a: str,
    video_b: str,
    feed_service: FeedService = Depends(get_feed_service),
) -> SimilarityResponse:
    """Get video similarity endpoint."""
    similarity = await feed_service.get_video_similarity(video_a, video_b)
    return SimilarityResponse(video_a=video_a, video_b=video_b, similarity=similarity)

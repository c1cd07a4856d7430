"""
Interaction and model-maintenance router.
"""
from fastapi import APIRouter, Depends, status

from feed_engine.api.dependencies import get_feed_service
from feed_engine.models.schemas import (
    InteractionEvent,
    RetrainReport,
    TrackInteractionRequest,
)
from feed_engine.services.feed import FeedService

router = APIRouter(prefix="/v1", tags=["interactions"])


@router.post(
    "/interactions",
    response_model=InteractionEvent,
    status_code=status.HTTP_201_CREATED,
    summary="Track Interaction",
    responses={503: {"description": "Interaction log unavailable"}},
)
async def track_interaction(
    request: TrackInteractionRequest,
    feed_service: FeedService = Depends(get_feed_service),
) -> InteractionEvent:
    """Record a view, like, share, order or comment."""
    return await feed_service.track_interaction(
        user_id=request.user_id,
        video_id=request.video_id,
        interaction_type=request.type,
        value=request.value,
    )


@router.post(
    "/model/retrain",
    response_model=RetrainReport,
    summary="Retrain Ranking Model",
    description="Replays recent likes and orders through the weight adjuster. Safe to call repeatedly.",
)
async def retrain_model(
    feed_service: FeedService = Depends(get_feed_service),
) -> RetrainReport:
    """Trigger a retraining pass."""
    return await feed_service.retrain_model()

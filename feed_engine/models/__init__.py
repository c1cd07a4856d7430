"""Models package - domain entities and interfaces."""
from .interfaces import (
    ContentCatalog,
    EmbeddingService,
    FeatureFlagService,
    InteractionLogStore,
    OrderHistoryStore,
)
from .schemas import (
    Candidate,
    CandidateFilter,
    EmbeddingOk,
    EmbeddingResult,
    EmbeddingUnavailable,
    ErrorResponse,
    FeedResponse,
    InteractionEvent,
    InteractionType,
    InteractionValue,
    Order,
    PriceRange,
    RankedEntry,
    RankingWeights,
    RetrainReport,
    ScoreVector,
    SimilarityResponse,
    TrackInteractionRequest,
    TrendingResponse,
    UserBehaviors,
    UserPreferences,
    UserProfile,
)

__all__ = [
    # Interfaces
    "ContentCatalog",
    "EmbeddingService",
    "FeatureFlagService",
    "InteractionLogStore",
    "OrderHistoryStore",
    # Schemas
    "Candidate",
    "CandidateFilter",
    "EmbeddingOk",
    "EmbeddingResult",
    "EmbeddingUnavailable",
    "ErrorResponse",
    "FeedResponse",
    "InteractionEvent",
    "InteractionType",
    "InteractionValue",
    "Order",
    "PriceRange",
    "RankedEntry",
    "RankingWeights",
    "RetrainReport",
    "ScoreVector",
    "SimilarityResponse",
    "TrackInteractionRequest",
    "TrendingResponse",
    "UserBehaviors",
    "UserPreferences",
    "UserProfile",
]

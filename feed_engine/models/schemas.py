"""
Domain models using Pydantic.
All data structures for the feed ranking engine.
"""
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

DEFAULT_PRICE_MIN = 0.0
DEFAULT_PRICE_MAX = 1000.0
DEFAULT_SPICE_LEVEL = 2

OPTIONAL_CANDIDATE_FIELDS = (
    "description",
    "tags",
    "duration_seconds",
    "views",
    "likes",
    "order_count",
)


# =============================================================================
# Domain Models (Internal)
# =============================================================================


class InteractionType(str, Enum):
    """Kinds of engagement a user can have with a video."""

    VIEW = "view"
    LIKE = "like"
    SHARE = "share"
    ORDER = "order"
    COMMENT = "comment"


class InteractionEvent(BaseModel):
    """
    A single engagement event.
    Immutable and append-only; owned by the interaction log store.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., description="User who interacted")
    video_id: str = Field(..., description="Video interacted with")
    creator_id: Optional[str] = Field(default=None, description="Creator of the video")
    type: InteractionType = Field(..., description="Interaction kind")
    watch_time_seconds: Optional[float] = Field(
        default=None,
        ge=0,
        description="Seconds watched (views only)",
    )
    tags: List[str] = Field(
        default_factory=list,
        description="Content tags captured when the event was tracked",
    )
    timestamp: float = Field(..., description="Unix timestamp of the event")
    device_type: str = Field(default="web", description="Client device type")
    session_id: str = Field(..., description="Client session identifier")


class Order(BaseModel):
    """Past order, read from the order history store."""

    amount: float = Field(..., ge=0, description="Order total")
    timestamp: float = Field(..., description="Unix timestamp of the order")
    dietary_tags: List[str] = Field(
        default_factory=list,
        description="Dietary tags of the ordered items (e.g. vegan)",
    )


class Candidate(BaseModel):
    """
    Content item eligible for ranking.
    Validated from raw catalog records; read-only to the engine.

    Only the required fields can reject a record. A null optional field takes
    its default; an optional field holding an unusable value is kept as None,
    so just the signals that read it score 0.
    """

    id: str = Field(..., min_length=1, description="Unique video identifier")
    creator_id: str = Field(..., description="Creator of the video")
    title: str = Field(..., description="Video title")
    description: Optional[str] = Field(default="", description="Video description")
    tags: Optional[List[str]] = Field(default_factory=list, description="Content tags")
    duration_seconds: Optional[float] = Field(default=60, ge=0, description="Video length")
    created_at: float = Field(..., description="Unix timestamp of publication")
    views: Optional[int] = Field(default=0, ge=0)
    likes: Optional[int] = Field(default=0, ge=0)
    order_count: Optional[int] = Field(default=0, ge=0)

    @field_validator(*OPTIONAL_CANDIDATE_FIELDS, mode="wrap")
    @classmethod
    def _lenient_optional(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        try:
            return handler(value)
        except ValidationError:
            return None


class PriceRange(BaseModel):
    """Price band the user usually orders in."""

    min: float = DEFAULT_PRICE_MIN
    max: float = DEFAULT_PRICE_MAX


class UserPreferences(BaseModel):
    """Content and taste preferences derived from history."""

    cuisines: List[str] = Field(
        default_factory=list,
        description="Top cuisine tags, most frequent first",
    )
    price_range: PriceRange = Field(default_factory=PriceRange)
    dietary_restrictions: List[str] = Field(default_factory=list)
    spice_level: int = DEFAULT_SPICE_LEVEL


class UserBehaviors(BaseModel):
    """Behavioral summary derived from history."""

    avg_watch_time: float = Field(default=0.0, ge=0, description="Seconds")
    order_frequency: float = Field(default=0.0, ge=0, description="Orders per day")
    favorite_creators: List[str] = Field(
        default_factory=list,
        description="Creator IDs ranked by like/share count",
    )
    peak_order_times: List[str] = Field(
        default_factory=list,
        description="Time buckets (morning/afternoon/evening), busiest first",
    )


class UserProfile(BaseModel):
    """
    Aggregated preference/behavior summary for one user.
    Rebuilt from raw events, cached with a short TTL.
    """

    user_id: str = Field(..., description="User identifier")
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    behaviors: UserBehaviors = Field(default_factory=UserBehaviors)
    built_at: float = Field(default=0.0, description="Unix timestamp of the build")

    @property
    def is_cold_start(self) -> bool:
        """Check if user has no usable history."""
        return (
            not self.preferences.cuisines
            and not self.behaviors.favorite_creators
            and self.behaviors.avg_watch_time == 0
        )


class ScoreVector(BaseModel):
    """Per (user, candidate) signal scores. Missing signals score 0."""

    content_similarity: float = Field(default=0.0, ge=0, le=1)
    behavior_match: float = Field(default=0.0, ge=0, le=1)
    popularity: float = Field(default=0.0, ge=0, le=1)
    time_relevance: float = Field(default=0.0, ge=0, le=1)
    location_relevance: float = Field(default=0.0, ge=0, le=1)


class RankingWeights(BaseModel):
    """Weights used to combine a ScoreVector into one score."""

    content_similarity: float = 0.30
    behavior_match: float = 0.25
    popularity: float = 0.20
    time_relevance: float = 0.15
    location_relevance: float = 0.10

    def combine(self, scores: ScoreVector) -> float:
        """Weighted sum of the signal scores."""
        return (
            scores.content_similarity * self.content_similarity
            + scores.behavior_match * self.behavior_match
            + scores.popularity * self.popularity
            + scores.time_relevance * self.time_relevance
            + scores.location_relevance * self.location_relevance
        )


class RankedEntry(BaseModel):
    """Candidate with its combined score."""

    candidate_id: str
    final_score: float


class CandidateFilter(BaseModel):
    """Selection passed to the content catalog."""

    published_only: bool = True
    created_after: Optional[float] = None


# =============================================================================
# Embedding Results (tagged union)
# =============================================================================


class EmbeddingOk(BaseModel):
    """Embedding returned by the semantic embedding service."""

    kind: Literal["ok"] = "ok"
    vector: List[float]


class EmbeddingUnavailable(BaseModel):
    """The embedding service could not produce a vector."""

    kind: Literal["unavailable"] = "unavailable"
    reason: str


EmbeddingResult = Union[EmbeddingOk, EmbeddingUnavailable]


# =============================================================================
# API Models (External)
# =============================================================================


class InteractionValue(BaseModel):
    """Optional payload attached to a tracked interaction."""

    watch_time_seconds: Optional[float] = Field(default=None, ge=0)
    device_type: str = Field(default="web")
    session_id: Optional[str] = Field(default=None)
    tags: List[str] = Field(
        default_factory=list,
        description="Extra content tags reported by the client",
    )


class TrackInteractionRequest(BaseModel):
    """Request body for POST /v1/interactions."""

    user_id: str = Field(..., min_length=1)
    video_id: str = Field(..., min_length=1)
    type: InteractionType
    value: Optional[InteractionValue] = None


class FeedResponse(BaseModel):
    """Feed endpoint response."""

    items: List[RankedEntry] = Field(..., description="Ranked candidates")
    candidate_ids: List[str] = Field(..., description="Candidate IDs in rank order")
    degraded: bool = Field(
        default=False,
        description="True if the trending feed was served because personalization failed",
    )
    is_personalized: bool = Field(
        default=True,
        description="Whether personalization was applied",
    )


class TrendingResponse(BaseModel):
    """Trending endpoint response."""

    items: List[RankedEntry]
    candidate_ids: List[str]


class SimilarityResponse(BaseModel):
    """Tag-overlap similarity between two videos."""

    video_a: str
    video_b: str
    similarity: float = Field(..., ge=0, le=1)


class RetrainReport(BaseModel):
    """Outcome of one retraining pass."""

    events_scanned: int = 0
    positive_events: int = 0
    skipped: bool = Field(
        default=False,
        description="True if another retrain was already running",
    )
    duration_ms: float = 0.0


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: Dict[str, Any] = Field(..., description="Error details")

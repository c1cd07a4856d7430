"""Services package - business logic layer."""
from .feature_flags import ConfigBasedFeatureFlagService
from .feed import FeedService
from .profile import ProfileBuilder
from .ranking import FeedRanker
from .retrainer import ModelRetrainer, NoOpWeightAdjuster, WeightAdjuster
from .scoring import (
    BehaviorMatchScorer,
    ConstantLocationScorer,
    ContentSimilarityScorer,
    LocationScorer,
    PopularityScorer,
    SignalScorer,
    TimeRelevanceScorer,
)
from .tracker import InteractionTracker
from .weights import WeightRegistry

__all__ = [
    "BehaviorMatchScorer",
    "ConfigBasedFeatureFlagService",
    "ConstantLocationScorer",
    "ContentSimilarityScorer",
    "FeedRanker",
    "FeedService",
    "InteractionTracker",
    "LocationScorer",
    "ModelRetrainer",
    "NoOpWeightAdjuster",
    "PopularityScorer",
    "ProfileBuilder",
    "SignalScorer",
    "TimeRelevanceScorer",
    "WeightAdjuster",
    "WeightRegistry",
]

"""
Centralized configuration using Pydantic BaseSettings.
All environment variables are loaded here - no hardcoded values.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Feed Ranking Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Feature Flags
    PERSONALIZATION_ENABLED: bool = True
    KILL_SWITCH_ACTIVE: bool = False

    # Rollout Configuration
    ROLLOUT_PERCENTAGE: float = 100.0  # Percentage of users to receive personalized feed

    # Telemetry
    ENABLE_OTEL: bool = False  # Default to False to prevent gRPC errors in dev
    ENABLE_PROMETHEUS: bool = True

    # Profile Builder
    PROFILE_CACHE_TTL_SEC: int = 300  # 5 minutes
    PROFILE_INTERACTION_LIMIT: int = 1000
    PROFILE_ORDER_LIMIT: int = 100

    # Semantic Embedding Service (OpenAI-compatible)
    EMBEDDING_API_KEY: Optional[str] = None
    EMBEDDING_API_BASE: str = "https://api.openai.com/v1"
    EMBEDDING_MODEL: str = "text-embedding-ada-002"
    EMBEDDING_TIMEOUT_MS: int = 2000
    EMBEDDING_MAX_CONCURRENCY: int = 8
    EMBEDDING_CACHE_TTL_SEC: int = 600  # 10 minutes

    # Circuit Breaker (embedding service)
    CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC: int = 30

    # Candidate Pool
    CANDIDATE_POOL_MULTIPLIER: int = 3
    MAX_CANDIDATE_POOL: int = 200
    TRENDING_CANDIDATE_POOL: int = 200

    # Pagination
    DEFAULT_FEED_LIMIT: int = 20
    MAX_FEED_LIMIT: int = 50
    DEFAULT_TRENDING_LIMIT: int = 10

    # Model Retraining
    RETRAIN_EVENT_LIMIT: int = 10000
    RETRAIN_LEARNING_RATE: float = 0.01
    RETRAIN_INTERVAL_SEC: int = 3600  # hourly; 0 disables the periodic job

    # In-memory stores
    SEED_DEMO_DATA: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - singleton pattern."""
    return Settings()

"""Core infrastructure components."""
from .cache import CacheInterface, InMemoryCache
from .circuit_breaker import CircuitBreaker, CircuitState
from .exceptions import (
    AppException,
    CircuitBreakerOpenError,
    ProfileBuildError,
    StoreUnavailableError,
    ValidationError,
)
from .singleflight import SingleFlight

__all__ = [
    "AppException",
    "CacheInterface",
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "InMemoryCache",
    "ProfileBuildError",
    "SingleFlight",
    "StoreUnavailableError",
    "ValidationError",
]

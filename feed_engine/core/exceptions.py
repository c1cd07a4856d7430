"""
Custom exception hierarchy for centralized error handling.
All exceptions map to appropriate HTTP status codes.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


class ValidationError(AppException):
    """Invalid input data."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class ProfileBuildError(AppException):
    """
    Interaction log or order history unreachable while building a profile.
    The feed cannot be personalized; callers may serve trending instead.
    """

    def __init__(self, user_id: str, reason: str = "Unknown error") -> None:
        super().__init__(
            message=f"Could not build profile for user {user_id}: {reason}",
            status_code=503,
            error_code="PROFILE_BUILD_FAILED",
            details={"user_id": user_id, "reason": reason},
        )


class StoreUnavailableError(AppException):
    """An external store (catalog, interaction log) is unavailable."""

    def __init__(self, store_name: str, reason: str = "Unknown error") -> None:
        super().__init__(
            message=f"Store temporarily unavailable: {store_name}",
            status_code=503,
            error_code="STORE_UNAVAILABLE",
            details={"store": store_name, "reason": reason},
        )


class CircuitBreakerOpenError(AppException):
    """Circuit breaker is open - service calls blocked."""

    def __init__(self, service_name: str) -> None:
        super().__init__(
            message=f"Circuit breaker open for: {service_name}",
            status_code=503,
            error_code="CIRCUIT_BREAKER_OPEN",
            details={"service": service_name},
        )

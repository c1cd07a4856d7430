"""API routers package."""
from .feed import router as feed_router
from .health import router as health_router
from .interactions import router as interactions_router

__all__ = ["feed_router", "health_router", "interactions_router"]

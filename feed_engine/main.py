"""
Main FastAPI application entry point.
Configures logging, exception handlers, background retraining and routers.
"""
import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from feed_engine.api.dependencies import get_embedding_service, get_feed_service
from feed_engine.api.routers import feed_router, health_router, interactions_router
from feed_engine.clients.embedding import OpenAIEmbeddingClient
from feed_engine.config import get_settings
from feed_engine.config.logging import configure_logging
from feed_engine.core.exceptions import AppException
from feed_engine.core.telemetry import setup_telemetry
from feed_engine.services.retrainer import run_periodically


# =============================================================================
# Lifespan (Startup/Shutdown)
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    logger = logging.getLogger(__name__)
    settings = get_settings()

    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Personalization enabled: {settings.PERSONALIZATION_ENABLED}")
    logger.info(f"Kill switch active: {settings.KILL_SWITCH_ACTIVE}")
    logger.info(f"Embedding service configured: {bool(settings.EMBEDDING_API_KEY)}")

    retrain_task = None
    if settings.RETRAIN_INTERVAL_SEC > 0:
        service_factory = app.dependency_overrides.get(get_feed_service, get_feed_service)
        retrainer = service_factory().retrainer
        retrain_task = asyncio.create_task(
            run_periodically(retrainer, settings.RETRAIN_INTERVAL_SEC)
        )
        logger.info(f"Periodic retraining every {settings.RETRAIN_INTERVAL_SEC}s")

    yield

    logger.info("Shutting down application")
    if retrain_task is not None:
        retrain_task.cancel()
        with suppress(asyncio.CancelledError):
            await retrain_task

    embedding_service = get_embedding_service()
    if isinstance(embedding_service, OpenAIEmbeddingClient):
        await embedding_service.aclose()


# =============================================================================
# Exception Handlers
# =============================================================================


async def app_exception_handler(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    """Handle custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions - return generic error."""
    logger = logging.getLogger(__name__)
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


# =============================================================================
# Application Factory
# =============================================================================


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    configure_logging(debug=settings.DEBUG)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
        Personalized Feed Ranking Engine

        Turns engagement and order history into ranked content feeds.

        ## Features
        - Multi-signal ranking: content similarity, behavior match,
          popularity, recency and location
        - Embedding-based similarity with keyword fallback
        - Cached user profiles with lazy TTL expiry
        - Trending feed and graceful degradation
        - Feedback-driven retraining job
        - Observability: JSON logs, Prometheus, OpenTelemetry
        """,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)
    app.include_router(feed_router)
    app.include_router(interactions_router)

    setup_telemetry(app)

    return app


app = create_app()


# =============================================================================
# Development Entry Point
# =============================================================================


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "feed_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

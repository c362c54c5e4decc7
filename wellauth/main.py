"""
Main application entry point untuk WellAuth.
Mengkonfigurasi FastAPI application dengan middleware, routers, dan handlers.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wellauth.core.config import settings
from wellauth.db.session import init_db, close_db
from wellauth.api.v1 import admin, auth, health, sessions
from wellauth.middleware.logging import LoggingMiddleware
from wellauth.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers
from wellauth.services.rate_limit import RateLimiter, RateLimitStore, build_rate_limit_store
from wellauth.services.email import wait_for_notifications

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    await app.state.rate_limiter.start()
    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    await wait_for_notifications(timeout=settings.SMTP_TIMEOUT_SECONDS)
    await app.state.rate_limiter.close()
    await close_db()
    logger.info("Application shutdown complete")


def create_application(rate_limit_store: Optional[RateLimitStore] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        rate_limit_store: Counting store untuk rate limiter, default sesuai konfigurasi

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Account security and session lifecycle API",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )

    app.state.rate_limiter = RateLimiter(rate_limit_store or build_rate_limit_store())

    # Add middleware (order matters - executed in reverse order)

    # 1. Error Handler (catches all unexpected exceptions)
    app.add_middleware(ErrorHandlerMiddleware)

    # 2. Logging
    app.add_middleware(
        LoggingMiddleware,
        exclude_paths=["/health"]
    )

    # 3. CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset"
        ],
    )

    register_exception_handlers(app)

    # Include API routers
    app.include_router(health.router)
    app.include_router(auth.router, prefix=settings.API_V1_STR)
    app.include_router(sessions.router, prefix=settings.API_V1_STR)
    app.include_router(admin.router, prefix=settings.API_V1_STR)

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "operational"
        }

    return app


# Create application instance
app = create_application()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wellauth.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )

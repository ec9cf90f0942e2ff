"""
FastAPI Application Entry Point

BiteNet Admin API - back-office of the restaurant loyalty platform.

Resources (database engine, Redis client, notification service) are built
in the lifespan, kept on ``app.state`` and released on shutdown.

Endpoints:
    - /api/sys-users: Login, logout, admin accounts, phone binding
    - /api/brands, /api/restaurants, /api/cuisine-types, /api/restaurant-users
    - /api/statistics: Dashboard counts
    - /api/global-config, /api/sms-push-records
    - /api/brand-wallets, /api/brand-points-wallets
    - GET /health: System health check
"""

import asyncio
import sys
import logging
from datetime import datetime
from typing import Optional
from contextlib import asynccontextmanager

import redis.asyncio as redis
from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from bitenet_admin.core.config import Settings, get_settings, setup_logging
from bitenet_admin.core.exceptions import AdminAPIError, UnexpectedError
from bitenet_admin.database import Database, get_db
from bitenet_admin.routers import ROUTERS
from bitenet_admin.schemas import ErrorResponse, HealthResponse
from bitenet_admin.services.notifications import (
    BaseNotificationService,
    create_notification_service,
    get_notification_service,
)
from bitenet_admin.services.redis_client import close_redis, create_redis, get_redis

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    redis_client: Optional[redis.Redis] = None,
    notifier: Optional[BaseNotificationService] = None,
) -> FastAPI:
    """
    Build the application.

    Resources passed in are used as-is and left open on shutdown; the
    missing ones are created from ``settings`` and closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application startup and shutdown events.
        """
        # Startup
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info(f"   Debug: {settings.debug}")
        logger.info("=" * 60)

        app.state.settings = settings
        app.state.database = database or Database(settings.database_url, echo=settings.database_echo)
        app.state.redis = redis_client or create_redis(settings.redis_url)
        app.state.notifier = notifier or create_notification_service(settings)

        await app.state.database.create_all()
        logger.info("✅ Database initialized")
        logger.info(f"✅ Notification Service: {app.state.notifier.provider_name}")

        if settings.constant_captcha:
            logger.warning("⚠️ CONST_CAPTCHA is on: every verification code is 000000")

        # Validate production config
        if settings.use_real_services:
            missing = settings.validate_production_config()
            if missing:
                logger.warning(f"⚠️ Missing production config: {missing}")

        logger.info("=" * 60)
        logger.info("✅ Application ready!")
        logger.info("=" * 60)

        yield  # Application runs

        # Shutdown
        logger.info("Shutting down...")
        if notifier is None:
            await app.state.notifier.close()
        if redis_client is None:
            await close_redis(app.state.redis)
        if database is None:
            await app.state.database.dispose()
        logger.info("✅ Cleanup complete")

    app = FastAPI(
        title=settings.app_name,
        description="Back-office API for brands, restaurants, wallets and admin accounts.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in ROUTERS:
        app.include_router(
            router,
            responses={
                401: {"model": ErrorResponse},
                404: {"model": ErrorResponse},
                409: {"model": ErrorResponse},
                412: {"model": ErrorResponse},
            },
        )

    _register_root_endpoints(app, settings)
    _register_exception_handlers(app, settings)
    return app


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

def _register_root_endpoints(app: FastAPI, settings: Settings) -> None:

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """API root with navigation links."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "environment": settings.env_mode.value,
            "documentation": "/docs",
            "health": "/health",
        }

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="System Health Check",
    )
    async def health_check(
        db: AsyncSession = Depends(get_db),
        client: redis.Redis = Depends(get_redis),
        notifier: BaseNotificationService = Depends(get_notification_service),
    ) -> HealthResponse:
        """Verify all system components are operational."""

        # Check database
        db_status = "healthy"
        try:
            await db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            db_status = f"unhealthy: {str(e)}"
            logger.error(f"Database health check failed: {e}")

        # Check Redis
        redis_status = "healthy"
        try:
            await client.ping()
        except RedisError as e:
            redis_status = f"unhealthy: {str(e)}"
            logger.error(f"Redis health check failed: {e}")

        # Check notification service
        notification_status = "healthy" if await notifier.health_check() else "unhealthy"

        overall = "operational" if all(
            s == "healthy" for s in [db_status, redis_status, notification_status]
        ) else "degraded"

        return HealthResponse(
            status=overall,
            database=db_status,
            redis=redis_status,
            notification_service=notification_status,
            timestamp=datetime.now(),
        )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def _error(status_code: int, code: str, detail: Optional[str]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=code, detail=detail).model_dump(),
    )


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:

    @app.exception_handler(AdminAPIError)
    async def admin_error_handler(request: Request, exc: AdminAPIError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
        return _error(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RedisError)
    async def redis_error_handler(request: Request, exc: RedisError) -> JSONResponse:
        logger.exception(f"Redis error on {request.url.path}: {exc}")
        return _error(500, UnexpectedError.code, str(exc) if settings.debug else "Cache unavailable")

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception(f"Database error on {request.url.path}: {exc}")
        return _error(500, UnexpectedError.code, str(exc) if settings.debug else "Database error")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return _error(
            500,
            UnexpectedError.code,
            str(exc) if settings.debug else "An unexpected error occurred",
        )


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

setup_logging()
app = create_app()


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "bitenet_admin.main:app",
        host=_settings.api_host,
        port=_settings.api_port,
        reload=_settings.is_development,
        log_level="debug" if _settings.debug else "info",
    )

"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware, exception handlers, and lifespan events.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresOtpRepository, run_migrations
from src.api.auth import router as auth_router
from src.api.errors import register_exception_handlers
from src.config.settings import get_settings
from src.domain.exceptions import UnexpectedStoreError
from src.domain.otp import utc_now

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "auth",
        "description": "OTP-gated registration, password reset and login",
    },
]


async def purge_expired_otps(pool: ConnectionPool, interval_seconds: int) -> None:
    """
    Periodically delete expired OTP records.

    Only bounds storage: every read already ignores expired records.
    """
    repository = PostgresOtpRepository(pool)
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await run_in_threadpool(repository.purge_expired, utc_now())
        except UnexpectedStoreError:
            logger.warning("Expired OTP purge failed; retrying next interval")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Starts the expired-OTP purge task when enabled
    - Closes connection pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    # Store pool in app state for dependency injection
    app.state.pool = pool

    purge_task = None
    if settings.otp_purge_interval_seconds > 0:
        purge_task = asyncio.create_task(
            purge_expired_otps(pool, settings.otp_purge_interval_seconds)
        )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if purge_task is not None:
        purge_task.cancel()
        with suppress(asyncio.CancelledError):
            await purge_task
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="learntrack-auth",
    description="Student learning tracker authentication API - OTP registration and password reset",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in get_settings().cors_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router, prefix="/api")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}

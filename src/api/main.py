"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routes and lifespan events, and serves it with uvicorn
(`mailswap` console script or `python -m src.api.main`).
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.identity.in_memory import InMemoryIdentityProvider
from src.adapters.repository.postgres import PostgresProfileRepository, run_migrations
from src.api.dependencies import build_flow_factory
from src.api.v1 import router as v1_router
from src.config.settings import Settings, get_settings
from src.domain.sessions import SessionRegistry

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Email Change Verification API v1 - Change an account email with link verification",
    },
]


def build_identity_provider(settings: Settings) -> InMemoryIdentityProvider:
    """Create the demo identity provider seeded from settings."""
    return InMemoryIdentityProvider(
        user_id=settings.demo_user_id,
        email=settings.demo_email,
        password=settings.demo_password if settings.demo_has_password else None,
        provider_ids=settings.demo_provider_ids,
        bcrypt_cost=settings.bcrypt_cost,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and runs migrations (profile sync)
    - Creates the identity provider and session registry
    - Closes the active session and the pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")

    pool: ConnectionPool | None = None
    profile_repository = None
    if settings.profile_sync_enabled:
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
        )
        logger.info("Running database migrations...")
        run_migrations(pool)
        profile_repository = PostgresProfileRepository(pool)
    else:
        logger.info("Profile sync disabled, skipping database")

    identity_provider = build_identity_provider(settings)
    registry = SessionRegistry(build_flow_factory(settings, identity_provider, profile_repository))

    # Store collaborators in app state for dependency injection
    app.state.pool = pool
    app.state.identity_provider = identity_provider
    app.state.registry = registry

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await registry.aclose()
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="mailswap",
    description="Email Change Verification API - Change an account email only after the new address is confirmed",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    if pool is not None:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run("src.api.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()

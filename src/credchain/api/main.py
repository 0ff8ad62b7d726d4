"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import psycopg
from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from credchain.adapters.ledger.web3_client import build_ledger_client
from credchain.adapters.repository.postgres import run_migrations
from credchain.adapters.session.jwt_tokens import build_session_issuer
from credchain.api.errors import register_exception_handlers
from credchain.api.v1 import router as v1_router
from credchain.config.settings import Settings, get_settings
from credchain.domain.clock import format_iso, utcnow
from credchain.domain.exceptions import StartupError

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {"name": "auth", "description": "Wallet-signature login"},
    {"name": "credentials", "description": "Ledger verification and share link access"},
    {"name": "domain", "description": "Issuer domain ownership (authenticated)"},
]


def open_pool(settings: Settings) -> ConnectionPool:
    """
    Create and open the database connection pool.

    Raises:
        StartupError: database unreachable within the pool timeout
    """
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=False,
    )
    try:
        pool.open(wait=True)
    except psycopg.Error as exc:
        pool.close()
        raise StartupError("database", f"cannot connect: {exc}") from exc
    return pool


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and runs migrations
    - Builds the ledger client and session issuer
    - Closes connection pool on shutdown

    Any client that cannot be constructed raises StartupError naming it.
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Connecting to database...")
    pool = open_pool(settings)

    try:
        logger.info("Running database migrations...")
        run_migrations(pool)

        logger.info("Connecting ledger client to %s", settings.rpc_url)
        app.state.ledger = build_ledger_client(settings)
        app.state.session_issuer = build_session_issuer(settings)
    except StartupError:
        pool.close()
        raise

    app.state.pool = pool

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    pool.close()
    logger.info("Database connection pool closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application with routes and error handlers."""
    settings = settings or get_settings()

    app = FastAPI(
        title="credchain",
        description="Credential Verification API - ledger-backed credential checks, "
        "wallet login, share links and issuer domain verification",
        version=settings.api_version,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )

    app.include_router(v1_router, prefix="/api")
    register_exception_handlers(app, include_stack=settings.is_development)

    @app.get("/health")
    def health_check(request: Request) -> dict[str, str]:
        """
        Health check endpoint with database validation.

        Returns 200 OK if application and database are healthy.
        """
        pool = request.app.state.pool
        with pool.connection() as conn:
            conn.execute("SELECT 1")

        return {
            "status": "OK",
            "timestamp": format_iso(utcnow()),
            "version": settings.api_version,
        }

    return app


app = create_app()

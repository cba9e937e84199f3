# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the MartialBase API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.exc import SQLAlchemyError

from martialbase.api.middleware import AuthMiddleware, RequestContextMiddleware
from martialbase.api.routes import health
from martialbase.api.v1 import router as v1_router
from martialbase.core.config import get_settings
from martialbase.domains.access import OrphanEntityError
from martialbase.infrastructure.database import DatabaseError, close_database, get_session, init_database
from martialbase.infrastructure.database.seeds import seed_roles
from martialbase.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging and opens the database pool on startup, and
    closes the pool on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting MartialBase API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================
    try:
        await init_database(settings)
        logger.info("Database connection pool initialized")
    except DatabaseError as e:
        logger.warning("Failed to initialize database connection pool: %s", str(e))

    # Seed role names if missing
    try:
        async with get_session() as session:
            await seed_roles(session)
            await session.commit()
    except (DatabaseError, SQLAlchemyError) as e:
        logger.warning("Failed to seed roles: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================
    await close_database()
    logger.info("Shutting down MartialBase API")


async def orphan_entity_handler(request: Request, exc: OrphanEntityError) -> Response:
    """Render a refused orphaning change as 400 with its error code token."""
    logger.info("Refused %s %s: %s", request.method, request.url.path, exc.message)
    return PlainTextResponse(exc.code.token, status_code=status.HTTP_400_BAD_REQUEST)


async def server_error_handler(request: Request, exc: Exception) -> Response:
    """Render an unhandled error as 500.

    The exception message is only returned in debug mode.
    """
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, str(exc))
    if get_settings().debug:
        return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="MartialBase API",
        description="Martial arts organisation and school management backend",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Redirects from /path to /path/ drop the Authorization header
        redirect_slashes=False,
    )

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(OrphanEntityError, orphan_entity_handler)
    app.add_exception_handler(DatabaseError, server_error_handler)
    app.add_exception_handler(SQLAlchemyError, server_error_handler)
    app.add_exception_handler(Exception, server_error_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(AuthMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app

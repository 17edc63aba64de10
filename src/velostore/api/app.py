"""FastAPI application factory for VeloStore.

Creates the application with:
- Catalog, cart and assistant routers
- Optional admin router for catalog writes and manual invalidation
- Correlation IDs and guest sessions
- Lifecycle management for database, Redis and the reasoning engine
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from velostore import __version__
from velostore.api import deps
from velostore.api.errors import (
    ApiError,
    api_exception_handler,
    cart_unavailable_handler,
    contract_violation_handler,
    generic_exception_handler,
    identity_unresolvable_handler,
)
from velostore.api.middleware import CorrelationMiddleware, SessionMiddleware
from velostore.api.routers import admin, assistant, cart, catalog, health
from velostore.assistant.engines import create_engine
from velostore.cache import (
    CacheInvalidationBroadcaster,
    LocalCacheInvalidator,
    close_redis,
    get_redis,
)
from velostore.config import settings
from velostore.core.errors import CartUnavailable, ContractViolation, IdentityUnresolvable
from velostore.observability import configure_logging
from velostore.persistence.db import close_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup:
    - Configure structured logging
    - Create tables and the database connection pool
    - Initialize the Redis connection
    - Start the invalidation listener (if enabled)
    - Build the reasoning engine (if configured)

    On shutdown, release them in reverse order.
    """
    configure_logging(
        json_format=settings.env != "dev",
        level=settings.log_level,
    )

    logger.info("Starting VeloStore (%s, instance %s)", settings.env, settings.instance_id)
    await init_db()
    await get_redis()

    broadcaster: CacheInvalidationBroadcaster | None = None
    if settings.enable_invalidation_broadcast:
        broadcaster = CacheInvalidationBroadcaster(origin=settings.instance_id)
        broadcaster.add_handler(LocalCacheInvalidator(deps.get_local_cache()).handle_invalidation)
        await broadcaster.start()
    deps.set_broadcaster(broadcaster)

    engine = create_engine(settings)
    deps.set_reasoning_engine(engine)
    if engine is not None:
        logger.info("Assistant using reasoning engine: %s", engine.name)
    else:
        logger.info("Assistant using intent router")

    logger.info("VeloStore startup complete")

    yield

    logger.info("Shutting down VeloStore")
    if engine is not None:
        await engine.aclose()
    deps.set_reasoning_engine(None)
    if broadcaster is not None:
        await broadcaster.stop()
    deps.set_broadcaster(None)
    await close_redis()
    await close_db()
    logger.info("VeloStore shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="VeloStore",
        description="Storefront API with a multi-tier catalog cache and shopping assistant",
        version=__version__,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Correlation runs inside session so the resolved identity is on request.state
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(SessionMiddleware)

    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(
        ContractViolation, cast(ExceptionHandler, contract_violation_handler)
    )
    app.add_exception_handler(
        IdentityUnresolvable, cast(ExceptionHandler, identity_unresolvable_handler)
    )
    app.add_exception_handler(CartUnavailable, cast(ExceptionHandler, cart_unavailable_handler))
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(cart.router)
    app.include_router(assistant.router)
    if settings.enable_admin_api:
        app.include_router(admin.router)

    return app


# Application instance for uvicorn
app = create_app()

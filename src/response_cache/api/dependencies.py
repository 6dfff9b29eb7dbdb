"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services built and opened in the lifespan, closed on shutdown
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from response_cache.config import settings
from response_cache.handlers import CacheHandler
from response_cache.services import CacheService
from response_cache.utils.log import configure_logging

logger = logging.getLogger(__name__)


def build_cache_service() -> CacheService:
    """Build the cache service the app will serve.

    Returns:
        A CacheService configured from settings (not yet opened)
    """
    return CacheService.create(settings)


def get_handler(request: Request) -> CacheHandler:
    """Dependency injection for CacheHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The CacheHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "cache_handler", None)
    if handler is None:
        raise RuntimeError("CacheHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Service (business logic) - opened, stored in app.state.cache_service
    2. Handler (HTTP endpoints) - stored in app.state.cache_handler

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Closes the cache (final snapshot, timers stopped) and removes
        services from app.state on shutdown
    """
    configure_logging(settings.log_level)

    cache_service = build_cache_service()
    cache_service.open()
    cache_handler = CacheHandler(cache_service=cache_service)

    app.state.cache_service = cache_service
    app.state.cache_handler = cache_handler

    logger.info(f"Cache service initialized (threshold={cache_service.similarity.threshold})")

    try:
        yield
    finally:
        cache_service.close()
        del app.state.cache_handler
        del app.state.cache_service
        logger.info("Cache service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[CacheHandler, Depends(get_handler)]

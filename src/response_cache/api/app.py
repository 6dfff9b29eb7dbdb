from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from response_cache.api.dependencies import HandlerDep, lifespan
from response_cache.config import settings
from response_cache.dto import (
    CacheGetResponse,
    CacheSetResponse,
    CleanupResponse,
    GetCacheRequest,
    HealthCheckResponse,
    SetCacheRequest,
)

app = FastAPI(
    title="Response Cache API",
    description="AI response cache with exact and near-duplicate query matching",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Response Cache API",
        "version": "0.1.0",
        "description": "AI response cache with exact and near-duplicate query matching",
        "endpoints": {
            "cache": "/cache",
            "stats": "/stats",
            "status": "/status",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@app.post("/cache/get", response_model=CacheGetResponse)
async def get_cached(request: GetCacheRequest, handler: HandlerDep) -> CacheGetResponse:
    """
    Look up a cached response by key, derived key or query similarity.

    Args:
        request: Lookup request with query and optional key/user/model.

    Returns:
        Lookup response with the cached response and how it matched.
    """
    return await handler.get_cached(request)


@app.post("/cache/set", response_model=CacheSetResponse)
async def set_cached(request: SetCacheRequest, handler: HandlerDep) -> CacheSetResponse:
    """
    Store a query/response pair in the cache.

    Args:
        request: Store request with query, response and optional key/user/model.

    Returns:
        Store response with success status and key.
    """
    return await handler.set_cached(request)


@app.post("/cache/cleanup", response_model=CleanupResponse)
async def cleanup_cache(handler: HandlerDep) -> CleanupResponse:
    """Remove expired entries now instead of waiting for the scheduled sweep."""
    return await handler.cleanup()


@app.delete("/cache/{key}")
async def remove_cached(key: str, handler: HandlerDep) -> dict[str, Any]:
    """Remove a single cache entry."""
    return await handler.remove(key)


@app.delete("/cache")
async def clear_cache(handler: HandlerDep) -> dict[str, Any]:
    """Clear all entries from the cache."""
    return await handler.clear_cache()


@app.get("/stats", response_model=dict[str, Any])
async def get_stats(handler: HandlerDep) -> dict[str, Any]:
    """Get cache usage counters."""
    return await handler.get_stats()


@app.get("/status", response_model=dict[str, Any])
async def get_status(handler: HandlerDep) -> dict[str, Any]:
    """Get cache configuration and usage summary."""
    return await handler.get_status()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "response_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )

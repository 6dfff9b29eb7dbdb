"""HTTP handlers for cache operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import time

from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool

from response_cache.dto import (
    CacheGetResponse,
    CacheSetResponse,
    CleanupResponse,
    GetCacheRequest,
    HealthCheckResponse,
    SetCacheRequest,
)
from response_cache.services import CacheDecodeError, CacheService, derive_key


class CacheHandler:
    """HTTP handlers for cache operations.

    This handler delegates business logic to CacheService
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    Service calls are synchronous (similarity scans, store lock), so they
    run in the threadpool instead of on the event loop.

    Example:
        ```python
        from response_cache.services import CacheService
        from response_cache.handlers import CacheHandler

        cache_service = CacheService.create().open()
        handler = CacheHandler(cache_service=cache_service)

        # Use in FastAPI route
        @app.post("/cache/get", response_model=CacheGetResponse)
        async def get_cached(request: GetCacheRequest):
            return await handler.get_cached(request)
        ```
    """

    def __init__(self, cache_service: CacheService) -> None:
        """Initialize the cache handler.

        Args:
            cache_service: The cache service for business logic (required).
        """
        self._cache = cache_service

    async def get_cached(self, request: GetCacheRequest) -> CacheGetResponse:
        """Handle POST /cache/get requests.

        Args:
            request: The lookup request DTO

        Returns:
            CacheGetResponse with hit status and the cached response

        Raises:
            HTTPException: 400 without query or key, 500 on a corrupted entry
        """
        if not request.query and not request.key:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Either query or key is required",
            )

        start_time = time.time()
        try:
            result = await run_in_threadpool(
                self._cache.lookup,
                request.query,
                key=request.key,
                user_id=request.user_id,
                model=request.model,
            )
        except CacheDecodeError as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to decode cached entry: {e}",
            ) from e
        lookup_time_ms = (time.time() - start_time) * 1000

        if result is None:
            return CacheGetResponse(
                query=request.query,
                hit=False,
                lookup_time_ms=lookup_time_ms,
            )

        return CacheGetResponse(
            query=request.query,
            hit=True,
            response=result.response,
            key=result.key,
            score=result.score,
            exact=result.exact,
            lookup_time_ms=lookup_time_ms,
        )

    async def set_cached(self, request: SetCacheRequest) -> CacheSetResponse:
        """Handle POST /cache/set requests.

        Args:
            request: The store request DTO

        Returns:
            CacheSetResponse with storage confirmation

        Raises:
            HTTPException: If the response cannot be serialized
        """
        key = request.key or derive_key(request.query, user_id=request.user_id, model=request.model)
        try:
            success = await run_in_threadpool(
                self._cache.set,
                request.query,
                request.response,
                key=key,
            )
        except (TypeError, ValueError) as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to store entry: {e}",
            ) from e

        if not success:
            return CacheSetResponse(success=False, key=None, message="Cache is disabled")

        return CacheSetResponse(
            success=True,
            key=key,
            message="Entry stored successfully",
        )

    async def remove(self, key: str) -> dict:
        """Handle DELETE /cache/{key} requests."""
        removed = await run_in_threadpool(self._cache.remove, key)
        if not removed:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No cache entry for key {key}",
            )
        return {"success": True, "key": key}

    async def clear_cache(self) -> dict:
        """Handle DELETE /cache requests.

        Returns:
            Dict with clear operation result
        """
        success = await run_in_threadpool(self._cache.clear)
        return {
            "success": success,
            "message": "Cache cleared successfully",
        }

    async def cleanup(self) -> CleanupResponse:
        """Handle POST /cache/cleanup requests."""
        return CleanupResponse(removed=await run_in_threadpool(self._cache.cleanup))

    async def get_stats(self) -> dict:
        """Handle GET /stats requests."""
        return await run_in_threadpool(self._cache.get_stats)

    async def get_status(self) -> dict:
        """Handle GET /status requests."""
        return await run_in_threadpool(self._cache.status)

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Returns:
            HealthCheckResponse with health status
        """
        summary = await run_in_threadpool(self._cache.status)
        is_healthy = summary["active"] and summary["open"]

        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_active=is_healthy,
            entries=summary["store"]["size"],
        )

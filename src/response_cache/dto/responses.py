"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class CacheGetResponse(BaseModel):
    """Response DTO for cache lookup operation."""

    query: str | None = Field(None, description="The original query")
    hit: bool = Field(..., description="Whether a cached response was found")
    response: Any = Field(None, description="The cached response, null on a miss")
    key: str | None = Field(None, description="Storage key of the matching entry")
    score: float | None = Field(
        None,
        description="1.0 for exact hits, similarity score otherwise",
        ge=0.0,
        le=1.0,
    )
    exact: bool | None = Field(None, description="Whether the entry was found by key")
    lookup_time_ms: float = Field(..., description="Time taken for the cache lookup in milliseconds")


class CacheSetResponse(BaseModel):
    """Response DTO for cache store operation."""

    success: bool = Field(..., description="Whether the operation succeeded")
    key: str | None = Field(None, description="The storage key for the entry")
    message: str = Field(..., description="Human-readable status message")


class CleanupResponse(BaseModel):
    """Response DTO for a cleanup sweep."""

    removed: int = Field(..., description="Number of expired entries removed", ge=0)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_active: bool = Field(..., description="Whether the cache is enabled and open")
    entries: int = Field(..., description="Number of entries currently held", ge=0)

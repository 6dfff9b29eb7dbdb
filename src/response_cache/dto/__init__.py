"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import GetCacheRequest, SetCacheRequest
from .responses import (
    CacheGetResponse,
    CacheSetResponse,
    CleanupResponse,
    HealthCheckResponse,
)

__all__ = [
    "GetCacheRequest",
    "SetCacheRequest",
    "CacheGetResponse",
    "CacheSetResponse",
    "CleanupResponse",
    "HealthCheckResponse",
]

"""Response Cache - AI response caching with near-duplicate query matching.

This package provides a layered architecture for response caching:

Layers:
    - protocols: Interface contracts (CacheStore)
    - repositories: Data access implementations (in-memory + JSON snapshots)
    - services: Business logic (cache facade, compression, similarity, stats)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from response_cache.services import CacheService

    # Using class method (recommended, like Path.home())
    with CacheService.create() as cache:
        cache.set("What time is it?", {"text": "It is noon."})
        cache.get("what time is it")
    ```

For HTTP API:
    ```python
    from response_cache.api.app import app
    ```
"""

from response_cache.config import get_settings, settings
from response_cache.dto import GetCacheRequest, SetCacheRequest
from response_cache.entities import CacheEntryEntity, CacheLookupEntity, SimilarityMatchEntity
from response_cache.handlers import CacheHandler
from response_cache.protocols import CacheStore
from response_cache.repositories import InMemoryCacheRepository
from response_cache.services import (
    CacheDecodeError,
    CacheService,
    CompressionService,
    SimilarityService,
    StatsService,
    derive_key,
)

__all__ = [
    # Configuration
    "settings",
    "get_settings",
    # Protocols (interfaces)
    "CacheStore",
    # Services (business logic)
    "CacheService",
    "CompressionService",
    "SimilarityService",
    "StatsService",
    "CacheDecodeError",
    "derive_key",
    # Handlers (HTTP)
    "CacheHandler",
    # Repositories (data access)
    "InMemoryCacheRepository",
    # Entities (domain models)
    "CacheEntryEntity",
    "CacheLookupEntity",
    "SimilarityMatchEntity",
    # DTOs (API contracts)
    "GetCacheRequest",
    "SetCacheRequest",
]

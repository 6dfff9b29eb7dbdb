"""Service layer for business logic.

This layer contains the cache orchestration and the components it drives.
The CacheService depends on the CacheStore protocol, not a concrete
repository, making it testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from response_cache.services import CacheService

    # Using factory method (recommended)
    cache = CacheService.create()

    # Or manual creation
    cache = CacheService(repository=repo)
    ```
"""

from .cache_service import CacheService, derive_key
from .compression_service import CacheDecodeError, CompressionService
from .similarity_service import SimilarityMemo, SimilarityService, levenshtein
from .stats_service import StatsService

__all__ = [
    "CacheService",
    "CacheDecodeError",
    "CompressionService",
    "SimilarityMemo",
    "SimilarityService",
    "StatsService",
    "derive_key",
    "levenshtein",
]

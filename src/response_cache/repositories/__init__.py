"""Repository layer for data access.

This layer keeps storage concerns (the entry map, TTL bookkeeping, disk
snapshots) behind the protocol-based CacheStore interface. This enables:
- Easy swapping of implementations
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from response_cache.protocols import CacheStore

from .memory_repository import InMemoryCacheRepository

__all__ = [
    "CacheStore",
    "InMemoryCacheRepository",
]

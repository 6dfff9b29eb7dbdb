"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Swapping the storage backend without touching the service
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from response_cache.protocols import CacheStore

    store: CacheStore = InMemoryCacheRepository()
    ```
"""

from .cache_store import CacheStore

__all__ = [
    "CacheStore",
]

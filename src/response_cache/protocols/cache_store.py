"""Cache storage protocol.

Defines the interface for any key/value backend that can hold cached
payloads with a time-to-live. The in-memory repository with JSON snapshot
persistence is the default implementation.
"""

from typing import Any, Protocol, runtime_checkable

from response_cache.entities import CacheEntryEntity


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache storage backends.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed.

    Example:
        ```python
        from response_cache.protocols import CacheStore

        store: CacheStore = InMemoryCacheRepository(persistence=False)
        ```
    """

    def open(self) -> None:
        """Prepare the backend (load persisted state, start timers)."""
        ...

    def close(self) -> None:
        """Release the backend (stop timers, flush persisted state)."""
        ...

    def set(self, key: str, value: Any, ttl: float) -> bool:
        """Insert or overwrite an entry.

        Args:
            key: The storage key
            value: The payload to store
            ttl: Time-to-live in seconds

        Returns:
            True if stored
        """
        ...

    def get(self, key: str) -> CacheEntryEntity | None:
        """Get a live entry by key.

        Args:
            key: The storage key

        Returns:
            The entry, or None if absent or expired
        """
        ...

    def remove(self, key: str) -> bool:
        """Delete an entry by key.

        Returns:
            True if an entry was deleted
        """
        ...

    def clear(self) -> bool:
        """Delete every entry."""
        ...

    def get_keys(self) -> list[str]:
        """Snapshot of the stored keys in insertion order."""
        ...

    def cleanup(self) -> int:
        """Delete every expired entry.

        Returns:
            Number of entries removed
        """
        ...

    def size(self) -> int:
        """Number of entries currently held (expired or not)."""
        ...

    def get_stats(self) -> dict:
        """Get backend statistics.

        Returns:
            Dictionary with stats (implementation-specific)
        """
        ...

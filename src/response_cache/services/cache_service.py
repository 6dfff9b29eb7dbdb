"""Cache service for core business logic.

This service orchestrates cache operations by coordinating the repository
(entry storage), the compression codec, the similarity matcher and the
stats collector.
"""

import hashlib
import logging
import time
from typing import Any, Callable

from response_cache.config import Settings, get_settings, settings
from response_cache.entities import CacheLookupEntity
from response_cache.protocols import CacheStore
from response_cache.repositories import InMemoryCacheRepository
from response_cache.services.compression_service import CacheDecodeError, CompressionService
from response_cache.services.similarity_service import SimilarityService
from response_cache.services.stats_service import StatsService
from response_cache.utils.scheduler import PeriodicTask

logger = logging.getLogger(__name__)

KEY_PREFIX = "cache:"


def derive_key(query: str, user_id: str | None = None, model: str | None = None) -> str:
    """Deterministic storage key for a query.

    The query is lower-cased and trimmed, then hashed with SHA-256 together
    with the user and model disambiguators.

    Args:
        query: The query text
        user_id: Optional user the response belongs to
        model: Optional model that produced the response

    Returns:
        Key of the form ``cache:<64 hex chars>``
    """
    base = f"{query.lower().strip()}|{user_id or ''}|{model or ''}"
    return KEY_PREFIX + hashlib.sha256(base.encode("utf-8")).hexdigest()


def _now_ms() -> float:
    return time.time() * 1000


class CacheService:
    """Core cache orchestration service.

    This service depends on the CacheStore PROTOCOL, not a concrete
    implementation, so the storage backend can be swapped without touching
    the lookup logic.

    Lookups go, in order: explicit key (exact only), derived key, then
    similarity over every live stored query.

    Example:
        ```python
        from response_cache.services import CacheService

        # Create with defaults (in-memory store, settings from env)
        with CacheService.create() as cache:
            cache.set("What time is it?", "It is noon.", user_id="u1")
            cache.get("what time is it", user_id="u1")

        # Or with custom implementations
        cache = CacheService(
            repository=InMemoryCacheRepository(persistence=False),
            similarity=SimilarityService(threshold=0.9),
        )
        cache.open()
        ```
    """

    def __init__(
        self,
        repository: CacheStore,
        compression: CompressionService | None = None,
        similarity: SimilarityService | None = None,
        stats: StatsService | None = None,
        enabled: bool | None = None,
        ttl: float | None = None,
        cleanup_interval: float | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the cache service.

        Args:
            repository: Cache storage backend (required).
            compression: Payload codec. Defaults to a settings-configured one.
            similarity: Query matcher. Defaults to a settings-configured one.
            stats: Stats collector. Defaults to a fresh one.
            enabled: Master switch. Defaults to settings.
            ttl: Time-to-live for entries in seconds. Defaults to settings.
            cleanup_interval: Seconds between expiry sweeps, 0 disables.
                Defaults to settings.
            clock: Callable returning the current time in milliseconds.
        """
        self._repository = repository
        self._compression = compression or CompressionService()
        self._similarity = similarity or SimilarityService()
        self._stats = stats or StatsService()
        self._enabled = settings.cache_enabled if enabled is None else enabled
        self._ttl = settings.cache_ttl if ttl is None else ttl
        self._cleanup_interval = (
            settings.cache_cleanup_interval if cleanup_interval is None else cleanup_interval
        )
        self._clock = clock or _now_ms
        self._cleanup_task: PeriodicTask | None = None
        self._opened = False

    derive_key = staticmethod(derive_key)

    @classmethod
    def create(
        cls,
        config: Settings | None = None,
        repository: CacheStore | None = None,
    ) -> "CacheService":
        """Factory method to build the whole cache graph from settings.

        Args:
            config: Settings to use. If None, uses the environment settings.
            repository: Storage backend. If None, an in-memory repository
                configured from ``config``.

        Returns:
            Configured (not yet opened) CacheService
        """
        config = config or get_settings()
        if repository is None:
            repository = InMemoryCacheRepository(
                persistence=config.persistence,
                persist_path=config.persist_path,
                persist_interval=config.persist_interval,
                default_ttl=config.cache_ttl,
            )

        return cls(
            repository=repository,
            compression=CompressionService(
                enabled=config.compression_enabled,
                min_length=config.compression_min_length,
            ),
            similarity=SimilarityService(
                enabled=config.similarity_enabled,
                threshold=config.similarity_threshold,
                ignore_case=config.similarity_ignore_case,
                normalize_text=config.similarity_normalize_text,
                memo_size=config.similarity_memo_size,
            ),
            enabled=config.cache_enabled,
            ttl=config.cache_ttl,
            cleanup_interval=config.cache_cleanup_interval,
        )

    # Lifecycle

    def open(self) -> "CacheService":
        """Open the store and start the periodic cleanup.

        Stats and the similarity memo start from zero on every open.
        """
        if self._opened:
            return self
        if not self._enabled:
            logger.info("Cache disabled")
            return self

        self._stats.reset()
        self._similarity.reset()
        self._repository.open()

        if self._cleanup_interval > 0:
            self._cleanup_task = PeriodicTask(
                self.cleanup,
                interval=self._cleanup_interval,
                name="cache-cleanup",
            )
            self._cleanup_task.start()
            logger.debug(f"Cache cleanup scheduled every {self._cleanup_interval}s")

        self._opened = True
        logger.info("Cache service opened")
        return self

    def close(self) -> None:
        """Stop the cleanup task and close the store."""
        if self._cleanup_task is not None:
            self._cleanup_task.stop()
            self._cleanup_task = None

        if self._opened:
            self._repository.close()
            self._similarity.reset()
            self._opened = False
            logger.info("Cache service closed")

    def __enter__(self) -> "CacheService":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # Main operations

    def set(
        self,
        query: str,
        response: Any,
        key: str | None = None,
        user_id: str | None = None,
        model: str | None = None,
    ) -> bool:
        """Store a query-response pair.

        Args:
            query: The query text (required, non-empty)
            response: JSON-serializable response to cache
            key: Explicit storage key. Derived from the query if omitted.
            user_id: Disambiguator for the derived key
            model: Disambiguator for the derived key

        Returns:
            True if stored, False if the cache is disabled or the query empty

        Raises:
            TypeError: If the response is not JSON-serializable
        """
        if not self._enabled or not query or not isinstance(query, str):
            return False

        key = key or derive_key(query, user_id=user_id, model=model)
        payload = {
            "query": query,
            "response": response,
            "meta": {"createdAt": self._clock(), "key": key},
        }
        value = self._compression.compress(payload)

        success = self._repository.set(key, value, self._ttl)
        self._stats.record_set()
        return success

    def get(
        self,
        query: str | None,
        key: str | None = None,
        user_id: str | None = None,
        model: str | None = None,
    ) -> Any | None:
        """Get the cached response for a query.

        Returns:
            The cached response, or None on a miss

        Raises:
            CacheDecodeError: If a stored payload cannot be decompressed
        """
        result = self.lookup(query, key=key, user_id=user_id, model=model)
        return result.response if result is not None else None

    def lookup(
        self,
        query: str | None,
        key: str | None = None,
        user_id: str | None = None,
        model: str | None = None,
    ) -> CacheLookupEntity | None:
        """Look up a query and report how it matched.

        Business logic:
        1. Explicit key given: exact lookup only
        2. Exact lookup on the key derived from query, user and model
        3. Similarity match over every live stored query
        4. Record a miss

        Args:
            query: The query text
            key: Explicit storage key
            user_id: Disambiguator for the derived key
            model: Disambiguator for the derived key

        Returns:
            CacheLookupEntity if found, None otherwise

        Raises:
            CacheDecodeError: If a stored payload cannot be decompressed
        """
        if not self._enabled:
            return None

        if key:
            result = self._lookup_exact(key)
            self._stats.record_get(hit=result is not None, exact=True)
            return result

        if not query or not isinstance(query, str):
            return None

        result = self._lookup_exact(derive_key(query, user_id=user_id, model=model))
        if result is not None:
            self._stats.record_get(hit=True, exact=True)
            return result

        if self._similarity.enabled:
            result = self._find_similar(query)
            if result is not None:
                self._stats.record_get(hit=True, exact=False, similarity=result.score)
                return result

        self._stats.record_get(hit=False)
        return None

    def remove(self, key: str) -> bool:
        result = self._repository.remove(key)
        self._stats.record_remove()
        return result

    def cleanup(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed
        """
        removed = self._repository.cleanup()
        self._stats.record_cleanup(count=removed)
        if removed:
            logger.info(f"Cache cleanup removed {removed} expired entries")
        return removed

    def clear(self) -> bool:
        result = self._repository.clear()
        self._stats.record_clear()
        return result

    def get_stats(self) -> dict:
        return self._stats.get_stats()

    def status(self) -> dict:
        """Summary for health and metrics endpoints."""
        return {
            "active": self._enabled,
            "open": self._opened,
            "ttl": self._ttl,
            "cleanup_interval": self._cleanup_interval,
            "similarity": self._similarity.get_status(),
            "compression": self._compression.get_status(),
            "store": {"size": self._repository.size()},
            "hit_rate": self._stats.hit_rate,
            "stats": self._stats.get_stats(),
        }

    # Helpers

    def _decode(self, value: Any) -> Any:
        try:
            return self._compression.decompress(value)
        except CacheDecodeError as e:
            self._stats.record_error("decompress", str(e))
            raise

    def _read_payload(self, key: str) -> dict | None:
        entry = self._repository.get(key)
        if entry is None:
            return None
        payload = self._decode(entry.value)
        return payload if isinstance(payload, dict) else None

    def _lookup_exact(self, key: str) -> CacheLookupEntity | None:
        payload = self._read_payload(key)
        if payload is None:
            return None
        return CacheLookupEntity(
            key=key,
            query=payload.get("query", ""),
            response=payload.get("response"),
            score=1.0,
            exact=True,
        )

    def _find_similar(self, query: str) -> CacheLookupEntity | None:
        # Rebuild the {key: stored query} pool from every live entry.
        pool: dict[str, str] = {}
        for key in self._repository.get_keys():
            payload = self._read_payload(key)
            if payload is not None and isinstance(payload.get("query"), str):
                pool[key] = payload["query"]

        match = self._similarity.find_best_match(query, pool)
        if match is None:
            return None

        # The entry may have expired or been removed since the scan.
        payload = self._read_payload(match.key)
        if payload is None:
            return None
        return CacheLookupEntity(
            key=match.key,
            query=payload.get("query", match.candidate_text),
            response=payload.get("response"),
            score=match.score,
            exact=False,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def repository(self) -> CacheStore:
        """Get the underlying repository (for testing)."""
        return self._repository

    @property
    def similarity(self) -> SimilarityService:
        """Get the underlying similarity matcher (for testing)."""
        return self._similarity

    @property
    def compression(self) -> CompressionService:
        """Get the underlying compression codec (for testing)."""
        return self._compression

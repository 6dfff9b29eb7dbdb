"""In-memory implementation of CacheStore.

Entries live in a dict guarded by a single re-entrant lock. When persistence
is enabled the whole map is snapshotted to a JSON file on a fixed interval
and at shutdown, and reloaded on startup.
"""

import contextlib
import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable

from response_cache.config import settings
from response_cache.entities import CacheEntryEntity
from response_cache.utils.scheduler import PeriodicTask

logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = "store.json"


def _now_ms() -> float:
    return time.time() * 1000


class InMemoryCacheRepository:
    """In-memory key/value store with TTL and JSON snapshot persistence.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Features:
        - Thread-safe operations (one lock around the map)
        - Lazy expiry on ``get`` plus explicit ``cleanup`` sweeps
        - Snapshot copied under the lock, written to disk outside it
        - Missing or corrupt snapshots start an empty cache
    """

    def __init__(
        self,
        persistence: bool | None = None,
        persist_path: str | Path | None = None,
        persist_interval: float | None = None,
        default_ttl: float | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the in-memory repository.

        Args:
            persistence: Whether to snapshot to disk. Defaults to settings.
            persist_path: Directory holding the snapshot file. Defaults to settings.
            persist_interval: Seconds between snapshots. Defaults to settings.
            default_ttl: TTL in seconds used when ``set`` gets none. Defaults to settings.
            clock: Callable returning the current time in milliseconds.
        """
        self._persistence = settings.persistence if persistence is None else persistence
        self._persist_path = Path(settings.persist_path if persist_path is None else persist_path)
        self._persist_interval = settings.persist_interval if persist_interval is None else persist_interval
        self._default_ttl = settings.cache_ttl if default_ttl is None else default_ttl
        if self._persist_interval <= 0:
            raise ValueError(f"persist_interval must be positive, got {self._persist_interval}")
        self._clock = clock or _now_ms
        self._store: dict[str, CacheEntryEntity] = {}
        self._lock = threading.RLock()
        self._persist_task: PeriodicTask | None = None

    @classmethod
    def create(
        cls,
        persistence: bool | None = None,
        persist_path: str | Path | None = None,
        persist_interval: float | None = None,
    ) -> "InMemoryCacheRepository":
        """Factory method to create InMemoryCacheRepository with defaults.

        Args:
            persistence: Snapshot to disk. If None, uses settings.
            persist_path: Snapshot directory. If None, uses settings.
            persist_interval: Seconds between snapshots. If None, uses settings.

        Returns:
            Configured InMemoryCacheRepository
        """
        return cls(
            persistence=persistence,
            persist_path=persist_path,
            persist_interval=persist_interval,
        )

    @property
    def snapshot_file(self) -> Path:
        return self._persist_path / SNAPSHOT_FILENAME

    # Lifecycle

    def open(self) -> None:
        """Load the snapshot and start the periodic persist task."""
        with self._lock:
            self._store.clear()

        if self._persistence:
            try:
                self._persist_path.mkdir(parents=True, exist_ok=True)
            except OSError:
                logger.exception(f"Cannot create cache directory {self._persist_path}")
            self._load_from_disk()
            self._persist_task = PeriodicTask(
                self.persist,
                interval=self._persist_interval,
                name="cache-persist",
            )
            self._persist_task.start()

        logger.info("Cache store opened")

    def close(self) -> None:
        """Stop the persist task, write a final snapshot and drop the entries."""
        if self._persist_task is not None:
            self._persist_task.stop()
            self._persist_task = None

        if self._persistence:
            self.persist()

        with self._lock:
            self._store.clear()
        logger.info("Cache store closed")

    # Map operations

    def set(self, key: str, value: Any, ttl: float | None = None) -> bool:
        """Insert or overwrite an entry.

        Args:
            key: The storage key
            value: The payload to store
            ttl: Time-to-live in seconds. Defaults to the store TTL.

        Returns:
            True once stored
        """
        now = self._clock()
        ttl = self._default_ttl if ttl is None else ttl
        entry = CacheEntryEntity(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + ttl * 1000,
        )
        with self._lock:
            self._store[key] = entry
        return True

    def get(self, key: str) -> CacheEntryEntity | None:
        """Get a live entry, purging it if it has expired."""
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._store[key]
                return None
            return entry

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> bool:
        with self._lock:
            self._store.clear()
        return True

    def get_keys(self) -> list[str]:
        with self._lock:
            return list(self._store)

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def cleanup(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]

        if expired:
            logger.debug(f"Cleanup removed {len(expired)} expired entries")
        return len(expired)

    # Persistence

    def persist(self) -> bool:
        """Write every current entry to the snapshot file.

        The file is fully rewritten through a temporary sibling. Failures are
        logged and reported as False; the in-memory map is untouched.

        Returns:
            True if the snapshot was written
        """
        if not self._persistence:
            return False

        with self._lock:
            data = [entry.to_dict() for entry in self._store.values()]

        target = self.snapshot_file
        tmp = target.with_name(target.name + ".tmp")
        try:
            self._persist_path.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, target)
        except (OSError, TypeError, ValueError):
            logger.exception(f"Failed to persist cache snapshot to {target}")
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            return False

        logger.debug(f"Cache snapshot written: {len(data)} entries")
        return True

    def _load_from_disk(self) -> None:
        path = self.snapshot_file
        if not path.exists():
            logger.warning(f"No cache snapshot found at {path}, starting empty")
            return

        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, list):
                raise ValueError("snapshot root is not a list")
            entries = [CacheEntryEntity.from_dict(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Cache snapshot {path} is unreadable ({e}), starting empty")
            return

        now = self._clock()
        with self._lock:
            for entry in entries:
                if not entry.is_expired(now):
                    self._store[entry.key] = entry
            loaded = len(self._store)

        logger.info(f"Cache loaded from disk ({loaded} live entries, {len(entries) - loaded} expired)")

    def get_stats(self) -> dict:
        """Get repository statistics.

        Returns:
            Dictionary with stats
        """
        with self._lock:
            keys = list(self._store)
        return {
            "size": len(keys),
            "keys": keys,
            "persistence": self._persistence,
            "persist_path": str(self._persist_path),
        }

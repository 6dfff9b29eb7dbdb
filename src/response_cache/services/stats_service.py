"""Usage counters for the cache."""

import copy
import threading
from dataclasses import asdict, dataclass, field


@dataclass
class CacheCounters:
    """Raw counters, process-lifetime only."""

    sets: int = 0
    gets: int = 0
    hits: int = 0
    misses: int = 0
    exact_hits: int = 0
    similar_hits: int = 0
    removed: int = 0
    clears: int = 0
    cleaned: int = 0
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.gets == 0:
            return 0.0
        return self.hits / self.gets


class StatsService:
    """Thread-safe counters fed by the cache service.

    Recording never has side effects beyond incrementing. ``get_stats``
    hands out a copy, never the live counters.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data = CacheCounters()

    def reset(self) -> None:
        with self._lock:
            self._data = CacheCounters()

    def record_set(self) -> None:
        with self._lock:
            self._data.sets += 1

    def record_get(self, hit: bool = False, exact: bool = False, similarity: float | None = None) -> None:
        """Record a lookup.

        Args:
            hit: Whether the lookup found a response
            exact: Whether the hit came from a key lookup
            similarity: Match score for similarity hits
        """
        with self._lock:
            self._data.gets += 1
            if not hit:
                self._data.misses += 1
                return
            self._data.hits += 1
            if exact:
                self._data.exact_hits += 1
            elif similarity is not None:
                self._data.similar_hits += 1

    def record_remove(self) -> None:
        with self._lock:
            self._data.removed += 1

    def record_clear(self) -> None:
        with self._lock:
            self._data.clears += 1

    def record_cleanup(self, count: int = 0) -> None:
        with self._lock:
            self._data.cleaned += count

    def record_error(self, scope: str, message: str) -> None:
        with self._lock:
            self._data.errors.setdefault(scope, []).append(message)

    @property
    def hit_rate(self) -> float:
        with self._lock:
            return self._data.hit_rate

    def get_stats(self) -> dict:
        """Snapshot of every counter.

        Returns:
            A new dict; mutating it does not affect the service
        """
        with self._lock:
            return copy.deepcopy(asdict(self._data))

"""Near-duplicate query matching by normalized edit distance.

Both the query and every candidate go through the same normalization, then
are scored with ``1 - levenshtein(a, b) / max(len(a), len(b))``. Pair scores
are memoized in a small FIFO map so repeated misses over a stable pool stay
cheap.
"""

import logging
import re
import threading
from collections import OrderedDict
from typing import Mapping

import numpy as np

from response_cache.config import settings
from response_cache.entities import SimilarityMatchEntity

logger = logging.getLogger(__name__)

ALGORITHM = "levenshtein"

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit insert, delete and substitute costs.

    Computed one row at a time. Deletions and substitutions are vectorized
    per row; the insertion chain ``cur[j] = min(cur[j], cur[j-1] + 1)`` is
    resolved with a running minimum over ``cur[j] - j``.
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    b_codes = np.fromiter((ord(c) for c in b), dtype=np.int64, count=len(b))
    offsets = np.arange(len(b) + 1, dtype=np.int64)
    previous = offsets.copy()
    current = np.empty_like(previous)

    for i, char in enumerate(a, start=1):
        cost = (b_codes != ord(char)).astype(np.int64)
        current[0] = i
        np.minimum(previous[1:] + 1, previous[:-1] + cost, out=current[1:])
        current = np.minimum.accumulate(current - offsets) + offsets
        previous, current = current, previous

    return int(previous[-1])


class SimilarityMemo:
    """Fixed-capacity score cache keyed by unordered string pairs.

    Evicts the oldest inserted pair once capacity is exceeded. Lookups do not
    refresh an entry's position.
    """

    def __init__(self, capacity: int = 500) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._scores: OrderedDict[tuple[str, str], float] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def pair_key(a: str, b: str) -> tuple[str, str]:
        return (a, b) if a <= b else (b, a)

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, a: str, b: str) -> float | None:
        with self._lock:
            return self._scores.get(self.pair_key(a, b))

    def put(self, a: str, b: str, score: float) -> None:
        key = self.pair_key(a, b)
        with self._lock:
            self._scores[key] = score
            if len(self._scores) > self._capacity:
                self._scores.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._scores.clear()

    def __len__(self) -> int:
        return len(self._scores)

    def __contains__(self, pair: tuple[str, str]) -> bool:
        return self.pair_key(*pair) in self._scores


class SimilarityService:
    """Finds the cached query closest to a new one.

    Example:
        ```python
        matcher = SimilarityService(threshold=0.5)
        match = matcher.find_best_match("Hello World!", {"a": "hello world", "b": "goodbye"})
        # SimilarityMatchEntity(key="a", candidate_text="hello world", score=1.0)
        ```
    """

    def __init__(
        self,
        enabled: bool | None = None,
        threshold: float | None = None,
        ignore_case: bool | None = None,
        normalize_text: bool | None = None,
        use_memo: bool = True,
        memo_size: int | None = None,
    ) -> None:
        """Initialize the similarity service.

        Args:
            enabled: Whether matching is performed at all. Defaults to settings.
            threshold: Score a candidate must strictly exceed. Defaults to settings.
            ignore_case: Lower-case before comparing. Defaults to settings.
            normalize_text: Strip punctuation and collapse whitespace. Defaults to settings.
            use_memo: Memoize pair scores.
            memo_size: Memo capacity. Defaults to settings.
        """
        self._enabled = settings.similarity_enabled if enabled is None else enabled
        self._threshold = settings.similarity_threshold if threshold is None else threshold
        self._ignore_case = settings.similarity_ignore_case if ignore_case is None else ignore_case
        self._normalize_text = (
            settings.similarity_normalize_text if normalize_text is None else normalize_text
        )
        self._use_memo = use_memo
        self._memo = SimilarityMemo(settings.similarity_memo_size if memo_size is None else memo_size)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def memo(self) -> SimilarityMemo:
        return self._memo

    def set_threshold(self, threshold: float) -> None:
        """Update the similarity threshold.

        Args:
            threshold: New threshold value (0-1, higher = more strict)
        """
        if not 0 <= threshold <= 1:
            raise ValueError("Threshold must be between 0 and 1")
        self._threshold = threshold

    def normalize(self, text: str | None) -> str:
        if not text:
            return ""
        out = text.lower() if self._ignore_case else text
        if self._normalize_text:
            out = _WHITESPACE.sub(" ", _NON_WORD.sub("", out)).strip()
        return out

    def similarity(self, a: str, b: str) -> float:
        """Score two already-normalized strings in [0, 1]."""
        if not a or not b:
            return 0.0
        if a == b:
            return 1.0

        if self._use_memo:
            cached = self._memo.get(a, b)
            if cached is not None:
                return cached

        score = 1 - levenshtein(a, b) / max(len(a), len(b))

        if self._use_memo:
            self._memo.put(a, b, score)
        return score

    def find_best_match(
        self,
        query: str,
        pool: Mapping[str, str],
        threshold: float | None = None,
    ) -> SimilarityMatchEntity | None:
        """Find the candidate most similar to ``query``.

        Args:
            query: The incoming query text
            pool: Mapping of identifier to candidate text, scanned in order
            threshold: Override the configured threshold

        Returns:
            The first candidate with the highest score strictly above the
            threshold, or None
        """
        if not self._enabled or not query:
            return None

        threshold = self._threshold if threshold is None else threshold
        normalized = self.normalize(query)
        best: SimilarityMatchEntity | None = None

        for key, candidate in pool.items():
            score = self.similarity(normalized, self.normalize(candidate))
            if score > threshold and (best is None or score > best.score):
                best = SimilarityMatchEntity(key=key, candidate_text=candidate, score=score)

        if best is not None:
            logger.debug(f"Similarity match {best.key} (score={best.score:.3f}) over {len(pool)} candidates")
        return best

    def reset(self) -> None:
        """Drop memoized scores."""
        self._memo.clear()

    def get_status(self) -> dict:
        return {
            "enabled": self._enabled,
            "algorithm": ALGORITHM,
            "threshold": self._threshold,
            "memo_size": len(self._memo),
            "memo_capacity": self._memo.capacity,
        }

"""Match domain entities."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SimilarityMatchEntity:
    """Best candidate returned by the similarity matcher.

    Attributes:
        key: Identifier of the candidate in the pool
        candidate_text: The candidate text as given (not normalized)
        score: Similarity score in [0, 1]
    """

    key: str
    candidate_text: str
    score: float


@dataclass(frozen=True)
class CacheLookupEntity:
    """Result of a successful cache lookup.

    Attributes:
        key: Storage key of the entry that answered
        query: The query stored with the entry
        response: The cached response
        score: 1.0 for exact lookups, similarity score otherwise
        exact: Whether the entry was found by key
    """

    key: str
    query: str
    response: Any
    score: float
    exact: bool

"""
Shared fixtures for the response cache tests.
"""

import pytest

from response_cache.repositories import InMemoryCacheRepository
from response_cache.services import CacheService, CompressionService, SimilarityService


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    """A controllable millisecond clock."""
    return FakeClock()


@pytest.fixture
def repository(clock):
    """An in-memory repository without persistence."""
    repo = InMemoryCacheRepository(persistence=False, default_ttl=60, clock=clock)
    repo.open()
    yield repo
    repo.close()


@pytest.fixture
def cache(repository, clock):
    """An opened cache service with deterministic settings."""
    service = CacheService(
        repository=repository,
        compression=CompressionService(enabled=True, min_length=500),
        similarity=SimilarityService(enabled=True, threshold=0.8, ignore_case=True, normalize_text=True),
        enabled=True,
        ttl=60,
        cleanup_interval=0,
        clock=clock,
    )
    service.open()
    yield service
    service.close()

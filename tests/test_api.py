"""
Tests for the response cache API.
"""

import asyncio
import threading

import pytest
from fastapi.testclient import TestClient

from response_cache.api import dependencies
from response_cache.api.app import app
from response_cache.dto import GetCacheRequest
from response_cache.handlers import CacheHandler
from response_cache.repositories import InMemoryCacheRepository
from response_cache.services import CacheService, CompressionService, SimilarityService


@pytest.fixture
def client(monkeypatch):
    """Create a test client backed by a non-persistent cache."""

    def build_cache_service() -> CacheService:
        return CacheService(
            repository=InMemoryCacheRepository(persistence=False),
            compression=CompressionService(enabled=True, min_length=500),
            similarity=SimilarityService(enabled=True, threshold=0.8, ignore_case=True, normalize_text=True),
            enabled=True,
            ttl=60,
            cleanup_interval=0,
        )

    monkeypatch.setattr(dependencies, "build_cache_service", build_cache_service)
    with TestClient(app) as test_client:
        yield test_client


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Response Cache API"


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["entries"] == 0


def test_set_and_get(client):
    """Store a response and read it back by query."""
    response = client.post(
        "/cache/set",
        json={"query": "What time is it?", "response": {"text": "noon"}, "user_id": "u1"},
    )
    assert response.status_code == 200
    stored = response.json()
    assert stored["success"] is True
    assert stored["key"].startswith("cache:")

    response = client.post("/cache/get", json={"query": "what time is it?", "user_id": "u1"})
    assert response.status_code == 200
    data = response.json()
    assert data["hit"] is True
    assert data["exact"] is True
    assert data["score"] == 1.0
    assert data["key"] == stored["key"]
    assert data["response"] == {"text": "noon"}


def test_similar_query_hits(client):
    client.post("/cache/set", json={"query": "How do I reset my password?", "response": "Use the link."})

    data = client.post("/cache/get", json={"query": "How can I reset my password"}).json()
    assert data["hit"] is True
    assert data["exact"] is False
    assert 0.8 < data["score"] < 1.0
    assert data["response"] == "Use the link."


def test_miss(client):
    data = client.post("/cache/get", json={"query": "Anything cached?"}).json()
    assert data["hit"] is False
    assert data["response"] is None
    assert data["lookup_time_ms"] >= 0


def test_get_by_key(client):
    client.post("/cache/set", json={"query": "q", "response": "r", "key": "my-key"})

    data = client.post("/cache/get", json={"key": "my-key"}).json()
    assert data["hit"] is True
    assert data["response"] == "r"


def test_get_requires_query_or_key(client):
    response = client.post("/cache/get", json={})
    assert response.status_code == 400


def test_set_validates_body(client):
    response = client.post("/cache/set", json={"query": "", "response": "r"})
    assert response.status_code == 422


def test_corrupted_entry_returns_500(client):
    service = client.app.state.cache_service
    service.repository.set("bad", {"compressed": True, "data": "%%%"}, ttl=60)

    response = client.post("/cache/get", json={"key": "bad"})
    assert response.status_code == 500
    assert "decode" in response.json()["detail"]


def test_remove_and_clear(client):
    key = client.post("/cache/set", json={"query": "q1", "response": "r1"}).json()["key"]
    client.post("/cache/set", json={"query": "q2", "response": "r2"})

    assert client.delete(f"/cache/{key}").status_code == 200
    assert client.delete(f"/cache/{key}").status_code == 404

    response = client.delete("/cache")
    assert response.status_code == 200
    assert client.get("/health").json()["entries"] == 0


def test_cleanup(client):
    response = client.post("/cache/cleanup")
    assert response.status_code == 200
    assert response.json() == {"removed": 0}


def test_stats_and_status(client):
    client.post("/cache/set", json={"query": "q", "response": "r"})
    client.post("/cache/get", json={"query": "q"})
    client.post("/cache/get", json={"query": "something else entirely"})

    stats = client.get("/stats").json()
    assert stats["sets"] == 1
    assert stats["gets"] == 2
    assert stats["hits"] == 1
    assert stats["misses"] == 1

    status = client.get("/status").json()
    assert status["active"] is True
    assert status["similarity"]["algorithm"] == "levenshtein"
    assert status["store"]["size"] == 1


def test_handler_runs_lookups_off_the_event_loop():
    service = CacheService(repository=InMemoryCacheRepository(persistence=False), cleanup_interval=0).open()
    threads = []
    lookup = service.lookup

    def recording_lookup(*args, **kwargs):
        threads.append(threading.get_ident())
        return lookup(*args, **kwargs)

    service.lookup = recording_lookup
    handler = CacheHandler(cache_service=service)

    result = asyncio.run(handler.get_cached(GetCacheRequest(query="What time is it?")))

    assert result.hit is False
    assert len(threads) == 1
    assert threads[0] != threading.get_ident()
    service.close()

"""
Tests for the cache service (facade over store, codec, matcher and stats).
"""

import time

import pytest

from response_cache.config import Settings
from response_cache.repositories import InMemoryCacheRepository
from response_cache.services import CacheDecodeError, CacheService, CompressionService, SimilarityService, derive_key


def test_derive_key_is_deterministic():
    first = derive_key("What time is it?", user_id="u1", model="m1")
    second = derive_key("What time is it?", user_id="u1", model="m1")

    assert first == second
    assert first.startswith("cache:")
    assert len(first) == len("cache:") + 64


def test_derive_key_disambiguators():
    base = derive_key("What time is it?", user_id="u1", model="m1")

    assert derive_key("What time is it?", user_id="u2", model="m1") != base
    assert derive_key("What time is it?", user_id="u1", model="m2") != base
    assert derive_key("What date is it?", user_id="u1", model="m1") != base
    # case and surrounding whitespace are normalized
    assert derive_key("  what TIME is it?  ", user_id="u1", model="m1") == base
    assert CacheService.derive_key("What time is it?", user_id="u1", model="m1") == base


def test_set_then_get_exact(cache):
    assert cache.set("What time is it?", "It is noon.", user_id="u1") is True

    result = cache.lookup("what time is it?", user_id="u1")
    assert result.exact is True
    assert result.score == 1.0
    assert result.response == "It is noon."
    assert result.key == derive_key("What time is it?", user_id="u1")


def test_get_with_explicit_key(cache):
    cache.set("Some query", {"answer": 42}, key="custom-key")

    assert cache.get(None, key="custom-key") == {"answer": 42}
    assert cache.repository.get_keys() == ["custom-key"]


def test_explicit_key_miss_does_not_fall_back_to_similarity(cache):
    cache.set("What is the capital of France?", "Paris")

    assert cache.get("What is the capital of France?", key="missing") is None
    assert cache.get_stats()["misses"] == 1


def test_similarity_fallback(cache):
    cache.set("What is the capital of France?", "Paris", user_id="u1")

    result = cache.lookup("What's the capital of France??", user_id="someone-else")
    assert result is not None
    assert result.exact is False
    assert result.response == "Paris"
    assert result.query == "What is the capital of France?"
    assert 0.8 < result.score <= 1.0

    stats = cache.get_stats()
    assert stats["similar_hits"] == 1


def test_dissimilar_query_misses(cache):
    cache.set("What is the capital of France?", "Paris")

    assert cache.get("How do I bake bread?") is None
    assert cache.get_stats()["misses"] == 1


def test_similarity_disabled_only_exact(repository, clock):
    service = CacheService(
        repository=repository,
        similarity=SimilarityService(enabled=False),
        enabled=True,
        ttl=60,
        cleanup_interval=0,
        clock=clock,
    )
    service.open()
    service.set("What is the capital of France?", "Paris")

    assert service.get("What is the capital of France") is None
    assert service.get("what is the capital of france?") == "Paris"
    service.close()


def test_large_responses_are_compressed_transparently(cache):
    response = {"text": "A long answer. " * 100}
    cache.set("Explain it at length", response)

    key = cache.repository.get_keys()[0]
    stored = cache.repository.get(key).value
    assert stored["compressed"] is True
    assert cache.get("Explain it at length") == response

    # compressed entries still take part in similarity matching
    assert cache.get("Explain it at length!", user_id="other") == response


def test_payload_layout(cache, clock):
    cache.set("hi", "hello", key="k")
    payload = cache.repository.get("k").value

    assert payload == {"query": "hi", "response": "hello", "meta": {"createdAt": clock.now, "key": "k"}}


def test_corrupted_entry_raises_and_is_recorded(cache):
    bad = {"compressed": True, "encoding": "gzip", "data": "not base64!!"}
    cache.repository.set("bad", bad, ttl=60)

    with pytest.raises(CacheDecodeError):
        cache.get(None, key="bad")

    assert "decompress" in cache.get_stats()["errors"]
    assert cache.repository.get("bad").value == bad


def test_corrupted_entry_surfaces_during_similarity_scan(cache):
    cache.set("hello there", "hi")
    cache.repository.set("bad", {"compressed": True, "data": "%%%"}, ttl=60)

    with pytest.raises(CacheDecodeError):
        cache.get("hello there!", user_id="other")


def test_invalid_input_is_a_noop(cache):
    assert cache.set("", "response") is False
    assert cache.set(None, "response") is False
    assert cache.get("") is None
    assert cache.get(None) is None

    stats = cache.get_stats()
    assert stats["sets"] == 0
    assert stats["gets"] == 0


def test_ttl_through_service(cache, clock):
    cache.set("What time is it?", "noon")

    clock.advance(60_000 - 1)
    assert cache.get("What time is it?") == "noon"

    clock.advance(2)
    assert cache.get("What time is it?") is None
    assert cache.get("What time is it", user_id="x") is None


def test_expired_entries_are_not_similarity_candidates(cache, clock):
    cache.set("What is the capital of France?", "Paris")
    clock.advance(61_000)

    assert cache.get("What is the capital of France", user_id="other") is None
    assert cache.repository.size() == 0


def test_remove_clear_cleanup(cache, clock):
    cache.set("a question", "a", key="a")
    cache.set("b question", "b", key="b")

    assert cache.remove("a") is True
    assert cache.remove("a") is False
    assert cache.clear() is True
    assert cache.repository.size() == 0

    cache.set("c question", "c", key="c")
    clock.advance(61_000)
    cache.set("d question", "d", key="d")
    assert cache.cleanup() == 1

    stats = cache.get_stats()
    assert stats["removed"] == 2
    assert stats["clears"] == 1
    assert stats["cleaned"] == 1


def test_stats_accuracy(cache):
    queries = [f"question number {i} about topic {i * 7}" for i in range(5)]
    for i, query in enumerate(queries):
        cache.set(query, i)

    hits = 0
    lookups = queries[:3] + ["completely unrelated", "nothing like the others at all"]
    for query in lookups:
        if cache.get(query) is not None:
            hits += 1

    stats = cache.get_stats()
    assert stats["sets"] == 5
    assert stats["gets"] == len(lookups)
    assert stats["hits"] == hits == 3
    assert stats["misses"] == len(lookups) - hits


def test_disabled_cache(repository):
    service = CacheService(repository=repository, enabled=False, cleanup_interval=0)
    service.open()

    assert service.set("q", "r") is False
    assert service.get("q") is None
    assert service.get_stats()["gets"] == 0
    assert service.status()["active"] is False
    service.close()


def test_status(cache):
    cache.set("q", "r")
    cache.get("q")
    status = cache.status()

    assert status["active"] is True
    assert status["open"] is True
    assert status["store"]["size"] == 1
    assert status["similarity"]["algorithm"] == "levenshtein"
    assert status["compression"]["encoding"] == "gzip"
    assert status["hit_rate"] == 1.0
    assert status["stats"]["hits"] == 1


def test_open_resets_stats(cache):
    cache.set("q", "r")
    cache.close()
    cache.open()
    assert cache.get_stats()["sets"] == 0


def test_background_cleanup(clock):
    repository = InMemoryCacheRepository(persistence=False, clock=clock)
    service = CacheService(repository=repository, enabled=True, ttl=1, cleanup_interval=0.01, clock=clock)

    with service:
        service.set("q", "r")
        clock.advance(5_000)

        deadline = time.time() + 5
        while service.get_stats()["cleaned"] < 1 and time.time() < deadline:
            time.sleep(0.01)

        assert repository.size() == 0
        assert service.get_stats()["cleaned"] == 1


def test_create_from_settings(tmp_path):
    config = Settings(
        persistence=True,
        persist_path=str(tmp_path),
        similarity_threshold=0.6,
        compression_min_length=10,
        cache_cleanup_interval=0,
    )
    service = CacheService.create(config)

    with service:
        service.set("persisted question", "answer " * 10)
        assert service.similarity.threshold == 0.6
        assert service.compression.min_length == 10

    reopened = CacheService.create(config)
    with reopened:
        assert reopened.get("persisted question") == "answer " * 10


def test_non_json_response_is_rejected_without_compression(tmp_path, clock):
    repository = InMemoryCacheRepository(
        persistence=True,
        persist_path=tmp_path,
        persist_interval=3600,
        clock=clock,
    )
    service = CacheService(
        repository=repository,
        compression=CompressionService(enabled=False),
        ttl=60,
        cleanup_interval=0,
        clock=clock,
    )
    service.open()

    service.set("good question", "answer")
    with pytest.raises(TypeError):
        service.set("bad question", {1, 2, 3})

    assert repository.size() == 1
    assert service.get_stats()["sets"] == 1
    assert repository.persist() is True
    service.close()


def test_explicit_zero_ttl_is_kept(repository, clock):
    service = CacheService(repository=repository, ttl=0, cleanup_interval=0, clock=clock)
    service.open()

    service.set("q", "r")
    assert service.status()["ttl"] == 0
    assert service.get("q", key=derive_key("q")) is None
    service.close()

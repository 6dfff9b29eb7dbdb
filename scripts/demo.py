#!/usr/bin/env python3
"""
Demo script for the response cache.

This script demonstrates exact and near-duplicate lookups, compression of
long responses, threshold tuning and snapshot persistence.
"""

import tempfile
import time

from response_cache.repositories import InMemoryCacheRepository
from response_cache.services import CacheService, SimilarityService


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def make_cache(persist_path: str | None = None, threshold: float = 0.8) -> CacheService:
    """Build an opened cache that does not touch ./cache."""
    repository = InMemoryCacheRepository(
        persistence=persist_path is not None,
        persist_path=persist_path,
    )
    cache = CacheService(
        repository=repository,
        similarity=SimilarityService(threshold=threshold),
        cleanup_interval=0,
    )
    return cache.open()


def demo_basic_cache() -> None:
    """Demonstrate basic cache operations."""
    print_section("Basic Cache Operations")

    cache = make_cache()

    qa_pairs = [
        ("What is a semantic cache?", "A cache that reuses answers for similar questions."),
        ("How does edit distance work?", "It counts the insertions, deletions and substitutions between two strings."),
        ("Why compress cached responses?", "Long responses take less memory and disk once gzipped."),
    ]

    print("\n📝 Storing sample Q&A pairs...")
    for query, response in qa_pairs:
        cache.set(query, response)
        print(f"  ✓ Stored: {query}")

    print("\n🔍 Testing lookups:")
    test_queries = [
        "What is a semantic cache?",  # exact
        "what is a semantic cache",  # identical after normalization
        "What is the semantic cache?",  # near duplicate
        "How do I deploy to production?",  # miss
    ]

    for query in test_queries:
        start = time.time()
        result = cache.lookup(query)
        duration = (time.time() - start) * 1000
        print(f"\n  Query: {query}")
        if result is None:
            print(f"  ✗ Cache miss ({duration:.2f}ms)")
        else:
            kind = "exact" if result.exact else "similar"
            print(f"  ✓ CACHE HIT ({kind}, score={result.score:.3f}, {duration:.2f}ms)")
            print(f"  Response: {result.response}")

    print(f"\n📊 Stats: {cache.get_stats()}")
    cache.close()


def demo_compression() -> None:
    """Demonstrate transparent compression."""
    print_section("Compression")

    cache = make_cache()
    long_response = "Caching avoids repeated model calls. " * 50
    cache.set("Tell me about caching", long_response)

    key = cache.repository.get_keys()[0]
    stored = cache.repository.get(key).value
    print(f"\n  Stored compressed: {cache.compression.is_compressed(stored)}")
    print(f"  Original length: {stored['originalLength']}, stored length: {len(stored['data'])}")
    print(f"  Round trip intact: {cache.get('Tell me about caching') == long_response}")
    cache.close()


def demo_threshold_tuning() -> None:
    """Demonstrate threshold tuning."""
    print_section("Threshold Tuning")

    stored = "How do I reset my password?"
    probes = [
        "How do I reset my password",
        "How can I reset my password?",
        "How do I change my password?",
        "Where is my invoice?",
    ]

    print(f"\n  Stored: {stored}")
    print(f"\n{'Threshold':<12} {'Hits':<8} Matched")
    print("-" * 60)

    for threshold in [0.6, 0.7, 0.8, 0.9]:
        cache = make_cache(threshold=threshold)
        cache.set(stored, "Use the 'Forgot password' link.")
        hits = [probe for probe in probes if cache.get(probe, user_id="other") is not None]
        print(f"{threshold:<12.2f} {len(hits):<8} {hits}")
        cache.close()


def demo_persistence() -> None:
    """Demonstrate snapshot persistence across restarts."""
    print_section("Persistence")

    with tempfile.TemporaryDirectory() as tmp:
        cache = make_cache(persist_path=tmp)
        cache.set("What is the capital of Italy?", "Rome")
        cache.close()
        print(f"\n  Snapshot written to {tmp}/store.json")

        cache = make_cache(persist_path=tmp)
        print(f"  After restart: {cache.get('What is the capital of Italy?')}")
        cache.close()


def main() -> None:
    """Run all demos."""
    print("\n🚀 Response Cache Demo")
    print("=" * 70)

    demo_basic_cache()
    demo_compression()
    demo_threshold_tuning()
    demo_persistence()

    print("\n" + "=" * 70)
    print("✅ Demo completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()

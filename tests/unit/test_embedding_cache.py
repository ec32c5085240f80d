"""
Test suite for the query embedding cache.

Tests key normalization, LRU eviction, TTL and TTI expiry with a fake
clock, counters, and single-flight get_or_compute.

System role: Verification of the query-path cache
"""

import asyncio

import pytest

from semantic_kb.configs.cache import CacheSettings
from semantic_kb.core.search.embedding_cache import EmbeddingCache, normalize_key


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestNormalizeKey:
    """Test suite for normalize_key()."""

    def test_should_trim_lowercase_and_collapse_whitespace(self) -> None:
        assert normalize_key("  How   To\tInstall \n") == "how to install"


class TestEmbeddingCacheEviction:
    """Test suite for capacity-bound LRU eviction."""

    def test_least_recently_used_entry_should_be_evicted(self, clock: FakeClock) -> None:
        # Arrange
        cache = EmbeddingCache(max_capacity=2, clock=clock)
        cache.insert("alpha", [1.0])
        cache.insert("beta", [2.0])
        cache.get("alpha")

        # Act
        cache.insert("gamma", [3.0])

        # Assert
        assert cache.get("beta") is None
        assert cache.get("alpha") == [1.0]
        assert cache.get("gamma") == [3.0]
        assert cache.stats().evictions == 1

    def test_reinserting_key_should_not_evict(self, clock: FakeClock) -> None:
        cache = EmbeddingCache(max_capacity=2, clock=clock)
        cache.insert("alpha", [1.0])
        cache.insert("beta", [2.0])

        cache.insert("ALPHA", [9.0])

        assert len(cache) == 2
        assert cache.get("alpha") == [9.0]

    def test_keys_differing_in_case_and_spacing_should_share_entry(self, clock: FakeClock) -> None:
        cache = EmbeddingCache(clock=clock)

        cache.insert("  Install   Guide ", [0.5, 0.5])

        assert cache.get("install guide") == [0.5, 0.5]


class TestEmbeddingCacheExpiry:
    """Test suite for time-to-live and time-to-idle expiry."""

    def test_entry_should_expire_after_time_to_live(self, clock: FakeClock) -> None:
        # Arrange
        cache = EmbeddingCache(time_to_live=10, time_to_idle=100, clock=clock)
        cache.insert("query", [1.0])

        # Act / Assert
        clock.advance(9)
        assert cache.get("query") == [1.0]
        clock.advance(1)
        assert cache.get("query") is None

    def test_access_should_extend_idle_lifetime(self, clock: FakeClock) -> None:
        # Arrange
        cache = EmbeddingCache(time_to_live=100, time_to_idle=5, clock=clock)
        cache.insert("query", [1.0])

        # Act / Assert
        clock.advance(4)
        assert cache.get("query") == [1.0]
        clock.advance(4)
        assert cache.get("query") == [1.0]
        clock.advance(6)
        assert cache.get("query") is None

    def test_run_pending_tasks_should_purge_expired_entries(self, clock: FakeClock) -> None:
        cache = EmbeddingCache(time_to_live=10, time_to_idle=10, clock=clock)
        cache.insert("old", [1.0])
        clock.advance(5)
        cache.insert("new", [2.0])
        clock.advance(6)

        removed = cache.run_pending_tasks()

        assert removed == 1
        assert cache.entry_count == 1

    def test_insert_at_capacity_should_prefer_purging_expired(self, clock: FakeClock) -> None:
        # Arrange
        cache = EmbeddingCache(max_capacity=2, time_to_live=10, time_to_idle=10, clock=clock)
        cache.insert("stale", [1.0])
        clock.advance(8)
        cache.insert("fresh", [2.0])
        clock.advance(3)

        # Act
        cache.insert("newest", [3.0])

        # Assert
        assert cache.get("fresh") == [2.0]
        assert cache.stats().evictions == 0


class TestEmbeddingCacheStats:
    """Test suite for counters and invalidation."""

    def test_stats_should_count_hits_and_misses(self, clock: FakeClock) -> None:
        # Arrange
        cache = EmbeddingCache(clock=clock)
        cache.insert("query", [1.0, 2.0, 3.0])

        # Act
        cache.get("query")
        cache.get("query")
        cache.get("missing")
        stats = cache.stats()

        # Assert
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.entry_count == 1
        assert stats.weighted_size == 3
        assert stats.hit_rate == pytest.approx(2 / 3)

    def test_invalidate_and_clear(self, clock: FakeClock) -> None:
        cache = EmbeddingCache(clock=clock)
        cache.insert("one", [1.0])
        cache.insert("two", [2.0])

        assert cache.invalidate("ONE") is True
        assert cache.invalidate("one") is False
        cache.clear()
        assert len(cache) == 0

    def test_from_settings_should_apply_limits(self) -> None:
        settings = CacheSettings(
            max_capacity=7, time_to_live_seconds=60, time_to_idle_seconds=30
        )

        cache = EmbeddingCache.from_settings(settings)

        assert cache.max_capacity == 7
        assert cache.time_to_live == 60
        assert cache.time_to_idle == 30

    def test_invalid_limits_should_raise(self) -> None:
        with pytest.raises(ValueError):
            EmbeddingCache(max_capacity=0)
        with pytest.raises(ValueError):
            EmbeddingCache(time_to_live=0)


class TestGetOrCompute:
    """Test suite for EmbeddingCache.get_or_compute()."""

    @pytest.mark.asyncio
    async def test_miss_should_compute_with_normalized_key_and_cache(self) -> None:
        # Arrange
        cache = EmbeddingCache()
        seen: list[str] = []

        async def compute(key: str) -> list[float]:
            seen.append(key)
            return [0.1, 0.2]

        # Act
        first = await cache.get_or_compute("  Hello World ", compute)
        second = await cache.get_or_compute("hello world", compute)

        # Assert
        assert first == second == [0.1, 0.2]
        assert seen == ["hello world"]

    @pytest.mark.asyncio
    async def test_concurrent_callers_should_share_one_computation(self) -> None:
        # Arrange
        cache = EmbeddingCache()
        release = asyncio.Event()
        calls = 0

        async def compute(key: str) -> list[float]:
            nonlocal calls
            calls += 1
            await release.wait()
            return [1.0, 2.0]

        # Act
        first = asyncio.create_task(cache.get_or_compute("Query", compute))
        second = asyncio.create_task(cache.get_or_compute("  query ", compute))
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(first, second)

        # Assert
        assert results == [[1.0, 2.0], [1.0, 2.0]]
        assert calls == 1

    @pytest.mark.asyncio
    async def test_cancelled_owner_should_hand_computation_to_waiter(self) -> None:
        # Arrange
        cache = EmbeddingCache()
        started = asyncio.Event()
        calls = 0

        async def compute(key: str) -> list[float]:
            nonlocal calls
            calls += 1
            if calls == 1:
                started.set()
                await asyncio.sleep(60)
            return [1.0, 2.0]

        owner = asyncio.create_task(cache.get_or_compute("query", compute))
        await started.wait()
        waiter = asyncio.create_task(cache.get_or_compute("Query", compute))
        await asyncio.sleep(0)

        # Act
        owner.cancel()
        result = await waiter

        # Assert
        assert result == [1.0, 2.0]
        assert owner.cancelled()
        assert calls == 2
        assert cache.get("query") == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_failed_computation_should_not_be_cached(self) -> None:
        # Arrange
        cache = EmbeddingCache()
        attempts = 0

        async def flaky(key: str) -> list[float]:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise RuntimeError("backend down")
            return [3.0]

        # Act / Assert
        with pytest.raises(RuntimeError):
            await cache.get_or_compute("query", flaky)
        assert cache.entry_count == 0
        assert await cache.get_or_compute("query", flaky) == [3.0]
        assert attempts == 2

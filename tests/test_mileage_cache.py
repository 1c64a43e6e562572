"""
Tests for the distance cache.

Time is driven by a fake clock so expiry is deterministic.
"""

import asyncio

import pytest

from bookd.services.mileage import DistanceCache, cache_key


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return DistanceCache(ttl_seconds=60, max_entries=3, clock=clock)


class TestCacheKey:
    """Tests for cache keys."""

    def test_key_is_ordered_pair(self):
        """Test keys keep direction and raw text."""
        assert cache_key("A", "B") == "A|B"
        assert cache_key("A", "B") != cache_key("B", "A")


class TestDistanceCache:
    """Tests for get / set / expiry."""

    def test_get_missing(self, cache):
        """Test an unknown pair is a miss."""
        assert cache.get("A", "B") is None

    def test_set_then_get(self, cache, clock):
        """Test a stored distance is returned and its hits counted."""
        cache.set("A", "B", 12.3)
        entry = cache.get("A", "B")
        assert entry.distance == 12.3
        assert entry.expires == clock.now + 60
        assert entry.hits == 1

    def test_reverse_direction_is_separate(self, cache):
        """Test B->A does not hit an A->B entry."""
        cache.set("A", "B", 12.3)
        assert cache.get("B", "A") is None

    def test_expired_entry_is_pruned_on_read(self, cache, clock):
        """Test reading an expired entry removes it."""
        cache.set("A", "B", 12.3)
        clock.advance(61)
        assert cache.get("A", "B") is None
        assert "A|B" not in cache

    def test_custom_ttl(self, cache, clock):
        """Test a per-entry TTL overrides the default."""
        cache.set("A", "B", 1.0, ttl_seconds=5)
        clock.advance(6)
        assert cache.get("A", "B") is None

    def test_overwrite_keeps_single_entry(self, cache):
        """Test setting an existing key replaces it."""
        cache.set("A", "B", 1.0)
        cache.set("A", "B", 2.0)
        assert len(cache) == 1
        assert cache.get("A", "B").distance == 2.0


class TestSweep:
    """Tests for removing expired entries."""

    def test_sweep_removes_only_expired(self, cache, clock):
        """Test sweep drops entries whose expiry has passed."""
        cache.set("A", "B", 1.0)
        clock.advance(30)
        cache.set("C", "D", 2.0)
        clock.advance(31)

        assert cache.sweep() == 1
        assert "A|B" not in cache
        assert "C|D" in cache

    def test_sweep_empty(self, cache):
        """Test sweeping an empty cache removes nothing."""
        assert cache.sweep() == 0

    def test_clear(self, cache):
        """Test clear empties the cache."""
        cache.set("A", "B", 1.0)
        cache.clear()
        assert len(cache) == 0


class TestEviction:
    """Tests for capacity and least-recently-used eviction."""

    def test_evicts_least_recently_used(self, cache, clock):
        """Test the entry read longest ago is evicted at capacity."""
        cache.set("A", "B", 1.0)
        clock.advance(1)
        cache.set("C", "D", 2.0)
        clock.advance(1)
        cache.set("E", "F", 3.0)
        clock.advance(1)
        cache.get("A", "B")
        clock.advance(1)

        cache.set("G", "H", 4.0)

        assert len(cache) == 3
        assert "C|D" not in cache
        assert "A|B" in cache

    def test_overwrite_at_capacity_does_not_evict(self, cache):
        """Test updating an existing key never evicts another."""
        cache.set("A", "B", 1.0)
        cache.set("C", "D", 2.0)
        cache.set("E", "F", 3.0)
        cache.set("A", "B", 9.0)
        assert len(cache) == 3

    def test_stats(self, cache):
        """Test stats report size and hit counts."""
        cache.set("A", "B", 1.0)
        cache.get("A", "B")
        cache.get("A", "B")
        stats = cache.stats()
        assert stats["entries"] == 1
        assert stats["max_entries"] == 3
        assert stats["utilization"] == 33
        assert stats["total_hits"] == 2
        assert stats["average_hits"] == 2


class TestSweeper:
    """Tests for the background sweep task."""

    @pytest.mark.asyncio
    async def test_background_sweep_runs(self, clock):
        """Test the sweeper removes expired entries and reports them."""
        calls = []

        async def on_sweep(removed, remaining):
            calls.append((removed, remaining))

        cache = DistanceCache(
            ttl_seconds=60,
            sweep_interval_seconds=0.01,
            clock=clock,
            on_sweep=on_sweep,
        )
        cache.set("A", "B", 1.0)
        clock.advance(120)

        cache.start()
        assert cache.is_sweeping
        await asyncio.sleep(0.1)
        await cache.stop()

        assert not cache.is_sweeping
        assert len(cache) == 0
        assert (1, 0) in calls

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_sweeping(self, clock):
        """Test a callback error does not kill the sweeper."""
        calls = []

        async def on_sweep(removed, remaining):
            calls.append(removed)
            raise RuntimeError("audit down")

        cache = DistanceCache(sweep_interval_seconds=0.01, clock=clock, on_sweep=on_sweep)
        cache.start()
        await asyncio.sleep(0.1)
        assert cache.is_sweeping
        await cache.stop()
        assert len(calls) > 1

    @pytest.mark.asyncio
    async def test_start_twice_and_stop_without_start(self, clock):
        """Test start is idempotent and stop is safe when idle."""
        cache = DistanceCache(clock=clock)
        await cache.stop()

        cache.start()
        task = cache._sweeper
        cache.start()
        assert cache._sweeper is task
        await cache.stop()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

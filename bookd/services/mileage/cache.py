"""
Distance Cache

Process-lifetime cache of measured distances, keyed by the literal
"origin|destination" pair. Order matters and addresses are not
normalized: "A|B" and "B|A" are different entries.

Expired entries are removed two ways:
1. Lazily, when a read finds them expired
2. By a periodic sweep running as an asyncio task

DESIGN DECISION: The cache owns its sweeper task. Nothing starts at
import time - call start() / stop() explicitly. No lock is needed: all
access happens on one event loop.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

from bookd.models.mileage import CacheEntry


DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60
DEFAULT_MAX_ENTRIES = 5000

logger = structlog.get_logger(__name__)


def cache_key(origin: str, destination: str) -> str:
    return f"{origin}|{destination}"


class DistanceCache:
    """
    TTL cache with least-recently-used eviction at capacity.

    Args:
        ttl_seconds: Default lifetime of an entry
        max_entries: Capacity before the least recently used entry is evicted
        sweep_interval_seconds: Period of the background sweep
        clock: Returns current time in epoch seconds (injectable for tests)
        on_sweep: Optional async callback receiving (removed, remaining)
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
        on_sweep: Optional[Callable[[int, int], Awaitable[None]]] = None,
    ):
        self._entries: dict[str, CacheEntry] = {}
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._on_sweep = on_sweep
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def get(self, origin: str, destination: str) -> Optional[CacheEntry]:
        """Return the unexpired entry for a pair, pruning it if expired."""
        key = cache_key(origin, destination)
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if entry.expires <= now:
            del self._entries[key]
            return None

        entry.hits += 1
        entry.last_access = now
        return entry

    def set(
        self,
        origin: str,
        destination: str,
        distance: float,
        ttl_seconds: Optional[float] = None,
    ) -> CacheEntry:
        """Cache a distance with an absolute expiry of now + ttl."""
        key = cache_key(origin, destination)
        now = self._clock()

        if key not in self._entries and len(self._entries) >= self._max_entries:
            self._evict_lru()

        entry = CacheEntry(
            distance=distance,
            expires=now + (ttl_seconds if ttl_seconds is not None else self._ttl_seconds),
            last_access=now,
        )
        self._entries[key] = entry
        return entry

    def sweep(self) -> int:
        """Remove every entry whose expiry has passed. Returns count removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict:
        """Entry count, capacity, utilization percent and hit totals."""
        total_hits = sum(entry.hits for entry in self._entries.values())
        size = len(self._entries)
        return {
            "entries": size,
            "max_entries": self._max_entries,
            "utilization": round(size / self._max_entries * 100),
            "total_hits": total_hits,
            "average_hits": round(total_hits / size) if size else 0,
        }

    def _evict_lru(self) -> None:
        if not self._entries:
            return
        oldest_key = min(self._entries, key=lambda k: self._entries[k].last_access)
        del self._entries[oldest_key]

    # -------------------------------------------------------------------------
    # Sweeper lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_sweeping(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.is_sweeping:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Stop the periodic sweep and wait for it to finish."""
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        try:
            await self._sweeper
        except asyncio.CancelledError:
            pass
        self._sweeper = None

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            removed = self.sweep()
            logger.debug("distance_cache_swept", removed=removed, remaining=len(self))
            if self._on_sweep:
                try:
                    await self._on_sweep(removed, len(self))
                except Exception as e:
                    logger.error("distance_cache_sweep_callback_failed", error=str(e))

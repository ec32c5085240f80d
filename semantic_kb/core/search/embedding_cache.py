"""
Query embedding cache.

Bounded, time-aware cache from normalized query text to its embedding.
Entries expire a fixed time after insertion (TTL) or after a period
without access (TTI), whichever comes first. At capacity the least
recently used live entry is evicted. Concurrent ``get_or_compute`` calls
for one key share a single computation.

The cache is an ordinary object: construct one per application (or per
test) and inject it where needed.

Dependencies: asyncio, threading (stdlib), semantic_kb.configs
System role: Query-path embedding cache in front of the embedding provider
"""

import asyncio
import logging
import re
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable

from semantic_kb.configs.cache import CacheSettings

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

ComputeFn = Callable[[str], Awaitable[list[float]]]


class _OwnerCancelled(Exception):
    """Set on an in-flight future whose computing caller was cancelled."""


def normalize_key(query: str) -> str:
    """Trim, lowercase and collapse internal whitespace runs."""
    return _WHITESPACE.sub(" ", query.strip().lower())


@dataclass
class CacheEntry:
    """One cached embedding with its timestamps."""

    key: str
    value: list[float]
    inserted_at: float
    last_accessed_at: float


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache counters."""

    entry_count: int
    weighted_size: int
    hits: int
    misses: int
    evictions: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class EmbeddingCache:
    """
    LRU cache with TTL and TTI expiry for query embeddings.

    All map mutation happens under an internal lock, so one instance can
    be shared across request handlers and worker threads.
    """

    def __init__(
        self,
        max_capacity: int = 1000,
        time_to_live: float = 3600.0,
        time_to_idle: float = 1800.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            max_capacity: Maximum number of entries held
            time_to_live: Seconds an entry lives after insertion
            time_to_idle: Seconds an entry lives after its last access
            clock: Monotonic time source (tests pass a fake clock)

        Raises:
            ValueError: Non-positive capacity or durations
        """
        if max_capacity < 1:
            raise ValueError("max_capacity must be at least 1")
        if time_to_live <= 0 or time_to_idle <= 0:
            raise ValueError("time_to_live and time_to_idle must be positive")

        self.max_capacity = max_capacity
        self.time_to_live = time_to_live
        self.time_to_idle = time_to_idle
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._in_flight: dict[str, asyncio.Future] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> "EmbeddingCache":
        """Build a cache from CacheSettings."""
        return cls(
            max_capacity=settings.max_capacity,
            time_to_live=settings.time_to_live_seconds,
            time_to_idle=settings.time_to_idle_seconds,
        )

    def get(self, key: str) -> list[float] | None:
        """
        Look up an embedding, refreshing its recency on a hit.

        Returns:
            list[float] | None: Cached vector, or None on miss or expiry
        """
        normalized = normalize_key(key)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(normalized)
            if entry is None:
                self._misses += 1
                return None
            if self._is_expired(entry, now):
                del self._entries[normalized]
                self._misses += 1
                return None
            entry.last_accessed_at = now
            self._entries.move_to_end(normalized)
            self._hits += 1
            return entry.value

    def insert(self, key: str, value: list[float]) -> None:
        """Store an embedding, evicting the LRU entry when at capacity."""
        normalized = normalize_key(key)
        now = self._clock()
        with self._lock:
            if normalized in self._entries:
                del self._entries[normalized]
            elif len(self._entries) >= self.max_capacity:
                self._purge_expired(now)
                while len(self._entries) >= self.max_capacity:
                    evicted_key, _ = self._entries.popitem(last=False)
                    self._evictions += 1
                    logger.debug(
                        f"{__name__}:insert - Evicted least recently used entry",
                        extra={"cache_key": evicted_key},
                    )
            self._entries[normalized] = CacheEntry(
                key=normalized,
                value=value,
                inserted_at=now,
                last_accessed_at=now,
            )

    def invalidate(self, key: str) -> bool:
        """Drop one entry. Returns True if it was present."""
        with self._lock:
            return self._entries.pop(normalize_key(key), None) is not None

    def clear(self) -> None:
        """Drop every entry. Counters are kept."""
        with self._lock:
            self._entries.clear()

    def run_pending_tasks(self) -> int:
        """Remove expired entries now. Returns the number removed."""
        with self._lock:
            return self._purge_expired(self._clock())

    @property
    def entry_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> CacheStats:
        """Snapshot of size and hit/miss counters."""
        with self._lock:
            return CacheStats(
                entry_count=len(self._entries),
                weighted_size=sum(len(e.value) for e in self._entries.values()),
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )

    async def get_or_compute(self, key: str, compute: ComputeFn) -> list[float]:
        """
        Return the cached embedding or compute it exactly once.

        Concurrent callers for the same normalized key wait on the first
        caller's computation. ``compute`` receives the normalized key. On
        failure every waiter sees the same exception and nothing is cached.
        If the computing caller is cancelled, a waiting caller takes over
        the computation instead of inheriting the cancellation.

        Args:
            key: Query text
            compute: Async function producing the embedding

        Returns:
            list[float]: Embedding vector
        """
        normalized = normalize_key(key)
        while True:
            cached = self.get(normalized)
            if cached is not None:
                return cached

            with self._lock:
                future = self._in_flight.get(normalized)
                owner = future is None
                if owner:
                    future = asyncio.get_running_loop().create_future()
                    # Waiters may all be gone by the time the owner fails.
                    future.add_done_callback(_consume_exception)
                    self._in_flight[normalized] = future

            if owner:
                return await self._compute_for_waiters(normalized, compute, future)

            try:
                return await asyncio.shield(future)
            except _OwnerCancelled:
                logger.debug(
                    f"{__name__}:get_or_compute - Computing caller cancelled, retrying",
                    extra={"cache_key": normalized},
                )

    async def _compute_for_waiters(
        self,
        normalized: str,
        compute: ComputeFn,
        future: asyncio.Future,
    ) -> list[float]:
        try:
            value = await compute(normalized)
        except asyncio.CancelledError:
            future.set_exception(_OwnerCancelled())
            raise
        except Exception as exc:
            future.set_exception(exc)
            raise
        else:
            self.insert(normalized, value)
            future.set_result(value)
            return value
        finally:
            with self._lock:
                self._in_flight.pop(normalized, None)

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return (
            now - entry.inserted_at >= self.time_to_live
            or now - entry.last_accessed_at >= self.time_to_idle
        )

    def _purge_expired(self, now: float) -> int:
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def __len__(self) -> int:
        return self.entry_count


def _consume_exception(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()

"""
In-memory LRU cache with time-based expiry.

One instance belongs to exactly one enhancer, so an outage affecting one
remote resource collection never evicts or poisons another's names.

Policies (both must hold for an entry to be returned):
  - Capacity: max_entries > 0 evicts the least recently used entry on
    overflow. 0 means unbounded.
  - Expiry: ttl_seconds > 0 hides an entry once now - inserted_at >= ttl.
    Expired entries are dropped lazily when a lookup meets them, or in bulk
    by purge_expired() (called from the background sweep job).

All operations take one internal lock and never raise. Two threads missing on
the same key at the same time will both compute the value; the last put wins.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheStats:
    size: int
    max_entries: int
    ttl_seconds: float
    hits: int
    misses: int
    evictions: int
    expirations: int


@dataclass
class _Entry(Generic[V]):
    value: V
    inserted_at: float
    ttl_seconds: float

    def expired(self, now: float) -> bool:
        return self.ttl_seconds > 0 and now - self.inserted_at >= self.ttl_seconds


class ExpiringLRUCache(Generic[K, V]):
    """Size- and/or time-bounded memoization map, safe for concurrent use."""

    def __init__(
        self,
        max_entries: int = 0,
        ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max(0, int(max_entries))
        self.ttl_seconds = max(0.0, float(ttl_seconds))
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[K, _Entry[V]]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def get(self, key: K) -> Optional[V]:
        """Return the live value for key, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry.value

    def put(self, key: K, value: V, ttl_seconds: Optional[float] = None) -> None:
        """
        Insert or replace key. ttl_seconds overrides the cache TTL for this
        entry only (0 = never expires); None uses the cache TTL.
        """
        ttl = self.ttl_seconds if ttl_seconds is None else max(0.0, float(ttl_seconds))
        with self._lock:
            self._entries[key] = _Entry(value=value, inserted_at=self._clock(), ttl_seconds=ttl)
            self._entries.move_to_end(key)
            if self.max_entries:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)
                    self._evictions += 1

    def purge_expired(self) -> int:
        """Drop every expired entry now. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in stale:
                del self._entries[key]
            self._expirations += len(stale)
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                max_entries=self.max_entries,
                ttl_seconds=self.ttl_seconds,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        # Does not touch recency or counters
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and not entry.expired(self._clock())

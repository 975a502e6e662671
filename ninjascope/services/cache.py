"""In-memory TTL cache with per-entry expiry, hit/miss counters and a background sweep."""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ninjascope.utils.logger import StructuredLogger
from ninjascope.utils.request_context import record_cache_lookup


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


@dataclass(frozen=True)
class CacheLookup:
    """Result of a cache read: the stored value and whether it was a hit."""

    value: Any
    hit: bool


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    keys: int

    @property
    def hit_rate(self) -> str:
        total = self.hits + self.misses
        if total == 0:
            return "0%"
        return f"{self.hits / total * 100:.1f}%"


_MISS = CacheLookup(value=None, hit=False)


class TTLCache:
    """
    Process-lifetime key/value store with per-key time-to-live.

    Expiry is checked lazily on every read; a read at or past an entry's
    expiry instant is a miss and evicts it. A periodic sweep, run on an
    APScheduler background thread, evicts stale entries nobody reads.
    Writes replace any prior value and expiry unconditionally. Stored values
    are shared between readers and must not be mutated.
    """

    def __init__(self, sweep_interval: int = 30, clock: Callable[[], float] = time.monotonic):
        """
        Initialize an empty cache.

        Args:
            sweep_interval: Seconds between background sweeps
            clock: Monotonic time source, injectable for tests
        """
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.RLock()
        self._scheduler: BackgroundScheduler | None = None
        self.logger = StructuredLogger("TTLCache")

    def lookup(self, key: str) -> CacheLookup:
        """
        Read a key, reporting whether the read was a hit.

        The outcome is also recorded against the active request context.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._clock() >= entry.expires_at:
                del self._entries[key]
                entry = None

            if entry is None:
                self._misses += 1
                result = _MISS
            else:
                self._hits += 1
                result = CacheLookup(value=entry.value, hit=True)

        record_cache_lookup(result.hit)
        return result

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value for a key, or default on a miss."""
        result = self.lookup(key)
        return result.value if result.hit else default

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value that expires ttl_seconds from now. A TTL of 0 expires immediately."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)

    def sweep(self) -> int:
        """
        Evict every expired entry.

        Returns:
            Number of entries evicted
        """
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in stale:
                del self._entries[key]

        if stale:
            self.logger.debug("Cache sweep evicted stale entries", context={"evicted": len(stale)})
        return len(stale)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, keys=len(self._entries))

    def flush(self) -> None:
        """Drop all entries and reset the hit/miss counters."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def start_sweeper(self) -> None:
        """Start the periodic background sweep if it is not already running."""
        if self._scheduler is not None:
            return
        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self.sweep,
            IntervalTrigger(seconds=self.sweep_interval),
            id="cache_sweep",
            name="TTL cache sweep",
            replace_existing=True,
        )
        self._scheduler.start()
        self.logger.info("Cache sweeper started", context={"interval_seconds": self.sweep_interval})

    def stop_sweeper(self) -> None:
        """Stop the background sweep."""
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self.logger.info("Cache sweeper stopped")

    @property
    def sweeper_running(self) -> bool:
        return self._scheduler is not None

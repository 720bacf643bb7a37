"""
In-process TTL cache service.

One instance per cached concern (match results, extracted resume text) is
built at startup and handed to the orchestrator. Entries carry their own
time-to-live, so AI and fallback results can share a cache while expiring
at different times. Stale entries are evicted on every read and write, and
the least recently used entry goes first once ``maxsize`` is reached.
Concurrent writers for the same key are not coordinated; the last write
wins.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, Optional, TypeVar

from cachetools import TLRUCache

from matchengine.utils.logger import get_logger

logger = get_logger(__name__)

V = TypeVar("V")

DEFAULT_MAXSIZE = 1000


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and how long it lives."""

    value: V
    ttl: float


def _expires_at(key: Hashable, entry: CacheEntry, now: float) -> float:
    return now + entry.ttl


class TTLCache(Generic[V]):
    """
    Keyed map with per-entry time-to-live.

    Usage:
        cache = TTLCache(name="match-results")
        cache.set(("user-1", "job-1"), result, ttl=300)
        value, ok = cache.get(("user-1", "job-1"))
    """

    def __init__(
        self,
        name: str = "cache",
        maxsize: int = DEFAULT_MAXSIZE,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the cache.

        Args:
            name: Label used in log lines
            maxsize: Most entries held at once
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self.name = name
        self._entries: TLRUCache = TLRUCache(
            maxsize=maxsize, ttu=_expires_at, timer=clock or time.monotonic
        )

    def get(self, key: Hashable) -> tuple[Optional[V], bool]:
        """
        Read a value.

        Returns:
            (value, True) on a live hit, (None, False) on a miss or expiry
        """
        evicted = self._entries.expire()
        if evicted:
            logger.debug(f"{self.name}: evicted {len(evicted)} expired entries")

        entry = self._entries.get(key)
        if entry is None:
            return None, False
        return entry.value, True

    def set(self, key: Hashable, value: V, ttl: float) -> None:
        """Store a value for ``ttl`` seconds, replacing any existing entry."""
        if ttl <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = CacheEntry(value=value, ttl=ttl)

    def delete(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    @property
    def maxsize(self) -> int:
        return int(self._entries.maxsize)

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def __contains__(self, key: Any) -> bool:
        return key in self._entries

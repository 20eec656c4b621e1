"""CacheIt Cache Manager - Abstract Per-Tier Manager.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import functools
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Generic, Iterator, List, Optional, Type, TypeVar

from cacheit_core.cache.config import CacheDefaults, CacheKey, CacheTier, CacheUnitConfig
from cacheit_core.cache.entry import CacheEntry
from cacheit_core.concurrency.lock import ReadWriteLock
from cacheit_core.concurrency.scheduler import ExpiryScheduler
from cacheit_core.logs.sink import LogCategory, LoggingLevel, LogSink

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=CacheEntry)


@dataclass
class ManagerStats:
    """Cache manager statistics.

    Attributes:
        creates: Entries installed
        hits: Fetches that found a live entry
        misses: Fetches that found nothing
        removals: Explicit removes and purges
        overwrites: Entries replaced by a same-key create
        expirations: Entries expired by their timer
        rejected: Malformed requests dropped
        errors: I/O or decode failures
    """

    creates: int = 0
    hits: int = 0
    misses: int = 0
    removals: int = 0
    overwrites: int = 0
    expirations: int = 0
    rejected: int = 0
    errors: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None

    def record_error(self, error: str) -> None:
        """Record an error."""
        self.errors += 1
        self.last_error = error
        self.last_error_at = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "creates": self.creates,
            "hits": self.hits,
            "misses": self.misses,
            "removals": self.removals,
            "overwrites": self.overwrites,
            "expirations": self.expirations,
            "rejected": self.rejected,
            "errors": self.errors,
        }


_REASON_COUNTERS = {
    "timer": "expirations",
    "overwrite": "overwrites",
    "remove": "removals",
    "purge": "removals",
}


class CacheManager(ABC, Generic[E]):
    """Owns one tier's mapping of keys to entries.

    All mapping mutations happen under the write side of a
    ``ReadWriteLock``; fetches take the read side. Every path that ends an
    entry (timer, overwrite, remove, purge) funnels into ``_expire_locked``,
    which only erases a mapping slot that still holds that exact entry
    object. A late or duplicate trigger is therefore a no-op.

    Implementations:
    - TransientCacheManager: payloads in memory
    - PersistentCacheManager: payloads in container files on disk
    """

    tier: CacheTier
    defaults_type: Type
    config_type: Type

    def __init__(
        self,
        defaults: CacheDefaults,
        sink: Optional[LogSink] = None,
        scheduler: Optional[ExpiryScheduler] = None,
    ):
        """Initialize manager.

        Args:
            defaults: Tier defaults for new entries
            sink: Cache event hook
            scheduler: Expiry scheduler; one is created if omitted
        """
        self._defaults = defaults
        self._sink = sink or LogSink()
        self._scheduler = scheduler or ExpiryScheduler(name=self.tier.name.lower())
        self._entries: Dict[CacheKey, E] = {}
        self._lock = ReadWriteLock()
        self._stats = ManagerStats()
        self._stats_lock = threading.Lock()

    @property
    def defaults(self) -> CacheDefaults:
        return self._defaults

    @property
    def sink(self) -> LogSink:
        return self._sink

    @abstractmethod
    def create_cache_unit(self, config: CacheUnitConfig) -> Optional[E]:
        """Create an entry from a creation request.

        Args:
            config: Creation request for this manager's tier

        Returns:
            The installed entry, or None if the request was dropped
        """
        pass

    def set_default(self, config: CacheDefaults) -> bool:
        """Replace defaults for entries created from now on.

        Args:
            config: Defaults for this manager's tier

        Returns:
            True if applied
        """
        if not isinstance(config, self.defaults_type):
            self._reject(
                f"Attempting to set {type(config).__name__} on {type(self).__name__}"
            )
            return False
        self._defaults = config
        return True

    def fetch(self, key: CacheKey) -> Optional[E]:
        """Get the live entry for a key.

        Args:
            key: Cache key

        Returns:
            Entry, or None if absent or past its expiration
        """
        with self._lock.read():
            entry = self._entries.get(key)

        if entry is None or entry.is_expired:
            self._count("misses")
            return None

        self._count("hits")
        self._sink.log(f"Fetched {self.tier.name.lower()} cache for {key!r}", LogCategory.FETCH, LoggingLevel.DEBUG)
        return entry

    def remove(self, key: CacheKey) -> bool:
        """Expire and erase the entry for a key.

        Args:
            key: Cache key

        Returns:
            True if an entry was removed
        """
        with self._lock.write():
            entry = self._entries.get(key)
            if entry is None:
                return False
            return self._expire_locked(entry, reason="remove")

    def purge(self) -> int:
        """Expire and erase every entry present at call time.

        Returns:
            Number of entries removed
        """
        with self._lock.write():
            entries = list(self._entries.values())
            return sum(1 for entry in entries if self._expire_locked(entry, reason="purge"))

    def expire_entry(self, entry: E, reason: str = "timer") -> bool:
        """Expire a specific entry. Idempotent.

        Args:
            entry: Entry to expire
            reason: What triggered the expiry

        Returns:
            True if this call performed the expiry
        """
        with self._lock.write():
            return self._expire_locked(entry, reason=reason)

    def keys(self) -> List[CacheKey]:
        with self._lock.read():
            return list(self._entries.keys())

    def size(self) -> int:
        with self._lock.read():
            return len(self._entries)

    def get_stats(self) -> ManagerStats:
        return self._stats

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._stats = ManagerStats()

    def close(self) -> None:
        """Stop the expiry worker. Entries stay in the mapping."""
        self._scheduler.stop()

    def _install(self, entry: E, delay: float) -> E:
        """Install an entry, expiring any prior one for its key, and arm its timer."""
        with self._lock.write():
            prior = self._entries.get(entry.key)
            if prior is not None and prior is not entry:
                self._expire_locked(prior, reason="overwrite")

            self._entries[entry.key] = entry
            entry.attach_timer(
                self._scheduler.schedule(delay, functools.partial(self.expire_entry, entry, "timer"))
            )

        self._count("creates")
        self._sink.log(entry.describe(), LogCategory.SAVE, LoggingLevel.INFO)
        return entry

    def _expire_locked(self, entry: E, reason: str) -> bool:
        """Expire an entry. Caller holds the write lock."""
        if not entry.mark_expired():
            return False

        if self._entries.get(entry.key) is entry:
            del self._entries[entry.key]

        self._release(entry)
        self._count(_REASON_COUNTERS.get(reason, "removals"))
        self._sink.log(f"{entry.describe()}\nReason: {reason}", LogCategory.EXPIRE, LoggingLevel.INFO)
        return True

    def _release(self, entry: E) -> None:
        """Free resources held by an expired entry. Caller holds the write lock."""
        pass

    def _reject(self, message: str) -> None:
        """Log and count a malformed request."""
        logger.error(message)
        self._count("rejected")

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self._stats, counter, getattr(self._stats, counter) + 1)

    def _record_error(self, error: str) -> None:
        with self._stats_lock:
            self._stats.record_error(error)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock.read():
            entry = self._entries.get(key)
        return entry is not None and not entry.is_expired

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[CacheKey]:
        return iter(self.keys())

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["CacheManager", "ManagerStats"]

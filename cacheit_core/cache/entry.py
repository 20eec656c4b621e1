"""CacheIt Entry - Cache Entries with Fixed Expiration.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Dict, Optional

from cacheit_core.cache.config import CacheKey, CacheTier
from cacheit_core.concurrency.scheduler import ScheduledExpiry

if TYPE_CHECKING:
    from cacheit_core.store.file import PersistentCacheManager
    from cacheit_core.store.memory import TransientCacheManager


class EntryState(Enum):
    """Cache entry states."""

    LIVE = auto()      # In its manager's mapping
    EXPIRED = auto()   # Removed; terminal


def utcnow() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def expiration_after(ttl_seconds: float, now: Optional[datetime] = None) -> datetime:
    """Get the instant ``ttl_seconds`` from now.

    Raises:
        ValueError: If the TTL is not finite or the instant is out of range
    """
    if not math.isfinite(ttl_seconds):
        raise ValueError(f"TTL must be finite, got {ttl_seconds!r}")
    try:
        return (now or utcnow()) + timedelta(seconds=ttl_seconds)
    except OverflowError as e:
        raise ValueError(f"TTL {ttl_seconds!r} is out of range") from e


class CacheEntry:
    """Base cache entry.

    An entry's key and expiration are fixed at construction. Its state
    only ever moves from LIVE to EXPIRED, and only its owning manager
    moves it, under that manager's write lock.

    Attributes:
        key: Cache key
        expiration: Expiration instant (aware)
        metadata: Optional JSON-compatible mapping
    """

    tier: CacheTier

    def __init__(
        self,
        key: CacheKey,
        expiration: datetime,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        self._key = key
        self._expiration = expiration
        self._metadata = metadata
        self._state = EntryState.LIVE
        self._timer: Optional[ScheduledExpiry] = None
        self.created_at = utcnow()

    @property
    def key(self) -> CacheKey:
        return self._key

    @property
    def cache_key(self) -> CacheKey:
        return self._key

    @property
    def expiration(self) -> datetime:
        return self._expiration

    @property
    def metadata(self) -> Optional[Dict[str, Any]]:
        return self._metadata

    @property
    def state(self) -> EntryState:
        return self._state

    @property
    def is_expired(self) -> bool:
        """Check if the entry was expired or is past its expiration."""
        return self._state == EntryState.EXPIRED or utcnow() > self._expiration

    @property
    def is_live(self) -> bool:
        return not self.is_expired

    @property
    def remaining_ttl(self) -> float:
        """Get remaining TTL in seconds."""
        return max(0.0, (self._expiration - utcnow()).total_seconds())

    @property
    def data(self) -> bytes:
        """Get payload bytes."""
        raise NotImplementedError

    def expire(self) -> None:
        """Expire this entry through its manager. Safe to call repeatedly."""
        raise NotImplementedError

    def attach_timer(self, timer: ScheduledExpiry) -> None:
        """Record the scheduled expiry for later cancellation."""
        if self._state == EntryState.EXPIRED:
            timer.cancel()
            return
        self._timer = timer

    def mark_expired(self) -> bool:
        """Move to EXPIRED and cancel the timer.

        Returns:
            True on the first call, False if already expired
        """
        if self._state == EntryState.EXPIRED:
            return False
        self._state = EntryState.EXPIRED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        return True

    def describe(self) -> str:
        """Multi-line description used in log messages."""
        return (
            f"CacheKey: {self._key}\n"
            f"CacheType: {self.tier.name.lower()}\n"
            f"Expires: {self._expiration.isoformat(timespec='seconds')}\n"
            f"Expired: {str(self.is_expired).lower()}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self._key,
            "tier": self.tier.name,
            "expiration": self._expiration.isoformat(),
            "state": self._state.name,
            "metadata": self._metadata,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(key={self._key!r}, state={self._state.name}, "
            f"ttl={self.remaining_ttl:.1f}s)"
        )


class TransientEntry(CacheEntry):
    """In-memory entry. The payload is held inline and never touches disk.

    Example:
        entry = manager.create("token", b"abc123", ttl=60)
        entry.data  # b"abc123"
    """

    tier = CacheTier.TRANSIENT

    def __init__(
        self,
        key: CacheKey,
        manager: "TransientCacheManager",
        expiration: datetime,
        data: bytes,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(key, expiration, metadata)
        self._manager = manager
        self._data = bytes(data)

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def size_bytes(self) -> int:
        return len(self._data)

    def expire(self) -> None:
        self._manager.expire_entry(self, reason="remove")


class PersistentEntry(CacheEntry):
    """On-disk entry.

    Only the key, expiration, metadata and container file name are kept in
    memory. Every ``data`` access re-reads the payload sector of the
    container, and returns empty bytes once the file is gone.

    Attributes:
        file_name: Container file name inside the manager's directory
    """

    tier = CacheTier.PERSISTENT

    def __init__(
        self,
        key: CacheKey,
        manager: "PersistentCacheManager",
        expiration: datetime,
        file_name: str,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(key, expiration, metadata)
        self._manager = manager
        self._file_name = file_name

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def cache_id(self) -> str:
        return self._file_name

    @property
    def path(self):
        """Get container file path."""
        return self._manager.path_for(self._file_name)

    @property
    def data(self) -> bytes:
        return self._manager.read_payload(self)

    def expire(self) -> None:
        self._manager.expire_entry(self, reason="remove")

    def describe(self) -> str:
        return f"{super().describe()}\nCacheId: {self._file_name}"

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["file_name"] = self._file_name
        return result


__all__ = [
    "CacheEntry",
    "EntryState",
    "TransientEntry",
    "PersistentEntry",
    "expiration_after",
    "utcnow",
]

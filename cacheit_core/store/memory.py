"""CacheIt Transient Manager - In-Memory Cache Tier.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from cacheit_core.cache.config import (
    CacheKey,
    CacheTier,
    TransientDefaults,
    TransientUnitConfig,
)
from cacheit_core.cache.entry import TransientEntry, expiration_after, utcnow
from cacheit_core.concurrency.scheduler import ExpiryScheduler
from cacheit_core.logs.sink import LogSink
from cacheit_core.store.backend import CacheManager

logger = logging.getLogger(__name__)


class TransientCacheManager(CacheManager[TransientEntry]):
    """In-memory cache tier.

    Payloads live inside the entries; nothing touches disk, so every
    operation is non-blocking apart from lock contention.

    Purge is best effort: a create racing a purge may leave its entry
    alive.

    Example:
        manager = TransientCacheManager()
        manager.create("token", b"abc123", ttl=60)
        manager.fetch("token").data  # b"abc123"
    """

    tier = CacheTier.TRANSIENT
    defaults_type = TransientDefaults
    config_type = TransientUnitConfig

    def __init__(
        self,
        defaults: Optional[TransientDefaults] = None,
        sink: Optional[LogSink] = None,
        scheduler: Optional[ExpiryScheduler] = None,
    ):
        """Initialize transient manager.

        Args:
            defaults: Tier defaults
            sink: Cache event hook
            scheduler: Expiry scheduler
        """
        super().__init__(defaults or TransientDefaults(), sink, scheduler)

    def create_cache_unit(self, config: TransientUnitConfig) -> Optional[TransientEntry]:
        if not isinstance(config, TransientUnitConfig):
            self._reject(
                f"Attempting to pass {type(config).__name__} into TransientCacheManager"
            )
            return None
        return self.create(config.cache_key, config.data, config.expiration, config.metadata)

    def create(
        self,
        key: CacheKey,
        data: bytes,
        ttl: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[TransientEntry]:
        """Create and install an entry, replacing any entry for the key.

        Args:
            key: Cache key
            data: Payload bytes
            ttl: TTL in seconds, or None for the tier default
            metadata: Optional mapping

        Returns:
            The installed entry, or None if the request was malformed
        """
        if not isinstance(key, str):
            self._reject(f"Transient cache key must be str, got {type(key).__name__}")
            return None
        if not isinstance(data, (bytes, bytearray, memoryview)):
            self._reject(f"Transient payload for {key!r} must be bytes, got {type(data).__name__}")
            return None
        if metadata is not None and not isinstance(metadata, dict):
            self._reject(f"Transient metadata for {key!r} must be a dict")
            return None
        if metadata is not None:
            try:
                json.dumps(metadata)
            except (TypeError, ValueError) as e:
                self._reject(f"Transient metadata for {key!r} is not JSON-compatible: {e}")
                return None
        if ttl is not None and not isinstance(ttl, (int, float)):
            self._reject(f"Transient TTL for {key!r} must be a number of seconds")
            return None

        ttl = self._defaults.ttl_seconds if ttl is None else ttl
        now = utcnow()
        try:
            expiration = expiration_after(ttl, now)
        except ValueError as e:
            self._reject(f"Transient TTL for {key!r} rejected: {e}")
            return None

        entry = TransientEntry(
            key=key,
            manager=self,
            expiration=expiration,
            data=data,
            metadata=metadata,
        )

        delay = max((entry.expiration - now).total_seconds(), 0.0)
        return self._install(entry, delay)

    def memory_usage(self) -> int:
        """Get total payload bytes held.

        Returns:
            Size in bytes
        """
        with self._lock.read():
            return sum(e.size_bytes for e in self._entries.values())

    def __repr__(self) -> str:
        return f"TransientCacheManager(entries={len(self._entries)})"


__all__ = ["TransientCacheManager"]

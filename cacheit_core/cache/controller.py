"""CacheIt Controller - Tier Dispatch and Defaults.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Union

from cacheit_core.cache.config import (
    CacheDefaults,
    CacheKey,
    CacheTier,
    CacheUnitConfig,
    DataSource,
    PersistentUnitConfig,
    TransientUnitConfig,
    factory_defaults,
)
from cacheit_core.cache.entry import CacheEntry
from cacheit_core.logs.sink import LoggingLevel, LogSink
from cacheit_core.store.backend import CacheManager
from cacheit_core.store.file import PersistentCacheManager
from cacheit_core.store.memory import TransientCacheManager

logger = logging.getLogger(__name__)


class CacheController:
    """Routes cache operations to the manager for each tier.

    A controller owns one transient and one persistent manager. It is an
    ordinary object: build one, pass it to whatever needs the cache, and
    close it when done. Separate controllers pointed at separate
    directories are fully isolated.

    Create requests never raise. A malformed request is logged and
    dropped; a storage failure leaves the cache unchanged.

    Example:
        with CacheController("/tmp/my-cache") as controller:
            controller.create(CacheTier.PERSISTENT, "greeting", b"hello", ttl=60)
            controller.fetch_payload(CacheTier.PERSISTENT, "greeting")  # b"hello"

            controller.set_defaults(CacheTier.TRANSIENT, TransientDefaults(ttl_seconds=5))
            controller.create(CacheTier.TRANSIENT, "token", b"abc")
    """

    def __init__(
        self,
        cache_directory: Optional[Union[str, os.PathLike]] = None,
        sink: Optional[LogSink] = None,
        min_timer_seconds: float = 1.0,
    ):
        """Initialize controller.

        Args:
            cache_directory: Persistent tier directory; defaults to a
                ``CacheKit`` directory under the platform temp root
            sink: Cache event hook shared by both managers
            min_timer_seconds: Floor for persistent expiry timers
        """
        self._sink = sink or LogSink()
        self._transient = TransientCacheManager(sink=self._sink)
        self._persistent = PersistentCacheManager(
            cache_directory,
            sink=self._sink,
            min_timer_seconds=min_timer_seconds,
        )
        self._managers: Dict[CacheTier, CacheManager] = {
            CacheTier.TRANSIENT: self._transient,
            CacheTier.PERSISTENT: self._persistent,
        }
        logger.debug(f"CacheController ready with persistent directory {self._persistent.base_path}")

    @property
    def logging_level(self) -> LoggingLevel:
        return self._sink.level

    @logging_level.setter
    def logging_level(self, level: LoggingLevel) -> None:
        self._sink.level = level

    @property
    def transient(self) -> TransientCacheManager:
        return self._transient

    @property
    def persistent(self) -> PersistentCacheManager:
        return self._persistent

    def manager(self, tier: CacheTier) -> CacheManager:
        """Get the manager for a tier.

        Raises:
            KeyError: If tier is not a CacheTier
        """
        return self._managers[tier]

    def create_cache_unit(self, config: CacheUnitConfig) -> Optional[CacheEntry]:
        """Create an entry from a creation request.

        Args:
            config: TransientUnitConfig or PersistentUnitConfig

        Returns:
            The installed entry, or None if the request was dropped
        """
        tier = getattr(config, "tier", None)
        if tier not in self._managers:
            logger.error(f"Unsupported cache unit config: {type(config).__name__}")
            return None
        return self._managers[tier].create_cache_unit(config)

    def create(
        self,
        tier: CacheTier,
        key: CacheKey,
        data: Union[bytes, DataSource],
        ttl: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[CacheEntry]:
        """Create an entry in a tier.

        Args:
            tier: Target tier
            key: Cache key
            data: Payload bytes; the persistent tier also accepts a
                ``RawData``, ``FileSource`` or ``StoredFile``
            ttl: TTL in seconds, or None for the tier default
            metadata: Optional JSON-compatible mapping

        Returns:
            The installed entry, or None if nothing was stored
        """
        if tier == CacheTier.TRANSIENT:
            config = TransientUnitConfig(key, data, ttl, metadata)
        elif tier == CacheTier.PERSISTENT:
            config = PersistentUnitConfig(key, data, ttl, metadata)
        else:
            logger.error(f"Unknown cache tier: {tier!r}")
            return None
        return self.create_cache_unit(config)

    def fetch(self, tier: CacheTier, key: CacheKey) -> Optional[CacheEntry]:
        """Get the live entry for a key.

        Args:
            tier: Tier to look in
            key: Cache key

        Returns:
            Entry, or None if absent or expired
        """
        manager = self._managers.get(tier)
        if manager is None:
            logger.error(f"Unknown cache tier: {tier!r}")
            return None
        return manager.fetch(key)

    def fetch_payload(self, tier: CacheTier, key: CacheKey) -> Optional[bytes]:
        """Get the payload for a key.

        Returns:
            Payload bytes, or None if absent or expired
        """
        entry = self.fetch(tier, key)
        if entry is None:
            return None
        return entry.data

    def remove(self, tier: CacheTier, key: CacheKey) -> bool:
        """Expire the entry for a key. Idempotent.

        Returns:
            True if an entry was removed
        """
        manager = self._managers.get(tier)
        if manager is None:
            logger.error(f"Unknown cache tier: {tier!r}")
            return False
        return manager.remove(key)

    def purge(self, tier: CacheTier) -> int:
        """Expire every entry in a tier.

        Returns:
            Number of entries removed
        """
        manager = self._managers.get(tier)
        if manager is None:
            logger.error(f"Unknown cache tier: {tier!r}")
            return 0
        return manager.purge()

    def set_defaults(self, tier: CacheTier, config: CacheDefaults) -> bool:
        """Replace a tier's defaults for entries created from now on.

        Live entries keep their expiration.

        Returns:
            True if applied
        """
        manager = self._managers.get(tier)
        if manager is None:
            logger.error(f"Unknown cache tier: {tier!r}")
            return False
        return manager.set_default(config)

    def get_defaults(self, tier: CacheTier) -> CacheDefaults:
        return self._managers[tier].defaults

    def reset_all(self) -> None:
        """Purge both tiers and restore factory defaults."""
        for tier, manager in self._managers.items():
            manager.purge()
            manager.set_default(factory_defaults(tier))

    def close(self) -> None:
        """Stop both managers' expiry workers."""
        for manager in self._managers.values():
            manager.close()

    def __enter__(self) -> "CacheController":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"CacheController(transient={self._transient.size()}, "
            f"persistent={self._persistent.size()})"
        )


__all__ = ["CacheController"]

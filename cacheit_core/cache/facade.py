"""CacheIt Facades - Key-Subscript Access to a Tier.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from cacheit_core.cache.config import CacheKey, CacheTier
from cacheit_core.cache.controller import CacheController
from cacheit_core.protocol.serializer import Serializer, get_serializer

logger = logging.getLogger(__name__)

_MISSING = object()


class TierCache:
    """Value-level view of one tier of a controller.

    Values are encoded with a serializer on the way in and decoded on the
    way out; the managers underneath only see bytes. Assigning ``None``
    removes the key.

    Attributes:
        controller: Controller the view writes through
        expiration: TTL for entries set through this view, or None for
            the tier default
        serializer: Payload serializer
    """

    tier: CacheTier

    def __init__(
        self,
        controller: CacheController,
        expiration: Optional[float] = None,
        serializer: Optional[Serializer] = None,
    ):
        self.controller = controller
        self.expiration = expiration
        self.serializer = serializer or get_serializer()

    def get(self, key: CacheKey, default: Any = None) -> Any:
        """Get decoded value.

        Args:
            key: Cache key
            default: Returned when missing, expired or undecodable

        Returns:
            Cached value or default
        """
        payload = self.controller.fetch_payload(self.tier, key)
        if not payload:
            return default
        try:
            return self.serializer.decode(payload)
        except Exception as e:
            logger.error(f"Cannot decode {self.tier.name.lower()} value for {key!r}: {e}")
            return default

    def set(self, key: CacheKey, value: Any, ttl: Optional[float] = None) -> bool:
        """Encode and store a value. ``None`` removes the key.

        Args:
            key: Cache key
            value: Value to cache
            ttl: TTL override for this value

        Returns:
            True if an entry was stored or removed
        """
        if value is None:
            return self.controller.remove(self.tier, key)

        try:
            payload = self.serializer.encode(value)
        except Exception as e:
            logger.error(f"Cannot encode {self.tier.name.lower()} value for {key!r}: {e}")
            return False

        ttl = self.expiration if ttl is None else ttl
        return self.controller.create(self.tier, key, payload, ttl=ttl) is not None

    def remove_cache(self, key: CacheKey) -> bool:
        """Remove a key. Idempotent."""
        return self.controller.remove(self.tier, key)

    def remove_all_cache(self) -> int:
        """Remove every key in the tier."""
        return self.controller.purge(self.tier)

    def __getitem__(self, key: CacheKey) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __setitem__(self, key: CacheKey, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: CacheKey) -> None:
        if not self.remove_cache(key):
            raise KeyError(key)

    def __contains__(self, key: CacheKey) -> bool:
        return self.controller.fetch(self.tier, key) is not None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(expiration={self.expiration}, "
            f"serializer={self.serializer.format_name!r})"
        )


class TransientCache(TierCache):
    """Value-level view of the in-memory tier.

    Example:
        tokens = TransientCache(controller, expiration=30)
        tokens["session"] = {"user": 1}
        tokens["session"]  # {"user": 1}
    """

    tier = CacheTier.TRANSIENT


class PersistentCache(TierCache):
    """Value-level view of the on-disk tier.

    Subscript access blocks on disk I/O. ``value_async`` and
    ``set_value_async`` run on a small worker pool and call back when
    done, for callers that must not block.

    Example:
        names = PersistentCache(controller, expiration=3600)
        names.set_value_async(["ada", "grace"], "people", lambda: None)
        names.value_async("people", print)
    """

    tier = CacheTier.PERSISTENT

    def __init__(
        self,
        controller: CacheController,
        expiration: Optional[float] = None,
        serializer: Optional[Serializer] = None,
        max_workers: int = 2,
    ):
        super().__init__(controller, expiration, serializer)
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    def value_async(
        self,
        key: CacheKey,
        completion: Optional[Callable[[Any], None]] = None,
    ) -> Future:
        """Read a value without blocking.

        Args:
            key: Cache key
            completion: Called with the value, or None if missing

        Returns:
            Future resolving to the value
        """
        def task() -> Any:
            value = self.get(key)
            if completion is not None:
                completion(value)
            return value

        return self._submit(task)

    def set_value_async(
        self,
        value: Any,
        key: CacheKey,
        completion: Optional[Callable[[], None]] = None,
    ) -> Future:
        """Store a value without blocking.

        Args:
            value: Value to cache; None removes the key
            key: Cache key
            completion: Called once the container is written

        Returns:
            Future resolving to the ``set`` result
        """
        def task() -> bool:
            stored = self.set(key, value)
            if completion is not None:
                completion()
            return stored

        return self._submit(task)

    def close(self) -> None:
        """Wait for pending async calls and stop the worker pool."""
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def _submit(self, task: Callable[[], Any]) -> Future:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="CacheIt-persistent-io",
                )
            return self._executor.submit(task)

    def __enter__(self) -> "PersistentCache":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["TierCache", "TransientCache", "PersistentCache"]

"""CacheIt - Dual-Tier Key/Value Cache with Time-Based Expiry.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

A process-local cache with two tiers:
- Transient: payload bytes held in memory
- Persistent: payload bytes in container files under a cache directory,
  re-read on every access and rehydrated on startup
- Per-entry TTL with one-shot expiry timers
- Single-writer, multi-reader locking per tier
- Pluggable payload serializers (pickle, JSON, MessagePack)

Architecture:
    ┌─────────────────────────────────────────────────────────────────┐
    │                         CacheIt System                          │
    ├─────────────────────────────────────────────────────────────────┤
    │  ┌──────────────────┐  ┌──────────────────┐                     │
    │  │  TransientCache  │  │ PersistentCache  │         FACADE      │
    │  │  value subscript │  │  value + async   │         LAYER       │
    │  └────────┬─────────┘  └────────┬─────────┘                     │
    │           │                     │                               │
    │  ┌────────┴─────────────────────┴────────┐                      │
    │  │            CacheController             │         DISPATCH    │
    │  │    tier routing, defaults, logging     │         LAYER       │
    │  └────────┬─────────────────────┬────────┘                      │
    │           │                     │                               │
    │  ┌────────┴─────────┐  ┌────────┴─────────┐                     │
    │  │ TransientCache-  │  │ PersistentCache- │         MANAGER     │
    │  │ Manager (memory) │  │ Manager (disk)   │         LAYER       │
    │  └────────┬─────────┘  └────────┬─────────┘                     │
    │           │                     │                               │
    │  ┌────────┴─────────┐  ┌────────┴─────────┐  ┌──────────────┐   │
    │  │ ReadWriteLock    │  │ Container codec  │  │ Expiry-      │   │
    │  │ per manager      │  │ [u64][u64][hdr]  │  │ Scheduler    │   │
    │  └──────────────────┘  └──────────────────┘  └──────────────┘   │
    └─────────────────────────────────────────────────────────────────┘

Example Usage:
    from cacheit_core import CacheController, CacheTier, PersistentCache

    controller = CacheController("/tmp/my-cache")
    controller.create(CacheTier.PERSISTENT, "greeting", b"hello", ttl=60)
    controller.fetch_payload(CacheTier.PERSISTENT, "greeting")  # b"hello"

    names = PersistentCache(controller, expiration=3600)
    names["people"] = ["ada", "grace"]
    names["people"]  # ["ada", "grace"]

    controller.close()
"""

__version__ = "1.0.0"
__author__ = "BlackRoad OS"

from cacheit_core.cache.config import (
    CacheKey,
    CacheTier,
    TransientDefaults,
    PersistentDefaults,
    RawData,
    FileSource,
    StoredFile,
    TransientUnitConfig,
    PersistentUnitConfig,
)
from cacheit_core.cache.entry import (
    CacheEntry,
    EntryState,
    TransientEntry,
    PersistentEntry,
)
from cacheit_core.cache.controller import CacheController
from cacheit_core.cache.facade import (
    TransientCache,
    PersistentCache,
)
from cacheit_core.store.backend import (
    CacheManager,
    ManagerStats,
)
from cacheit_core.store.memory import TransientCacheManager
from cacheit_core.store.file import PersistentCacheManager
from cacheit_core.concurrency.lock import ReadWriteLock
from cacheit_core.concurrency.scheduler import ExpiryScheduler
from cacheit_core.logs.sink import (
    LogCategory,
    LoggingLevel,
    LogSink,
)
from cacheit_core.protocol.container import (
    ContainerDecodeError,
    ContainerHeader,
    ContainerSector,
    decode_container,
    encode_container,
)
from cacheit_core.protocol.serializer import (
    Serializer,
    JSONSerializer,
    PickleSerializer,
    MsgPackSerializer,
    get_serializer,
)

__all__ = [
    # Cache
    "CacheKey",
    "CacheTier",
    "TransientDefaults",
    "PersistentDefaults",
    "RawData",
    "FileSource",
    "StoredFile",
    "TransientUnitConfig",
    "PersistentUnitConfig",
    "CacheEntry",
    "EntryState",
    "TransientEntry",
    "PersistentEntry",
    "CacheController",
    "TransientCache",
    "PersistentCache",
    # Managers
    "CacheManager",
    "ManagerStats",
    "TransientCacheManager",
    "PersistentCacheManager",
    # Concurrency
    "ReadWriteLock",
    "ExpiryScheduler",
    # Logging
    "LogCategory",
    "LoggingLevel",
    "LogSink",
    # Protocol
    "ContainerDecodeError",
    "ContainerHeader",
    "ContainerSector",
    "decode_container",
    "encode_container",
    "Serializer",
    "JSONSerializer",
    "PickleSerializer",
    "MsgPackSerializer",
    "get_serializer",
]

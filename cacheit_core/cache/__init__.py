"""Cache module - Entries, configuration, controller and facades."""

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
    TierCache,
    TransientCache,
    PersistentCache,
)

__all__ = [
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
    "TierCache",
    "TransientCache",
    "PersistentCache",
]

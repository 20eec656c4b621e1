"""Store module - Per-tier cache managers."""

from cacheit_core.store.backend import (
    CacheManager,
    ManagerStats,
)
from cacheit_core.store.memory import TransientCacheManager
from cacheit_core.store.file import PersistentCacheManager, default_cache_directory

__all__ = [
    "CacheManager",
    "ManagerStats",
    "TransientCacheManager",
    "PersistentCacheManager",
    "default_cache_directory",
]

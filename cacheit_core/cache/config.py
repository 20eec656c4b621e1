"""CacheIt Config - Tiers, Defaults and Creation Requests.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, Optional, Union

CacheKey = str

DEFAULT_TRANSIENT_TTL = 30.0
DEFAULT_PERSISTENT_TTL = 60.0 * 60.0
DEFAULT_MAX_DISK_BYTES = 200 * 1024 * 1024


class CacheTier(Enum):
    """Cache tiers."""

    TRANSIENT = auto()    # In-memory
    PERSISTENT = auto()   # On-disk


@dataclass(frozen=True)
class TransientDefaults:
    """Defaults for new transient entries.

    Attributes:
        ttl_seconds: Default time to live
    """

    ttl_seconds: float = DEFAULT_TRANSIENT_TTL

    @property
    def tier(self) -> CacheTier:
        return CacheTier.TRANSIENT


@dataclass(frozen=True)
class PersistentDefaults:
    """Defaults for new persistent entries.

    Attributes:
        ttl_seconds: Default time to live
        max_disk_bytes: Disk budget; recorded only, nothing is evicted
            when it is exceeded
    """

    ttl_seconds: float = DEFAULT_PERSISTENT_TTL
    max_disk_bytes: int = DEFAULT_MAX_DISK_BYTES

    @property
    def tier(self) -> CacheTier:
        return CacheTier.PERSISTENT


CacheDefaults = Union[TransientDefaults, PersistentDefaults]


def factory_defaults(tier: CacheTier) -> CacheDefaults:
    """Get the built-in defaults for a tier."""
    if tier == CacheTier.TRANSIENT:
        return TransientDefaults()
    return PersistentDefaults()


@dataclass(frozen=True)
class RawData:
    """Payload bytes supplied directly."""

    data: bytes


@dataclass(frozen=True)
class FileSource:
    """Payload copied from an existing file."""

    path: Union[str, os.PathLike]

    @property
    def as_path(self) -> Path:
        return Path(self.path)


@dataclass(frozen=True)
class StoredFile:
    """A container already present in the cache directory."""

    file_name: str


DataSource = Union[RawData, FileSource, StoredFile]


@dataclass(frozen=True)
class TransientUnitConfig:
    """Request to create a transient entry.

    Attributes:
        cache_key: Cache key
        data: Payload bytes
        expiration: TTL in seconds, or None for the tier default
        metadata: Optional JSON-compatible mapping
    """

    cache_key: CacheKey
    data: bytes
    expiration: Optional[float] = None
    metadata: Optional[Dict[str, Any]] = None

    @property
    def tier(self) -> CacheTier:
        return CacheTier.TRANSIENT


@dataclass(frozen=True)
class PersistentUnitConfig:
    """Request to create a persistent entry.

    Attributes:
        cache_key: Cache key
        data_source: Where the payload comes from; plain bytes are
            treated as ``RawData``
        expiration: TTL in seconds, or None for the tier default
        metadata: Optional JSON-compatible mapping
    """

    cache_key: CacheKey
    data_source: Union[DataSource, bytes]
    expiration: Optional[float] = None
    metadata: Optional[Dict[str, Any]] = None

    @property
    def tier(self) -> CacheTier:
        return CacheTier.PERSISTENT


CacheUnitConfig = Union[TransientUnitConfig, PersistentUnitConfig]


__all__ = [
    "CacheKey",
    "CacheTier",
    "TransientDefaults",
    "PersistentDefaults",
    "CacheDefaults",
    "factory_defaults",
    "RawData",
    "FileSource",
    "StoredFile",
    "DataSource",
    "TransientUnitConfig",
    "PersistentUnitConfig",
    "CacheUnitConfig",
]

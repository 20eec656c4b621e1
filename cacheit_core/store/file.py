"""CacheIt Persistent Manager - Disk-Backed Cache Tier.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import functools
import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from cacheit_core.cache.config import (
    CacheKey,
    CacheTier,
    DataSource,
    FileSource,
    PersistentDefaults,
    PersistentUnitConfig,
    RawData,
    StoredFile,
)
from cacheit_core.cache.entry import PersistentEntry, expiration_after, utcnow
from cacheit_core.concurrency.scheduler import ExpiryScheduler
from cacheit_core.logs.sink import LogCategory, LoggingLevel, LogSink
from cacheit_core.protocol.container import (
    ContainerDecodeError,
    ContainerHeader,
    ContainerSector,
    decode_header,
    decode_metadata,
    encode_container,
    library_version,
    read_sector_from,
)
from cacheit_core.store.backend import CacheManager

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY_NAME = "CacheKit"


def default_cache_directory() -> Path:
    """Get the default cache directory under the platform temp root."""
    return Path(tempfile.gettempdir()) / DEFAULT_DIRECTORY_NAME


class PersistentCacheManager(CacheManager[PersistentEntry]):
    """Disk-backed cache tier.

    Each live entry owns one container file named by a generated
    identifier, never by its key, so keys with path separators or other
    unsafe characters are fine. Payloads are not kept in memory: every
    read goes back to the container file.

    On construction the manager rehydrates from its directory. Files that
    do not decode as containers are skipped. When two containers carry the
    same cache key, the first one in directory listing order wins and the
    other stays on disk untracked; listing order is filesystem dependent.

    Container writes happen before the write lock is taken, so slow disks
    do not block fetches. Deleting a container happens under the write
    lock as part of expiry.

    Example:
        manager = PersistentCacheManager("/tmp/my-cache")
        manager.create("greeting", b"hello", ttl=60)
        manager.fetch("greeting").data  # b"hello", read from disk
    """

    tier = CacheTier.PERSISTENT
    defaults_type = PersistentDefaults
    config_type = PersistentUnitConfig

    TEMP_SUFFIX = ".tmp"

    def __init__(
        self,
        cache_directory: Optional[Union[str, os.PathLike]] = None,
        defaults: Optional[PersistentDefaults] = None,
        sink: Optional[LogSink] = None,
        scheduler: Optional[ExpiryScheduler] = None,
        min_timer_seconds: float = 1.0,
    ):
        """Initialize persistent manager and rehydrate from disk.

        Args:
            cache_directory: Directory for container files
            defaults: Tier defaults
            sink: Cache event hook
            scheduler: Expiry scheduler
            min_timer_seconds: Floor for expiry timer delays
        """
        super().__init__(defaults or PersistentDefaults(), sink, scheduler)
        self.base_path = Path(cache_directory) if cache_directory is not None else default_cache_directory()
        self.min_timer_seconds = min_timer_seconds

        self._ensure_directory()
        self._rehydrate()

    @property
    def max_disk_bytes(self) -> int:
        return self._defaults.max_disk_bytes

    def path_for(self, file_name: str) -> Path:
        """Get container path for a file name."""
        return self.base_path / file_name

    def create_cache_unit(self, config: PersistentUnitConfig) -> Optional[PersistentEntry]:
        if not isinstance(config, PersistentUnitConfig):
            self._reject(
                f"Attempting to pass {type(config).__name__} into PersistentCacheManager"
            )
            return None
        return self.create(config.cache_key, config.data_source, config.expiration, config.metadata)

    def create(
        self,
        key: CacheKey,
        data_source: Union[DataSource, bytes],
        ttl: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[PersistentEntry]:
        """Write a container and install its entry, replacing any entry for the key.

        Args:
            key: Cache key
            data_source: Payload bytes, ``RawData``, ``FileSource`` or ``StoredFile``
            ttl: TTL in seconds, or None for the tier default
            metadata: Optional JSON-compatible mapping

        Returns:
            The installed entry, or None if nothing was stored
        """
        if not isinstance(key, str):
            self._reject(f"Persistent cache key must be str, got {type(key).__name__}")
            return None
        if metadata is not None and not isinstance(metadata, dict):
            self._reject(f"Persistent metadata for {key!r} must be a dict")
            return None
        if ttl is not None and not isinstance(ttl, (int, float)):
            self._reject(f"Persistent TTL for {key!r} must be a number of seconds")
            return None

        if isinstance(data_source, (bytes, bytearray, memoryview)):
            data_source = RawData(bytes(data_source))

        if isinstance(data_source, StoredFile):
            return self._create_from_stored(key, data_source.file_name)

        if isinstance(data_source, FileSource):
            payload = self._read_source_file(data_source)
            if payload is None:
                return None
        elif isinstance(data_source, RawData) and isinstance(data_source.data, (bytes, bytearray, memoryview)):
            payload = bytes(data_source.data)
        else:
            self._reject(f"Unsupported persistent data source for {key!r}: {type(data_source).__name__}")
            return None

        if not self._ensure_directory():
            return None

        ttl = self._defaults.ttl_seconds if ttl is None else ttl
        try:
            expiration = expiration_after(ttl, utcnow())
        except ValueError as e:
            self._reject(f"Persistent TTL for {key!r} rejected: {e}")
            return None

        file_name = str(uuid.uuid4()).upper()

        header = ContainerHeader(
            file_name=file_name,
            cache_key=key,
            expiration=expiration,
            version=library_version(),
        )
        try:
            container = encode_container(header, payload, metadata)
        except (TypeError, ValueError, OverflowError) as e:
            self._reject(f"Cannot encode container for {key!r}: {e}")
            return None

        if not self._write_container(file_name, container):
            return None

        entry = PersistentEntry(
            key=key,
            manager=self,
            expiration=expiration,
            file_name=file_name,
            metadata=metadata,
        )
        return self._install(entry, self._timer_delay(entry))

    def read_sector(self, file_name: str, sector: ContainerSector) -> Optional[bytes]:
        """Read one sector of a container file.

        Args:
            file_name: Container file name
            sector: Sector to read

        Returns:
            Sector bytes, or None if the file is missing, unreadable,
            not a container, or the sector is absent
        """
        try:
            sectors = self._read_sectors(file_name, sector)
        except ContainerDecodeError as e:
            logger.debug(f"Container {file_name} is not readable: {e}")
            return None
        return sectors[0] if sectors is not None else None

    def read_payload(self, entry: PersistentEntry) -> bytes:
        """Read an entry's payload from disk.

        Args:
            entry: Persistent entry

        Returns:
            Payload bytes, or empty bytes if the container is gone
        """
        return self.read_sector(entry.file_name, ContainerSector.PAYLOAD) or b""

    def disk_usage(self) -> int:
        """Get total size of tracked container files.

        Returns:
            Size in bytes
        """
        with self._lock.read():
            paths = [self.path_for(e.file_name) for e in self._entries.values()]

        total = 0
        for path in paths:
            try:
                total += path.stat().st_size
            except OSError:
                pass
        return total

    def _timer_delay(self, entry: PersistentEntry) -> float:
        remaining = (entry.expiration - utcnow()).total_seconds()
        return max(remaining, 0.0, self.min_timer_seconds)

    def _ensure_directory(self) -> bool:
        """Create the cache directory if needed."""
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            logger.error(f"Cannot create cache directory {self.base_path}: {e}")
            self._record_error(str(e))
            return False

    def _rehydrate(self) -> None:
        """Rebuild entries from the containers already on disk."""
        try:
            paths = list(self.base_path.iterdir())
        except OSError as e:
            logger.error(f"Cannot list cache directory {self.base_path}: {e}")
            self._record_error(str(e))
            return

        loaded = 0
        for path in paths:
            if path.suffix == self.TEMP_SUFFIX or not path.is_file():
                continue

            entry = self._load_stored(path.name)
            if entry is None:
                continue

            if self._adopt(entry):
                loaded += 1
            else:
                logger.debug(f"Container {path.name} duplicates key {entry.key!r}; left untracked")

        self._sink.log(
            f"CacheIt loading {loaded} item(s) from disk cache.",
            LogCategory.FETCH,
            LoggingLevel.INFO,
        )

    def _adopt(self, entry: PersistentEntry) -> bool:
        """Install a rehydrated entry unless its key is already taken."""
        with self._lock.write():
            if entry.key in self._entries:
                return False
            self._entries[entry.key] = entry
            entry.attach_timer(
                self._scheduler.schedule(
                    self._timer_delay(entry),
                    functools.partial(self.expire_entry, entry, "timer"),
                )
            )
        return True

    def _load_stored(self, file_name: str) -> Optional[PersistentEntry]:
        """Build an entry from an existing container's header and metadata."""
        try:
            sectors = self._read_sectors(file_name, ContainerSector.HEADER, ContainerSector.METADATA)
            if sectors is None:
                return None
            header = decode_header(sectors[0])
        except ContainerDecodeError as e:
            logger.debug(f"Skipping {file_name}: {e}")
            return None

        try:
            metadata = decode_metadata(sectors[1])
        except ContainerDecodeError as e:
            logger.debug(f"Ignoring metadata of {file_name}: {e}")
            metadata = None

        return PersistentEntry(
            key=header.cache_key,
            manager=self,
            expiration=header.expiration,
            file_name=file_name,
            metadata=metadata,
        )

    def _create_from_stored(self, key: CacheKey, file_name: str) -> Optional[PersistentEntry]:
        entry = self._load_stored(file_name)
        if entry is None:
            logger.error(f"Stored container {file_name} could not be loaded")
            return None
        if entry.key != key:
            self._reject(f"Stored container {file_name} belongs to {entry.key!r}, not {key!r}")
            return None

        with self._lock.read():
            current = self._entries.get(key)
        if current is not None and current.file_name == file_name:
            return current

        return self._install(entry, self._timer_delay(entry))

    def _read_source_file(self, source: FileSource) -> Optional[bytes]:
        try:
            return source.as_path.read_bytes()
        except OSError as e:
            logger.error(f"Cannot read source file {source.path}: {e}")
            self._record_error(str(e))
            return None

    def _read_sectors(
        self,
        file_name: str,
        *sectors: ContainerSector,
    ) -> Optional[Tuple[Optional[bytes], ...]]:
        """Read sectors of a container file, leaving the rest on disk.

        Returns:
            Sector contents in request order, or None if the file is
            missing or unreadable

        Raises:
            ContainerDecodeError: If the file is not a container
        """
        path = self.path_for(file_name)
        with self._lock.read():
            try:
                with open(path, "rb") as f:
                    return tuple(read_sector_from(f, sector) for sector in sectors)
            except FileNotFoundError:
                return None
            except OSError as e:
                logger.error(f"Error reading {path}: {e}")
                self._record_error(str(e))
                return None

    def _write_container(self, file_name: str, container: bytes) -> bool:
        """Write a container atomically via a temp file."""
        path = self.path_for(file_name)
        temp_path = path.with_name(file_name + self.TEMP_SUFFIX)

        try:
            with open(temp_path, "wb") as f:
                f.write(container)
            os.replace(temp_path, path)
            return True

        except OSError as e:
            logger.error(f"Error writing {path}: {e}")
            self._record_error(str(e))
            try:
                temp_path.unlink()
            except OSError:
                pass
            return False

    def _release(self, entry: PersistentEntry) -> None:
        path = self.path_for(entry.file_name)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Error deleting {path}: {e}")
            self._record_error(str(e))

    def __repr__(self) -> str:
        return f"PersistentCacheManager(path={self.base_path}, entries={len(self._entries)})"


__all__ = ["PersistentCacheManager", "default_cache_directory"]

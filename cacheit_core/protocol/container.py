"""CacheIt Container - On-Disk Encoding of Persistent Entries.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Layout:
    [header_length: u64][meta_length: u64][header][metadata][payload]

Both length prefixes are unsigned 64-bit little-endian integers, so a
container written on one architecture reads back on any other. The header
is a JSON object; metadata is a JSON object or absent (length 0); the
payload is everything after the metadata.
"""

from __future__ import annotations

import io
import json
import struct
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from importlib import metadata as importlib_metadata
from typing import Any, BinaryIO, Dict, Optional, Tuple

LENGTH_FORMAT = "<QQ"
PREFIX_SIZE = struct.calcsize(LENGTH_FORMAT)
MAX_LENGTH = 2 ** 64 - 1
DEFAULT_VERSION = "1.0"


class HeaderKeys:
    """JSON keys used in the container header."""

    FILE_NAME = "_fileName"
    CACHE_KEY = "_cacheKey"
    EXPIRATION = "_expiration"
    VERSION = "_version"


class ContainerSector(Enum):
    """Addressable sections of a container."""

    HEADER = auto()
    METADATA = auto()
    PAYLOAD = auto()


class ContainerDecodeError(ValueError):
    """Raised when bytes are not a valid container."""


def library_version() -> str:
    """Get installed package version, or the default if unresolvable."""
    try:
        return importlib_metadata.version("cacheit")
    except importlib_metadata.PackageNotFoundError:
        return DEFAULT_VERSION


def format_expiration(when: datetime) -> str:
    """Format an expiration instant as ISO-8601 with a UTC offset.

    Naive datetimes are taken to be UTC.
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone().isoformat(timespec="seconds")


def parse_expiration(text: str) -> datetime:
    """Parse an expiration written by ``format_expiration``.

    Raises:
        ContainerDecodeError: If the text is not an offset-qualified timestamp
    """
    if not isinstance(text, str):
        raise ContainerDecodeError(f"expiration is not a string: {text!r}")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        when = datetime.fromisoformat(text)
    except ValueError as e:
        raise ContainerDecodeError(f"bad expiration {text!r}: {e}") from e
    if when.tzinfo is None:
        raise ContainerDecodeError(f"expiration has no time zone: {text!r}")
    return when


@dataclass(frozen=True)
class ContainerHeader:
    """Decoded container header.

    Attributes:
        file_name: Container file name
        cache_key: Cache key the container belongs to
        expiration: Expiration instant (timezone-aware)
        version: Library version that wrote the container
    """

    file_name: str
    cache_key: str
    expiration: datetime
    version: str = DEFAULT_VERSION

    def to_dict(self) -> Dict[str, str]:
        return {
            HeaderKeys.FILE_NAME: self.file_name,
            HeaderKeys.CACHE_KEY: self.cache_key,
            HeaderKeys.EXPIRATION: format_expiration(self.expiration),
            HeaderKeys.VERSION: self.version,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ContainerHeader":
        """Build header from its JSON object.

        Raises:
            ContainerDecodeError: If required keys are missing or mistyped
        """
        if not isinstance(data, dict):
            raise ContainerDecodeError("header is not a JSON object")

        cache_key = data.get(HeaderKeys.CACHE_KEY)
        if not isinstance(cache_key, str):
            raise ContainerDecodeError("header has no cache key")

        file_name = data.get(HeaderKeys.FILE_NAME, "")
        version = data.get(HeaderKeys.VERSION, DEFAULT_VERSION)

        return cls(
            file_name=file_name if isinstance(file_name, str) else "",
            cache_key=cache_key,
            expiration=parse_expiration(data.get(HeaderKeys.EXPIRATION)),
            version=version if isinstance(version, str) else DEFAULT_VERSION,
        )


@dataclass(frozen=True)
class DecodedContainer:
    """A fully decoded container."""

    header: ContainerHeader
    metadata: Optional[Dict[str, Any]]
    payload: bytes


def encode_container(
    header: ContainerHeader,
    payload: bytes,
    metadata: Optional[Dict[str, Any]] = None,
) -> bytes:
    """Encode a container.

    Args:
        header: Container header
        payload: Opaque payload bytes
        metadata: Optional JSON-compatible mapping

    Returns:
        Container bytes

    Raises:
        TypeError: If metadata is not JSON-serializable
        ValueError: If the sections cannot be length-prefixed
    """
    header_bytes = json.dumps(header.to_dict(), separators=(",", ":")).encode("utf-8")
    meta_bytes = b""
    if metadata is not None:
        meta_bytes = json.dumps(metadata, separators=(",", ":")).encode("utf-8")

    if len(header_bytes) + len(meta_bytes) + PREFIX_SIZE >= MAX_LENGTH:
        raise ValueError("container sections too large")

    return b"".join((
        struct.pack(LENGTH_FORMAT, len(header_bytes), len(meta_bytes)),
        header_bytes,
        meta_bytes,
        bytes(payload),
    ))


def unpack_lengths(prefix: bytes, container_size: int) -> Tuple[int, int]:
    """Read the header and metadata lengths from a container's prefix.

    Args:
        prefix: At least the first ``PREFIX_SIZE`` bytes of the container
        container_size: Total container size in bytes

    Raises:
        ContainerDecodeError: If the prefix is truncated or the lengths
            point past the end of the container
    """
    if len(prefix) < PREFIX_SIZE or container_size < PREFIX_SIZE:
        raise ContainerDecodeError(f"container too short ({container_size} bytes)")

    header_length, meta_length = struct.unpack_from(LENGTH_FORMAT, prefix, 0)
    if header_length == 0 or PREFIX_SIZE + header_length + meta_length > container_size:
        raise ContainerDecodeError("sector lengths exceed container size")

    return header_length, meta_length


def read_lengths(container: bytes) -> Tuple[int, int]:
    """Read the header and metadata lengths of in-memory container bytes.

    Raises:
        ContainerDecodeError: If the length prefix is invalid
    """
    return unpack_lengths(container, len(container))


def read_sector(container: bytes, sector: ContainerSector) -> Optional[bytes]:
    """Slice one sector out of container bytes.

    Returns:
        Sector bytes, or None for an absent metadata sector

    Raises:
        ContainerDecodeError: If the length prefix is invalid
    """
    header_length, meta_length = read_lengths(container)
    meta_start = PREFIX_SIZE + header_length
    payload_start = meta_start + meta_length

    if sector == ContainerSector.HEADER:
        return bytes(container[PREFIX_SIZE:meta_start])
    if sector == ContainerSector.METADATA:
        if meta_length == 0:
            return None
        return bytes(container[meta_start:payload_start])
    return bytes(container[payload_start:])


def read_sector_from(stream: BinaryIO, sector: ContainerSector) -> Optional[bytes]:
    """Read one sector from a seekable binary stream.

    Only the length prefix and the requested sector are read, so a header
    lookup never touches the payload.

    Returns:
        Sector bytes, or None for an absent metadata sector

    Raises:
        ContainerDecodeError: If the length prefix is invalid
    """
    container_size = stream.seek(0, io.SEEK_END)
    stream.seek(0)
    header_length, meta_length = unpack_lengths(stream.read(PREFIX_SIZE), container_size)

    if sector == ContainerSector.HEADER:
        return stream.read(header_length)

    stream.seek(PREFIX_SIZE + header_length)
    if sector == ContainerSector.METADATA:
        if meta_length == 0:
            return None
        return stream.read(meta_length)

    stream.seek(PREFIX_SIZE + header_length + meta_length)
    return stream.read()


def decode_header(data: bytes) -> ContainerHeader:
    """Decode header sector bytes.

    Raises:
        ContainerDecodeError: If the bytes are not a valid header
    """
    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ContainerDecodeError(f"header is not JSON: {e}") from e
    return ContainerHeader.from_dict(obj)


def decode_metadata(data: Optional[bytes]) -> Optional[Dict[str, Any]]:
    """Decode metadata sector bytes.

    Raises:
        ContainerDecodeError: If present but not a JSON object
    """
    if not data:
        return None
    try:
        obj = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ContainerDecodeError(f"metadata is not JSON: {e}") from e
    if not isinstance(obj, dict):
        raise ContainerDecodeError("metadata is not a JSON object")
    return obj


def decode_container(container: bytes) -> DecodedContainer:
    """Decode all sectors of a container.

    Raises:
        ContainerDecodeError: If any sector is invalid
    """
    return DecodedContainer(
        header=decode_header(read_sector(container, ContainerSector.HEADER)),
        metadata=decode_metadata(read_sector(container, ContainerSector.METADATA)),
        payload=read_sector(container, ContainerSector.PAYLOAD),
    )


__all__ = [
    "ContainerDecodeError",
    "ContainerHeader",
    "ContainerSector",
    "DecodedContainer",
    "HeaderKeys",
    "decode_container",
    "decode_header",
    "decode_metadata",
    "encode_container",
    "format_expiration",
    "library_version",
    "parse_expiration",
    "read_lengths",
    "read_sector",
    "read_sector_from",
    "unpack_lengths",
]

"""CacheIt Serializer - Value Encoding for Cache Payloads.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Managers only ever store opaque bytes. Serializers sit in front of them
and turn arbitrary values into payload bytes on the way in and back into
values on the way out.
"""

from __future__ import annotations

import json
import pickle
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class Serializer(ABC):
    """Abstract payload serializer."""

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Get format name."""
        pass

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Encode value to payload bytes.

        Args:
            value: Value to encode

        Returns:
            Payload bytes
        """
        pass

    @abstractmethod
    def decode(self, data: bytes) -> Any:
        """Decode payload bytes to a value.

        Args:
            data: Payload bytes

        Returns:
            Decoded value
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class JSONSerializer(Serializer):
    """JSON serializer.

    Human-readable and interoperable; limited to JSON-compatible types.
    """

    @property
    def format_name(self) -> str:
        return "json"

    def encode(self, value: Any) -> bytes:
        return json.dumps(value).encode("utf-8")

    def decode(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


class PickleSerializer(Serializer):
    """Pickle serializer.

    Supports any picklable Python object. Not safe for untrusted data,
    which matters for the persistent tier if other users can write to the
    cache directory.
    """

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL):
        """Initialize pickle serializer.

        Args:
            protocol: Pickle protocol version
        """
        self.protocol = protocol

    @property
    def format_name(self) -> str:
        return "pickle"

    def encode(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=self.protocol)

    def decode(self, data: bytes) -> Any:
        return pickle.loads(data)

    def __repr__(self) -> str:
        return f"PickleSerializer(protocol={self.protocol})"


class MsgPackSerializer(Serializer):
    """MessagePack serializer.

    Compact binary format, faster than JSON.
    """

    @property
    def format_name(self) -> str:
        return "msgpack"

    def encode(self, value: Any) -> bytes:
        import msgpack
        return msgpack.packb(value, use_bin_type=True)

    def decode(self, data: bytes) -> Any:
        import msgpack
        return msgpack.unpackb(data, raw=False)


class SerializerRegistry:
    """Registry of serializers by format name."""

    def __init__(self, default: str = "pickle"):
        self._serializers: Dict[str, Serializer] = {}
        self._default = default
        self._lock = threading.Lock()

        self.register(JSONSerializer())
        self.register(PickleSerializer())
        self.register(MsgPackSerializer())

    def register(self, serializer: Serializer) -> None:
        """Register a serializer, replacing any with the same format name."""
        with self._lock:
            self._serializers[serializer.format_name] = serializer

    def get(self, format_name: Optional[str] = None) -> Serializer:
        """Get serializer by format.

        Args:
            format_name: Format name, or None for the default

        Raises:
            KeyError: If format not registered
        """
        name = format_name or self._default
        with self._lock:
            if name not in self._serializers:
                raise KeyError(f"Unknown serializer format: {name}")
            return self._serializers[name]

    def set_default(self, format_name: str) -> None:
        """Set default serializer.

        Raises:
            KeyError: If format not registered
        """
        with self._lock:
            if format_name not in self._serializers:
                raise KeyError(f"Unknown serializer format: {format_name}")
            self._default = format_name

    def list_formats(self) -> List[str]:
        with self._lock:
            return list(self._serializers.keys())


_registry = SerializerRegistry()


def get_serializer(format_name: Optional[str] = None) -> Serializer:
    """Get serializer from the package registry.

    Args:
        format_name: Format name or None for default

    Returns:
        Serializer instance
    """
    return _registry.get(format_name)


__all__ = [
    "Serializer",
    "JSONSerializer",
    "PickleSerializer",
    "MsgPackSerializer",
    "SerializerRegistry",
    "get_serializer",
]

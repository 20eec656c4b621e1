"""Protocol module - Container codec and payload serialization."""

from cacheit_core.protocol.container import (
    ContainerDecodeError,
    ContainerHeader,
    ContainerSector,
    DecodedContainer,
    decode_container,
    decode_header,
    decode_metadata,
    encode_container,
    read_sector,
    read_sector_from,
)
from cacheit_core.protocol.serializer import (
    Serializer,
    JSONSerializer,
    PickleSerializer,
    MsgPackSerializer,
    SerializerRegistry,
    get_serializer,
)

__all__ = [
    "ContainerDecodeError",
    "ContainerHeader",
    "ContainerSector",
    "DecodedContainer",
    "decode_container",
    "decode_header",
    "decode_metadata",
    "encode_container",
    "read_sector",
    "read_sector_from",
    "Serializer",
    "JSONSerializer",
    "PickleSerializer",
    "MsgPackSerializer",
    "SerializerRegistry",
    "get_serializer",
]

"""Protocol-buffer wire encoding for the messages of the OSM PBF format."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

WIRE_VARINT = 0
WIRE_LENGTH_DELIMITED = 2

_UINT64_LIMIT = 1 << 64
_INT64_MIN = -(1 << 63)
_UINT64_MASK = _UINT64_LIMIT - 1


def encode_varint(value: int) -> bytes:
    """Encode an integer as a base-128 varint.

    Negative values are written as their 64-bit two's complement, which is
    how protocol buffers store negative int32 and int64 fields.
    """
    if value < _INT64_MIN or value >= _UINT64_LIMIT:
        raise ValueError(f"varint out of 64-bit range: {value}")
    value &= _UINT64_MASK
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def zigzag(value: int) -> int:
    """Map a signed 64-bit integer onto an unsigned one (sint64 encoding)."""
    return (value << 1) ^ (value >> 63)


def _key(number: int, wire_type: int) -> bytes:
    if number < 1:
        raise ValueError(f"field number must be positive: {number}")
    return encode_varint((number << 3) | wire_type)


def field_varint(number: int, value: int) -> bytes:
    """Encode a varint field (int32, int64, uint32, bool, enum)."""
    return _key(number, WIRE_VARINT) + encode_varint(int(value))


def field_sint64(number: int, value: int) -> bytes:
    """Encode a zigzag-encoded sint64 field."""
    return _key(number, WIRE_VARINT) + encode_varint(zigzag(value))


def field_bytes(number: int, data: bytes) -> bytes:
    """Encode a length-delimited field holding raw bytes."""
    return _key(number, WIRE_LENGTH_DELIMITED) + encode_varint(len(data)) + bytes(data)


def field_string(number: int, text: str) -> bytes:
    """Encode a string field as UTF-8."""
    return field_bytes(number, text.encode("utf-8"))


def packed_varints(number: int, values: Iterable[int]) -> bytes:
    """Encode a packed repeated varint field; an empty sequence is omitted."""
    payload = b"".join(encode_varint(v) for v in values)
    return field_bytes(number, payload) if payload else b""


def packed_sint64(number: int, values: Iterable[int]) -> bytes:
    """Encode a packed repeated sint64 field; an empty sequence is omitted."""
    return packed_varints(number, (zigzag(v) for v in values))


@dataclass(frozen=True)
class HeaderBBox:
    """Bounding box of a PBF file, in nanodegrees."""

    left: int
    right: int
    top: int
    bottom: int

    def to_bytes(self) -> bytes:
        return b"".join(
            (
                field_sint64(1, self.left),
                field_sint64(2, self.right),
                field_sint64(3, self.top),
                field_sint64(4, self.bottom),
            )
        )


@dataclass
class Info:
    """Optional metadata of an OSM element; unset fields are not written."""

    version: int | None = None
    timestamp: int | None = None
    changeset: int | None = None
    uid: int | None = None
    user_sid: int | None = None
    visible: bool | None = None

    def to_bytes(self) -> bytes:
        fields = (
            (1, self.version),
            (2, self.timestamp),
            (3, self.changeset),
            (4, self.uid),
            (5, self.user_sid),
            (6, self.visible),
        )
        return b"".join(
            field_varint(number, value) for number, value in fields if value is not None
        )
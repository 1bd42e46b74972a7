"""Wire-format codecs for the value types generated code reads and writes.

Integers are little-endian at their declared width, lengths and counts are
8-byte unsigned integers, and nothing carries a type marker.
"""

import struct
from typing import Any

from .serialization import Codable, DecodeError, EncodeError

LENGTH_SIZE = 8

# Elements that take no input bytes, such as unit records, a list may hold beyond
# its remaining input
MAX_EMPTY_ITEMS = 1 << 16


def take(data: memoryview, size: int, what: str) -> tuple[memoryview, memoryview]:
    """Split size bytes off the front of data."""
    if len(data) < size:
        raise DecodeError(f"{what} needs {size} bytes, {len(data)} remaining")
    return data[:size], data[size:]


class Codec:
    """Encodes values of one wire type and decodes them back."""

    name: str = "codec"

    def encode(self, value: Any, buf: bytearray) -> None:
        raise NotImplementedError

    def decode(self, data: memoryview) -> tuple[Any, memoryview]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class IntegerCodec(Codec):
    """Fixed-width little-endian integer."""

    def __init__(self, name: str, size: int, signed: bool) -> None:
        self.name = name
        self.size = size
        self.signed = signed

    @property
    def min_value(self) -> int:
        return -(1 << (self.size * 8 - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        bits = self.size * 8 - 1 if self.signed else self.size * 8
        return (1 << bits) - 1

    def encode(self, value: int, buf: bytearray) -> None:
        try:
            buf.extend(value.to_bytes(self.size, "little", signed=self.signed))
        except (OverflowError, AttributeError) as exc:
            raise EncodeError(f"{value!r} is not a valid {self.name}") from exc

    def decode(self, data: memoryview) -> tuple[int, memoryview]:
        raw, rest = take(data, self.size, self.name)
        return int.from_bytes(raw, "little", signed=self.signed), rest


U8 = IntegerCodec("u8", 1, False)
U16 = IntegerCodec("u16", 2, False)
U32 = IntegerCodec("u32", 4, False)
U64 = IntegerCodec("u64", 8, False)
U128 = IntegerCodec("u128", 16, False)
I8 = IntegerCodec("i8", 1, True)
I16 = IntegerCodec("i16", 2, True)
I32 = IntegerCodec("i32", 4, True)
I64 = IntegerCodec("i64", 8, True)
I128 = IntegerCodec("i128", 16, True)
# Pointer-sized integers are always 8 bytes on the wire
USIZE = IntegerCodec("usize", 8, False)
ISIZE = IntegerCodec("isize", 8, True)

INTEGER_CODECS = {
    codec.name: codec for codec in (U8, U16, U32, U64, U128, I8, I16, I32, I64, I128, USIZE, ISIZE)
}


class BoolCodec(Codec):
    """One byte; any nonzero value decodes as True."""

    name = "bool"

    def encode(self, value: bool, buf: bytearray) -> None:
        buf.append(1 if value else 0)

    def decode(self, data: memoryview) -> tuple[bool, memoryview]:
        raw, rest = take(data, 1, self.name)
        return raw[0] != 0, rest


BOOL = BoolCodec()


class StringCodec(Codec):
    """Byte length followed by UTF-8 bytes."""

    name = "string"

    def encode(self, value: str, buf: bytearray) -> None:
        raw = value.encode("utf-8")
        U64.encode(len(raw), buf)
        buf.extend(raw)

    def decode(self, data: memoryview) -> tuple[str, memoryview]:
        length, rest = U64.decode(data)
        raw, rest = take(rest, length, self.name)
        try:
            return raw.tobytes().decode("utf-8"), rest
        except UnicodeDecodeError as exc:
            raise DecodeError(f"invalid UTF-8 in string: {exc.reason}") from exc


STRING = StringCodec()


class OptionalCodec(Codec):
    """Presence byte followed by the payload when present."""

    def __init__(self, inner: Codec) -> None:
        self.inner = inner
        self.name = f"optional<{inner.name}>"

    def encode(self, value: Any, buf: bytearray) -> None:
        if value is None:
            buf.append(0)
            return
        buf.append(1)
        self.inner.encode(value, buf)

    def decode(self, data: memoryview) -> tuple[Any, memoryview]:
        present, rest = BOOL.decode(data)
        if not present:
            return None, rest
        return self.inner.decode(rest)


class ListCodec(Codec):
    """Element count followed by each element."""

    def __init__(self, inner: Codec) -> None:
        self.inner = inner
        self.name = f"list<{inner.name}>"

    def encode(self, value: list[Any], buf: bytearray) -> None:
        U64.encode(len(value), buf)
        start = len(buf)
        for item in value:
            self.inner.encode(item, buf)
        if len(value) > len(buf) - start + MAX_EMPTY_ITEMS:
            raise EncodeError(f"{self.name} has too many elements that encode to no bytes")

    def decode(self, data: memoryview) -> tuple[list[Any], memoryview]:
        count, rest = U64.decode(data)
        if count > len(rest) + MAX_EMPTY_ITEMS:
            raise DecodeError(f"{self.name} count {count} exceeds the remaining input")
        items = []
        for _ in range(count):
            item, rest = self.inner.decode(rest)
            items.append(item)
        return items, rest


class ArrayCodec(Codec):
    """Exactly size elements, no length prefix."""

    def __init__(self, inner: Codec, size: int) -> None:
        self.inner = inner
        self.size = size
        self.name = f"{inner.name}[{size}]"

    def encode(self, value: list[Any], buf: bytearray) -> None:
        if len(value) != self.size:
            raise EncodeError(f"{self.name} must have {self.size} elements, got {len(value)}")
        for item in value:
            self.inner.encode(item, buf)

    def decode(self, data: memoryview) -> tuple[list[Any], memoryview]:
        items = []
        for _ in range(self.size):
            item, data = self.inner.decode(data)
            items.append(item)
        return items, data


class PackedBoolsCodec(Codec):
    """Eight booleans in one byte, first element in the most significant bit."""

    name = "bool[8]"

    def encode(self, value: list[bool], buf: bytearray) -> None:
        if len(value) != 8:
            raise EncodeError(f"bool[8] must have 8 elements, got {len(value)}")
        byte = 0
        for bit in value:
            byte = (byte << 1) | (1 if bit else 0)
        buf.append(byte)

    def decode(self, data: memoryview) -> tuple[list[bool], memoryview]:
        raw, rest = take(data, 1, self.name)
        byte = raw[0]
        return [bool(byte & (0x80 >> i)) for i in range(8)], rest


PACKED_BOOLS = PackedBoolsCodec()


class MapCodec(Codec):
    """Pair count followed by each key and value."""

    def __init__(self, key: Codec, value: Codec) -> None:
        self.key = key
        self.value = value
        self.name = f"map<{key.name}, {value.name}>"

    def encode(self, value: dict[Any, Any], buf: bytearray) -> None:
        U64.encode(len(value), buf)
        for k, v in value.items():
            self.key.encode(k, buf)
            self.value.encode(v, buf)

    def decode(self, data: memoryview) -> tuple[dict[Any, Any], memoryview]:
        count, rest = U64.decode(data)
        # Keys are primitives, so every pair takes at least one byte
        if count > len(rest):
            raise DecodeError(f"{self.name} count {count} exceeds the remaining input")
        result = {}
        for _ in range(count):
            k, rest = self.key.decode(rest)
            v, rest = self.value.decode(rest)
            result[k] = v
        return result, rest


class TypeCodec(Codec):
    """Adapts a generated record or union class to the Codec interface."""

    def __init__(self, cls: type[Codable]) -> None:
        self.cls = cls
        self.name = cls.__qualname__

    def encode(self, value: Codable, buf: bytearray) -> None:
        value.encode_to_buf(buf)

    def decode(self, data: memoryview) -> tuple[Codable, memoryview]:
        return self.cls._decode(data)


def pack_fields(fmt: str, *values: Any) -> bytes:
    """Pack a run of fixed-width fields with one struct call."""
    try:
        return struct.pack(fmt, *values)
    except struct.error as exc:
        raise EncodeError(f"cannot pack {values!r} as {fmt}: {exc}") from exc


def unpack_fields(fmt: str, size: int, data: memoryview) -> tuple[tuple[Any, ...], memoryview]:
    """Unpack a run of fixed-width fields, returning them and the remaining bytes."""
    raw, rest = take(data, size, fmt)
    return struct.unpack(fmt, raw), rest

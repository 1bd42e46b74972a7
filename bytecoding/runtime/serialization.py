"""Base classes and helpers for generated record and union types."""

import logging
from collections.abc import Callable
from typing import Any, ClassVar, Self

logger = logging.getLogger(__name__)


class SerializationError(RuntimeError):
    """Raised when serialization or deserialization fails."""


class EncodeError(SerializationError):
    """Raised when a value cannot be represented in its wire type."""


class DecodeError(SerializationError):
    """Raised by generated code when input bytes cannot be decoded."""


class Codable:
    """Base class for generated types.

    Generated subclasses implement encode_to_buf() and _decode(). The public
    decode methods never raise on malformed input: they return None instead,
    so callers can treat bad bytes as ordinary data.
    """

    def encoded(self) -> bytes:
        """Return the wire encoding of this value."""
        buf = bytearray()
        self.encode_to_buf(buf)
        return bytes(buf)

    def encode_to_buf(self, buf: bytearray) -> None:
        """Append the wire encoding of this value to buf."""
        raise NotImplementedError("encode_to_buf() must be implemented by generated code")

    @classmethod
    def decode(cls, data: bytes | bytearray | memoryview) -> Self | None:
        """Decode a value from data, ignoring any trailing bytes.

        Returns:
            The decoded value, or None if data is malformed.
        """
        result = cls.decode_from_buf(data)
        if result is None:
            return None
        return result[0]

    @classmethod
    def decode_from_buf(cls, data: bytes | bytearray | memoryview) -> tuple[Self, bytes] | None:
        """Decode a value from the start of data.

        Returns:
            Tuple of (value, remaining bytes), or None if data is malformed.
        """
        try:
            value, rest = cls._decode(memoryview(data))
        except DecodeError as exc:
            logger.debug("Failed to decode %s: %s", cls.__qualname__, exc)
            return None
        return value, bytes(rest)

    @classmethod
    def _decode(cls, data: memoryview) -> tuple[Self, memoryview]:
        raise NotImplementedError("_decode() must be implemented by generated code")


class Record(Codable):
    """Base class for generated record types.

    Example:
        @dataclass
        class Point(Record):
            x: int
            y: int

            def encode_to_buf(self, _buf: bytearray) -> None:
                _buf.extend(pack_fields("<ii", self.x, self.y))
    """

    @classmethod
    def default(cls) -> Self:
        """Return the value used for ignored fields of this type."""
        raise NotImplementedError(f"{cls.__qualname__} has no default value")


class Union(Codable):
    """Base class for generated tagged unions.

    Each variant is a dataclass subclass of the union. Generated code fills in
    _variants (tag -> variant class) and gives every variant its _tag and
    pre-encoded _tag_bytes.
    """

    _variants: ClassVar[dict[int, type["Union"]]] = {}
    _tag: ClassVar[int]
    _tag_bytes: ClassVar[bytes]

    @property
    def tag(self) -> int:
        return self._tag

    def _encode_fields(self, buf: bytearray) -> None:
        raise NotImplementedError("_encode_fields() must be implemented by generated code")

    @classmethod
    def _decode_fields(cls, data: memoryview) -> tuple[Self, memoryview]:
        raise NotImplementedError("_decode_fields() must be implemented by generated code")


def apply_pre_decode(hook: Callable[[memoryview], Any], data: memoryview) -> memoryview:
    """Run a pre-decode hook, failing the decode if it rejects the input."""
    result = hook(data)
    if result is None:
        raise DecodeError(f"pre-decode hook {_hook_name(hook)} rejected the input")
    return memoryview(result)


def apply_post_decode(
    hook: Callable[[Any, memoryview], Any], value: Any, data: memoryview
) -> tuple[Any, memoryview]:
    """Run a post-decode hook, failing the decode if it returns None."""
    result = hook(value, data)
    if result is None:
        raise DecodeError(f"post-decode hook {_hook_name(hook)} rejected the value")
    new_value, rest = result
    return new_value, memoryview(rest)


def _hook_name(hook: Callable[..., Any]) -> str:
    return getattr(hook, "__qualname__", repr(hook))

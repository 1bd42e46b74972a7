"""Sequential encoding and decoding over a single buffer."""

from typing import Any

from .primitives import Codec, TypeCodec
from .serialization import Codable, DecodeError


class Coder:
    """Encodes several values into one buffer and decodes them back in order.

    Example:
        coder = Coder()
        coder.encode("object", STRING)
        coder.encode(Point(x=1, y=2))
        text = coder.decode_next(STRING)
        point = coder.decode_next(Point)

    Not thread-safe: concurrent callers must serialize access to the cursor.
    """

    def __init__(self, buffer: bytes | bytearray = b"") -> None:
        self._buffer = bytearray(buffer)
        self._decode_index = 0

    @property
    def buffer(self) -> bytes:
        return bytes(self._buffer)

    @property
    def decode_index(self) -> int:
        return self._decode_index

    def reset_decode_index(self) -> None:
        self._decode_index = 0

    def encode(self, value: Any, codec: Codec | None = None) -> None:
        """Append value to the buffer.

        Generated types encode themselves; anything else needs a codec.
        """
        if codec is not None:
            codec.encode(value, self._buffer)
        elif isinstance(value, Codable):
            value.encode_to_buf(self._buffer)
        else:
            raise TypeError(f"no codec given for {type(value).__name__} value")

    def decode_next(self, target: Codec | type[Codable]) -> Any | None:
        """Decode the next value at the cursor.

        Returns:
            The decoded value, or None if the remaining bytes are malformed.
            The cursor only advances on success.
        """
        codec = target if isinstance(target, Codec) else TypeCodec(target)
        remaining = bytes(self._buffer[self._decode_index :])
        try:
            value, rest = codec.decode(memoryview(remaining))
        except DecodeError:
            return None
        self._decode_index = len(self._buffer) - len(rest)
        return value

"""Generated by bytecoding. Do not edit."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
import hooks

_runtime_path = str(Path(__file__).resolve().parent)
_added_to_path = _runtime_path not in sys.path
if _added_to_path:
    sys.path.insert(0, _runtime_path)
try:
    from bytecoding_runtime import (
        BOOL,
        I8,
        I16,
        I32,
        I64,
        I128,
        ISIZE,
        PACKED_BOOLS,
        STRING,
        U8,
        U16,
        U32,
        U64,
        U128,
        USIZE,
        ArrayCodec,
        DecodeError,
        ListCodec,
        MapCodec,
        OptionalCodec,
        Record,
        TypeCodec,
        Union,
        apply_post_decode,
        apply_pre_decode,
        pack_fields,
        unpack_fields,
    )
finally:
    if _added_to_path:
        sys.path.remove(_runtime_path)


@dataclass
class Reading(Record):
    sensor: str
    value: int
    flags: list[bool]
    received_at: int | None

    def encode_to_buf(self, _buf: bytearray) -> None:
        STRING.encode(self.sensor, _buf)
        _buf.extend(pack_fields("<i", self.value))
        _codec0.encode(self.flags, _buf)
        hooks.append_checksum(_buf)

    @classmethod
    def _decode(cls, _data: memoryview) -> tuple[Reading, memoryview]:
        _data = apply_pre_decode(hooks.check_checksum, _data)
        _f_sensor, _data = STRING.decode(_data)
        (_f_value,), _data = unpack_fields("<i", 4, _data)
        _f_flags, _data = _codec0.decode(_data)
        return cls(sensor=_f_sensor, value=_f_value, flags=_f_flags, received_at=None), _data

    @classmethod
    def default(cls) -> Reading:
        return cls(sensor="", value=0, flags=[False for _ in range(8)], received_at=None)


class Command(Union):
    def encode_to_buf(self, _buf: bytearray) -> None:
        _buf.extend(self._tag_bytes)
        self._encode_fields(_buf)

    @classmethod
    def _decode(cls, _data: memoryview) -> tuple[Command, memoryview]:
        _tag, _data = U8.decode(_data)
        _variant = cls._variants.get(_tag)
        if _variant is None:
            raise DecodeError(f"Unknown tag {_tag} for Command")
        _value, _data = _variant._decode_fields(_data)
        return _value, _data


@dataclass
class _Command_0(Command):
    __qualname__ = "Command.Ping"
    _tag = 0
    _tag_bytes = b'\x00'

    def _encode_fields(self, _buf: bytearray) -> None:
        pass

    @classmethod
    def _decode_fields(cls, _data: memoryview) -> tuple[Command, memoryview]:
        return cls(), _data


@dataclass
class _Command_1(Command):
    __qualname__ = "Command.SetRate"
    _tag = 10
    _tag_bytes = b'\n'
    hz: int

    def _encode_fields(self, _buf: bytearray) -> None:
        _buf.extend(pack_fields("<H", self.hz))

    @classmethod
    def _decode_fields(cls, _data: memoryview) -> tuple[Command, memoryview]:
        (_f_hz,), _data = unpack_fields("<H", 2, _data)
        return cls(hz=_f_hz), _data


@dataclass
class _Command_2(Command):
    __qualname__ = "Command.Calibrate"
    _tag = 11
    _tag_bytes = b'\x0b'
    f0: int
    f1: int

    def _encode_fields(self, _buf: bytearray) -> None:
        _buf.extend(pack_fields("<hh", self.f0, self.f1))

    @classmethod
    def _decode_fields(cls, _data: memoryview) -> tuple[Command, memoryview]:
        (_f_f0, _f_f1), _data = unpack_fields("<hh", 4, _data)
        return cls(f0=_f_f0, f1=_f_f1), _data


@dataclass
class _Command_3(Command):
    __qualname__ = "Command.Reboot"
    _tag = 99
    _tag_bytes = b'c'

    def _encode_fields(self, _buf: bytearray) -> None:
        pass

    @classmethod
    def _decode_fields(cls, _data: memoryview) -> tuple[Command, memoryview]:
        return cls(), _data


Command.Ping = _Command_0
Command.SetRate = _Command_1
Command.Calibrate = _Command_2
Command.Reboot = _Command_3
Command._variants = {
    0: _Command_0,
    10: _Command_1,
    11: _Command_2,
    99: _Command_3,
}


_codec0 = PACKED_BOOLS

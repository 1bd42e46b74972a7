"""Tests for wire primitives"""

from pytest import raises

from bytecoding.runtime.primitives import (
    BOOL,
    I8,
    I128,
    PACKED_BOOLS,
    STRING,
    U8,
    U16,
    U128,
    MAX_EMPTY_ITEMS,
    USIZE,
    ArrayCodec,
    ListCodec,
    MapCodec,
    OptionalCodec,
    pack_fields,
    unpack_fields,
)
from bytecoding.runtime.serialization import DecodeError, EncodeError


def encode(codec, value):
    buf = bytearray()
    codec.encode(value, buf)
    return bytes(buf)


def decode(codec, data):
    value, rest = codec.decode(memoryview(data))
    return value, bytes(rest)


def describe_integers():
    def encodes_little_endian(expect):
        expect(encode(U16, 0x1234)) == b"\x34\x12"
        expect(encode(I8, -1)) == b"\xff"
        expect(encode(U128, 1)) == b"\x01" + b"\x00" * 15
        expect(encode(USIZE, 1)) == b"\x01" + b"\x00" * 7

    def decodes_and_returns_rest(expect):
        expect(decode(U16, b"\x34\x12\x99")) == (0x1234, b"\x99")
        expect(decode(I128, b"\xff" * 16)) == (-1, b"")

    def rejects_out_of_range(expect):
        with raises(EncodeError):
            encode(U16, 65536)
        with raises(EncodeError):
            encode(U16, -1)

    def rejects_short_input(expect):
        with raises(DecodeError):
            decode(U16, b"\x01")

    def reports_range(expect):
        expect(I8.min_value) == -128
        expect(I8.max_value) == 127
        expect(U16.max_value) == 65535


def describe_bool():
    def encodes_one_byte(expect):
        expect(encode(BOOL, True)) == b"\x01"
        expect(encode(BOOL, False)) == b"\x00"

    def treats_nonzero_as_true(expect):
        expect(decode(BOOL, b"\x05")) == (True, b"")
        expect(decode(BOOL, b"\x00")) == (False, b"")


def describe_string():
    def encodes_length_prefix(expect):
        expect(encode(STRING, "test")) == bytes([4, 0, 0, 0, 0, 0, 0, 0]) + b"test"

    def decodes_to_empty_remainder(expect):
        expect(decode(STRING, bytes([4, 0, 0, 0, 0, 0, 0, 0]) + b"test")) == ("test", b"")

    def counts_bytes_not_characters(expect):
        expect(encode(STRING, "é")[0]) == 2

    def rejects_invalid_utf8(expect):
        with raises(DecodeError):
            decode(STRING, bytes([1, 0, 0, 0, 0, 0, 0, 0, 0xFF]))

    def rejects_length_past_end(expect):
        with raises(DecodeError):
            decode(STRING, bytes([5, 0, 0, 0, 0, 0, 0, 0]) + b"abc")


def describe_containers():
    def encodes_optional_presence(expect):
        codec = OptionalCodec(U16)
        expect(encode(codec, None)) == b"\x00"
        expect(encode(codec, 2)) == b"\x01\x02\x00"
        expect(decode(codec, b"\x07\x02\x00")) == (2, b"")

    def encodes_list_count(expect):
        codec = ListCodec(BOOL)
        expect(encode(codec, [True, False])) == bytes([2, 0, 0, 0, 0, 0, 0, 0, 1, 0])
        expect(decode(codec, bytes([0] * 8))) == ([], b"")

    def encodes_arrays_without_prefix(expect):
        codec = ArrayCodec(U16, 2)
        expect(encode(codec, [1, 2])) == b"\x01\x00\x02\x00"
        expect(decode(codec, b"\x01\x00\x02\x00")) == ([1, 2], b"")

    def rejects_wrong_array_length(expect):
        with raises(EncodeError):
            encode(ArrayCodec(U16, 2), [1])

    def encodes_maps_as_pairs(expect):
        codec = MapCodec(STRING, BOOL)
        encoded = encode(codec, {"a": True})
        expect(encoded) == bytes([1, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0, 0]) + b"a\x01"
        expect(decode(codec, encoded)) == ({"a": True}, b"")

    def decodes_lists_of_zero_width_elements(expect):
        codec = ListCodec(ArrayCodec(U16, 0))
        expect(decode(codec, bytes([3, 0, 0, 0, 0, 0, 0, 0]))) == ([[], [], []], b"")

    def rejects_list_counts_past_the_input(expect):
        with raises(DecodeError):
            decode(ListCodec(ArrayCodec(U16, 0)), bytes([0xFF] * 8) + b"\x01")

    def rejects_too_many_zero_width_elements(expect):
        with raises(EncodeError):
            encode(ListCodec(ArrayCodec(U16, 0)), [[]] * (MAX_EMPTY_ITEMS + 1))

    def rejects_map_counts_past_the_input(expect):
        with raises(DecodeError):
            decode(MapCodec(U8, ArrayCodec(U16, 0)), bytes([2, 0, 0, 0, 0, 0, 0, 0]) + b"\x01")

    def names_nested_codecs(expect):
        codec = MapCodec(STRING, ListCodec(OptionalCodec(U16)))
        expect(codec.name) == "map<string, list<optional<u16>>>"


def describe_packed_bools():
    def packs_first_element_into_high_bit(expect):
        bits = [True, False, True, False, True, False, True, False]
        expect(encode(PACKED_BOOLS, bits)) == bytes([0b10101010])
        expect(decode(PACKED_BOOLS, bytes([0b10101010]))) == (bits, b"")

    def unpacks_low_bit_last(expect):
        value, _ = decode(PACKED_BOOLS, b"\x01")
        expect(value) == [False] * 7 + [True]


def describe_struct_batches():
    def packs_and_unpacks(expect):
        packed = pack_fields("<HbQ?", 1, -1, 2, True)
        expect(len(packed)) == 12
        values, rest = unpack_fields("<HbQ?", 12, memoryview(packed + b"x"))
        expect(values) == (1, -1, 2, True)
        expect(bytes(rest)) == b"x"

    def wraps_struct_errors(expect):
        with raises(EncodeError):
            pack_fields("<B", 256)

    def rejects_short_input(expect):
        with raises(DecodeError):
            unpack_fields("<I", 4, memoryview(b"\x00\x00"))

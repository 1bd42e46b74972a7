"""Tests for union tag assignment."""

import pytest

from bytecoding.generator import parse
from bytecoding.generator.attributes import resolve_type_attributes, resolve_variant_attributes
from bytecoding.generator.parser import ResolutionError
from bytecoding.generator.tags import assign_tags, parse_discriminant
from bytecoding.generator.types import SourceLocation, UnionOptions


def tags_for(text):
    _, unions = parse(text)
    union = unions[0]
    options = resolve_type_attributes(union.annotations).union_options or UnionOptions()
    variants = [(v, resolve_variant_attributes(v.annotations)) for v in union.variants]
    return assign_tags(variants, options)


def describe_assign_tags():
    def continues_inference_after_explicit_value(expect):
        tags = tags_for(
            """
            @codec(inferred_values)
            union A {
                First
                @codec(value = 10)
                Second
                Third
            }
        """
        )
        expect(tags) == [0, 10, 11]

    def infers_from_zero(expect):
        expect(tags_for("@codec(inferred_values)\nunion A { B C D }")) == [0, 1, 2]

    def uses_discriminants(expect):
        expect(tags_for("union A { B = 1\n C = 5\n D = 1_000 }")) == [1, 5, 1000]

    def prefers_value_over_discriminant(expect):
        expect(tags_for("union A { @codec(value = 3) B = 1 }")) == [3]

    def discriminants_reseed_inference(expect):
        tags = tags_for(
            """
            @codec(inferred_values)
            union A {
                B
                C = 20
                D
            }
        """
        )
        expect(tags) == [0, 20, 21]

    def mixes_explicit_values_and_discriminants(expect):
        tags = tags_for(
            """
            @codec(encoding_type = "u16")
            union Example {
                A1 = 1
                @codec(value = 2)
                A2
                @codec(value = 3)
                A3 { f1: u32, f2: u64 }
                @codec(value = 4)
                A4(u32, u64)
            }
        """
        )
        expect(tags) == [1, 2, 3, 4]

    def accepts_empty_union(expect):
        expect(tags_for("union A {}")) == []

    def rejects_missing_tag_source(expect):
        with pytest.raises(ResolutionError) as exc:
            tags_for("union A { B = 1\n C }")
        expect(exc.value.message) == "No discriminant or value provided"
        expect(exc.value.location.line) == 2

    def rejects_duplicate_tags(expect):
        with pytest.raises(ResolutionError) as exc:
            tags_for(
                """
                @codec(inferred_values)
                union A {
                    B
                    @codec(value = 0)
                    C
                }
            """
            )
        expect(exc.value.message) == "2 or more variants share the value 0"

    def rejects_inferred_collision_with_earlier_value(expect):
        with pytest.raises(ResolutionError) as exc:
            tags_for(
                """
                @codec(inferred_values)
                union A {
                    @codec(value = 1)
                    B
                    @codec(value = 0)
                    C
                    D
                }
            """
            )
        expect(exc.value.message) == "2 or more variants share the value 1"

    def rejects_values_too_large_for_width(expect):
        with pytest.raises(ResolutionError) as exc:
            tags_for('@codec(encoding_type = "u8")\nunion A { B = 256 }')
        expect(exc.value.message) == "Value 256 too large for u8"

    def accepts_largest_value_for_width(expect):
        expect(tags_for('@codec(encoding_type = "u8")\nunion A { B = 255 }')) == [255]

    def default_width_is_u16(expect):
        with pytest.raises(ResolutionError) as exc:
            tags_for("union A { B = 65536 }")
        expect(exc.value.message) == "Value 65536 too large for u16"

    def wraps_inferred_values_into_a_duplicate(expect):
        with pytest.raises(ResolutionError) as exc:
            tags_for(
                f"""
                @codec(encoding_type = "u128", inferred_values)
                union A {{
                    B
                    @codec(value = {2**128 - 1})
                    C
                    D
                }}
            """
            )
        expect(exc.value.message) == "2 or more variants share the value 0"


def describe_parse_discriminant():
    location = SourceLocation(1, 1)

    def parses_decimal(expect):
        expect(parse_discriminant("42", location)) == 42
        expect(parse_discriminant("1_000", location)) == 1000

    def rejects_other_bases(expect):
        with pytest.raises(ResolutionError) as exc:
            parse_discriminant("0x10", location)
        expect(exc.value.message) == "Unsupported expression. Base 10 integer literals only."

    def rejects_expressions(expect):
        with pytest.raises(ResolutionError) as exc:
            parse_discriminant("1+1", location)
        expect(exc.value.message) == "Unsupported expression. Integer literals only."

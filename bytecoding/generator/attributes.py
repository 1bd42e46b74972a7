"""Resolution of @codec annotation blocks into attribute values.

A declaration may carry any number of blocks. Each block is parsed on its
own, then the blocks are folded left to right: a later value replaces an
earlier one, and flags are OR-ed together.
"""

import re
from collections.abc import Callable
from functools import reduce
from typing import TypeVar

from .parser import ResolutionError
from .types import (
    Annotation,
    AnnotationArg,
    EncodingType,
    FieldAttributes,
    SourceLocation,
    TypeAttributes,
    UnionOptions,
    VariantAttributes,
)

CODEC_ANNOTATION = "codec"

HOOK_KEYS = ("pre_enc_func", "post_enc_func", "pre_dec_func", "post_dec_func")
TYPE_KEYS = frozenset([*HOOK_KEYS, "encoding_type"])
TYPE_FLAGS = frozenset(["inferred_values"])
FIELD_KEYS = frozenset(["order_no"])
FIELD_FLAGS = frozenset(["ignore"])
VARIANT_KEYS = frozenset(["value"])

MAX_ORDER_NO = (1 << 64) - 1
MAX_VARIANT_VALUE = (1 << 128) - 1

# dotted.name or package.module:dotted.name
_HOOK_PATH = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*"
    r"(:[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*)?$"
)


def _codec_blocks(annotations: list[Annotation]) -> list[Annotation]:
    for annotation in annotations:
        if annotation.name != CODEC_ANNOTATION:
            raise ResolutionError(f"Unknown annotation @{annotation.name}", annotation.location)
    return annotations


def _value_location(arg: AnnotationArg) -> SourceLocation:
    return arg.value_location or arg.location


def _expect_string(arg: AnnotationArg) -> str:
    if arg.kind != "string":
        raise ResolutionError("Expected a string.", _value_location(arg))
    return arg.value


def _expect_integer(arg: AnnotationArg, max_value: int) -> int:
    if arg.kind != "integer":
        raise ResolutionError("Expected a number.", _value_location(arg))
    if arg.value > max_value:
        raise ResolutionError("Invalid integer", _value_location(arg))
    return arg.value


def _check_arg_form(arg: AnnotationArg, keys: frozenset[str], flags: frozenset[str]) -> str:
    """Reject bare literals, unknown keys and misused flags, returning the key."""
    if arg.name is None:
        raise ResolutionError("Unexpected attribute literal", arg.location)
    if arg.name not in keys and arg.name not in flags:
        raise ResolutionError("Unknown attribute name", arg.location)
    if arg.name in flags and arg.kind != "flag":
        raise ResolutionError(f"{arg.name} does not take a value", arg.location)
    if arg.name not in flags and arg.kind == "flag":
        raise ResolutionError(f"Expected {arg.name} = <value>", arg.location)
    return arg.name


def parse_type_block(annotation: Annotation) -> TypeAttributes:
    """Parse one annotation block attached to a record or union."""
    attributes = TypeAttributes()
    options: UnionOptions | None = None

    for arg in annotation.arguments:
        key = _check_arg_form(arg, TYPE_KEYS, TYPE_FLAGS)

        if key in HOOK_KEYS:
            path = _expect_string(arg)
            if not _HOOK_PATH.match(path):
                raise ResolutionError(f"Invalid hook path '{path}'", _value_location(arg))
            setattr(attributes, key, path)
        elif key == "encoding_type":
            text = _expect_string(arg)
            try:
                encoding_type = EncodingType(text)
            except ValueError:
                raise ResolutionError("Unknown encoding type.", _value_location(arg)) from None
            options = (options or UnionOptions()).merged(UnionOptions(encoding_type=encoding_type))
        else:
            options = (options or UnionOptions()).merged(UnionOptions(inferred_values=True))

    if options is not None:
        attributes.union_options = options
        attributes.union_location = annotation.location

    return attributes


def parse_field_block(annotation: Annotation) -> FieldAttributes:
    """Parse one annotation block attached to a record field."""
    attributes = FieldAttributes()

    for arg in annotation.arguments:
        key = _check_arg_form(arg, FIELD_KEYS, FIELD_FLAGS)

        if key == "order_no":
            attributes.order_no = _expect_integer(arg, MAX_ORDER_NO)
        else:
            attributes.ignore = True

    return attributes


def parse_variant_block(annotation: Annotation) -> VariantAttributes:
    """Parse one annotation block attached to a union variant."""
    attributes = VariantAttributes()

    for arg in annotation.arguments:
        _check_arg_form(arg, VARIANT_KEYS, frozenset())
        attributes.value = _expect_integer(arg, MAX_VARIANT_VALUE)

    return attributes


TAttributes = TypeVar("TAttributes", TypeAttributes, FieldAttributes, VariantAttributes)


def _resolve(
    annotations: list[Annotation],
    parse_block: Callable[[Annotation], TAttributes],
    empty: TAttributes,
) -> TAttributes:
    blocks = (parse_block(a) for a in _codec_blocks(annotations))
    return reduce(lambda merged, block: merged.merged(block), blocks, empty)


def resolve_type_attributes(annotations: list[Annotation]) -> TypeAttributes:
    return _resolve(annotations, parse_type_block, TypeAttributes())


def resolve_field_attributes(annotations: list[Annotation]) -> FieldAttributes:
    return _resolve(annotations, parse_field_block, FieldAttributes())


def resolve_variant_attributes(annotations: list[Annotation]) -> VariantAttributes:
    return _resolve(annotations, parse_variant_block, VariantAttributes())

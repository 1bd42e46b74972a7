"""Schema parser using Lark."""

import ast
import keyword
import os
from dataclasses import dataclass
from typing import Any, TypeVar

from lark import Lark, Token
from lark.exceptions import UnexpectedInput
from lark.tree import Meta
from lark.visitors import Transformer, v_args

from .types import (
    GENERIC_TYPES,
    MAP_KEY_TYPES,
    PRIMITIVE_TYPES,
    Annotation,
    AnnotationArg,
    CodecField,
    CodecRecord,
    CodecType,
    CodecUnion,
    CodecVariant,
    Shape,
    SourceLocation,
)

_g_parser: Lark | None = None

# Names generated classes already use for their own members
RESERVED_NAMES = frozenset(
    ["self", "cls", "tag", "default", "encoded", "encode_to_buf", "decode", "decode_from_buf"]
)

# Module-level names of a generated module, which types and fields must not shadow
GENERATED_MODULE_NAMES = frozenset(
    [
        "array",
        "dataclass",
        "sys",
        "Path",
        "Record",
        "Union",
        "DecodeError",
        "apply_pre_decode",
        "apply_post_decode",
        "pack_fields",
        "unpack_fields",
        "ArrayCodec",
        "ListCodec",
        "MapCodec",
        "OptionalCodec",
        "TypeCodec",
        "BOOL",
        "STRING",
        "PACKED_BOOLS",
        "U8",
        "U16",
        "U32",
        "U64",
        "U128",
        "I8",
        "I16",
        "I32",
        "I64",
        "I128",
        "USIZE",
        "ISIZE",
    ]
)

RESERVED_TYPE_NAMES = GENERATED_MODULE_NAMES.union(PRIMITIVE_TYPES, GENERIC_TYPES)


class ValidationError(RuntimeError):
    """Raised when a schema fails to parse or validate."""

    def __init__(self, message: str, location: SourceLocation | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        if self.location is None:
            return self.message
        return f"{self.location}: {self.message}"


class ResolutionError(ValidationError):
    """Raised when annotations, tags or field orders cannot be resolved."""


@dataclass
class _Name:
    value: str
    location: SourceLocation


@dataclass
class _Literal:
    kind: str
    value: Any
    location: SourceLocation


@dataclass
class _Fields:
    shape: Shape
    fields: list[CodecField]


@dataclass
class _FieldType:
    type: CodecType
    location: SourceLocation


@dataclass
class _Discriminant:
    value: str


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[TFilter]) -> TFilter | None:
    filtered = _filter(args, class_type)
    if len(filtered) == 0:
        return None
    if len(filtered) > 1:
        raise RuntimeError(f"Found more than one {class_type}")
    return filtered[0]


def _location(token: Token) -> SourceLocation:
    return SourceLocation(line=token.line or 0, column=token.column or 0)


class TreeTransformer(Transformer):
    """Transform parse tree into schema declarations."""

    def start(self, args: list[Any]) -> list[Any]:
        return args

    def name(self, args: list[Any]) -> _Name:
        return _Name(value=str(args[0]), location=_location(args[0]))

    def string_value(self, args: list[Any]) -> _Literal:
        return _Literal("string", ast.literal_eval(str(args[0])), _location(args[0]))

    def integer_value(self, args: list[Any]) -> _Literal:
        return _Literal("integer", int(args[0]), _location(args[0]))

    def name_value(self, args: list[Any]) -> _Literal:
        return _Literal("name", str(args[0]), _location(args[0]))

    def keyword_argument(self, args: list[Any]) -> AnnotationArg:
        key, literal = args
        return AnnotationArg(
            name=key.value,
            value=literal.value,
            kind=literal.kind,
            location=key.location,
            value_location=literal.location,
        )

    def flag_argument(self, args: list[Any]) -> AnnotationArg:
        key = args[0]
        return AnnotationArg(name=key.value, value=None, kind="flag", location=key.location)

    def literal_argument(self, args: list[Any]) -> AnnotationArg:
        literal = args[0]
        return AnnotationArg(
            name=None,
            value=literal.value,
            kind=literal.kind,
            location=literal.location,
            value_location=literal.location,
        )

    def annotation(self, args: list[Any]) -> Annotation:
        name = _find_one(args, _Name)
        assert name is not None
        return Annotation(
            name=name.value,
            arguments=_filter(args, AnnotationArg),
            # Point at the "@" rather than the name
            location=SourceLocation(name.location.line, name.location.column - 1),
        )

    def named_type(self, args: list[Any]) -> CodecType:
        return CodecType(name=str(args[0]))

    def generic_type(self, args: list[Any]) -> CodecType:
        return CodecType(name=str(args[0]), args=_filter(args, CodecType))

    def array_type(self, args: list[Any]) -> CodecType:
        return CodecType(name="array", args=[args[0]], size=int(args[1]))

    def named_field(self, args: list[Any]) -> CodecField:
        name = _find_one(args, _Name)
        assert name is not None
        return CodecField(
            name=name.value,
            index=0,
            type=args[-1],
            annotations=_filter(args, Annotation),
            location=name.location,
        )

    @v_args(meta=True)
    def field_type(self, meta: Meta, args: list[Any]) -> _FieldType:
        return _FieldType(type=args[0], location=SourceLocation(meta.line, meta.column))

    def tuple_field(self, args: list[Any]) -> CodecField:
        field_type = _find_one(args, _FieldType)
        assert field_type is not None
        return CodecField(
            name=None,
            index=0,
            type=field_type.type,
            annotations=_filter(args, Annotation),
            location=field_type.location,
        )

    def named_fields(self, args: list[Any]) -> _Fields:
        fields = _filter(args, CodecField)
        for i, f in enumerate(fields):
            f.index = i
        return _Fields(shape=Shape.NAMED, fields=fields)

    def tuple_fields(self, args: list[Any]) -> _Fields:
        fields = _filter(args, CodecField)
        for i, f in enumerate(fields):
            f.index = i
        return _Fields(shape=Shape.TUPLE, fields=fields)

    def discriminant(self, args: list[Any]) -> _Discriminant:
        return _Discriminant(value=str(args[0]))

    def record(self, args: list[Any]) -> CodecRecord:
        name = _find_one(args, _Name)
        assert name is not None
        body = _find_one(args, _Fields)
        return CodecRecord(
            name=name.value,
            shape=body.shape if body else Shape.UNIT,
            fields=body.fields if body else [],
            annotations=_filter(args, Annotation),
            location=name.location,
        )

    def variant(self, args: list[Any]) -> CodecVariant:
        name = _find_one(args, _Name)
        assert name is not None
        body = _find_one(args, _Fields)
        discriminant = _find_one(args, _Discriminant)
        return CodecVariant(
            name=name.value,
            shape=body.shape if body else Shape.UNIT,
            fields=body.fields if body else [],
            discriminant=discriminant.value if discriminant else None,
            annotations=_filter(args, Annotation),
            location=name.location,
        )

    def union(self, args: list[Any]) -> CodecUnion:
        name = _find_one(args, _Name)
        assert name is not None
        return CodecUnion(
            name=name.value,
            variants=_filter(args, CodecVariant),
            annotations=_filter(args, Annotation),
            location=name.location,
        )


def _check_name(name: str, what: str, location: SourceLocation) -> None:
    if keyword.iskeyword(name) or name.startswith("_") or name in RESERVED_NAMES:
        raise ValidationError(f"'{name}' cannot be used as a {what} name", location)


def _check_type(t: CodecType, declared: set[str], location: SourceLocation) -> None:
    if t.name == "array" and t.size is not None:
        _check_type(t.args[0], declared, location)
        return

    if t.name in GENERIC_TYPES:
        expected = GENERIC_TYPES[t.name]
        if len(t.args) != expected:
            raise ValidationError(
                f"{t.name} takes {expected} type argument{'s' if expected != 1 else ''}, "
                f"got {len(t.args)}",
                location,
            )
        if t.name == "map" and (t.args[0].name not in MAP_KEY_TYPES or t.args[0].args):
            raise ValidationError(
                f"Map keys must be integer, bool or string types, not {t.args[0]}", location
            )
        for arg in t.args:
            _check_type(arg, declared, location)
        return

    if t.args:
        raise ValidationError(f"{t.name} does not take type arguments", location)
    if t.name not in PRIMITIVE_TYPES and t.name not in declared:
        raise ValidationError(f"Unknown type {t.name}", location)


def _check_fields(fields: list[CodecField], owner: str, declared: set[str]) -> None:
    seen: set[str] = set()
    for f in fields:
        if f.name is not None:
            _check_name(f.name, "field", f.location)
            if f.name in declared or f.name in GENERATED_MODULE_NAMES:
                raise ValidationError(
                    f"Field {f.name} in {owner} shadows a module-level name", f.location
                )
            if f.name in seen:
                raise ValidationError(f"Duplicate field {f.name} in {owner}", f.location)
            seen.add(f.name)
        _check_type(f.type, declared, f.location)


def validate(records: list[CodecRecord], unions: list[CodecUnion]) -> None:
    """Validate names and type references of a parsed schema."""
    declared: set[str] = set()

    for decl in [*records, *unions]:
        _check_name(decl.name, "type", decl.location)
        if decl.name in RESERVED_TYPE_NAMES:
            raise ValidationError(f"'{decl.name}' cannot be used as a type name", decl.location)
        if decl.name in declared:
            raise ValidationError(f"{decl.name} is declared more than once", decl.location)
        declared.add(decl.name)

    for record in records:
        _check_fields(record.fields, record.name, declared)

    for union in unions:
        variant_names: set[str] = set()
        for variant in union.variants:
            _check_name(variant.name, "variant", variant.location)
            if variant.name in variant_names:
                raise ValidationError(
                    f"Duplicate variant {variant.name} in {union.name}", variant.location
                )
            variant_names.add(variant.name)
            _check_fields(variant.fields, f"{union.name}.{variant.name}", declared)


def parse(text: str) -> tuple[list[CodecRecord], list[CodecUnion]]:
    """Parse a schema definition.

    Raises:
        ValidationError: on a syntax error or an invalid declaration.
    """
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/schema.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar, propagate_positions=True)

    try:
        tree = _g_parser.parse(text)
    except UnexpectedInput as exc:
        raise ValidationError(
            "Unexpected input", SourceLocation(line=exc.line, column=exc.column)
        ) from exc

    items = TreeTransformer().transform(tree)

    records = _filter(items, CodecRecord)
    unions = _filter(items, CodecUnion)

    validate(records, unions)

    return (records, unions)

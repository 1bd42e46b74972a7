"""Type definitions for schema parsing, resolution and code generation."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from dataclasses_json import DataClassJsonMixin


@dataclass(frozen=True)
class SourceLocation(DataClassJsonMixin):
    """Line and column (both 1-based) of an element in the schema text."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class CodecType(DataClassJsonMixin):
    """Represents a field type.

    - primitives and declared types: name only
    - optional/list/map: element types in args
    - fixed arrays: name "array", element type in args, length in size
    """

    name: str
    args: list["CodecType"] = field(default_factory=list)
    size: int | None = None

    def __str__(self) -> str:
        if self.name == "array":
            return f"{self.args[0]}[{self.size}]"
        if self.args:
            return f"{self.name}<{', '.join(str(a) for a in self.args)}>"
        return self.name


@dataclass
class AnnotationArg(DataClassJsonMixin):
    """One argument of an annotation block.

    kind is "string", "integer" or "name" for `key = value` and bare literal
    arguments, and "flag" for a bare key.
    """

    name: str | None
    value: Any
    kind: str
    location: SourceLocation
    value_location: SourceLocation | None = None


@dataclass
class Annotation(DataClassJsonMixin):
    """Represents an annotation block such as `@codec(order_no = 1)`."""

    name: str
    arguments: list[AnnotationArg]
    location: SourceLocation


class Shape(StrEnum):
    """How the fields of a record or variant are declared."""

    NAMED = "named"
    TUPLE = "tuple"
    UNIT = "unit"


@dataclass
class CodecField(DataClassJsonMixin):
    """Represents a field of a record or variant.

    Tuple-positional fields have no name and are exposed as f0, f1, ...
    """

    name: str | None
    index: int
    type: CodecType
    annotations: list[Annotation]
    location: SourceLocation

    @property
    def ident(self) -> str:
        return self.name if self.name is not None else f"f{self.index}"


@dataclass
class CodecRecord(DataClassJsonMixin):
    """Represents a struct declaration."""

    name: str
    shape: Shape
    fields: list[CodecField]
    annotations: list[Annotation]
    location: SourceLocation


@dataclass
class CodecVariant(DataClassJsonMixin):
    """Represents one variant of a union.

    discriminant holds the raw text after `=`, if any.
    """

    name: str
    shape: Shape
    fields: list[CodecField]
    discriminant: str | None
    annotations: list[Annotation]
    location: SourceLocation


@dataclass
class CodecUnion(DataClassJsonMixin):
    """Represents a union declaration."""

    name: str
    variants: list[CodecVariant]
    annotations: list[Annotation]
    location: SourceLocation


class EncodingType(StrEnum):
    """Width of a union tag on the wire."""

    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"

    @property
    def size(self) -> int:
        return int(self.value[1:]) // 8

    @property
    def max_value(self) -> int:
        return (1 << (self.size * 8)) - 1


DEFAULT_ENCODING_TYPE = EncodingType.U16


def _merge(current: Any, other: Any) -> Any:
    return other if other is not None else current


@dataclass
class UnionOptions(DataClassJsonMixin):
    """Union-only options of a type annotation."""

    encoding_type: EncodingType | None = None
    inferred_values: bool = False

    @property
    def width(self) -> EncodingType:
        return self.encoding_type or DEFAULT_ENCODING_TYPE

    def merged(self, other: "UnionOptions") -> "UnionOptions":
        return UnionOptions(
            encoding_type=_merge(self.encoding_type, other.encoding_type),
            inferred_values=self.inferred_values or other.inferred_values,
        )


@dataclass
class TypeAttributes(DataClassJsonMixin):
    """Resolved annotations of a record or union.

    union_location points at the first block that set a union option, so a
    record carrying one can be reported precisely.
    """

    pre_enc_func: str | None = None
    post_enc_func: str | None = None
    pre_dec_func: str | None = None
    post_dec_func: str | None = None
    union_options: UnionOptions | None = None
    union_location: SourceLocation | None = None

    def merged(self, other: "TypeAttributes") -> "TypeAttributes":
        if self.union_options is None:
            union_options = other.union_options
        elif other.union_options is None:
            union_options = self.union_options
        else:
            union_options = self.union_options.merged(other.union_options)

        return TypeAttributes(
            pre_enc_func=_merge(self.pre_enc_func, other.pre_enc_func),
            post_enc_func=_merge(self.post_enc_func, other.post_enc_func),
            pre_dec_func=_merge(self.pre_dec_func, other.pre_dec_func),
            post_dec_func=_merge(self.post_dec_func, other.post_dec_func),
            union_options=union_options,
            union_location=self.union_location or other.union_location,
        )


@dataclass
class VariantAttributes(DataClassJsonMixin):
    """Resolved annotations of a union variant."""

    value: int | None = None

    def merged(self, other: "VariantAttributes") -> "VariantAttributes":
        return VariantAttributes(value=_merge(self.value, other.value))


@dataclass
class FieldAttributes(DataClassJsonMixin):
    """Resolved annotations of a record field."""

    order_no: int | None = None
    ignore: bool = False

    def merged(self, other: "FieldAttributes") -> "FieldAttributes":
        return FieldAttributes(
            order_no=_merge(self.order_no, other.order_no),
            ignore=self.ignore or other.ignore,
        )


@dataclass
class ResolvedField(DataClassJsonMixin):
    field: CodecField
    attributes: FieldAttributes


@dataclass
class ResolvedRecord(DataClassJsonMixin):
    """A record ready for code generation.

    fields keeps declaration order; order is the serialization order and
    includes ignored fields, which the emitters skip on the wire.
    """

    record: CodecRecord
    attributes: TypeAttributes
    fields: list[ResolvedField]
    order: list[ResolvedField]
    has_default: bool

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def wire_fields(self) -> list[CodecField]:
        return [f.field for f in self.order if not f.attributes.ignore]


@dataclass
class ResolvedVariant(DataClassJsonMixin):
    variant: CodecVariant
    attributes: VariantAttributes
    tag: int

    @property
    def name(self) -> str:
        return self.variant.name


@dataclass
class ResolvedUnion(DataClassJsonMixin):
    """A union ready for code generation, with every tag assigned."""

    union: CodecUnion
    attributes: TypeAttributes
    encoding_type: EncodingType
    variants: list[ResolvedVariant]

    @property
    def name(self) -> str:
        return self.union.name


@dataclass
class CompiledSchema(DataClassJsonMixin):
    """Every declaration of a schema, resolved."""

    records: list[ResolvedRecord]
    unions: list[ResolvedUnion]


PRIMITIVE_TYPES = frozenset(
    [
        "bool",
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "i8",
        "i16",
        "i32",
        "i64",
        "i128",
        "usize",
        "isize",
        "string",
    ]
)

# Generic type name -> number of type arguments
GENERIC_TYPES = {
    "optional": 1,
    "list": 1,
    "map": 2,
}

MAP_KEY_TYPES = PRIMITIVE_TYPES


def is_primitive(t: CodecType) -> bool:
    """Check if a type is a primitive type."""
    return t.name in PRIMITIVE_TYPES and not t.args

"""Python code generator for bytecoding schemas."""

from dataclasses import dataclass, field
from importlib import resources

from jinja2 import Environment, PackageLoader

from .types import (
    GENERIC_TYPES,
    CodecField,
    CodecType,
    CompiledSchema,
    ResolvedRecord,
    ResolvedUnion,
    ResolvedVariant,
    is_primitive,
)

RUNTIME_FILES = [
    "__init__.py",
    "serialization.py",
    "primitives.py",
    "coder.py",
]

# Names the generated module imports from the runtime
RUNTIME_NAMES = [
    "BOOL",
    "I8",
    "I16",
    "I32",
    "I64",
    "I128",
    "ISIZE",
    "PACKED_BOOLS",
    "STRING",
    "U8",
    "U16",
    "U32",
    "U64",
    "U128",
    "USIZE",
    "ArrayCodec",
    "DecodeError",
    "ListCodec",
    "MapCodec",
    "OptionalCodec",
    "Record",
    "TypeCodec",
    "Union",
    "apply_post_decode",
    "apply_pre_decode",
    "pack_fields",
    "unpack_fields",
]

env = Environment(
    loader=PackageLoader("bytecoding.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("python.py.j2")

# Map schema types to Python type annotations
PRIMITIVE_TYPE_MAP = {
    "bool": "bool",
    "u8": "int",
    "u16": "int",
    "u32": "int",
    "u64": "int",
    "u128": "int",
    "i8": "int",
    "i16": "int",
    "i32": "int",
    "i64": "int",
    "i128": "int",
    "usize": "int",
    "isize": "int",
    "string": "str",
}

# Map schema types to little-endian struct format characters
FORMAT_CHARS = {
    "bool": "?",
    "u8": "B",
    "i8": "b",
    "u16": "H",
    "i16": "h",
    "u32": "I",
    "i32": "i",
    "u64": "Q",
    "i64": "q",
    "usize": "Q",
    "isize": "q",
}

# Size in bytes for each batchable type
TYPE_SIZES = {
    "bool": 1,
    "u8": 1,
    "i8": 1,
    "u16": 2,
    "i16": 2,
    "u32": 4,
    "i32": 4,
    "u64": 8,
    "i64": 8,
    "usize": 8,
    "isize": 8,
}

# Runtime codec constant for each primitive
CODEC_NAMES = {name: name.upper() for name in PRIMITIVE_TYPE_MAP}

DEFAULT_VALUES = {"bool": "False", "string": '""'}


def _map_type(t: CodecType) -> str:
    """Map a schema type to a Python type annotation."""
    if t.name == "optional":
        return f"{_map_type(t.args[0])} | None"
    if t.name in ("list", "array"):
        return f"list[{_map_type(t.args[0])}]"
    if t.name == "map":
        return f"dict[{_map_type(t.args[0])}, {_map_type(t.args[1])}]"
    return PRIMITIVE_TYPE_MAP.get(t.name, t.name)


def _is_declared(t: CodecType) -> bool:
    """Check if a type refers to a record or union of the schema."""
    return not is_primitive(t) and t.name not in GENERIC_TYPES and t.name != "array"


def _codec_expr(t: CodecType) -> str:
    """Build the runtime codec expression for a type."""
    if is_primitive(t):
        return CODEC_NAMES[t.name]
    if t.name == "optional":
        return f"OptionalCodec({_codec_expr(t.args[0])})"
    if t.name == "list":
        return f"ListCodec({_codec_expr(t.args[0])})"
    if t.name == "map":
        return f"MapCodec({_codec_expr(t.args[0])}, {_codec_expr(t.args[1])})"
    if t.name == "array":
        if t.args[0].name == "bool" and t.size == 8:
            return "PACKED_BOOLS"
        return f"ArrayCodec({_codec_expr(t.args[0])}, {t.size})"
    return f"TypeCodec({t.name})"


def _default_expr(t: CodecType) -> str:
    """Build the expression for a type's default value."""
    if is_primitive(t):
        return DEFAULT_VALUES.get(t.name, "0")
    if t.name == "optional":
        return "None"
    if t.name == "list":
        return "[]"
    if t.name == "map":
        return "{}"
    if t.name == "array":
        return f"[{_default_expr(t.args[0])} for _ in range({t.size})]"
    return f"{t.name}.default()"


def _can_batch(member: CodecField) -> bool:
    """Check if a field can be packed together with its neighbours."""
    return member.type.name in FORMAT_CHARS and not member.type.args


def _batch_members(members: list[CodecField]) -> list[tuple[str, list[CodecField]]]:
    """Group fields into batches for pack/unpack optimization.

    Returns list of (batch_type, fields) where batch_type is "primitive" or "single".
    """
    batches: list[tuple[str, list[CodecField]]] = []
    current: list[CodecField] = []

    for member in members:
        if _can_batch(member):
            current.append(member)
        else:
            if current:
                batches.append(("primitive", current))
                current = []
            batches.append(("single", [member]))

    if current:
        batches.append(("primitive", current))

    return batches


def _local(member: CodecField) -> str:
    """Name of the decode local holding a field, clear of module-level names."""
    return f"_f_{member.ident}"


def _gen_pack_batch(members: list[CodecField], source: str) -> str:
    """Generate pack code for a batch of primitives."""
    fmt = "<" + "".join(FORMAT_CHARS[m.type.name] for m in members)
    args = ", ".join(f"{source}.{m.ident}" for m in members)
    return f'_buf.extend(pack_fields("{fmt}", {args}))'


def _gen_unpack_batch(members: list[CodecField]) -> str:
    """Generate unpack code for a batch of primitives."""
    fmt = "<" + "".join(FORMAT_CHARS[m.type.name] for m in members)
    size = sum(TYPE_SIZES[m.type.name] for m in members)
    names = ", ".join(_local(m) for m in members)
    # Add trailing comma for single values so tuple unpacking works: (val,) = (1,)
    if len(members) == 1:
        names += ","
    return f'({names}), _data = unpack_fields("{fmt}", {size}, _data)'


@dataclass
class _Module:
    """Module-level state collected while generating class bodies."""

    codecs: dict[str, str] = field(default_factory=dict)
    codec_names: dict[tuple[str, str], str] = field(default_factory=dict)
    hook_modules: list[str] = field(default_factory=list)

    def codec(self, owner: str, member: CodecField) -> str:
        """Return the name of the codec for a field, declaring it if needed."""
        if is_primitive(member.type):
            return CODEC_NAMES[member.type.name]
        key = (owner, member.ident)
        if key not in self.codec_names:
            name = f"_codec{len(self.codecs)}"
            self.codec_names[key] = name
            self.codecs[name] = _codec_expr(member.type)
        return self.codec_names[key]

    def hook(self, path: str) -> str:
        """Return the expression calling a hook, importing its module if named."""
        if ":" not in path:
            return path
        module, attr = path.split(":", 1)
        if module not in self.hook_modules:
            self.hook_modules.append(module)
        return f"{module}.{attr}"

    def gen_encode_fields(self, owner: str, members: list[CodecField], source: str) -> list[str]:
        lines: list[str] = []
        for kind, batch in _batch_members(members):
            if kind == "primitive":
                lines.append(_gen_pack_batch(batch, source))
                continue
            member = batch[0]
            if _is_declared(member.type):
                lines.append(f"{source}.{member.ident}.encode_to_buf(_buf)")
            else:
                lines.append(f"{self.codec(owner, member)}.encode({source}.{member.ident}, _buf)")
        return lines

    def gen_decode_fields(self, owner: str, members: list[CodecField]) -> list[str]:
        lines: list[str] = []
        for kind, batch in _batch_members(members):
            if kind == "primitive":
                lines.append(_gen_unpack_batch(batch))
                continue
            member = batch[0]
            if _is_declared(member.type):
                lines.append(f"{_local(member)}, _data = {member.type.name}._decode(_data)")
            else:
                lines.append(f"{_local(member)}, _data = {self.codec(owner, member)}.decode(_data)")
        return lines


def _gen_record_encode(record: ResolvedRecord, module: _Module) -> str:
    attrs = record.attributes
    lines: list[str] = []
    source = "self"

    if attrs.pre_enc_func:
        lines.append(f"_self = {module.hook(attrs.pre_enc_func)}(self)")
        source = "_self"
    lines += module.gen_encode_fields(record.name, record.wire_fields, source)
    if attrs.post_enc_func:
        lines.append(f"{module.hook(attrs.post_enc_func)}(_buf)")

    return "\n".join(lines or ["pass"])


def _gen_record_decode(record: ResolvedRecord, module: _Module) -> str:
    attrs = record.attributes
    lines: list[str] = []

    if attrs.pre_dec_func:
        lines.append(f"_data = apply_pre_decode({module.hook(attrs.pre_dec_func)}, _data)")
    lines += module.gen_decode_fields(record.name, record.wire_fields)

    values = [
        _default_expr(f.field.type) if f.attributes.ignore else _local(f.field)
        for f in record.fields
    ]
    args = ", ".join(f"{f.field.ident}={v}" for f, v in zip(record.fields, values))
    if attrs.post_dec_func:
        hook = module.hook(attrs.post_dec_func)
        lines.append(f"return apply_post_decode({hook}, cls({args}), _data)")
    else:
        lines.append(f"return cls({args}), _data")

    return "\n".join(lines)


def _gen_record_default(record: ResolvedRecord) -> str | None:
    if not record.has_default:
        return None
    args = ", ".join(f"{f.ident}={_default_expr(f.type)}" for f in record.record.fields)
    return f"return cls({args})"


def _gen_union_encode(union: ResolvedUnion, module: _Module) -> str:
    attrs = union.attributes
    lines: list[str] = []
    source = "self"

    if attrs.pre_enc_func:
        lines.append(f"_self = {module.hook(attrs.pre_enc_func)}(self)")
        source = "_self"
    lines.append(f"_buf.extend({source}._tag_bytes)")
    lines.append(f"{source}._encode_fields(_buf)")
    if attrs.post_enc_func:
        lines.append(f"{module.hook(attrs.post_enc_func)}(_buf)")

    return "\n".join(lines)


def _gen_union_decode(union: ResolvedUnion, module: _Module) -> str:
    attrs = union.attributes
    lines: list[str] = []

    if attrs.pre_dec_func:
        lines.append(f"_data = apply_pre_decode({module.hook(attrs.pre_dec_func)}, _data)")
    lines.append(f"_tag, _data = {CODEC_NAMES[union.encoding_type.value]}.decode(_data)")
    lines.append("_variant = cls._variants.get(_tag)")
    lines.append("if _variant is None:")
    lines.append(f'    raise DecodeError(f"Unknown tag {{_tag}} for {union.name}")')
    lines.append("_value, _data = _variant._decode_fields(_data)")
    if attrs.post_dec_func:
        hook = module.hook(attrs.post_dec_func)
        lines.append(f"return apply_post_decode({hook}, _value, _data)")
    else:
        lines.append("return _value, _data")

    return "\n".join(lines)


def _gen_variant_encode(union: ResolvedUnion, variant: ResolvedVariant, module: _Module) -> str:
    owner = f"{union.name}.{variant.name}"
    lines = module.gen_encode_fields(owner, variant.variant.fields, "self")
    return "\n".join(lines or ["pass"])


def _gen_variant_decode(union: ResolvedUnion, variant: ResolvedVariant, module: _Module) -> str:
    owner = f"{union.name}.{variant.name}"
    lines = module.gen_decode_fields(owner, variant.variant.fields)
    args = ", ".join(f"{f.ident}={_local(f)}" for f in variant.variant.fields)
    lines.append(f"return cls({args}), _data")
    return "\n".join(lines)


def _tag_bytes(union: ResolvedUnion, variant: ResolvedVariant) -> str:
    return repr(variant.tag.to_bytes(union.encoding_type.size, "little"))


def render(
    schema: CompiledSchema,
    runtime_import: str = "bytecoding_runtime",
) -> str:
    """Render a compiled schema to Python source code.

    A runtime_import without a dot names a runtime folder copied next to
    the generated module, which is put on sys.path while importing it.
    """
    module = _Module()

    records = [
        {
            "name": record.name,
            "fields": [(f.ident, _map_type(f.type)) for f in record.record.fields],
            "encode": _gen_record_encode(record, module),
            "decode": _gen_record_decode(record, module),
            "default": _gen_record_default(record),
        }
        for record in schema.records
    ]

    unions = [
        {
            "name": union.name,
            "encode": _gen_union_encode(union, module),
            "decode": _gen_union_decode(union, module),
            "variants": [
                {
                    "name": variant.name,
                    "class_name": f"_{union.name}_{index}",
                    "tag": variant.tag,
                    "tag_bytes": _tag_bytes(union, variant),
                    "fields": [(f.ident, _map_type(f.type)) for f in variant.variant.fields],
                    "encode": _gen_variant_encode(union, variant, module),
                    "decode": _gen_variant_decode(union, variant, module),
                }
                for index, variant in enumerate(union.variants)
            ],
        }
        for union in schema.unions
    ]

    return template.render(
        records=records,
        unions=unions,
        codecs=module.codecs,
        hook_modules=module.hook_modules,
        runtime_import=runtime_import,
        runtime_names=RUNTIME_NAMES,
        local_runtime="." not in runtime_import,
    )


def runtime() -> dict[str, str]:
    """Return the Python runtime files as a dict of filename -> content."""
    result: dict[str, str] = {}
    for filename in RUNTIME_FILES:
        content = resources.files("bytecoding.runtime").joinpath(filename).read_text()
        result[filename] = content
    return result

"""Resolve parsed declarations into the layouts the code emitters consume."""

import logging

from .attributes import (
    resolve_field_attributes,
    resolve_type_attributes,
    resolve_variant_attributes,
)
from .ordering import order_fields
from .parser import ResolutionError
from .tags import assign_tags
from .types import (
    GENERIC_TYPES,
    CodecRecord,
    CodecType,
    CodecUnion,
    CompiledSchema,
    ResolvedField,
    ResolvedRecord,
    ResolvedUnion,
    ResolvedVariant,
    UnionOptions,
    is_primitive,
)

logger = logging.getLogger(__name__)


def has_default(t: CodecType, defaultable: set[str]) -> bool:
    """Check if a type has a default value, given the defaultable records."""
    if is_primitive(t) or t.name in GENERIC_TYPES:
        return True
    if t.name == "array":
        return has_default(t.args[0], defaultable)
    return t.name in defaultable


def defaultable_records(records: list[CodecRecord]) -> set[str]:
    """Find the records whose fields all have default values.

    Records that can only be defaulted through a cycle of other records are
    left out, since building their default would never terminate.
    """
    defaultable: set[str] = set()
    changed = True
    while changed:
        changed = False
        for record in records:
            if record.name in defaultable:
                continue
            if all(has_default(f.type, defaultable) for f in record.fields):
                defaultable.add(record.name)
                changed = True
    return defaultable


def compile_record(record: CodecRecord, defaultable: set[str]) -> ResolvedRecord:
    attributes = resolve_type_attributes(record.annotations)
    if attributes.union_options is not None:
        raise ResolutionError(
            "Union option supplied to annotation on struct.", attributes.union_location
        )

    fields = [
        ResolvedField(field=f, attributes=resolve_field_attributes(f.annotations))
        for f in record.fields
    ]

    for f in fields:
        if f.attributes.ignore and not has_default(f.field.type, defaultable):
            raise ResolutionError(
                f"Ignored field {f.field.ident} has type {f.field.type}, which has no default value",
                f.field.location,
            )

    order = order_fields(fields)
    logger.debug(
        "Resolved %s field order: %s",
        record.name,
        ", ".join(f.field.ident + (" (ignored)" if f.attributes.ignore else "") for f in order),
    )

    return ResolvedRecord(
        record=record,
        attributes=attributes,
        fields=fields,
        order=order,
        has_default=record.name in defaultable,
    )


def compile_union(union: CodecUnion) -> ResolvedUnion:
    attributes = resolve_type_attributes(union.annotations)
    options = attributes.union_options or UnionOptions()

    for variant in union.variants:
        for f in variant.fields:
            if f.annotations:
                raise ResolutionError(
                    "Field annotations are only supported on struct fields",
                    f.annotations[0].location,
                )

    variant_attributes = [resolve_variant_attributes(v.annotations) for v in union.variants]
    tags = assign_tags(list(zip(union.variants, variant_attributes)), options)
    logger.debug(
        "Resolved %s tags (%s): %s",
        union.name,
        options.width.value,
        ", ".join(f"{v.name}={tag}" for v, tag in zip(union.variants, tags)),
    )

    return ResolvedUnion(
        union=union,
        attributes=attributes,
        encoding_type=options.width,
        variants=[
            ResolvedVariant(variant=v, attributes=a, tag=tag)
            for v, a, tag in zip(union.variants, variant_attributes, tags)
        ],
    )


def compile_schema(records: list[CodecRecord], unions: list[CodecUnion]) -> CompiledSchema:
    """Resolve every declaration of a parsed schema.

    Raises:
        ResolutionError: on the first declaration that cannot be resolved.
    """
    defaultable = defaultable_records(records)
    return CompiledSchema(
        records=[compile_record(r, defaultable) for r in records],
        unions=[compile_union(u) for u in unions],
    )

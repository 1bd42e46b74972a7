"""Tag assignment for union variants."""

import re
from dataclasses import dataclass
from functools import reduce

from .parser import ResolutionError
from .types import CodecVariant, EncodingType, SourceLocation, UnionOptions, VariantAttributes

# Inferred values wrap on overflow of this accumulator
ACCUMULATOR_MASK = (1 << 128) - 1

_DECIMAL = re.compile(r"^[0-9][0-9_]*$")
_INTEGER = re.compile(r"^(0[xX][0-9a-fA-F_]+|0[oO][0-7_]+|0[bB][01_]+)$")


def parse_discriminant(text: str, location: SourceLocation) -> int:
    """Parse a variant discriminant, which must be a base-10 integer literal."""
    if _DECIMAL.match(text):
        value = int(text.replace("_", ""))
        if value > ACCUMULATOR_MASK:
            raise ResolutionError("Integer literal does not fit in 128 bits", location)
        return value
    if _INTEGER.match(text):
        raise ResolutionError("Unsupported expression. Base 10 integer literals only.", location)
    raise ResolutionError("Unsupported expression. Integer literals only.", location)


@dataclass(frozen=True)
class _TagState:
    last_inferred: int | None
    used: frozenset[int]
    tags: tuple[int, ...]


def _next_inferred(last: int | None) -> int:
    if last is None:
        return 0
    return (last + 1) & ACCUMULATOR_MASK


def _assign(
    state: _TagState,
    item: tuple[CodecVariant, VariantAttributes],
    options: UnionOptions,
) -> _TagState:
    variant, attributes = item

    # Computed even when unused so later variants continue from here
    inferred = _next_inferred(state.last_inferred) if options.inferred_values else None

    if attributes.value is not None:
        value = attributes.value
    elif variant.discriminant is not None:
        value = parse_discriminant(variant.discriminant, variant.location)
    elif inferred is not None:
        value = inferred
    else:
        raise ResolutionError("No discriminant or value provided", variant.location)

    if value in state.used:
        raise ResolutionError(f"2 or more variants share the value {value}", variant.location)

    width: EncodingType = options.width
    if value > width.max_value:
        raise ResolutionError(f"Value {value} too large for {width.value}", variant.location)

    return _TagState(
        last_inferred=value if options.inferred_values else None,
        used=state.used | {value},
        tags=(*state.tags, value),
    )


def assign_tags(
    variants: list[tuple[CodecVariant, VariantAttributes]], options: UnionOptions
) -> list[int]:
    """Assign a tag to every variant of a union, in declaration order.

    Precedence per variant: explicit value, then discriminant, then the
    inferred running value. An explicit value or discriminant re-seeds the
    running value when inference is enabled.

    Raises:
        ResolutionError: if a variant has no tag source, two variants share a
            tag, or a tag does not fit the configured width.
    """
    initial = _TagState(last_inferred=None, used=frozenset(), tags=())
    final = reduce(lambda state, item: _assign(state, item, options), variants, initial)
    return list(final.tags)

"""Serialization order of record fields."""

from .parser import ResolutionError
from .types import ResolvedField


def order_key(field: ResolvedField) -> tuple[int, int, int]:
    """Explicit order numbers first, ascending; then the rest in declaration order."""
    order_no = field.attributes.order_no
    if order_no is None:
        return (1, 0, field.field.index)
    return (0, order_no, field.field.index)


def order_fields(fields: list[ResolvedField]) -> list[ResolvedField]:
    """Return fields in serialization order.

    Ignored fields keep their place in the result; emitters skip them on the
    wire and default-construct them on decode.

    Raises:
        ResolutionError: if two fields declare the same order number.
    """
    claimed: dict[int, ResolvedField] = {}
    for f in fields:
        order_no = f.attributes.order_no
        if order_no is None:
            continue
        if order_no in claimed:
            raise ResolutionError(
                f"Fields {claimed[order_no].field.ident} and {f.field.ident} "
                f"share order_no {order_no}",
                f.field.location,
            )
        claimed[order_no] = f

    return sorted(fields, key=order_key)

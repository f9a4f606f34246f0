"""Validation rules for order line items.

Base fields (types, required strings, numeric bounds) are enforced by the
pydantic variant models. Conditional fields are checked afterwards, against a
fully parsed item, so each unmet guard can be reported by name.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from packages.shared.schemas.order_v1 import (
    BagItemV1,
    EnvelopeItemV1,
    ItemTypeV1,
    OrderItemV1,
)
from pydantic import TypeAdapter, ValidationError

MIN_DIMENSION = 0.1

# Sibling columns of the stored payload; never part of itemData.
_SIBLING_FIELDS = {"item_type", "quantity", "price"}

_ITEM_ADAPTER: TypeAdapter[OrderItemV1] = TypeAdapter(OrderItemV1)


@dataclass(frozen=True, slots=True)
class FieldError:
    path: str
    message: str

    def with_prefix(self, prefix: str) -> FieldError:
        path = f"{prefix}.{self.path}" if self.path else prefix
        return FieldError(path=path, message=self.message)


@dataclass(frozen=True, slots=True)
class ConditionalField:
    """A field that is required only while ``applies`` holds for the item."""

    name: str
    attr: str
    applies: Callable[[Any], bool]
    condition: str
    dimension: bool = False


@dataclass(slots=True)
class ItemCheck:
    item: OrderItemV1 | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.item is not None and not self.errors


def _envelope_prints(item: EnvelopeItemV1) -> bool:
    return item.envelope_print_type == "Print"


def _bag_has_handle(item: BagItemV1) -> bool:
    return item.dore_type in {"Rope", "Ribbon"}


def _bag_prints(item: BagItemV1) -> bool:
    return item.bag_print_type == "Print"


BOX_CONDITIONAL_FIELDS: tuple[ConditionalField, ...] = (
    ConditionalField("color", "color", lambda i: i.print_type == "Plain", "printType is Plain"),
    ConditionalField(
        "details", "details", lambda i: i.print_type == "Printed", "printType is Printed"
    ),
)

ENVELOPE_CONDITIONAL_FIELDS: tuple[ConditionalField, ...] = (
    ConditionalField(
        "envelopeHeight",
        "envelope_height",
        lambda i: i.envelope_size == "Other",
        "envelopeSize is Other",
        dimension=True,
    ),
    ConditionalField(
        "envelopeWidth",
        "envelope_width",
        lambda i: i.envelope_size == "Other",
        "envelopeSize is Other",
        dimension=True,
    ),
    ConditionalField(
        "envelopePrintMethod",
        "envelope_print_method",
        _envelope_prints,
        "envelopePrintType is Print",
    ),
    ConditionalField(
        "envelopeCustomPrint",
        "envelope_custom_print",
        lambda i: _envelope_prints(i) and i.envelope_print_method == "Other",
        "envelopePrintMethod is Other",
    ),
)

BAG_CONDITIONAL_FIELDS: tuple[ConditionalField, ...] = (
    ConditionalField(
        "bagHeight", "bag_height", lambda i: i.bag_size == "Other", "bagSize is Other",
        dimension=True,
    ),
    ConditionalField(
        "bagWidth", "bag_width", lambda i: i.bag_size == "Other", "bagSize is Other",
        dimension=True,
    ),
    ConditionalField(
        "bagGusset", "bag_gusset", lambda i: i.bag_size == "Other", "bagSize is Other",
        dimension=True,
    ),
    ConditionalField("handleColor", "handle_color", _bag_has_handle, "doreType is Rope or Ribbon"),
    ConditionalField(
        "customHandleColor",
        "custom_handle_color",
        lambda i: _bag_has_handle(i) and i.handle_color == "Other",
        "handleColor is Other",
    ),
    ConditionalField("printMethod", "print_method", _bag_prints, "bagPrintType is Print"),
    ConditionalField(
        "laminationType",
        "lamination_type",
        lambda i: _bag_prints(i) and i.print_method == "Multi Color",
        "printMethod is Multi Color",
    ),
)


def conditional_fields(item: OrderItemV1) -> tuple[ConditionalField, ...]:
    if item.item_type == ItemTypeV1.BOX.value:
        return BOX_CONDITIONAL_FIELDS
    if item.item_type == ItemTypeV1.ENVELOPE.value:
        return ENVELOPE_CONDITIONAL_FIELDS
    if item.item_type == ItemTypeV1.BAG.value:
        return BAG_CONDITIONAL_FIELDS
    raise ValueError(f"Unknown item type: {item.item_type!r}")


def field_applies(item: OrderItemV1, name: str) -> bool:
    """True when the conditional field ``name`` is in effect and populated."""

    for cond in conditional_fields(item):
        if cond.name == name:
            return cond.applies(item) and _is_populated(getattr(item, cond.attr))
    raise KeyError(name)


def _is_populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def check_conditional_fields(item: OrderItemV1) -> list[FieldError]:
    errors: list[FieldError] = []
    for cond in conditional_fields(item):
        if not cond.applies(item):
            continue

        value = getattr(item, cond.attr)
        if not _is_populated(value):
            errors.append(FieldError(cond.name, f"{cond.name} is required when {cond.condition}"))
        elif cond.dimension and value <= MIN_DIMENSION:
            errors.append(FieldError(cond.name, f"{cond.name} must be greater than {MIN_DIMENSION}"))
    return errors


def _errors_from_pydantic(exc: ValidationError, raw: Any) -> list[FieldError]:
    tag = raw.get("itemType") if isinstance(raw, dict) else None

    errors: list[FieldError] = []
    for err in exc.errors():
        kind = err["type"]
        loc = [str(p) for p in err["loc"]]
        if loc and loc[0] == tag:
            loc = loc[1:]

        if kind == "union_tag_not_found":
            errors.append(FieldError("itemType", "itemType is required"))
            continue
        if kind == "union_tag_invalid":
            errors.append(
                FieldError(
                    "itemType",
                    f"Unknown item type {tag!r}. Expected one of box, envelope, bag",
                )
            )
            continue

        path = ".".join(loc)
        if kind in {"missing", "string_too_short"} or err.get("input", "") is None:
            message = f"{path} is required"
        else:
            message = err["msg"]
        errors.append(FieldError(path, message))
    return errors


def validate_item(raw: Any) -> ItemCheck:
    """Validate one raw line item against its variant.

    Conditional fields are only checked once the base fields parse cleanly.
    """

    if not isinstance(raw, dict):
        return ItemCheck(errors=[FieldError("", "Item must be an object")])

    try:
        item = _ITEM_ADAPTER.validate_python(raw)
    except ValidationError as e:
        return ItemCheck(errors=_errors_from_pydantic(e, raw))

    return ItemCheck(item=item, errors=check_conditional_fields(item))


def split_item(item: OrderItemV1) -> tuple[str, dict[str, Any], int, Decimal]:
    """Decompose an item into (itemType, itemData, quantity, price)."""

    payload = item.model_dump(
        mode="json", by_alias=True, exclude=_SIBLING_FIELDS, exclude_none=True
    )
    return item.item_type, payload, item.quantity, item.price


def item_from_record(
    item_type: str, item_data: dict[str, Any], quantity: int, price: Decimal
) -> OrderItemV1:
    """Rebuild a typed item from its stored decomposition.

    Raises pydantic.ValidationError when the payload does not match its type.
    """

    raw = {**item_data, "itemType": item_type, "quantity": quantity, "price": price}
    return _ITEM_ADAPTER.validate_python(raw)


def line_total(item: OrderItemV1) -> Decimal:
    return item.price * item.quantity

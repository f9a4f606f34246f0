"""Whole-order validation: header fields, the item list and every line item."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from packages.shared.schemas.order_v1 import CreateOrderV1, OrderHeaderV1, OrderItemV1
from pydantic import ValidationError
from services.api.app.services.item_rules import FieldError, validate_item


@dataclass(slots=True)
class OrderValidation:
    order: CreateOrderV1 | None = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.order is not None and not self.errors


def _header_errors(exc: ValidationError) -> list[FieldError]:
    errors: list[FieldError] = []
    for err in exc.errors():
        path = ".".join(str(p) for p in err["loc"])
        if err["type"] in {"missing", "string_too_short"} or err.get("input", "") is None:
            message = f"{path} is required"
        elif err["type"] == "value_error":
            message = str(err["ctx"]["error"])
        else:
            message = err["msg"]
        errors.append(FieldError(path, message))
    return errors


def validate_order(raw: Any) -> OrderValidation:
    """Validate a raw order submission.

    Every problem is collected: header fields, the item list itself and each
    item (tagged ``items[i].<field>``). Nothing stops at the first error.
    """

    if not isinstance(raw, dict):
        return OrderValidation(errors=[FieldError("", "Order must be an object")])

    errors: list[FieldError] = []

    header: OrderHeaderV1 | None = None
    try:
        header = OrderHeaderV1.model_validate(raw)
    except ValidationError as e:
        errors.extend(_header_errors(e))

    raw_items = raw.get("items")
    items: list[OrderItemV1] = []
    if raw_items is None:
        errors.append(FieldError("items", "At least one item is required"))
    elif not isinstance(raw_items, list):
        errors.append(FieldError("items", "items must be a list"))
    elif not raw_items:
        errors.append(FieldError("items", "At least one item is required"))
    else:
        for index, raw_item in enumerate(raw_items):
            check = validate_item(raw_item)
            prefix = f"items[{index}]"
            errors.extend(e.with_prefix(prefix) for e in check.errors)
            if check.item is not None:
                items.append(check.item)

    if errors or header is None:
        return OrderValidation(errors=errors)

    order = CreateOrderV1(
        customer_name=header.customer_name,
        phone_number=header.phone_number,
        order_date=header.order_date,
        items=items,
    )
    return OrderValidation(order=order)

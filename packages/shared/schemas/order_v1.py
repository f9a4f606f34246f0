"""Shared order schema (v1).

Wire shapes for print-shop orders. Field names on the wire are camelCase
(``itemType``, ``boxType``); Python attributes are snake_case.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# Prices carry at most this many decimal places, matching the stored money column.
MONEY_PLACES = 4


class ItemTypeV1(str, Enum):
    BOX = "box"
    ENVELOPE = "envelope"
    BAG = "bag"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _PricedItemV1(_WireModel):
    quantity: int = Field(..., gt=0, strict=True)
    price: Decimal = Field(..., ge=0, decimal_places=MONEY_PLACES)


class BoxItemV1(_PricedItemV1):
    item_type: Literal["box"]

    box_type: str = Field(..., min_length=1)
    length: float = Field(..., gt=0.1, allow_inf_nan=False)
    breadth: float = Field(..., gt=0.1, allow_inf_nan=False)
    height: float = Field(..., gt=0.1, allow_inf_nan=False)
    print_type: str = Field(..., min_length=1)

    # Plain boxes need a color, printed boxes need print details.
    color: str | None = None
    details: str | None = None


class EnvelopeItemV1(_PricedItemV1):
    item_type: Literal["envelope"]

    envelope_size: str = Field(..., min_length=1)
    envelope_print_type: str = Field(..., min_length=1)

    envelope_height: float | None = Field(None, allow_inf_nan=False)
    envelope_width: float | None = Field(None, allow_inf_nan=False)
    envelope_print_method: str | None = None
    envelope_custom_print: str | None = None


class BagItemV1(_PricedItemV1):
    item_type: Literal["bag"]

    bag_size: str = Field(..., min_length=1)
    dore_type: Literal["Rope", "Ribbon", "None"]
    bag_print_type: str = Field(..., min_length=1)

    bag_height: float | None = Field(None, allow_inf_nan=False)
    bag_width: float | None = Field(None, allow_inf_nan=False)
    bag_gusset: float | None = Field(None, allow_inf_nan=False)
    handle_color: str | None = None
    custom_handle_color: str | None = None
    print_method: str | None = None
    lamination_type: str | None = None


OrderItemV1 = Annotated[
    Union[BoxItemV1, EnvelopeItemV1, BagItemV1],
    Field(discriminator="item_type"),
]


def parse_order_date(value: str) -> date:
    """Parse an ISO date or datetime string into a date.

    Raises ValueError if the string is not a recognizable date.
    """

    text = (value or "").strip()
    if not text:
        raise ValueError("Order date is required")

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    return datetime.fromisoformat(text).date()


class OrderHeaderV1(_WireModel):
    customer_name: str = Field(..., min_length=1)
    phone_number: str = Field(..., min_length=1)
    order_date: str = Field(..., min_length=1)

    @field_validator("order_date")
    @classmethod
    def _order_date_parses(cls, value: str) -> str:
        try:
            parse_order_date(value)
        except ValueError as e:
            raise ValueError(f"Order date {value!r} is not a valid date") from e
        return value


class CreateOrderV1(OrderHeaderV1):
    items: list[OrderItemV1] = Field(..., min_length=1)


class DocumentInfoV1(BaseModel):
    type: ItemTypeV1
    filename: str
    url: str

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol

from packages.shared.schemas.order_v1 import CreateOrderV1, OrderItemV1
from services.api.app.services.item_rules import line_total


class OrderStoreError(Exception):
    """Base class for order store errors."""


class PersistenceError(OrderStoreError):
    def __init__(self, stage: str, message: str, order_id: int | None = None) -> None:
        where = f" (order_id={order_id})" if order_id is not None else ""
        super().__init__(f"Storage failed during {stage}{where}: {message}")
        self.stage = stage
        self.order_id = order_id


@dataclass(frozen=True, slots=True)
class CustomerRecord:
    id: int
    name: str
    phone: str
    created_at: datetime


@dataclass(frozen=True, slots=True)
class OrderRecord:
    id: int
    customer_id: int
    order_date: str
    total_amount: Decimal
    created_at: datetime
    document_path: str | None = None


@dataclass(frozen=True, slots=True)
class OrderItemRecord:
    id: int
    order_id: int
    item_type: str
    item_data: dict[str, Any]
    quantity: int
    price: Decimal


@dataclass(frozen=True, slots=True)
class OrderWithItems:
    order: OrderRecord
    customer: CustomerRecord
    items: list[OrderItemRecord] = field(default_factory=list)


def order_total(items: list[OrderItemV1]) -> Decimal:
    return sum((line_total(item) for item in items), Decimal("0"))


class OrderStore(Protocol):
    engine: str

    def find_or_create_customer(self, name: str, phone: str) -> CustomerRecord:
        """Return the customer with this exact phone, creating it if absent.

        An existing customer is returned unchanged: the first stored name wins.
        """
        ...

    def create_order(self, order: CreateOrderV1) -> tuple[OrderRecord, CustomerRecord]: ...

    def get_order_with_items(self, order_id: int) -> OrderWithItems | None: ...

    def list_orders(self) -> list[OrderRecord]: ...

    def set_document_path(self, order_id: int, filename: str) -> None: ...

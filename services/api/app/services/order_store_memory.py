from __future__ import annotations

import copy
import itertools
from dataclasses import replace
from datetime import datetime, timezone

from packages.shared.schemas.order_v1 import CreateOrderV1
from services.api.app.services.item_rules import split_item
from services.api.app.services.order_store_base import (
    CustomerRecord,
    OrderItemRecord,
    OrderRecord,
    OrderWithItems,
    order_total,
)


class InMemoryOrderStore:
    """Process-local order store for local dev and tests.

    Order and item inserts are not atomic here: a failure between them leaves
    an order without items.
    """

    engine = "memory"

    def __init__(self) -> None:
        self._customers: dict[int, CustomerRecord] = {}
        self._orders: dict[int, OrderRecord] = {}
        self._items: dict[int, list[OrderItemRecord]] = {}
        self._ids = itertools.count(1)

    def find_or_create_customer(self, name: str, phone: str) -> CustomerRecord:
        for customer in self._customers.values():
            if customer.phone == phone:
                return customer

        customer = CustomerRecord(
            id=next(self._ids),
            name=name,
            phone=phone,
            created_at=datetime.now(timezone.utc),
        )
        self._customers[customer.id] = customer
        return customer

    def create_order(self, order: CreateOrderV1) -> tuple[OrderRecord, CustomerRecord]:
        customer = self.find_or_create_customer(order.customer_name, order.phone_number)

        record = OrderRecord(
            id=next(self._ids),
            customer_id=customer.id,
            order_date=order.order_date,
            total_amount=order_total(order.items),
            created_at=datetime.now(timezone.utc),
        )
        self._orders[record.id] = record

        items: list[OrderItemRecord] = []
        for item in order.items:
            item_type, payload, quantity, price = split_item(item)
            items.append(
                OrderItemRecord(
                    id=next(self._ids),
                    order_id=record.id,
                    item_type=item_type,
                    item_data=payload,
                    quantity=quantity,
                    price=price,
                )
            )
        self._items[record.id] = items
        return record, customer

    def get_order_with_items(self, order_id: int) -> OrderWithItems | None:
        order = self._orders.get(order_id)
        if order is None:
            return None

        customer = self._customers.get(order.customer_id)
        if customer is None:
            return None

        items = [
            replace(i, item_data=copy.deepcopy(i.item_data)) for i in self._items.get(order_id, [])
        ]
        return OrderWithItems(order=order, customer=customer, items=items)

    def list_orders(self) -> list[OrderRecord]:
        return sorted(self._orders.values(), key=lambda o: (o.created_at, o.id), reverse=True)

    def set_document_path(self, order_id: int, filename: str) -> None:
        order = self._orders.get(order_id)
        if order is not None:
            self._orders[order_id] = replace(order, document_path=filename)

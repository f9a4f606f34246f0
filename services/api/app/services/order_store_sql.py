from __future__ import annotations

import logging
from collections.abc import Callable

from packages.shared.schemas.order_v1 import CreateOrderV1
from services.api.app.db.database import db_session
from services.api.app.db.models import Customer, Order, OrderItem
from services.api.app.services.item_rules import split_item
from services.api.app.services.order_store_base import (
    CustomerRecord,
    OrderItemRecord,
    OrderRecord,
    OrderWithItems,
    PersistenceError,
    order_total,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _customer_record(row: Customer) -> CustomerRecord:
    return CustomerRecord(id=row.id, name=row.name, phone=row.phone, created_at=row.created_at)


def _order_record(row: Order) -> OrderRecord:
    return OrderRecord(
        id=row.id,
        customer_id=row.customer_id,
        order_date=row.order_date,
        total_amount=row.total_amount,
        created_at=row.created_at,
        document_path=row.document_path,
    )


def _item_record(row: OrderItem) -> OrderItemRecord:
    return OrderItemRecord(
        id=row.id,
        order_id=row.order_id,
        item_type=row.item_type,
        item_data=dict(row.item_data or {}),
        quantity=row.quantity,
        price=row.price,
    )


class SqlOrderStore:
    """Order store backed by SQLAlchemy (SQLite locally, any DATABASE_URL otherwise)."""

    engine = "sql"

    def __init__(self, session_factory: Callable[[], Session] = db_session) -> None:
        self._session_factory = session_factory

    def find_or_create_customer(self, name: str, phone: str) -> CustomerRecord:
        with self._session_factory() as db:
            try:
                customer = db.query(Customer).filter(Customer.phone == phone).first()
                if customer is None:
                    customer = Customer(name=name, phone=phone)
                    db.add(customer)
                    db.commit()
                    logger.info("Created customer %s for phone %s", customer.id, phone)
                return _customer_record(customer)
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError("customer", str(e)) from e

    def create_order(self, order: CreateOrderV1) -> tuple[OrderRecord, CustomerRecord]:
        customer = self.find_or_create_customer(order.customer_name, order.phone_number)

        # Order row and item rows share one transaction.
        with self._session_factory() as db:
            order_id: int | None = None
            stage = "order"
            try:
                row = Order(
                    customer_id=customer.id,
                    order_date=order.order_date,
                    total_amount=order_total(order.items),
                )
                db.add(row)
                db.flush()
                order_id = row.id

                stage = "items"
                for item in order.items:
                    item_type, payload, quantity, price = split_item(item)
                    db.add(
                        OrderItem(
                            order_id=order_id,
                            item_type=item_type,
                            item_data=payload,
                            quantity=quantity,
                            price=price,
                        )
                    )
                db.commit()
                record = _order_record(row)
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(stage, str(e), order_id=order_id) from e

        logger.info(
            "Order %s saved for customer %s with %d item(s)",
            record.id,
            customer.id,
            len(order.items),
        )
        return record, customer

    def get_order_with_items(self, order_id: int) -> OrderWithItems | None:
        with self._session_factory() as db:
            try:
                order = db.get(Order, order_id)
                if order is None:
                    return None

                customer = db.get(Customer, order.customer_id)
                if customer is None:
                    logger.warning(
                        "Order %s references missing customer %s", order_id, order.customer_id
                    )
                    return None

                items = (
                    db.query(OrderItem)
                    .filter(OrderItem.order_id == order_id)
                    .order_by(OrderItem.id.asc())
                    .all()
                )
                return OrderWithItems(
                    order=_order_record(order),
                    customer=_customer_record(customer),
                    items=[_item_record(i) for i in items],
                )
            except SQLAlchemyError as e:
                raise PersistenceError("fetch", str(e), order_id=order_id) from e

    def list_orders(self) -> list[OrderRecord]:
        with self._session_factory() as db:
            try:
                rows = db.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()
                return [_order_record(r) for r in rows]
            except SQLAlchemyError as e:
                raise PersistenceError("list", str(e)) from e

    def set_document_path(self, order_id: int, filename: str) -> None:
        with self._session_factory() as db:
            try:
                order = db.get(Order, order_id)
                if order is None:
                    return
                order.document_path = filename
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError("document_path", str(e), order_id=order_id) from e

        logger.info("Order %s document path set to %s", order_id, filename)

from __future__ import annotations

from typing import Any

from packages.shared.schemas.order_v1 import DocumentInfoV1
from pydantic import BaseModel, Field


class FieldErrorOut(BaseModel):
    path: str
    message: str


class CreateOrderResponse(BaseModel):
    status: str
    order_id: int
    documents: list[DocumentInfoV1] = Field(default_factory=list)
    missing_documents: list[str] = Field(default_factory=list)
    message: str


class CustomerOut(BaseModel):
    id: int
    name: str
    phone: str
    created_at: str


class OrderOut(BaseModel):
    id: int
    customer_id: int
    order_date: str
    total_amount: str
    document_path: str | None = None
    created_at: str


class OrderItemOut(BaseModel):
    id: int
    order_id: int
    item_type: str
    item_data: dict[str, Any] = Field(default_factory=dict)
    quantity: int
    price: str


class OrderDetail(BaseModel):
    order: OrderOut
    customer: CustomerOut
    items: list[OrderItemOut]

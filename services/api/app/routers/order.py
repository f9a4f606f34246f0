from __future__ import annotations

import os
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from packages.shared.schemas.order_v1 import DocumentInfoV1, ItemTypeV1
from services.api.app.models.order import (
    CreateOrderResponse,
    CustomerOut,
    FieldErrorOut,
    OrderDetail,
    OrderItemOut,
    OrderOut,
)
from services.api.app.services.artifact_base import InvalidArtifactNameError
from services.api.app.services.artifact_factory import get_artifact_store
from services.api.app.services.document_layout import DEFAULT_LETTERHEAD, Letterhead, format_money
from services.api.app.services.order_service import OrderService, SubmissionStatus
from services.api.app.services.order_store_base import OrderRecord, PersistenceError
from services.api.app.services.order_store_factory import get_order_store

router = APIRouter()


def get_order_service() -> OrderService:
    try:
        order_store = get_order_store()
        artifact_store = get_artifact_store()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    letterhead = Letterhead(
        name=os.getenv("PRINTSHOP_SHOP_NAME", DEFAULT_LETTERHEAD.name),
        tagline=os.getenv("PRINTSHOP_SHOP_TAGLINE", DEFAULT_LETTERHEAD.tagline),
    )
    return OrderService(order_store, artifact_store, letterhead=letterhead)


def _order_out(order: OrderRecord) -> OrderOut:
    return OrderOut(
        id=order.id,
        customer_id=order.customer_id,
        order_date=order.order_date,
        total_amount=format_money(order.total_amount),
        document_path=order.document_path,
        created_at=order.created_at.isoformat(),
    )


@router.post("/v1/orders", response_model=CreateOrderResponse)
def create_order(
    payload: dict[str, Any] = Body(...),
    service: OrderService = Depends(get_order_service),
) -> CreateOrderResponse:
    result = service.submit_order(payload)

    if result.status == SubmissionStatus.INVALID:
        raise HTTPException(
            status_code=422,
            detail=[FieldErrorOut(path=e.path, message=e.message).model_dump() for e in result.errors],
        )

    if result.status == SubmissionStatus.FAILED or result.order_id is None:
        raise HTTPException(
            status_code=500,
            detail={"stage": result.stage, "order_id": result.order_id, "message": result.message},
        )

    documents = [
        DocumentInfoV1(
            type=ItemTypeV1(d.item_type),
            filename=d.filename,
            url=f"/v1/documents/{d.filename}",
        )
        for d in result.documents
    ]

    if result.status == SubmissionStatus.CREATED:
        message = "Order created successfully"
    else:
        message = f"Order saved; {result.message}"

    return CreateOrderResponse(
        status=result.status.value,
        order_id=result.order_id,
        documents=documents,
        missing_documents=result.missing_documents,
        message=message,
    )


@router.get("/v1/orders", response_model=list[OrderOut])
def list_orders(service: OrderService = Depends(get_order_service)) -> list[OrderOut]:
    try:
        orders = service.list_orders()
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return [_order_out(o) for o in orders]


@router.get("/v1/orders/{order_id}", response_model=OrderDetail)
def get_order(order_id: int, service: OrderService = Depends(get_order_service)) -> OrderDetail:
    try:
        found = service.get_order(order_id)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    if found is None:
        raise HTTPException(status_code=404, detail="Order not found")

    customer = found.customer
    return OrderDetail(
        order=_order_out(found.order),
        customer=CustomerOut(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            created_at=customer.created_at.isoformat(),
        ),
        items=[
            OrderItemOut(
                id=i.id,
                order_id=i.order_id,
                item_type=i.item_type,
                item_data=i.item_data,
                quantity=i.quantity,
                price=format_money(i.price),
            )
            for i in found.items
        ],
    )


@router.get("/v1/documents/{filename}")
def get_document(filename: str, service: OrderService = Depends(get_order_service)) -> Response:
    try:
        data = service.fetch_document(filename)
    except InvalidArtifactNameError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if data is None:
        raise HTTPException(status_code=404, detail="Document not found")

    return Response(
        content=data,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from services.api.app.services.document_layout import (
    DEFAULT_LETTERHEAD,
    DrawOp,
    Letterhead,
    ProductionSheet,
    build_sheet,
    group_items,
    plan_sheet,
)
from services.api.app.services.order_store_base import (
    CustomerRecord,
    OrderItemRecord,
    OrderRecord,
)

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """Base class for production document errors."""


class RenderError(DocumentError):
    def __init__(self, item_type: str, order_id: int, message: str) -> None:
        super().__init__(f"Could not render {item_type} document for order {order_id}: {message}")
        self.item_type = item_type
        self.order_id = order_id


@dataclass(frozen=True, slots=True)
class ProductionDocument:
    item_type: str
    filename: str
    artifact_bytes: bytes
    sheet: ProductionSheet


def draw_pdf(ops: list[DrawOp], *, title: str, author: str) -> bytes:
    """Execute draw ops on a single A4 page and return the PDF bytes.

    ``invariant=1`` pins the creation date and document id, so equal ops give equal bytes.
    """

    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=A4, invariant=1)
    pdf.setTitle(title)
    pdf.setAuthor(author)

    for op in ops:
        if op.kind == "text":
            pdf.setFont(op.font, op.size)
            pdf.setFillGray(op.gray)
            pdf.drawString(op.x, op.y, op.text)
        elif op.kind == "text_right":
            pdf.setFont(op.font, op.size)
            pdf.setFillGray(op.gray)
            pdf.drawRightString(op.x, op.y, op.text)
        elif op.kind == "line":
            pdf.setStrokeGray(op.gray)
            pdf.setLineWidth(op.thickness)
            pdf.line(op.x, op.y, op.x2, op.y2)
        elif op.kind == "rect":
            pdf.setFillGray(op.gray)
            pdf.rect(op.x, op.y, op.width, op.height, stroke=0, fill=1)
        else:
            raise ValueError(f"Unknown draw op: {op.kind!r}")

    pdf.showPage()
    pdf.save()
    return buf.getvalue()


def render_group(
    order: OrderRecord,
    customer: CustomerRecord,
    item_type: str,
    items: list[OrderItemRecord],
    *,
    letterhead: Letterhead = DEFAULT_LETTERHEAD,
    generated_at: datetime,
) -> ProductionDocument:
    try:
        sheet = build_sheet(order, customer, item_type, items, generated_at=generated_at)
    except ValueError as e:
        raise RenderError(item_type, order.id, str(e)) from e

    try:
        data = draw_pdf(
            plan_sheet(sheet, letterhead),
            title=f"{sheet.title} {sheet.order_number}",
            author=letterhead.name,
        )
    except Exception as e:
        raise RenderError(item_type, order.id, str(e)) from e

    logger.info(
        "Rendered %s for order %s: %d item(s), total %s",
        sheet.filename,
        order.id,
        len(sheet.lines),
        sheet.group_total,
    )
    return ProductionDocument(
        item_type=item_type,
        filename=sheet.filename,
        artifact_bytes=data,
        sheet=sheet,
    )


def render_documents(
    order: OrderRecord,
    customer: CustomerRecord,
    items: list[OrderItemRecord],
    *,
    letterhead: Letterhead = DEFAULT_LETTERHEAD,
    generated_at: datetime | None = None,
) -> list[ProductionDocument]:
    """Render one document per item type present, in box, envelope, bag order.

    Raises RenderError on the first group that fails.
    """

    stamp = generated_at or datetime.now(timezone.utc)
    return [
        render_group(order, customer, item_type, group, letterhead=letterhead, generated_at=stamp)
        for item_type, group in group_items(items)
    ]

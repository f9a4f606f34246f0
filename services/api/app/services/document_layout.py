"""Production sheet layout.

Turns stored order items into one production sheet per item type and plans
the drawing operations for each page. Drawing itself lives in
``document_render``; everything here is pure and deterministic.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from packages.shared.schemas.order_v1 import (
    BagItemV1,
    BoxItemV1,
    EnvelopeItemV1,
    ItemTypeV1,
    OrderItemV1,
    parse_order_date,
)
from reportlab.lib.pagesizes import A4
from services.api.app.services.item_rules import field_applies, item_from_record, line_total
from services.api.app.services.order_store_base import (
    CustomerRecord,
    OrderItemRecord,
    OrderRecord,
)

ITEM_TYPE_ORDER: tuple[str, ...] = tuple(t.value for t in ItemTypeV1)

TITLES = {
    ItemTypeV1.BOX.value: "BOX ORDER",
    ItemTypeV1.ENVELOPE.value: "ENVELOPE ORDER",
    ItemTypeV1.BAG.value: "BAG ORDER",
}

CENT = Decimal("0.01")

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 50
LINE_HEIGHT = 18
DETAIL_LINE_HEIGHT = 12
ITEM_GAP = 5
FOOTER_Y = 50

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
GRAY = 0.4
LIGHT_GRAY = 0.85

TABLE_HEADERS = ("#", "Type", "Details", "Qty", "Price", "Total")
TABLE_COL_WIDTHS = (30, 80, 180, 60, 70, 70)
SUMMARY_MAX_CHARS = 40


@dataclass(frozen=True, slots=True)
class Letterhead:
    name: str = "PRINT SOLUTIONS"
    tagline: str = "Professional Printing Services"


DEFAULT_LETTERHEAD = Letterhead()


@dataclass(frozen=True, slots=True)
class SheetLine:
    index: int
    label: str
    details: tuple[str, ...]
    quantity: int
    price: Decimal
    line_total: Decimal


@dataclass(frozen=True, slots=True)
class ProductionSheet:
    item_type: str
    title: str
    filename: str
    order_number: str
    order_date: str
    created: str
    customer_name: str
    customer_phone: str
    lines: tuple[SheetLine, ...]
    group_total: Decimal
    generated_at: str


@dataclass(frozen=True, slots=True)
class DrawOp:
    """One drawing instruction. ``kind`` is text, text_right, line or rect."""

    kind: str
    x: float
    y: float
    text: str = ""
    font: str = FONT
    size: float = 10
    gray: float = 0.0
    x2: float = 0.0
    y2: float = 0.0
    width: float = 0.0
    height: float = 0.0
    thickness: float = 1.0


def format_money(value: Decimal) -> str:
    return str(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def format_dimension(value: float) -> str:
    return f"{value:g}"


def _long_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def format_order_date(value: str) -> str:
    try:
        return _long_date(parse_order_date(value))
    except ValueError:
        return value


def sanitize_filename_part(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", name).lower()


def document_filename(order_id: int, item_type: str, customer_name: str) -> str:
    return f"order_{order_id}_{item_type}_{sanitize_filename_part(customer_name)}.pdf"


def group_items(items: list[OrderItemRecord]) -> list[tuple[str, list[OrderItemRecord]]]:
    """Partition items by type: box, envelope, bag first, unknown types after.

    Input order is kept inside each group and empty groups are dropped.
    """

    groups: dict[str, list[OrderItemRecord]] = {t: [] for t in ITEM_TYPE_ORDER}
    for item in items:
        groups.setdefault(item.item_type, []).append(item)
    return [(item_type, group) for item_type, group in groups.items() if group]


def _box_details(item: BoxItemV1) -> list[str]:
    details = [
        f"Box Type: {item.box_type}",
        "Dimensions: "
        f"{format_dimension(item.length)} x {format_dimension(item.breadth)} x "
        f"{format_dimension(item.height)} cm",
        f"Print Type: {item.print_type}",
    ]
    if field_applies(item, "color"):
        details.append(f"Color: {item.color}")
    if field_applies(item, "details"):
        details.append(f"Print Details: {item.details}")
    return details


def _envelope_details(item: EnvelopeItemV1) -> list[str]:
    details = [f"Size: {item.envelope_size}"]
    if field_applies(item, "envelopeHeight") and field_applies(item, "envelopeWidth"):
        details.append(
            "Custom Dimensions: "
            f"{format_dimension(item.envelope_height)} x "
            f"{format_dimension(item.envelope_width)} cm"
        )
    details.append(f"Print Type: {item.envelope_print_type}")
    if field_applies(item, "envelopePrintMethod"):
        details.append(f"Print Method: {item.envelope_print_method}")
    if field_applies(item, "envelopeCustomPrint"):
        details.append(f"Custom Print: {item.envelope_custom_print}")
    return details


def _bag_details(item: BagItemV1) -> list[str]:
    details = [f"Bag Size: {item.bag_size}"]
    if field_applies(item, "bagHeight") and field_applies(item, "bagWidth"):
        dims = f"{format_dimension(item.bag_height)} x {format_dimension(item.bag_width)}"
        if field_applies(item, "bagGusset"):
            dims += f" x {format_dimension(item.bag_gusset)}"
        details.append(f"Custom Dimensions: {dims} cm")
    details.append(f"Handle Type: {item.dore_type}")
    if field_applies(item, "handleColor"):
        details.append(f"Handle Color: {item.handle_color}")
    if field_applies(item, "customHandleColor"):
        details.append(f"Custom Handle Color: {item.custom_handle_color}")
    details.append(f"Print Type: {item.bag_print_type}")
    if field_applies(item, "printMethod"):
        details.append(f"Print Method: {item.print_method}")
    if field_applies(item, "laminationType"):
        details.append(f"Lamination: {item.lamination_type}")
    return details


def item_details(item: OrderItemV1) -> list[str]:
    """Human-readable detail lines for one item. Inactive conditional fields are skipped."""

    if item.item_type == ItemTypeV1.BOX.value:
        return _box_details(item)
    if item.item_type == ItemTypeV1.ENVELOPE.value:
        return _envelope_details(item)
    if item.item_type == ItemTypeV1.BAG.value:
        return _bag_details(item)
    raise ValueError(f"Unknown item type: {item.item_type!r}")


def build_sheet(
    order: OrderRecord,
    customer: CustomerRecord,
    item_type: str,
    items: list[OrderItemRecord],
    *,
    generated_at: datetime,
) -> ProductionSheet:
    """Build the sheet for one item-type group.

    Raises pydantic.ValidationError if a stored payload does not match its type.
    """

    if item_type not in TITLES:
        raise ValueError(f"Unknown item type: {item_type!r}")

    lines: list[SheetLine] = []
    for index, record in enumerate(items, start=1):
        item = item_from_record(record.item_type, record.item_data, record.quantity, record.price)
        lines.append(
            SheetLine(
                index=index,
                label=record.item_type.capitalize(),
                details=tuple(item_details(item)),
                quantity=item.quantity,
                price=item.price,
                line_total=line_total(item),
            )
        )

    return ProductionSheet(
        item_type=item_type,
        title=TITLES[item_type],
        filename=document_filename(order.id, item_type, customer.name),
        order_number=f"#{order.id:06d}",
        order_date=format_order_date(order.order_date),
        created=_long_date(order.created_at),
        customer_name=customer.name,
        customer_phone=customer.phone,
        lines=tuple(lines),
        group_total=sum((line.line_total for line in lines), Decimal("0")),
        generated_at=f"{generated_at:%Y-%m-%d %H:%M}",
    )


def item_block_height(line: SheetLine) -> float:
    return LINE_HEIGHT + DETAIL_LINE_HEIGHT * len(line.details) + ITEM_GAP


def _summary(details: tuple[str, ...]) -> str:
    text = ", ".join(details)
    if len(text) > SUMMARY_MAX_CHARS:
        return text[: SUMMARY_MAX_CHARS - 3] + "..."
    return text


def _plan_header(ops: list[DrawOp], sheet: ProductionSheet, letterhead: Letterhead) -> float:
    y = PAGE_HEIGHT - MARGIN
    ops.append(DrawOp("text", MARGIN, y, letterhead.name, FONT_BOLD, 24))
    ops.append(DrawOp("text_right", PAGE_WIDTH - MARGIN, y, sheet.title, FONT_BOLD, 14))
    y -= 25
    ops.append(DrawOp("text", MARGIN, y, letterhead.tagline, FONT, 10, gray=GRAY))
    y -= 40
    ops.append(DrawOp("line", MARGIN, y, x2=PAGE_WIDTH - MARGIN, y2=y, thickness=2))
    y -= 30

    right_col = PAGE_WIDTH / 2 + 20
    ops.append(DrawOp("text", MARGIN, y, "ORDER DETAILS", FONT_BOLD, 12))
    y -= LINE_HEIGHT + 5
    ops.append(DrawOp("text", MARGIN, y, "Order Number:", FONT_BOLD, 10))
    ops.append(DrawOp("text", MARGIN + 90, y, sheet.order_number, FONT, 10))
    ops.append(DrawOp("text", right_col, y, "Order Date:", FONT_BOLD, 10))
    ops.append(DrawOp("text", right_col + 70, y, sheet.order_date, FONT, 10))
    y -= LINE_HEIGHT
    ops.append(DrawOp("text", MARGIN, y, "Created:", FONT_BOLD, 10))
    ops.append(DrawOp("text", MARGIN + 90, y, sheet.created, FONT, 10))
    return y - (LINE_HEIGHT + 15)


def _plan_customer(ops: list[DrawOp], sheet: ProductionSheet, y: float) -> float:
    ops.append(
        DrawOp(
            "rect", MARGIN, y - 55, width=PAGE_WIDTH - MARGIN * 2, height=60, gray=LIGHT_GRAY
        )
    )
    y -= 5
    ops.append(DrawOp("text", MARGIN + 10, y, "CUSTOMER INFORMATION", FONT_BOLD, 11))
    y -= LINE_HEIGHT
    ops.append(DrawOp("text", MARGIN + 10, y, "Name:", FONT_BOLD, 10))
    ops.append(DrawOp("text", MARGIN + 60, y, sheet.customer_name, FONT, 10))
    y -= LINE_HEIGHT
    ops.append(DrawOp("text", MARGIN + 10, y, "Phone:", FONT_BOLD, 10))
    ops.append(DrawOp("text", MARGIN + 60, y, sheet.customer_phone, FONT, 10))
    return y - (LINE_HEIGHT + 25)


def _plan_items(ops: list[DrawOp], sheet: ProductionSheet, y: float) -> float:
    ops.append(DrawOp("text", MARGIN, y, "ORDER ITEMS", FONT_BOLD, 12))
    y -= LINE_HEIGHT + 5

    ops.append(
        DrawOp(
            "rect", MARGIN, y - 15, width=PAGE_WIDTH - MARGIN * 2, height=20, gray=LIGHT_GRAY
        )
    )
    x = MARGIN + 5
    for header, col_width in zip(TABLE_HEADERS, TABLE_COL_WIDTHS):
        ops.append(DrawOp("text", x, y - 10, header, FONT_BOLD, 9))
        x += col_width
    y -= 25

    col_x = [MARGIN + 5]
    for col_width in TABLE_COL_WIDTHS[:-1]:
        col_x.append(col_x[-1] + col_width)

    # Overflow past the page bottom is not paginated; the block keeps flowing down.
    for line in sheet.lines:
        ops.append(DrawOp("text", col_x[0], y, str(line.index), FONT, 9))
        ops.append(DrawOp("text", col_x[1], y, line.label, FONT, 9))
        ops.append(DrawOp("text", col_x[2], y, _summary(line.details), FONT, 8))
        ops.append(DrawOp("text", col_x[3], y, str(line.quantity), FONT, 9))
        ops.append(DrawOp("text", col_x[4], y, format_money(line.price), FONT, 9))
        ops.append(DrawOp("text", col_x[5], y, format_money(line.line_total), FONT_BOLD, 9))
        y -= LINE_HEIGHT

        for detail in line.details:
            ops.append(DrawOp("text", col_x[2], y, f"  {detail}", FONT, 7, gray=GRAY))
            y -= DETAIL_LINE_HEIGHT
        y -= ITEM_GAP
    return y


def _plan_summary(ops: list[DrawOp], sheet: ProductionSheet, y: float) -> float:
    y -= 10
    ops.append(DrawOp("line", MARGIN, y, x2=PAGE_WIDTH - MARGIN, y2=y, thickness=1))
    y -= 20
    ops.append(DrawOp("text", MARGIN, y, f"Items: {len(sheet.lines)}", FONT, 10))
    ops.append(DrawOp("text", PAGE_WIDTH - MARGIN - 200, y, "GROUP TOTAL:", FONT_BOLD, 14))
    ops.append(
        DrawOp("text_right", PAGE_WIDTH - MARGIN, y, format_money(sheet.group_total), FONT_BOLD, 14)
    )
    return y


def _plan_signatures(ops: list[DrawOp], y: float) -> None:
    y -= 60
    sig_width = 180
    right_x = PAGE_WIDTH - MARGIN - sig_width
    for x, label in ((MARGIN, "Prepared by"), (right_x, "Approved by")):
        ops.append(DrawOp("line", x, y, x2=x + sig_width, y2=y, thickness=0.5))
        ops.append(DrawOp("text", x, y - 12, label, FONT, 9, gray=GRAY))


def _plan_footer(ops: list[DrawOp], sheet: ProductionSheet) -> None:
    ops.append(
        DrawOp(
            "line",
            MARGIN,
            FOOTER_Y + 15,
            x2=PAGE_WIDTH - MARGIN,
            y2=FOOTER_Y + 15,
            thickness=0.5,
            gray=GRAY,
        )
    )
    ops.append(DrawOp("text", MARGIN, FOOTER_Y, "Thank you for your business!", FONT, 9, gray=GRAY))
    ops.append(
        DrawOp(
            "text_right",
            PAGE_WIDTH - MARGIN,
            FOOTER_Y,
            f"Generated: {sheet.generated_at}",
            FONT,
            8,
            gray=GRAY,
        )
    )


def plan_sheet(sheet: ProductionSheet, letterhead: Letterhead = DEFAULT_LETTERHEAD) -> list[DrawOp]:
    """Lay the sheet out top-down: header, customer, items, summary, signatures, footer."""

    ops: list[DrawOp] = []
    y = _plan_header(ops, sheet, letterhead)
    y = _plan_customer(ops, sheet, y)
    y = _plan_items(ops, sheet, y)
    y = _plan_summary(ops, sheet, y)
    _plan_signatures(ops, y)
    _plan_footer(ops, sheet)
    return ops

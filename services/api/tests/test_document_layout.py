from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from services.api.app.services.document_layout import (
    DETAIL_LINE_HEIGHT,
    Letterhead,
    build_sheet,
    document_filename,
    format_money,
    group_items,
    item_block_height,
    plan_sheet,
)
from services.api.app.services.order_store_base import (
    CustomerRecord,
    OrderItemRecord,
    OrderRecord,
)

GENERATED_AT = datetime(2024, 1, 10, 9, 30, tzinfo=timezone.utc)

BOX_DATA = {
    "boxType": "Magnet",
    "length": 10,
    "breadth": 8,
    "height": 4,
    "printType": "Plain",
    "color": "Red",
}

ENVELOPE_DATA = {
    "envelopeSize": "Other",
    "envelopeHeight": 22.5,
    "envelopeWidth": 11,
    "envelopePrintType": "Print",
    "envelopePrintMethod": "Other",
    "envelopeCustomPrint": "Gold foil",
}

BAG_DATA = {
    "bagSize": "Other",
    "bagHeight": 30,
    "bagWidth": 20,
    "bagGusset": 8,
    "doreType": "Ribbon",
    "handleColor": "Other",
    "customHandleColor": "Maroon",
    "bagPrintType": "Print",
    "printMethod": "Multi Color",
    "laminationType": "Matte",
}


def _order(order_id: int = 1) -> OrderRecord:
    return OrderRecord(
        id=order_id,
        customer_id=7,
        order_date="2024-01-10",
        total_amount=Decimal("37.50"),
        created_at=datetime(2024, 1, 10, 8, 0, tzinfo=timezone.utc),
    )


def _customer(name: str = "Asha") -> CustomerRecord:
    return CustomerRecord(
        id=7, name=name, phone="9990001111", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)
    )


def _item(
    item_id: int, item_type: str, data: dict, quantity: int = 3, price: str = "12.50"
) -> OrderItemRecord:
    return OrderItemRecord(
        id=item_id,
        order_id=1,
        item_type=item_type,
        item_data=dict(data),
        quantity=quantity,
        price=Decimal(price),
    )


def test_group_items_orders_groups_and_keeps_input_order() -> None:
    items = [
        _item(1, "bag", BAG_DATA),
        _item(2, "box", BOX_DATA),
        _item(3, "envelope", ENVELOPE_DATA),
        _item(4, "box", BOX_DATA),
    ]

    groups = group_items(items)

    assert [t for t, _ in groups] == ["box", "envelope", "bag"]
    assert [i.id for i in groups[0][1]] == [2, 4]


def test_group_items_skips_absent_types() -> None:
    groups = group_items([_item(1, "box", BOX_DATA)])
    assert [t for t, _ in groups] == ["box"]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (Decimal("37.5"), "37.50"),
        (Decimal("0"), "0.00"),
        (Decimal("0.125"), "0.13"),
        (Decimal("2.675"), "2.68"),
        (Decimal("1234.5000"), "1234.50"),
    ],
)
def test_format_money_rounds_half_up_to_two_places(value: Decimal, expected: str) -> None:
    assert format_money(value) == expected


def test_document_filename_is_sanitized_and_stable() -> None:
    assert document_filename(42, "box", "Asha K. & Co") == "order_42_box_asha_k____co.pdf"
    assert document_filename(42, "box", "Asha K. & Co") == document_filename(42, "box", "Asha K. & Co")


def test_box_sheet_for_single_item() -> None:
    sheet = build_sheet(
        _order(), _customer(), "box", [_item(1, "box", BOX_DATA)], generated_at=GENERATED_AT
    )

    assert sheet.title == "BOX ORDER"
    assert sheet.filename == "order_1_box_asha.pdf"
    assert sheet.order_number == "#000001"
    assert sheet.order_date == "January 10, 2024"
    assert sheet.customer_name == "Asha"
    assert sheet.customer_phone == "9990001111"

    [line] = sheet.lines
    assert line.details == (
        "Box Type: Magnet",
        "Dimensions: 10 x 8 x 4 cm",
        "Print Type: Plain",
        "Color: Red",
    )
    assert line.quantity == 3
    assert format_money(line.price) == "12.50"
    assert line.line_total == Decimal("37.50")
    assert sheet.group_total == Decimal("37.50")


def test_group_total_is_exact_sum_of_line_totals() -> None:
    items = [
        _item(1, "box", BOX_DATA, quantity=3, price="0.10"),
        _item(2, "box", BOX_DATA, quantity=7, price="0.20"),
        _item(3, "box", BOX_DATA, quantity=1, price="19.99"),
    ]

    sheet = build_sheet(_order(), _customer(), "box", items, generated_at=GENERATED_AT)

    assert [line.line_total for line in sheet.lines] == [
        Decimal("0.30"),
        Decimal("1.40"),
        Decimal("19.99"),
    ]
    assert sheet.group_total == Decimal("21.69")


def test_inactive_conditional_fields_are_not_rendered() -> None:
    data = {**BOX_DATA, "details": "should not show"}
    sheet = build_sheet(
        _order(), _customer(), "box", [_item(1, "box", data)], generated_at=GENERATED_AT
    )
    assert not any(d.startswith("Print Details") for d in sheet.lines[0].details)


def test_envelope_and_bag_details() -> None:
    envelope = build_sheet(
        _order(),
        _customer(),
        "envelope",
        [_item(1, "envelope", ENVELOPE_DATA)],
        generated_at=GENERATED_AT,
    )
    assert envelope.title == "ENVELOPE ORDER"
    assert envelope.lines[0].details == (
        "Size: Other",
        "Custom Dimensions: 22.5 x 11 cm",
        "Print Type: Print",
        "Print Method: Other",
        "Custom Print: Gold foil",
    )

    bag = build_sheet(
        _order(), _customer(), "bag", [_item(1, "bag", BAG_DATA)], generated_at=GENERATED_AT
    )
    assert bag.title == "BAG ORDER"
    assert bag.lines[0].details == (
        "Bag Size: Other",
        "Custom Dimensions: 30 x 20 x 8 cm",
        "Handle Type: Ribbon",
        "Handle Color: Other",
        "Custom Handle Color: Maroon",
        "Print Type: Print",
        "Print Method: Multi Color",
        "Lamination: Matte",
    )


def test_build_sheet_rejects_unknown_type() -> None:
    with pytest.raises(ValueError):
        build_sheet(_order(), _customer(), "poster", [], generated_at=GENERATED_AT)


def _op_y(ops: list, text: str) -> float:
    return next(op.y for op in ops if op.text == text)


def test_plan_contains_title_letterhead_totals_and_stamp() -> None:
    sheet = build_sheet(
        _order(), _customer(), "box", [_item(1, "box", BOX_DATA)], generated_at=GENERATED_AT
    )

    ops = plan_sheet(sheet, Letterhead(name="ACME PRINT", tagline="Since 1999"))
    texts = [op.text for op in ops]

    assert "ACME PRINT" in texts
    assert "BOX ORDER" in texts
    assert "Asha" in texts
    assert "GROUP TOTAL:" in texts
    assert texts.count("37.50") == 2  # line total and group total
    assert "Generated: 2024-01-10 09:30" in texts
    assert "Prepared by" in texts


def test_item_block_grows_one_line_per_detail() -> None:
    plain = _item(1, "box", BOX_DATA)
    no_extra = _item(1, "box", {**BOX_DATA, "printType": "Embossed"})

    with_color = build_sheet(_order(), _customer(), "box", [plain], generated_at=GENERATED_AT)
    without = build_sheet(_order(), _customer(), "box", [no_extra], generated_at=GENERATED_AT)

    assert item_block_height(with_color.lines[0]) - item_block_height(without.lines[0]) == (
        DETAIL_LINE_HEIGHT
    )
    assert _op_y(plan_sheet(without), "GROUP TOTAL:") - _op_y(
        plan_sheet(with_color), "GROUP TOTAL:"
    ) == DETAIL_LINE_HEIGHT


def test_many_items_overflow_instead_of_truncating() -> None:
    items = [_item(i, "box", BOX_DATA, quantity=1, price="1.00") for i in range(1, 61)]
    sheet = build_sheet(_order(), _customer(), "box", items, generated_at=GENERATED_AT)

    ops = plan_sheet(sheet)
    indexes = {op.text for op in ops if op.text.isdigit()}

    assert {str(i) for i in range(1, 61)} <= indexes
    assert min(op.y for op in ops) < 0
    assert sheet.group_total == Decimal("60.00")

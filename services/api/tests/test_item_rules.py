from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError
from services.api.app.services.item_rules import (
    FieldError,
    field_applies,
    item_from_record,
    split_item,
    validate_item,
)

BOX = {
    "itemType": "box",
    "boxType": "Magnet",
    "length": 10,
    "breadth": 8,
    "height": 4,
    "printType": "Plain",
    "color": "Red",
    "quantity": 3,
    "price": 12.50,
}

ENVELOPE = {
    "itemType": "envelope",
    "envelopeSize": "A4",
    "envelopePrintType": "Print",
    "envelopePrintMethod": "Screen",
    "quantity": 100,
    "price": 2.25,
}

BAG = {
    "itemType": "bag",
    "bagSize": "Other",
    "bagHeight": 30,
    "bagWidth": 20,
    "bagGusset": 8,
    "doreType": "Rope",
    "handleColor": "Other",
    "customHandleColor": "Maroon",
    "bagPrintType": "Print",
    "printMethod": "Multi Color",
    "laminationType": "Matte",
    "quantity": 50,
    "price": 18,
}


def _without(raw: dict, key: str) -> dict:
    return {k: v for k, v in raw.items() if k != key}


def _paths(raw: dict) -> set[str]:
    return {e.path for e in validate_item(raw).errors}


@pytest.mark.parametrize("raw", [BOX, ENVELOPE, BAG])
def test_valid_variants_pass(raw: dict) -> None:
    check = validate_item(raw)
    assert check.ok
    assert check.errors == []
    assert check.item is not None
    assert check.item.item_type == raw["itemType"]


@pytest.mark.parametrize(
    ("raw", "field"),
    [
        (BOX, "boxType"),
        (BOX, "length"),
        (BOX, "printType"),
        (BOX, "quantity"),
        (BOX, "price"),
        (ENVELOPE, "envelopeSize"),
        (ENVELOPE, "envelopePrintType"),
        (BAG, "bagSize"),
        (BAG, "doreType"),
        (BAG, "bagPrintType"),
    ],
)
def test_each_omitted_required_field_yields_one_error(raw: dict, field: str) -> None:
    check = validate_item(_without(raw, field))
    assert not check.ok
    assert check.errors == [FieldError(field, f"{field} is required")]


def test_empty_required_string_is_rejected() -> None:
    assert validate_item({**BOX, "boxType": ""}).errors == [
        FieldError("boxType", "boxType is required")
    ]


@pytest.mark.parametrize(
    ("field", "value"),
    [("length", 0.1), ("breadth", 0), ("height", -2)],
)
def test_box_dimensions_must_exceed_minimum(field: str, value: float) -> None:
    errors = validate_item({**BOX, field: value}).errors
    assert [e.path for e in errors] == [field]
    assert "greater than 0.1" in errors[0].message


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("quantity", 0),
        ("quantity", -1),
        ("quantity", 2.5),
        ("quantity", True),
        ("quantity", "3"),
        ("price", -0.01),
        ("price", 0.00005),
    ],
)
def test_quantity_and_price_bounds(field: str, value: float) -> None:
    assert _paths({**BOX, field: value}) == {field}


def test_price_with_four_decimal_places_is_allowed() -> None:
    check = validate_item({**BOX, "price": "0.0005"})
    assert check.ok
    assert check.item.price == Decimal("0.0005")


@pytest.mark.parametrize(
    ("raw", "field"),
    [
        (BOX, "length"),
        (BOX, "height"),
        (BAG, "bagGusset"),
        ({**ENVELOPE, "envelopeSize": "Other", "envelopeWidth": 11}, "envelopeHeight"),
    ],
)
@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_dimensions_must_be_finite(raw: dict, field: str, value: float) -> None:
    check = validate_item({**raw, field: value})
    assert not check.ok
    assert [e.path for e in check.errors] == [field]


def test_zero_price_is_allowed() -> None:
    assert validate_item({**BOX, "price": 0}).ok


def test_unknown_item_type_is_rejected() -> None:
    errors = validate_item({**BOX, "itemType": "poster"}).errors
    assert [e.path for e in errors] == ["itemType"]
    assert "poster" in errors[0].message


def test_missing_item_type_is_rejected() -> None:
    assert validate_item(_without(BOX, "itemType")).errors == [
        FieldError("itemType", "itemType is required")
    ]


def test_non_object_item_is_rejected() -> None:
    assert not validate_item(["box"]).ok


def test_plain_box_requires_color() -> None:
    errors = validate_item(_without(BOX, "color")).errors
    assert errors == [FieldError("color", "color is required when printType is Plain")]


def test_printed_box_requires_details() -> None:
    raw = {**_without(BOX, "color"), "printType": "Printed"}
    assert _paths(raw) == {"details"}
    assert validate_item({**raw, "details": "Logo on lid"}).ok


def test_inactive_conditional_field_is_tolerated_but_not_applied() -> None:
    check = validate_item({**BOX, "details": "ignored"})
    assert check.ok
    assert check.item is not None
    assert field_applies(check.item, "color")
    assert not field_applies(check.item, "details")


def test_envelope_other_size_requires_both_dimensions() -> None:
    raw = {**ENVELOPE, "envelopeSize": "Other"}
    errors = validate_item(raw).errors
    assert {e.path for e in errors} == {"envelopeHeight", "envelopeWidth"}
    assert all("envelopeSize is Other" in e.message for e in errors)


def test_envelope_custom_dimensions_must_exceed_minimum() -> None:
    raw = {**ENVELOPE, "envelopeSize": "Other", "envelopeHeight": 0.1, "envelopeWidth": 11}
    assert validate_item(raw).errors == [
        FieldError("envelopeHeight", "envelopeHeight must be greater than 0.1")
    ]


def test_envelope_print_requires_method_and_other_method_requires_custom_print() -> None:
    assert _paths(_without(ENVELOPE, "envelopePrintMethod")) == {"envelopePrintMethod"}
    assert _paths({**ENVELOPE, "envelopePrintMethod": "Other"}) == {"envelopeCustomPrint"}


def test_envelope_custom_print_not_needed_without_print() -> None:
    raw = {**ENVELOPE, "envelopePrintType": "Plain", "envelopePrintMethod": "Other"}
    assert validate_item(raw).ok


def test_bag_other_size_requires_gusset() -> None:
    assert _paths(_without(BAG, "bagGusset")) == {"bagGusset"}


def test_bag_handle_rules() -> None:
    assert _paths(_without(BAG, "handleColor")) == {"handleColor"}
    assert _paths(_without(BAG, "customHandleColor")) == {"customHandleColor"}

    no_handle = {
        **_without(_without(BAG, "handleColor"), "customHandleColor"),
        "doreType": "None",
    }
    assert validate_item(no_handle).ok


def test_bag_print_rules() -> None:
    assert _paths(_without(BAG, "printMethod")) == {"printMethod"}
    assert _paths(_without(BAG, "laminationType")) == {"laminationType"}

    single_color = {**_without(BAG, "laminationType"), "printMethod": "Single Color"}
    assert validate_item(single_color).ok


def test_bag_rejects_unknown_dore_type() -> None:
    assert _paths({**BAG, "doreType": "Chain"}) == {"doreType"}


def test_conditional_errors_wait_for_base_fields() -> None:
    raw = _without(_without(BOX, "color"), "boxType")
    assert _paths(raw) == {"boxType"}


def test_split_item_keeps_only_variant_fields() -> None:
    check = validate_item({**BOX, "unexpected": "dropped"})
    assert check.item is not None

    item_type, payload, quantity, price = split_item(check.item)

    assert item_type == "box"
    assert quantity == 3
    assert price == Decimal("12.5")
    assert payload == {
        "boxType": "Magnet",
        "length": 10,
        "breadth": 8,
        "height": 4,
        "printType": "Plain",
        "color": "Red",
    }


def test_item_from_record_rejects_payload_of_another_type() -> None:
    check = validate_item(BOX)
    assert check.item is not None
    _, payload, quantity, price = split_item(check.item)

    with pytest.raises(ValidationError):
        item_from_record("bag", payload, quantity, price)

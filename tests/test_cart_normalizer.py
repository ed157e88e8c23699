from decimal import Decimal

import pytest

from cart_protection.errors import MalformedResponse
from cart_protection.integrations.contracts.interfaces import CartLineItem, CartSnapshot
from cart_protection.integrations.policy.cart_normalizer import normalize_cart


def test_storefront_shape_with_envelope():
    raw = {
        "data": {
            "id": "cart-1",
            "currency": {"code": "USD"},
            "line_items": {
                "physical_items": [
                    {"id": "a", "product_id": 10, "quantity": 2, "list_price": 25.5},
                    {"id": "b", "product_id": 11, "quantity": 1, "list_price": 100},
                ],
                "digital_items": [{"id": "c", "product_id": 6817, "quantity": 1, "list_price": 3.0}],
            },
        }
    }

    snapshot = normalize_cart(raw)

    assert snapshot.cart_id == "cart-1"
    assert snapshot.currency_code == "USD"
    assert [i.item_id for i in snapshot.physical_items] == ["a", "b"]
    assert snapshot.physical_subtotal == Decimal("151.0")
    assert snapshot.digital_items == (
        CartLineItem(item_id="c", product_id=6817, quantity=1, list_price=Decimal("3.0")),
    )


def test_camel_case_storefront_response_without_envelope():
    raw = {
        "id": "cart-2",
        "currency": {"code": "EUR"},
        "lineItems": {
            "physicalItems": [{"id": "a", "productId": 10, "quantity": 3, "listPrice": 10}],
            "digitalItems": [{"id": "c", "productId": 6817, "quantity": 1, "listPrice": 4.5}],
        },
    }

    snapshot = normalize_cart(raw)

    assert snapshot.cart_id == "cart-2"
    assert snapshot.physical_subtotal == Decimal("30")
    assert snapshot.insurance_items(6817)[0].list_price == Decimal("4.5")


def test_snake_and_camel_insurance_items_normalize_identically():
    snake = {"data": {"line_items": {"digital_items": [{"product_id": 6817, "list_price": 3.00, "quantity": 1}]}}}
    camel = {"lineItems": [{"productId": 6817, "listPrice": 3.00, "quantity": 1}]}

    assert normalize_cart(snake, insurance_product_id=6817) == normalize_cart(camel, insurance_product_id=6817)


def test_flat_line_item_list_is_split_by_type_and_product():
    raw = {
        "lineItems": [
            {"id": "p", "productId": 1, "quantity": 1, "listPrice": 20},
            {"id": "d", "productId": 2, "quantity": 1, "listPrice": 5, "type": "digital"},
            {"id": "i", "productId": 6817, "quantity": 1, "listPrice": 3},
        ]
    }

    snapshot = normalize_cart(raw, insurance_product_id=6817)

    assert [i.item_id for i in snapshot.physical_items] == ["p"]
    assert [i.item_id for i in snapshot.digital_items] == ["d", "i"]


def test_missing_collections_normalize_to_empty():
    assert normalize_cart({"data": {"id": "x"}}) == CartSnapshot(cart_id="x")
    assert normalize_cart({"data": {"line_items": {}}}).digital_items == ()
    assert normalize_cart({}) == CartSnapshot()


def test_missing_or_garbage_item_fields_default_to_zero():
    raw = {"data": {"line_items": {"physical_items": [{"product_id": 5}, {"productId": "7", "listPrice": "n/a", "quantity": None}, "junk"]}}}

    items = normalize_cart(raw).physical_items

    assert len(items) == 2
    assert items[0] == CartLineItem(item_id="", product_id=5, quantity=0, list_price=Decimal("0"))
    assert items[1].product_id == 7
    assert items[1].list_price == Decimal("0")


def test_snake_case_key_wins_over_camel_case():
    raw = {"line_items": {"digital_items": [{"product_id": 1, "productId": 2, "list_price": 9, "listPrice": 1}]}}

    item = normalize_cart(raw).digital_items[0]

    assert item.product_id == 1
    assert item.list_price == Decimal("9")


def test_non_mapping_envelope_is_treated_as_empty_cart():
    assert normalize_cart({"data": ["not", "a", "cart"]}) == CartSnapshot()


@pytest.mark.parametrize("raw", [None, [], "cart", 42])
def test_non_mapping_payload_is_malformed(raw):
    with pytest.raises(MalformedResponse):
        normalize_cart(raw)

"""
Cart payload normalization.

BigCommerce hands carts back in two shapes depending on which API answered:
the storefront shape (``data`` envelope, snake_case keys such as
``line_items.physical_items[].list_price``) and the admin/camelCase variant
(``lineItems``, ``productId``, ``listPrice``), sometimes without the envelope
and sometimes as a flat ``lineItems`` list. ``normalize_cart`` folds all of
them into one ``CartSnapshot`` so nothing downstream reads raw payload keys.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Tuple

from cart_protection.errors import MalformedResponse
from cart_protection.integrations.contracts.interfaces import CartLineItem, CartSnapshot

_DIGITAL_TYPES = {"digital", "digital_item", "digital_items"}


def normalize_cart(raw_cart: Any, insurance_product_id: Optional[int] = None) -> CartSnapshot:
    """
    Build a CartSnapshot from either cart payload shape.

    Missing collections and missing per-item fields never fail; only a payload
    that is not a mapping at all raises MalformedResponse.
    """
    if not isinstance(raw_cart, Mapping):
        raise MalformedResponse(
            f"Cart payload must be a JSON object; got {type(raw_cart).__name__}",
            payload={"raw": repr(raw_cart)[:500]},
        )

    envelope = raw_cart.get("data", raw_cart)
    if not isinstance(envelope, Mapping):
        envelope = {}

    cart_id = _first_present(envelope, "id", "cart_id", "cartId")
    currency_code = _currency_code(envelope)

    line_items = _first_present(envelope, "line_items", "lineItems")
    if isinstance(line_items, Mapping):
        physical = _items(_first_present(line_items, "physical_items", "physicalItems"))
        digital = _items(_first_present(line_items, "digital_items", "digitalItems"))
    elif isinstance(line_items, list):
        physical, digital = _split_flat_items(line_items, insurance_product_id)
    else:
        physical, digital = (), ()

    return CartSnapshot(
        cart_id=str(cart_id) if cart_id is not None else None,
        currency_code=currency_code,
        physical_items=physical,
        digital_items=digital,
    )


def _first_present(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _currency_code(envelope: Mapping[str, Any]) -> Optional[str]:
    currency = envelope.get("currency")
    if isinstance(currency, Mapping):
        code = currency.get("code")
        return str(code) if code else None
    code = _first_present(envelope, "currency_code", "currencyCode")
    return str(code) if code else None


def _items(raw_items: Any) -> Tuple[CartLineItem, ...]:
    if not isinstance(raw_items, list):
        return ()
    return tuple(_item(raw) for raw in raw_items if isinstance(raw, Mapping))


def _item(raw: Mapping[str, Any]) -> CartLineItem:
    item_id = _first_present(raw, "id", "item_id", "itemId", default="")
    return CartLineItem(
        item_id=str(item_id),
        product_id=_to_int(_first_present(raw, "product_id", "productId")),
        quantity=_to_int(_first_present(raw, "quantity")),
        list_price=_to_decimal(_first_present(raw, "list_price", "listPrice")),
    )


def _split_flat_items(
    raw_items: List[Any],
    insurance_product_id: Optional[int],
) -> Tuple[Tuple[CartLineItem, ...], Tuple[CartLineItem, ...]]:
    physical: List[CartLineItem] = []
    digital: List[CartLineItem] = []
    for raw in raw_items:
        if not isinstance(raw, Mapping):
            continue
        item = _item(raw)
        item_type = str(_first_present(raw, "item_type", "itemType", "type", default="")).lower()
        if item_type in _DIGITAL_TYPES or (
            insurance_product_id is not None and item.product_id == insurance_product_id
        ):
            digital.append(item)
        else:
            physical.append(item)
    return tuple(physical), tuple(digital)


def _to_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        return 0


def _to_decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


__all__ = ["normalize_cart"]

"""
In-memory cart store: MOCK client.

⚠️  Development and testing implementation of the CartStore interface.
    No network calls. Carts live in memory (reset on restart) and are kept
    in the storefront payload shape so the normalizer is exercised exactly
    as it is against BigCommerce.

Every call is recorded in ``calls`` and any operation can be made to fail
with a chosen error, for exercising partial-failure paths.
"""

import copy
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from cart_protection.errors import CartProtectionError, NotFound
from cart_protection.integrations.contracts.interfaces import CartStore, LineItemRef

logger = logging.getLogger(__name__)


class InMemoryCartStore(CartStore):
    """
    Mock cart store.

    Parameters
    ----------
    digital_product_ids : iterable of int
        Products filed under ``digital_items`` when added (the insurance
        product). Everything else goes to ``physical_items``.
    currency_code : str
        Currency reported on every cart. Default "USD".
    """

    def __init__(self, digital_product_ids: Iterable[int] = (), currency_code: str = "USD"):
        self._digital_product_ids = set(digital_product_ids)
        self._currency_code = currency_code
        self._carts: Dict[str, Dict[str, Any]] = {}
        self._failures: Dict[str, List[CartProtectionError]] = {"fetch": [], "add": [], "remove": []}
        self.calls: List[Tuple[Any, ...]] = []

        logger.info("[CART MOCK] Store initialised (digital products=%s)", sorted(self._digital_product_ids))

    # ------------------------------------------------------------------
    # Test / dev helpers
    # ------------------------------------------------------------------

    def create_cart(
        self,
        cart_id: Optional[str] = None,
        physical_items: Iterable[Dict[str, Any]] = (),
        digital_items: Iterable[Dict[str, Any]] = (),
    ) -> str:
        cart_id = cart_id or str(uuid.uuid4())
        self._carts[cart_id] = {
            "id": cart_id,
            "currency": {"code": self._currency_code},
            "line_items": {
                "physical_items": [self._line_item(i) for i in physical_items],
                "digital_items": [self._line_item(i) for i in digital_items],
            },
        }
        return cart_id

    def fail_next(self, operation: str, error: CartProtectionError) -> None:
        """Make the next ``operation`` ("fetch", "add" or "remove") raise ``error``."""
        self._failures[operation].append(error)

    def items_for(self, cart_id: str, product_id: int) -> List[Dict[str, Any]]:
        cart = self._carts.get(cart_id)
        if cart is None:
            return []
        line_items = cart["line_items"]
        return [
            item
            for item in line_items["physical_items"] + line_items["digital_items"]
            if item["product_id"] == product_id
        ]

    def calls_of(self, operation: str) -> List[Tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == operation]

    def _line_item(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": str(raw.get("id") or uuid.uuid4()),
            "product_id": int(raw["product_id"]),
            "quantity": int(raw.get("quantity", 1)),
            "list_price": float(raw.get("list_price", 0)),
        }

    def _maybe_fail(self, operation: str) -> None:
        if self._failures[operation]:
            error = self._failures[operation].pop(0)
            logger.info("[CART MOCK] Simulated %s failure: %s", operation, error)
            raise error

    # ------------------------------------------------------------------
    # CartStore interface
    # ------------------------------------------------------------------

    async def fetch_cart(self, cart_id: str) -> Dict[str, Any]:
        self.calls.append(("fetch", cart_id))
        self._maybe_fail("fetch")
        cart = self._carts.get(cart_id)
        if cart is None:
            raise NotFound(f"Cart not found: {cart_id}")
        return {"data": copy.deepcopy(cart)}

    async def add_line_item(
        self,
        cart_id: str,
        product_id: int,
        quantity: int = 1,
        list_price: Optional[Decimal] = None,
    ) -> LineItemRef:
        self.calls.append(("add", cart_id, product_id, quantity, list_price))
        self._maybe_fail("add")
        cart = self._carts.get(cart_id)
        if cart is None:
            raise NotFound(f"Cart or product not found (404). Cart: {cart_id}, Product: {product_id}")

        item = self._line_item(
            {"product_id": product_id, "quantity": quantity, "list_price": list_price if list_price is not None else 0}
        )
        bucket = "digital_items" if product_id in self._digital_product_ids else "physical_items"
        cart["line_items"][bucket].append(item)
        logger.info("[CART MOCK] Added product %s to cart %s as %s", product_id, cart_id, item["id"])
        return LineItemRef(cart_id=cart_id, product_id=product_id, list_price=list_price, item_id=item["id"])

    async def remove_line_item(self, cart_id: str, item_id: str) -> None:
        self.calls.append(("remove", cart_id, item_id))
        self._maybe_fail("remove")
        cart = self._carts.get(cart_id)
        if cart is None:
            return
        for bucket in ("physical_items", "digital_items"):
            cart["line_items"][bucket] = [i for i in cart["line_items"][bucket] if i["id"] != item_id]

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class DesiredState(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class ReconcileAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"


class InsuranceState(str, Enum):
    ABSENT = "ABSENT"
    PRESENT = "PRESENT"


# ---------------------------------------------------------------------------
# Cart data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CartLineItem:
    item_id: str                         # store-assigned, needed to remove the item
    product_id: int
    quantity: int
    list_price: Decimal                  # unit price

    @property
    def extended_price(self) -> Decimal:
        return self.list_price * self.quantity


@dataclass(frozen=True)
class CartSnapshot:
    """Read-only view of a cart at one point in time."""

    cart_id: Optional[str] = None
    currency_code: Optional[str] = None
    physical_items: Tuple[CartLineItem, ...] = ()
    digital_items: Tuple[CartLineItem, ...] = ()

    @property
    def physical_subtotal(self) -> Decimal:
        return sum((item.extended_price for item in self.physical_items), Decimal("0"))

    def insurance_items(self, insurance_product_id: int) -> List[CartLineItem]:
        return [item for item in self.digital_items if item.product_id == insurance_product_id]

    def insurance_state(self, insurance_product_id: int) -> InsuranceState:
        if self.insurance_items(insurance_product_id):
            return InsuranceState.PRESENT
        return InsuranceState.ABSENT

    def to_dict(self) -> Dict[str, Any]:
        def item_dict(item: CartLineItem) -> Dict[str, Any]:
            return {
                "itemId": item.item_id,
                "productId": item.product_id,
                "quantity": item.quantity,
                "listPrice": float(item.list_price),
            }

        return {
            "cartId": self.cart_id,
            "currencyCode": self.currency_code,
            "physicalItems": [item_dict(i) for i in self.physical_items],
            "digitalItems": [item_dict(i) for i in self.digital_items],
            "physicalSubtotal": float(self.physical_subtotal),
        }


@dataclass(frozen=True)
class LineItemRef:
    cart_id: str
    product_id: int
    list_price: Optional[Decimal] = None
    item_id: Optional[str] = None


@dataclass(frozen=True)
class RemovalFailure:
    item_id: str
    error_type: str
    message: str


@dataclass
class ReconcileResult:
    success: bool
    cart_id: str
    product_id: int
    applied_amount: Decimal
    action: ReconcileAction
    removed_item_ids: List[str] = field(default_factory=list)
    removal_failures: List[RemovalFailure] = field(default_factory=list)
    added: Optional[LineItemRef] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "appliedAmount": float(self.applied_amount),
            "action": self.action.value,
            "productId": self.product_id,
            "cartId": self.cart_id,
            "removedItemIds": list(self.removed_item_ids),
            "removalFailures": [
                {"itemId": f.item_id, "errorType": f.error_type, "message": f.message}
                for f in self.removal_failures
            ],
        }


# ---------------------------------------------------------------------------
# Abstract cart store interface
# ---------------------------------------------------------------------------

class CartStore(ABC):
    """Every cart store client (mock or real HTTP) must implement this interface."""

    @abstractmethod
    async def fetch_cart(self, cart_id: str) -> Dict[str, Any]:
        """Return the raw cart payload. Raises NotFound / UpstreamAuthError / UpstreamError."""

    @abstractmethod
    async def add_line_item(
        self,
        cart_id: str,
        product_id: int,
        quantity: int = 1,
        list_price: Optional[Decimal] = None,
    ) -> LineItemRef:
        """Add a line item, optionally overriding its unit price."""

    @abstractmethod
    async def remove_line_item(self, cart_id: str, item_id: str) -> None:
        """Remove a line item. Removing an already-absent item is not an error."""

    async def aclose(self) -> None:
        """Release any held resources."""

"""
Insurance service contracts.

Result shapes for the operations that do not mutate a cart: the price preview
and the recalculation summary. Reconciliation results live in interfaces.py
next to the cart models they reference.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel


class InsurancePreview(BaseModel):
    """Priced quote for a subtotal, without touching any cart."""

    subtotal: Decimal
    applied_amount: Decimal
    rate_applied: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": float(self.subtotal),
            "appliedAmount": float(self.applied_amount),
            "rateApplied": float(self.rate_applied),
        }


class RecalculateResult(BaseModel):
    success: bool
    cart_id: str
    applied_amount: Decimal
    action: str                          # "update" or "none"
    reconcile: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": self.success,
            "appliedAmount": float(self.applied_amount),
            "action": self.action,
            "cartId": self.cart_id,
        }
        if self.reconcile:
            body["removedItemIds"] = self.reconcile.get("removedItemIds", [])
            body["removalFailures"] = self.reconcile.get("removalFailures", [])
        return body

"""
Integrations layer.
This package contains all code used to communicate with the external cart store
(BigCommerce) and the insurance logic that drives it.

Key rule:
- Nothing outside integrations/clients talks to BigCommerce directly.
- Reconciliation only ever sees normalized CartSnapshot objects, never raw
  upstream payloads.
- We use the MOCK cart store during development and swap to the REAL_HTTP
  client when credentials are configured.

Switching implementations:
- The selection of mock vs real clients happens in ONE place (cart_protection/integrations/clients/selection.py).
"""

from .contracts.interfaces import (
    CartLineItem,
    CartSnapshot,
    CartStore,
    DesiredState,
    InsuranceState,
    LineItemRef,
    ReconcileAction,
    ReconcileResult,
    RemovalFailure,
)
from .contracts.insurance import InsurancePreview, RecalculateResult
from .policy.cart_normalizer import normalize_cart
from .policy.insurance_service import CartReconciler, InsuranceService
from .policy.pricing import InsuranceCalculator

__all__ = [
    # contracts
    "CartLineItem", "CartSnapshot", "CartStore", "DesiredState", "InsuranceState",
    "LineItemRef", "ReconcileAction", "ReconcileResult", "RemovalFailure",
    "InsurancePreview", "RecalculateResult",
    # policy
    "normalize_cart", "CartReconciler", "InsuranceService", "InsuranceCalculator",
]

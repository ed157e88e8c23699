"""
Shipping protection reconciliation.

Converges a cart's insurance line item to the requested state against an
external cart store that has no multi-item transaction:

- fetch + normalize the cart
- remove every insurance item found (best-effort, failures recorded)
- re-fetch and repair duplicates left over from earlier inconsistent states
- add one insurance item at the freshly computed price (fatal on failure)

Price changes are always remove-then-add because BigCommerce cannot edit a
line item's price in place.

Concurrent calls for the same cart are not serialized here; two racing
"enable" calls can both add. The next reconciliation of that cart collapses
the duplicates.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Optional, Set, Tuple

from cart_protection.errors import (
    CartProtectionError,
    InvalidArgument,
    MalformedResponse,
    NotFound,
    UpstreamAuthError,
    UpstreamError,
)
from cart_protection.integrations.contracts.insurance import InsurancePreview, RecalculateResult
from cart_protection.integrations.contracts.interfaces import (
    CartLineItem,
    CartSnapshot,
    CartStore,
    DesiredState,
    InsuranceState,
    ReconcileAction,
    ReconcileResult,
    RemovalFailure,
)
from cart_protection.integrations.policy.cart_normalizer import normalize_cart
from cart_protection.integrations.policy.pricing import InsuranceCalculator, parse_subtotal
from cart_protection.utils.config_loader import AppConfig

logger = logging.getLogger(__name__)

MAX_REPAIR_PASSES = 3

_ENABLED_VALUES = {"enabled", "enable", "1", "true", "on", "yes"}
_DISABLED_VALUES = {"disabled", "disable", "0", "false", "off", "no"}


def parse_desired_state(value: Any) -> DesiredState:
    if isinstance(value, DesiredState):
        return value
    if isinstance(value, bool):
        return DesiredState.ENABLED if value else DesiredState.DISABLED
    if isinstance(value, int) and value in (0, 1):
        return DesiredState.ENABLED if value == 1 else DesiredState.DISABLED
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _ENABLED_VALUES:
            return DesiredState.ENABLED
        if key in _DISABLED_VALUES:
            return DesiredState.DISABLED
    raise InvalidArgument(f"Protection must be 'enabled'/'disabled' (or 1/0); got {value!r}")


def validate_cart_id(cart_id: Any) -> str:
    if not isinstance(cart_id, str) or not cart_id.strip():
        raise InvalidArgument("Cart ID is required")
    return cart_id.strip()


class CartReconciler:
    def __init__(self, store: CartStore, calculator: InsuranceCalculator, insurance_product_id: int):
        self.store = store
        self.calculator = calculator
        self.insurance_product_id = insurance_product_id

    async def reconcile(
        self,
        cart_id: Any,
        desired_state: Any,
        subtotal_basis: Any = None,
    ) -> ReconcileResult:
        cart_id = validate_cart_id(cart_id)
        state = parse_desired_state(desired_state)
        basis = parse_subtotal(subtotal_basis) if subtotal_basis is not None else None

        snapshot, fetch_error = await self._fetch_or_empty(cart_id)
        if state is DesiredState.ENABLED and basis is None:
            if fetch_error is not None:
                # nothing to price against
                raise fetch_error
            basis = snapshot.physical_subtotal

        return await self.converge(cart_id, state, basis, snapshot)

    async def fetch_snapshot(self, cart_id: str) -> CartSnapshot:
        raw = await self.store.fetch_cart(cart_id)
        return normalize_cart(raw, insurance_product_id=self.insurance_product_id)

    async def _fetch_or_empty(self, cart_id: str) -> Tuple[CartSnapshot, Optional[CartProtectionError]]:
        try:
            return await self.fetch_snapshot(cart_id), None
        except UpstreamAuthError:
            raise
        except (NotFound, UpstreamError, MalformedResponse) as e:
            logger.warning(
                "Could not fetch cart %s (%s: %s); treating it as having no insurance item",
                cart_id,
                type(e).__name__,
                e,
            )
            return CartSnapshot(cart_id=cart_id), e

    async def converge(
        self,
        cart_id: str,
        state: DesiredState,
        basis: Optional[Decimal],
        snapshot: CartSnapshot,
    ) -> ReconcileResult:
        applied_amount = Decimal("0.00")
        if state is DesiredState.ENABLED:
            applied_amount = self.calculator.compute_insurance_amount(basis)

        result = ReconcileResult(
            success=True,
            cart_id=cart_id,
            product_id=self.insurance_product_id,
            applied_amount=applied_amount,
            action=ReconcileAction.REMOVE,
        )

        existing = snapshot.insurance_items(self.insurance_product_id)
        if existing:
            await self._remove_all(cart_id, existing, result)

        if state is DesiredState.DISABLED:
            logger.info(
                "Insurance disabled on cart %s (removed=%s failures=%s)",
                cart_id,
                result.removed_item_ids,
                len(result.removal_failures),
            )
            return result

        try:
            result.added = await self.store.add_line_item(
                cart_id,
                self.insurance_product_id,
                quantity=1,
                list_price=applied_amount,
            )
        except CartProtectionError as e:
            logger.error(
                "Failed to add insurance to cart %s (product_id=%s amount=%s): %s",
                cart_id,
                self.insurance_product_id,
                applied_amount,
                e,
            )
            raise

        # update only when an old item was actually removed
        result.action = ReconcileAction.UPDATE if result.removed_item_ids else ReconcileAction.ADD
        logger.info(
            "Insurance %s on cart %s: amount=%s basis=%s",
            result.action.value,
            cart_id,
            applied_amount,
            basis,
        )
        return result

    async def _remove_all(self, cart_id: str, items: List[CartLineItem], result: ReconcileResult) -> None:
        attempted: Set[str] = set()
        pending = items
        for _ in range(MAX_REPAIR_PASSES):
            for item in pending:
                attempted.add(item.item_id)
                await self._remove_best_effort(cart_id, item, result)

            # duplicates from earlier inconsistent states only show up on a fresh read
            try:
                snapshot = await self.fetch_snapshot(cart_id)
            except CartProtectionError as e:
                logger.warning("Re-check of cart %s after removal failed: %s", cart_id, e)
                return
            pending = [
                item
                for item in snapshot.insurance_items(self.insurance_product_id)
                if item.item_id not in attempted
            ]
            if not pending:
                return

        logger.warning(
            "Cart %s still holds %d insurance item(s) after %d repair passes",
            cart_id,
            len(pending),
            MAX_REPAIR_PASSES,
        )

    async def _remove_best_effort(self, cart_id: str, item: CartLineItem, result: ReconcileResult) -> None:
        if not item.item_id:
            result.removal_failures.append(
                RemovalFailure(item_id="", error_type="missing_item_id", message="Insurance item has no item id")
            )
            logger.warning("Insurance item on cart %s has no item id; cannot remove it", cart_id)
            return
        try:
            await self.store.remove_line_item(cart_id, item.item_id)
        except CartProtectionError as e:
            result.removal_failures.append(
                RemovalFailure(item_id=item.item_id, error_type=e.error_type, message=e.message)
            )
            logger.warning(
                "Best-effort removal of insurance item %s from cart %s failed (product_id=%s price=%s): %s",
                item.item_id,
                cart_id,
                item.product_id,
                item.list_price,
                e,
            )
            return
        result.removed_item_ids.append(item.item_id)


class InsuranceService:
    """Service API exposed to the HTTP layer."""

    def __init__(self, config: AppConfig, store: CartStore):
        self.config = config
        self.calculator = InsuranceCalculator(config.pricing)
        self.reconciler = CartReconciler(store, self.calculator, config.insurance_product_id)

    async def set_insurance(self, cart_id: Any, desired_state: Any, subtotal_basis: Any = None) -> ReconcileResult:
        return await self.reconciler.reconcile(cart_id, desired_state, subtotal_basis)

    async def recalculate_insurance(self, cart_id: Any, subtotal_basis: Any = None) -> RecalculateResult:
        """Re-price the insurance item if one is present; no-op otherwise."""
        cart_id = validate_cart_id(cart_id)
        basis = parse_subtotal(subtotal_basis) if subtotal_basis is not None else None

        snapshot = await self.reconciler.fetch_snapshot(cart_id)
        if snapshot.insurance_state(self.config.insurance_product_id) is InsuranceState.ABSENT:
            logger.info("No insurance item on cart %s; nothing to recalculate", cart_id)
            return RecalculateResult(success=True, cart_id=cart_id, applied_amount=Decimal("0.00"), action="none")

        if basis is None:
            basis = snapshot.physical_subtotal
        result = await self.reconciler.converge(cart_id, DesiredState.ENABLED, basis, snapshot)
        return RecalculateResult(
            success=True,
            cart_id=cart_id,
            applied_amount=result.applied_amount,
            action=result.action.value,
            reconcile=result.to_dict(),
        )

    def preview_insurance_amount(self, subtotal: Any) -> InsurancePreview:
        return self.calculator.preview(subtotal)

    async def get_cart_snapshot(self, cart_id: Any) -> CartSnapshot:
        return await self.reconciler.fetch_snapshot(validate_cart_id(cart_id))

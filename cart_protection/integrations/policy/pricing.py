"""Shipping protection pricing: tiered percentage of the physical-goods subtotal."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from cart_protection.errors import InvalidArgument
from cart_protection.integrations.contracts.insurance import InsurancePreview
from cart_protection.utils.config_loader import PricingRule

MONEY_STEP = Decimal("0.01")
MAX_SUBTOTAL = Decimal("1000000000")
_HUNDRED = Decimal("100")


def to_money(amount: Decimal) -> Decimal:
    try:
        return amount.quantize(MONEY_STEP, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidArgument(f"Amount cannot be expressed in cents: {amount}") from None


def parse_subtotal(value: Any) -> Decimal:
    """Coerce a caller-supplied subtotal to Decimal, rejecting anything not a finite, non-negative number."""
    if isinstance(value, bool):
        raise InvalidArgument(f"Subtotal must be a number; got {value!r}")
    try:
        if isinstance(value, Decimal):
            subtotal = value
        elif isinstance(value, (int, float, str)):
            subtotal = Decimal(str(value).replace(",", "").strip())
        else:
            raise InvalidOperation
    except (InvalidOperation, ValueError):
        raise InvalidArgument(f"Subtotal must be a number; got {value!r}") from None

    if not subtotal.is_finite():
        raise InvalidArgument(f"Subtotal must be finite; got {value!r}")
    if subtotal < 0:
        raise InvalidArgument(f"Subtotal must be >= 0; got {subtotal}")
    if subtotal > MAX_SUBTOTAL:
        raise InvalidArgument(f"Subtotal must be <= {MAX_SUBTOTAL}; got {value!r}")
    return subtotal


class InsuranceCalculator:
    def __init__(self, rule: PricingRule):
        self.rule = rule

    def rate_for(self, subtotal: Any) -> Decimal:
        subtotal = parse_subtotal(subtotal)
        # a subtotal exactly at the threshold takes the lower tier
        if subtotal > self.rule.threshold_amount:
            return self.rule.rate_above_threshold
        return self.rule.rate_at_or_below_threshold

    def compute_insurance_amount(self, subtotal: Any) -> Decimal:
        subtotal = parse_subtotal(subtotal)
        return to_money(subtotal * self.rate_for(subtotal) / _HUNDRED)

    def preview(self, subtotal: Any) -> InsurancePreview:
        subtotal = parse_subtotal(subtotal)
        return InsurancePreview(
            subtotal=subtotal,
            applied_amount=self.compute_insurance_amount(subtotal),
            rate_applied=self.rate_for(subtotal),
        )

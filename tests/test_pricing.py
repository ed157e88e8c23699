"""Tests for the tiered shipping protection price."""

from decimal import Decimal

import pytest

from cart_protection.errors import InvalidArgument
from cart_protection.integrations.policy.pricing import MAX_SUBTOTAL, InsuranceCalculator, parse_subtotal, to_money
from cart_protection.utils.config_loader import PricingRule


@pytest.fixture
def calculator():
    return InsuranceCalculator(PricingRule())


@pytest.mark.parametrize(
    "subtotal, expected",
    [
        (0, Decimal("0.00")),
        (150, Decimal("3.00")),
        (199.99, Decimal("4.00")),
        (200, Decimal("4.00")),
        (250, Decimal("3.75")),
        (300, Decimal("4.50")),
        ("1,250.00", Decimal("18.75")),
    ],
)
def test_compute_insurance_amount_tiers(calculator, subtotal, expected):
    assert calculator.compute_insurance_amount(subtotal) == expected


def test_threshold_uses_lower_tier_rate(calculator):
    # 2% of 200, not 1.5%
    assert calculator.compute_insurance_amount(200) == Decimal("4.00")
    assert calculator.rate_for(200) == Decimal("2")
    assert calculator.rate_for(Decimal("200.01")) == Decimal("1.5")


def test_amount_is_rounded_half_up_to_cents(calculator):
    # 100.25 * 2% = 2.005
    assert calculator.compute_insurance_amount("100.25") == Decimal("2.01")
    assert calculator.compute_insurance_amount("200.01") == Decimal("3.00")
    assert calculator.compute_insurance_amount(Decimal("0.01")).as_tuple().exponent == -2


def test_custom_rule_is_honoured():
    calc = InsuranceCalculator(
        PricingRule(threshold_amount=Decimal("100"), rate_at_or_below_threshold=Decimal("5"), rate_above_threshold=Decimal("1"))
    )
    assert calc.compute_insurance_amount(100) == Decimal("5.00")
    assert calc.compute_insurance_amount(101) == Decimal("1.01")


@pytest.mark.parametrize("bad", [-1, "-0.01", "abc", "", None, True, float("nan"), float("inf"), [150]])
def test_invalid_subtotal_is_rejected(calculator, bad):
    with pytest.raises(InvalidArgument):
        calculator.compute_insurance_amount(bad)


def test_parse_subtotal_accepts_numeric_strings():
    assert parse_subtotal(" 42.50 ") == Decimal("42.50")
    assert parse_subtotal(7) == Decimal("7")


def test_preview_reports_rate_applied(calculator):
    assert calculator.preview(150).to_dict() == {"subtotal": 150.0, "appliedAmount": 3.0, "rateApplied": 2.0}
    assert calculator.preview(250).to_dict() == {"subtotal": 250.0, "appliedAmount": 3.75, "rateApplied": 1.5}


@pytest.mark.parametrize("huge", ["1e30", 1e300, Decimal("1000000000.01"), "9" * 40])
def test_subtotal_above_ceiling_is_rejected(calculator, huge):
    with pytest.raises(InvalidArgument):
        calculator.compute_insurance_amount(huge)


def test_subtotal_at_ceiling_is_priced(calculator):
    assert calculator.compute_insurance_amount(MAX_SUBTOTAL) == Decimal("15000000.00")


def test_to_money_reports_unrepresentable_amounts():
    with pytest.raises(InvalidArgument):
        to_money(Decimal("1e40"))

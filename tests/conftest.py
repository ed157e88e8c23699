"""Pytest fixtures for pricing, reconciliation and API tests."""

import pytest

from cart_protection.integrations.clients.mocks import InMemoryCartStore
from cart_protection.integrations.policy.insurance_service import InsuranceService
from cart_protection.utils.config_loader import AppConfig

INSURANCE_PRODUCT_ID = 6817


@pytest.fixture
def config():
    return AppConfig(integrations_mode="mock")


@pytest.fixture
def store():
    """In-memory cart store that files the insurance product under digital items."""
    return InMemoryCartStore(digital_product_ids=[INSURANCE_PRODUCT_ID])


@pytest.fixture
def service(config, store):
    return InsuranceService(config, store)


@pytest.fixture
def cart_id(store):
    """Cart holding 150.00 of physical goods and no insurance."""
    return store.create_cart(
        "cart-150",
        physical_items=[{"id": "phys-1", "product_id": 111, "quantity": 1, "list_price": 150.0}],
    )


@pytest.fixture
def insured_cart_id(store):
    """Cart holding 300.00 of physical goods and an insurance item priced 3.00."""
    return store.create_cart(
        "cart-insured",
        physical_items=[{"id": "phys-1", "product_id": 111, "quantity": 2, "list_price": 150.0}],
        digital_items=[{"id": "ins-1", "product_id": INSURANCE_PRODUCT_ID, "quantity": 1, "list_price": 3.0}],
    )

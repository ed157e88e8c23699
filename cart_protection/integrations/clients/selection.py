"""
Mock vs real cart store selection.

This is the ONE place where the choice is made. The API app and the operator
scripts both go through ``select_cart_store``.
"""

import logging

from cart_protection.integrations.clients.mocks import InMemoryCartStore
from cart_protection.integrations.clients.real_http import BigCommerceCartStore
from cart_protection.integrations.contracts.interfaces import CartStore
from cart_protection.utils.config_loader import AppConfig

logger = logging.getLogger(__name__)


def select_cart_store(config: AppConfig) -> CartStore:
    if config.use_real_store():
        return BigCommerceCartStore(config.bigcommerce)
    logger.warning("BigCommerce credentials not configured; using the in-memory mock cart store")
    return InMemoryCartStore(digital_product_ids=[config.insurance_product_id])

"""
Real HTTP integration clients.

These clients communicate with BigCommerce's v3 cart APIs (Storefront and
Admin).

Important:
- Must implement the same CartStore interface as the mock clients
- Raw payloads are normalized through integrations/policy/cart_normalizer.py

Switching:
The selection of mock vs real clients happens in cart_protection/integrations/clients/selection.py only.
"""

from .bigcommerce import BigCommerceCartStore

__all__ = ["BigCommerceCartStore"]

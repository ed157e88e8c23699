"""
Mock integration clients.

These clients return realistic responses without calling any external API.
They are used when:
- BigCommerce credentials are not configured (local development)
- We want to test reconciliation end-to-end without a real store

Important:
- Mock clients implement the SAME CartStore interface as the real HTTP clients.
- Cart payloads are shaped exactly like BigCommerce storefront responses.

Switching to real:
Set BC_STORE_HASH + BC_AUTH_TOKEN (or INTEGRATIONS_MODE=real); the selection
happens in cart_protection/integrations/clients/selection.py only.
"""

from .cart_store import InMemoryCartStore

__all__ = ["InMemoryCartStore"]

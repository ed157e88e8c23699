"""
Shipping protection cart proxy.

Lets a storefront toggle a "shipping protection" insurance line item on a
BigCommerce cart, priced as a percentage of the cart's physical-goods subtotal.
"""

__version__ = "1.0.0"

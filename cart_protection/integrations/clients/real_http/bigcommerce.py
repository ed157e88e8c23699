"""
Real BigCommerce cart HTTP client.

Purpose:
- Reads carts through the Storefront cart API first (storefront cart ids),
  falling back to the Admin cart API when the storefront call fails
- Adds and removes line items through the Admin API, which is the only one
  that accepts a ``list_price`` override
- Maps upstream status codes onto our error taxonomy

Important:
- Keep this client as the ONLY place where BigCommerce HTTP calls are made.
- No automatic retries: an add is not idempotent and a retried add can leave
  duplicate insurance items behind.
- Tokens are sent as headers and never logged.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from cart_protection.errors import (
    CartProtectionError,
    MalformedResponse,
    NotFound,
    UpstreamAuthError,
    UpstreamError,
)
from cart_protection.integrations.contracts.interfaces import CartStore, LineItemRef
from cart_protection.integrations.policy.cart_normalizer import normalize_cart
from cart_protection.utils.config_loader import BigCommerceConfig

logger = logging.getLogger(__name__)


class BigCommerceCartStore(CartStore):
    def __init__(self, config: BigCommerceConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        if not config.api_url:
            raise ValueError("BigCommerce api_url is not configured (set BC_STORE_HASH or BC_API_URL).")
        self.config = config
        self.api_url = config.api_url
        self.storefront_api_url = config.storefront_api_url
        self.timeout_seconds = config.timeout_seconds
        self._client = client

        logger.info(
            "BigCommerce cart store initialised: api_url=%s has_auth_token=%s has_storefront_token=%s",
            self.api_url,
            bool(config.auth_token),
            bool(config.storefront_token),
        )

    def _headers(self, token: str) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if token:
            headers["X-Auth-Token"] = token
        return headers

    @property
    def _admin_headers(self) -> Dict[str, str]:
        return self._headers(self.config.auth_token)

    @property
    def _storefront_headers(self) -> Dict[str, str]:
        return self._headers(self.config.storefront_token)

    async def _send(self, method: str, url: str, headers: Dict[str, str], json: Any = None) -> httpx.Response:
        try:
            if self._client is not None:
                return await self._client.request(method, url, headers=headers, json=json, timeout=self.timeout_seconds)
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                return await client.request(method, url, headers=headers, json=json)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"BigCommerce request timed out: {method} {url}") from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Could not reach BigCommerce: {e}") from e

    # ------------------------------------------------------------------
    # CartStore interface
    # ------------------------------------------------------------------

    async def fetch_cart(self, cart_id: str) -> Dict[str, Any]:
        if self.config.storefront_token and self.storefront_api_url:
            url = f"{self.storefront_api_url}/carts/{cart_id}"
            try:
                logger.info("Fetching cart %s from Storefront API", cart_id)
                return await self._get_cart(url, self._storefront_headers, cart_id)
            except CartProtectionError as e:
                logger.info("Storefront API failed for cart %s (%s); trying Admin API", cart_id, e)

        url = f"{self.api_url}/carts/{cart_id}"
        logger.info("Fetching cart %s from Admin API", cart_id)
        return await self._get_cart(url, self._admin_headers, cart_id)

    async def _get_cart(self, url: str, headers: Dict[str, str], cart_id: str) -> Dict[str, Any]:
        response = await self._send("GET", url, headers)
        _raise_for_status(response, f"Cart not found: {cart_id}", context={"cart_id": cart_id})
        return _json_object(response)

    async def add_line_item(
        self,
        cart_id: str,
        product_id: int,
        quantity: int = 1,
        list_price: Optional[Decimal] = None,
    ) -> LineItemRef:
        line_item: Dict[str, Any] = {"quantity": quantity, "product_id": product_id}
        if list_price is not None:
            line_item["list_price"] = float(list_price)

        url = f"{self.api_url}/carts/{cart_id}/items"
        context = {"cart_id": cart_id, "product_id": product_id, "list_price": str(list_price)}
        logger.info("Adding product %s x%s to cart %s at list_price=%s", product_id, quantity, cart_id, list_price)

        response = await self._send("POST", url, self._admin_headers, json={"line_items": [line_item]})
        _raise_for_status(
            response,
            f"Cart or product not found (404). Cart: {cart_id}, Product: {product_id}",
            context=context,
        )

        item_id = None
        if response.content:
            snapshot = normalize_cart(_json_object(response), insurance_product_id=product_id)
            for item in snapshot.digital_items + snapshot.physical_items:
                if item.product_id == product_id and (list_price is None or item.list_price == list_price):
                    item_id = item.item_id or None
                    break

        return LineItemRef(cart_id=cart_id, product_id=product_id, list_price=list_price, item_id=item_id)

    async def remove_line_item(self, cart_id: str, item_id: str) -> None:
        url = f"{self.api_url}/carts/{cart_id}/items/{item_id}"
        logger.info("Removing item %s from cart %s", item_id, cart_id)
        response = await self._send("DELETE", url, self._admin_headers)
        if response.status_code == 404:
            logger.info("Item %s already absent from cart %s", item_id, cart_id)
            return
        _raise_for_status(response, f"Cart item not found: {item_id}", context={"cart_id": cart_id, "item_id": item_id})

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()


def _raise_for_status(response: httpx.Response, not_found_message: str, context: Dict[str, Any]) -> None:
    if response.is_success:
        return

    status = response.status_code
    details = _error_details(response)
    logger.error("BigCommerce API error: status=%s context=%s details=%s", status, context, details)

    if status == 404:
        raise NotFound(not_found_message, payload=details)
    if status in (401, 403):
        raise UpstreamAuthError(
            "BigCommerce API authentication failed. Please check your credentials.",
            upstream_status=status,
            payload=details,
        )
    raise UpstreamError(
        f"BigCommerce API error: {status} - {details.get('title') or details.get('message') or response.reason_phrase}",
        upstream_status=status,
        payload=details,
    )


def _error_details(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {"body": response.text[:500]}
    return data if isinstance(data, dict) else {"body": data}


def _json_object(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError as e:
        raise MalformedResponse("BigCommerce returned a non-JSON body", payload={"body": response.text[:500]}) from e
    if not isinstance(data, dict):
        raise MalformedResponse("BigCommerce returned JSON that is not an object", payload={"body": data})
    return data

#!/usr/bin/env python3
"""
Fetch a cart through the configured cart store and print its normalized view
plus the shipping protection amount that would be applied. Read-only.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from cart_protection.integrations.clients.selection import select_cart_store
from cart_protection.errors import CartProtectionError
from cart_protection.integrations.policy.insurance_service import InsuranceService
from cart_protection.utils.config_loader import load_app_config


async def check_cart(cart_id: str, config_path: Path = None) -> int:
    config = load_app_config(config_path)
    store = select_cart_store(config)
    service = InsuranceService(config, store)
    try:
        snapshot = await service.get_cart_snapshot(cart_id)
    except CartProtectionError as e:
        print(f"Cart check failed ({e.error_type}): {e.message}", file=sys.stderr)
        return 1
    finally:
        await store.aclose()

    preview = service.preview_insurance_amount(snapshot.physical_subtotal)
    print(json.dumps(snapshot.to_dict(), indent=2))
    print(
        f"Insurance state: {snapshot.insurance_state(config.insurance_product_id).value}; "
        f"would apply {preview.applied_amount} ({preview.rate_applied}% of {preview.subtotal})"
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect a cart and its shipping protection price.")
    parser.add_argument("cart_id", type=str, help="BigCommerce cart id")
    parser.add_argument("--config", type=Path, default=None, help="Path to protection_config.yml")
    args = parser.parse_args()
    return asyncio.run(check_cart(args.cart_id, args.config))


if __name__ == "__main__":
    sys.exit(main())

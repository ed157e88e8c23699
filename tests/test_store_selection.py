import importlib.util
from pathlib import Path

import pytest

from cart_protection.integrations.clients.mocks import InMemoryCartStore
from cart_protection.integrations.clients.real_http import BigCommerceCartStore
from cart_protection.integrations.clients.selection import select_cart_store
from cart_protection.utils.config_loader import AppConfig, BigCommerceConfig

CHECK_CART_PATH = Path(__file__).parent.parent / "scripts" / "check_cart.py"


def _load_check_cart():
    found = importlib.util.spec_from_file_location("check_cart", CHECK_CART_PATH)
    module = importlib.util.module_from_spec(found)
    found.loader.exec_module(module)
    return module


def test_mock_store_without_credentials():
    store = select_cart_store(AppConfig())

    assert isinstance(store, InMemoryCartStore)


def test_real_store_with_credentials():
    config = AppConfig(bigcommerce=BigCommerceConfig(store_hash="abc", auth_token="t"))

    assert isinstance(select_cart_store(config), BigCommerceCartStore)


def test_mock_mode_wins_over_credentials():
    config = AppConfig(integrations_mode="mock", bigcommerce=BigCommerceConfig(store_hash="abc", auth_token="t"))

    assert isinstance(select_cart_store(config), InMemoryCartStore)


def test_check_cart_script_uses_side_effect_free_selection():
    check_cart = _load_check_cart()

    assert check_cart.select_cart_store is select_cart_store
    assert not hasattr(check_cart, "create_app")


@pytest.mark.asyncio
async def test_check_cart_reports_missing_cart(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("INTEGRATIONS_MODE", "mock")
    check_cart = _load_check_cart()

    code = await check_cart.check_cart("no-such-cart", tmp_path / "missing.yml")

    assert code == 1
    assert "not_found" in capsys.readouterr().err

import hmac
import logging

from fastapi import Header, HTTPException, Request, status

from cart_protection.integrations.policy.insurance_service import InsuranceService
from cart_protection.utils.config_loader import AppConfig

logger = logging.getLogger(__name__)

_ALLOWLIST_PATHS = {
    "/",
    "/health",
    "/docs",
    "/docs/oauth2-redirect",
    "/openapi.json",
    "/redoc",
}


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_insurance_service(request: Request) -> InsuranceService:
    return request.app.state.insurance_service


async def api_key_protection(
    request: Request,
    x_api_key: str = Header(default=None, alias="X-API-KEY"),
):
    """Require a valid X-API-KEY when API keys are configured; open otherwise."""
    valid_keys = request.app.state.config.api_keys
    if not valid_keys or request.url.path in _ALLOWLIST_PATHS:
        return

    candidate = (x_api_key or "").strip()
    ok = bool(candidate) and any(hmac.compare_digest(candidate, k) for k in valid_keys)
    if not ok:
        logger.info("API key check failed: path=%s header_present=%s", request.url.path, bool(x_api_key))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key",
        )

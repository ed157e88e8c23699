"""
FastAPI application - Main entry point
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cart_protection import __version__
from cart_protection.api.cart_router import router as cart_router
from cart_protection.api.dependencies import api_key_protection
from cart_protection.api.insurance_router import router as insurance_router
from cart_protection.error_handler import ErrorHandler
from cart_protection.errors import CartProtectionError
from cart_protection.integrations.clients.selection import select_cart_store
from cart_protection.integrations.contracts.interfaces import CartStore
from cart_protection.integrations.policy.insurance_service import InsuranceService
from cart_protection.utils.config_loader import AppConfig, load_app_config

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Shipping Protection Cart Proxy"
BIGCOMMERCE_ORIGIN_REGEX = r"https://([a-z0-9-]+\.)*(mybigcommerce|bigcommerce)\.com"

error_handler = ErrorHandler()


def _add_cors(app: FastAPI, config: AppConfig) -> None:
    cors = config.cors
    if cors.origin == "*" or "*" in cors.allowed_origins:
        origins = ["*"]
    else:
        origins = [o for o in [cors.origin, *cors.allowed_origins] if o]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_origin_regex=BIGCOMMERCE_ORIGIN_REGEX if cors.allow_bigcommerce else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "X-API-KEY"],
        max_age=86400,
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CartProtectionError)
    async def cart_protection_error(request: Request, exc: CartProtectionError):
        status_code, body = error_handler.handle_exception(exc, context={"path": request.url.path})
        return JSONResponse(status_code=status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request", "error_type": "invalid_argument", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else exc.detail
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": message})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        status_code, body = error_handler.handle_exception(exc, context={"path": request.url.path})
        return JSONResponse(status_code=status_code, content=body)


def create_app(config: Optional[AppConfig] = None, store: Optional[CartStore] = None) -> FastAPI:
    if config is None:
        config = load_app_config()
    if store is None:
        store = select_cart_store(config)

    app = FastAPI(
        title=SERVICE_NAME,
        description="Adds, re-prices and removes the shipping protection line item on BigCommerce carts",
        version=__version__,
        dependencies=[Depends(api_key_protection)],
    )
    app.state.config = config
    app.state.store = store
    app.state.insurance_service = InsuranceService(config, store)

    _add_cors(app, config)
    _register_exception_handlers(app)

    @app.get("/", tags=["Health"])
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Liveness only."""
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "environment": config.environment,
            "timestamp": datetime.now().isoformat(),
        }

    app.include_router(insurance_router, prefix="/api/insurance", tags=["Insurance"])
    app.include_router(cart_router, prefix="/api/cart", tags=["Cart"])

    @app.on_event("shutdown")
    async def shutdown_event():
        await store.aclose()

    logger.info(
        "%s ready: environment=%s store=%s insurance_product_id=%s",
        SERVICE_NAME,
        config.environment,
        type(store).__name__,
        config.insurance_product_id,
    )
    return app


app = create_app()

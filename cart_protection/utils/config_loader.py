"""
Configuration loader for the cart protection service
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "protection_config.yml"


class PricingRule(BaseModel):
    """Tiered percentage rule. Rates are percentages of the subtotal."""

    model_config = ConfigDict(frozen=True)

    threshold_amount: Decimal = Field(default=Decimal("200"), ge=0)
    rate_at_or_below_threshold: Decimal = Field(default=Decimal("2"), ge=0, le=100)
    rate_above_threshold: Decimal = Field(default=Decimal("1.5"), ge=0, le=100)

    @field_validator("threshold_amount", "rate_at_or_below_threshold", "rate_above_threshold", mode="before")
    @classmethod
    def _float_to_decimal(cls, value: Any) -> Any:
        # YAML yields floats; go through str so 1.5 stays exactly 1.5
        if isinstance(value, float):
            return Decimal(str(value))
        return value


class BigCommerceConfig(BaseModel):
    """BigCommerce v3 API access"""

    model_config = ConfigDict(frozen=True)

    store_hash: str = ""
    auth_token: str = ""
    storefront_token: str = ""
    api_url: str = ""
    storefront_api_url: str = ""
    timeout_seconds: float = Field(default=10.0, gt=0, le=120)

    @model_validator(mode="before")
    @classmethod
    def _derive_urls(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        store_hash = str(data.get("store_hash") or "")
        api_url = str(data.get("api_url") or "").rstrip("/")
        if not api_url and store_hash:
            api_url = f"https://api.bigcommerce.com/stores/{store_hash}/v3"
        storefront_api_url = str(data.get("storefront_api_url") or "") or (f"{api_url}/storefront" if api_url else "")
        data["api_url"] = api_url
        data["storefront_api_url"] = storefront_api_url.rstrip("/")
        return data

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.auth_token)


class CorsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    origin: str = "*"
    allowed_origins: List[str] = Field(default_factory=list)
    allow_bigcommerce: bool = True


class AppConfig(BaseModel):
    """Complete process configuration. Built once at startup, never mutated."""

    model_config = ConfigDict(frozen=True)

    environment: str = "development"
    insurance_product_id: int = Field(default=6817, ge=1)
    integrations_mode: Literal["auto", "real", "mock"] = "auto"
    api_keys: List[str] = Field(default_factory=list)
    pricing: PricingRule = Field(default_factory=PricingRule)
    bigcommerce: BigCommerceConfig = Field(default_factory=BigCommerceConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)

    def use_real_store(self) -> bool:
        if self.integrations_mode == "real":
            return True
        if self.integrations_mode == "mock":
            return False
        return self.bigcommerce.is_configured


# env var -> (section, field); section None means top level
_ENV_OVERRIDES = {
    "APP_ENV": (None, "environment"),
    "NODE_ENV": (None, "environment"),
    "INSURANCE_PRODUCT_ID": (None, "insurance_product_id"),
    "INTEGRATIONS_MODE": (None, "integrations_mode"),
    "INSURANCE_THRESHOLD_AMOUNT": ("pricing", "threshold_amount"),
    "INSURANCE_PERCENTAGE_UNDER_200": ("pricing", "rate_at_or_below_threshold"),
    "INSURANCE_PERCENTAGE_OVER_200": ("pricing", "rate_above_threshold"),
    "BC_STORE_HASH": ("bigcommerce", "store_hash"),
    "BC_AUTH_TOKEN": ("bigcommerce", "auth_token"),
    "BC_STOREFRONT_TOKEN": ("bigcommerce", "storefront_token"),
    "BC_API_URL": ("bigcommerce", "api_url"),
    "BC_STOREFRONT_API_URL": ("bigcommerce", "storefront_api_url"),
    "BC_TIMEOUT_SECONDS": ("bigcommerce", "timeout_seconds"),
    "CORS_ORIGIN": ("cors", "origin"),
    "CORS_ALLOW_BIGCOMMERCE": ("cors", "allow_bigcommerce"),
}

_LIST_ENV_OVERRIDES = {
    "API_KEYS": (None, "api_keys"),
    "CORS_ALLOWED_ORIGINS": ("cors", "allowed_origins"),
}


def _split_csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _apply_env_overrides(data: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {k: (dict(v) if isinstance(v, dict) else v) for k, v in data.items()}

    def assign(section: Optional[str], key: str, value: Any) -> None:
        if section is None:
            merged[key] = value
        else:
            merged.setdefault(section, {})
            merged[section][key] = value

    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value is None or not value.strip():
            continue
        if env_name == "CORS_ALLOW_BIGCOMMERCE":
            assign(section, key, value.strip().lower() not in ("0", "false", "no", "off"))
        else:
            assign(section, key, value.strip())

    for env_name, (section, key) in _LIST_ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value is None or not value.strip():
            continue
        assign(section, key, _split_csv(value))

    return merged


def load_app_config(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """
    Load and validate the service configuration.

    Values come from the YAML file (when present) and are then overridden by
    environment variables. A missing file is not an error: every field has a
    default.

    Args:
        config_path: Path to config file. Defaults to config/protection_config.yml
        env: Environment mapping. Defaults to os.environ after loading .env

    Raises:
        ValidationError: If the merged values don't match the schema
    """
    if env is None:
        load_dotenv()
        env = os.environ

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        logger.info("Config file %s not found; using defaults and environment", config_path)

    try:
        config = AppConfig(**_apply_env_overrides(data, env))
    except ValidationError as e:
        logger.error("Config validation failed: %s", e)
        raise

    logger.info(
        "Loaded config: environment=%s insurance_product_id=%s mode=%s store_configured=%s",
        config.environment,
        config.insurance_product_id,
        config.integrations_mode,
        config.bigcommerce.is_configured,
    )
    return config

"""
Utility modules for the cart protection service
"""
from .config_loader import AppConfig, BigCommerceConfig, CorsConfig, PricingRule, load_app_config

__all__ = [
    'AppConfig',
    'BigCommerceConfig',
    'CorsConfig',
    'PricingRule',
    'load_app_config',
]

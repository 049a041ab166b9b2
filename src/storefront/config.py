"""Storefront configuration.

Values are read from ``STOREFRONT_*`` environment variables (or a ``.env``
file). Gateway credentials default to empty strings so the service starts in
development without them; adapters that need a missing credential fail their
calls instead.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOREFRONT_", env_file=".env", extra="ignore")

    # Storefront
    store_name: str = "ShopEase"
    currency: str = "NGN"
    frontend_url: str = "http://localhost:3000"
    logo_url: str = ""
    admin_notification_email: str = "admin@shopease.local"

    # Pricing
    tax_rate: Decimal = Decimal("0.075")
    flat_shipping_fee: Decimal = Decimal("2500")
    free_shipping_threshold: Decimal = Decimal("50000")

    # Gateways
    gateway_timeout_seconds: float = 10.0

    flutterwave_public_key: str = ""
    flutterwave_secret_key: str = ""
    flutterwave_secret_hash: str = ""
    flutterwave_base_url: str = "https://api.flutterwave.com/v3"

    paystack_public_key: str = ""
    paystack_secret_key: str = ""
    paystack_base_url: str = "https://api.paystack.co"

    bank_name: str = "ShopEase Bank"
    bank_account_number: str = "1234567890"
    bank_account_name: str = "ShopEase Ltd"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    return Settings()


def reset_settings() -> None:
    """Drop cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()

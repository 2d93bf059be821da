"""Checkout settings loaded from the environment.

Variables are prefixed with ``CHECKOUT_`` and may also come from a ``.env``
file, e.g. ``CHECKOUT_BACKEND_URL`` or ``CHECKOUT_STRIPE_PUBLISHABLE_KEY``.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_KEYS = {"pk_test_xxx", "sk_test_xxx"}


class CheckoutSettings(BaseSettings):
    environment: str = "development"

    # Backend order API
    backend_url: str = "http://localhost:5000/api"
    request_timeout: float = 15.0

    # Payment gateway
    stripe_publishable_key: str | None = None
    stripe_api_url: str = "https://api.stripe.com"

    # Pricing defaults, used when site settings are missing or unusable
    flat_rate_shipping: float = 4.99
    free_shipping_threshold: float = 50.0
    tax_rate: float = 0.0

    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(env_prefix="CHECKOUT_", env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def is_usable_key(key: str | None) -> bool:
    """Whether a gateway key looks like a real credential rather than a placeholder."""
    if not key:
        return False
    key = key.strip()
    return not ("placeholder" in key or key in _PLACEHOLDER_KEYS or len(key) < 20)


@lru_cache
def get_settings() -> CheckoutSettings:
    return CheckoutSettings()

"""Pricing configuration: flat shipping rate, free-shipping threshold and tax rate.

Values come from the storefront's site settings, which store everything as
strings. A missing, unparsable or zero value falls back to the configured
default, matching how the storefront has always read these settings.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

import httpx
import structlog

from checkout.cart.snapshot import to_decimal
from checkout.config import CheckoutSettings

logger = structlog.get_logger(__name__)

FLAT_RATE_KEY = "flat_rate_shipping"
FREE_THRESHOLD_KEY = "free_shipping_threshold"
TAX_RATE_KEY = "tax_rate"


@dataclass(frozen=True)
class PricingSettings:
    flat_rate: Decimal = Decimal("4.99")
    free_threshold: Decimal = Decimal("50")
    tax_rate: Decimal = Decimal("0")  # percent

    @classmethod
    def from_config(cls, settings: CheckoutSettings) -> "PricingSettings":
        return cls(
            flat_rate=to_decimal(settings.flat_rate_shipping),
            free_threshold=to_decimal(settings.free_shipping_threshold),
            tax_rate=to_decimal(settings.tax_rate),
        )

    def merged_with(self, site_settings: Mapping[str, str]) -> "PricingSettings":
        """Overlay site-setting strings on top of these defaults."""
        return PricingSettings(
            flat_rate=_setting(site_settings, FLAT_RATE_KEY, self.flat_rate),
            free_threshold=_setting(site_settings, FREE_THRESHOLD_KEY, self.free_threshold),
            tax_rate=_setting(site_settings, TAX_RATE_KEY, self.tax_rate),
        )


def _setting(site_settings: Mapping[str, str], key: str, default: Decimal) -> Decimal:
    value = to_decimal(site_settings.get(key), default=Decimal("0"))
    if not value.is_finite() or value <= 0:
        return default
    return value


async def fetch_pricing_settings(client: httpx.AsyncClient, defaults: PricingSettings) -> PricingSettings:
    """Load public site settings from the backend, falling back to ``defaults``.

    A settings outage must not block checkout, so any failure is logged and
    the defaults are used.
    """
    try:
        response = await client.get("/admin/settings/public")
        response.raise_for_status()
        body = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Failed to fetch public settings, using defaults", error=str(exc))
        return defaults

    site_settings = body.get("map") if isinstance(body, dict) else None
    if not site_settings and isinstance(body, dict):
        site_settings = {s["key"]: s["value"] for s in body.get("settings") or [] if "key" in s}
    return defaults.merged_with(site_settings or {})

"""Payment gateway composition.

``build_gateway`` picks the adapter once, at startup:
- StripeGateway when a usable publishable key is configured
- SimulatedGateway when no usable key is configured outside production

In production a missing or placeholder key is a configuration error, so the
simulated path can never be reached there.
"""

import httpx
import structlog

from checkout.config import CheckoutSettings, is_usable_key
from checkout.errors import GatewayConfigurationError
from checkout.gateway.port import IntentStatus, PaymentGateway
from checkout.gateway.simulated_adapter import SimulatedGateway
from checkout.gateway.stripe_adapter import StripeGateway

logger = structlog.get_logger(__name__)

__all__ = ["IntentStatus", "PaymentGateway", "SimulatedGateway", "StripeGateway", "build_gateway"]


def build_gateway(settings: CheckoutSettings, backend: httpx.AsyncClient) -> PaymentGateway:
    if is_usable_key(settings.stripe_publishable_key):
        stripe = httpx.AsyncClient(base_url=settings.stripe_api_url, timeout=settings.request_timeout)
        return StripeGateway(backend, stripe, settings.stripe_publishable_key.strip())

    if settings.is_production:
        raise GatewayConfigurationError()

    logger.warning("No usable payment gateway key; payments are simulated", environment=settings.environment)
    return SimulatedGateway()

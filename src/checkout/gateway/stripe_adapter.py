"""Stripe payment gateway adapter.

Intents are created by the storefront backend, which holds the secret key
(``POST /payments/create-payment-intent``). The intent status is read back
from Stripe's public intent endpoint with the publishable key and the client
secret, the same call Stripe.js makes after its payment UI completes.
"""

import httpx
import structlog

from checkout.errors import PaymentInitError, PaymentStatusError
from checkout.gateway.port import IntentStatus, PaymentGateway
from checkout.utils.http import extract_error_message
from checkout.utils.logging import mask_secret

logger = structlog.get_logger(__name__)

_UNAVAILABLE = "Payment could not be initialized. The payment gateway may be unavailable."
_MISCONFIGURED_MARKERS = ("configuration", "api key", "apikey", "api_key")


class StripeGateway(PaymentGateway):
    """Stripe adapter backed by the storefront backend and Stripe's public API."""

    mode = "live"

    def __init__(self, backend: httpx.AsyncClient, stripe: httpx.AsyncClient, publishable_key: str) -> None:
        self.backend = backend
        self.stripe = stripe
        self.publishable_key = publishable_key

    async def create_payment_intent(self, order_id: str) -> str:
        try:
            response = await self.backend.post("/payments/create-payment-intent", json={"orderId": order_id})
        except httpx.HTTPError as exc:
            logger.warning("Payment service unreachable", order_id=order_id, error=str(exc))
            raise PaymentInitError(_UNAVAILABLE) from exc

        if response.is_error:
            message = extract_error_message(response)
            misconfigured = response.status_code >= 500 and _mentions_configuration(message)
            logger.warning(
                "Payment intent rejected",
                order_id=order_id,
                status_code=response.status_code,
                misconfigured=misconfigured,
            )
            raise PaymentInitError(message, misconfigured=misconfigured)

        try:
            body = response.json()
        except ValueError:
            body = None
        client_secret = body.get("clientSecret") if isinstance(body, dict) else None
        if not client_secret:
            raise PaymentInitError(_UNAVAILABLE)

        logger.info("Payment intent created", order_id=order_id, client_secret=mask_secret(client_secret))
        return str(client_secret)

    async def retrieve_intent_status(self, client_secret: str) -> IntentStatus:
        intent_id = intent_id_from_secret(client_secret)
        try:
            response = await self.stripe.get(
                f"/v1/payment_intents/{intent_id}",
                params={"client_secret": client_secret},
                headers={"Authorization": f"Bearer {self.publishable_key}"},
            )
        except httpx.HTTPError as exc:
            raise PaymentStatusError() from exc

        if response.is_error:
            logger.warning(
                "Payment intent lookup failed",
                client_secret=mask_secret(client_secret),
                status_code=response.status_code,
                error=extract_error_message(response),
            )
            raise PaymentStatusError()

        try:
            status = response.json().get("status")
        except (ValueError, AttributeError) as exc:
            raise PaymentStatusError() from exc
        return IntentStatus.parse(status)


def intent_id_from_secret(client_secret: str) -> str:
    """``pi_123_secret_abc`` → ``pi_123``."""
    return client_secret.split("_secret")[0]


def _mentions_configuration(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _MISCONFIGURED_MARKERS)

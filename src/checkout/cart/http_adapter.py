"""Backend cart adapter.

Reads the authenticated user's cart (``GET /cart``) and clears it
(``DELETE /cart/clear``) once a payment has been captured.
"""

import httpx
import structlog

from checkout.cart.port import CartSource
from checkout.cart.snapshot import CartSnapshot
from checkout.errors import CheckoutError
from checkout.utils.http import extract_error_message

logger = structlog.get_logger(__name__)


class HttpCart(CartSource):
    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def snapshot(self) -> CartSnapshot:
        try:
            response = await self.client.get("/cart")
        except httpx.HTTPError as exc:
            raise CheckoutError("Failed to load your cart. Please try again.") from exc
        if response.is_error:
            raise CheckoutError(extract_error_message(response))
        try:
            return CartSnapshot.from_payload(response.json())
        except ValueError as exc:
            logger.warning("Unreadable cart response", error=str(exc))
            raise CheckoutError("Failed to load your cart. Please try again.") from exc

    async def clear(self) -> None:
        try:
            response = await self.client.delete("/cart/clear")
        except httpx.HTTPError as exc:
            raise CheckoutError("Failed to clear your cart.") from exc
        if response.is_error:
            raise CheckoutError(extract_error_message(response))
        logger.info("Cart cleared")

"""Backend order API adapter.

Endpoints:
- ``POST /orders`` → ``{"id": ...}``
- ``GET /orders/{id}``
- ``PATCH /orders/{id}/confirm-payment``
- ``PATCH /orders/{id}/cancel``

The ``httpx.AsyncClient`` passed in carries the base URL and the caller's
credentials.
"""

from decimal import Decimal

import httpx
import structlog

from checkout.cart.snapshot import CartSnapshot, to_decimal
from checkout.errors import (
    OrderCancellationError,
    OrderConfirmationError,
    OrderCreationError,
    OrderNotFoundError,
    OrderServiceError,
)
from checkout.orders.port import Order, OrderService, OrderStatus, PaymentStatus, order_payload
from checkout.shipping.details import ShippingDetails, ShippingMethod
from checkout.utils.http import extract_error_message

logger = structlog.get_logger(__name__)

_UNREACHABLE = "Unable to reach the order service. Please check your connection and try again."


class HttpOrderService(OrderService):
    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def create_order(
        self,
        cart: CartSnapshot,
        shipping_details: ShippingDetails,
        shipping_method: ShippingMethod,
        shipping_cost: Decimal,
        total: Decimal,
    ) -> str:
        payload = order_payload(cart, shipping_details, shipping_method, shipping_cost, total)
        try:
            response = await self.client.post("/orders", json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Order service unreachable", error=str(exc))
            raise OrderCreationError(_UNREACHABLE) from exc

        if response.is_error:
            raise OrderCreationError(extract_error_message(response), status_code=response.status_code)

        body = _json(response)
        order_id = body.get("id") if isinstance(body, dict) else None
        if not order_id:
            raise OrderCreationError("Order was created but no order ID was returned. Please try again.")
        return str(order_id)

    async def confirm_payment(self, order_id: str) -> None:
        response = await self._send("PATCH", f"/orders/{order_id}/confirm-payment", OrderConfirmationError)
        if response.status_code == 404:
            raise OrderNotFoundError(status_code=404)
        if response.is_error:
            raise OrderConfirmationError(extract_error_message(response), status_code=response.status_code)

    async def cancel_order(self, order_id: str) -> None:
        response = await self._send("PATCH", f"/orders/{order_id}/cancel", OrderCancellationError)
        if response.status_code == 404:
            raise OrderNotFoundError(status_code=404)
        if response.is_error:
            raise OrderCancellationError(extract_error_message(response), status_code=response.status_code)

    async def get_order(self, order_id: str) -> Order:
        response = await self._send("GET", f"/orders/{order_id}", OrderServiceError)
        if response.status_code == 404:
            raise OrderNotFoundError(status_code=404)
        if response.is_error:
            raise OrderServiceError(extract_error_message(response), status_code=response.status_code)
        return order_from_payload(_json(response))

    async def _send(self, method: str, url: str, error_cls: type[OrderServiceError]) -> httpx.Response:
        try:
            return await self.client.request(method, url)
        except httpx.HTTPError as exc:
            logger.warning("Order service unreachable", method=method, url=url, error=str(exc))
            raise error_cls(_UNREACHABLE) from exc


def _json(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return None


def order_from_payload(payload) -> Order:
    if not isinstance(payload, dict) or not payload.get("id"):
        raise OrderServiceError("The order service returned an unreadable order.")
    try:
        status = OrderStatus(payload.get("status") or OrderStatus.PENDING.value)
        payment_status = PaymentStatus(payload["paymentStatus"]) if payload.get("paymentStatus") else None
    except ValueError as exc:
        raise OrderServiceError("The order service returned an unknown order status.") from exc
    return Order(
        id=str(payload["id"]),
        status=status,
        payment_status=payment_status,
        order_number=payload.get("orderNumber"),
        total=to_decimal(payload.get("total"), default=None),
        shipping=to_decimal(payload.get("shipping"), default=None),
        items=tuple(payload.get("items") or ()),
    )

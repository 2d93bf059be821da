"""In-memory order service emulating the backend order API.

Useful for development without a running backend and for tests. It follows
the backend's rules: orders start PENDING, payment confirmation moves a
PENDING order to CONFIRMED/PAID and is a no-op once paid, and customers may
only cancel PENDING or CONFIRMED orders. Failures can be switched on at
runtime to exercise error paths.
"""

import asyncio
from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

from checkout.cart.snapshot import CartSnapshot
from checkout.errors import (
    OrderCancellationError,
    OrderConfirmationError,
    OrderCreationError,
    OrderNotFoundError,
)
from checkout.orders.port import CANCELLABLE_STATUSES, Order, OrderService, OrderStatus, PaymentStatus, order_payload
from checkout.shipping.details import ShippingDetails, ShippingMethod

# Backend status transition map (admin status updates)
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}


class InMemoryOrderService(OrderService):
    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.payloads: dict[str, dict] = {}
        self.calls: list[dict] = []
        self.fail_create: str | None = None
        self.fail_confirm: str | None = None
        self.latency: float = 0.0  # seconds; every call yields to the event loop like a network round-trip

    def configure(self, fail_create: str | None = None, fail_confirm: str | None = None) -> None:
        """Make subsequent creations or confirmations fail with the given message."""
        self.fail_create = fail_create
        self.fail_confirm = fail_confirm

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    async def create_order(
        self,
        cart: CartSnapshot,
        shipping_details: ShippingDetails,
        shipping_method: ShippingMethod,
        shipping_cost: Decimal,
        total: Decimal,
    ) -> str:
        payload = order_payload(cart, shipping_details, shipping_method, shipping_cost, total)
        self.calls.append({"method": "create_order", "payload": payload})
        await asyncio.sleep(self.latency)

        if self.fail_create:
            raise OrderCreationError(self.fail_create, status_code=400)
        if not payload["items"]:
            raise OrderCreationError("Order must contain at least one item", status_code=400)
        if total <= 0:
            raise OrderCreationError("Invalid total amount", status_code=400)

        order_id = f"ord_{uuid4().hex[:12]}"
        self.orders[order_id] = Order(
            id=order_id,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            order_number=f"ORD-{uuid4().hex[:8].upper()}",
            total=total,
            shipping=shipping_cost,
            items=tuple(payload["items"]),
        )
        self.payloads[order_id] = payload
        return order_id

    async def confirm_payment(self, order_id: str) -> None:
        self.calls.append({"method": "confirm_payment", "order_id": order_id})
        await asyncio.sleep(self.latency)
        order = self._get(order_id)

        if self.fail_confirm:
            raise OrderConfirmationError(self.fail_confirm, status_code=500)
        if order.is_paid:
            return
        if order.status != OrderStatus.PENDING:
            raise OrderConfirmationError("This order status cannot be updated.", status_code=400)

        self.orders[order_id] = replace(order, status=OrderStatus.CONFIRMED, payment_status=PaymentStatus.PAID)

    async def cancel_order(self, order_id: str) -> None:
        self.calls.append({"method": "cancel_order", "order_id": order_id})
        await asyncio.sleep(self.latency)
        order = self._get(order_id)
        if order.status not in CANCELLABLE_STATUSES:
            raise OrderCancellationError(status_code=400)
        self.orders[order_id] = replace(order, status=OrderStatus.CANCELLED)

    async def get_order(self, order_id: str) -> Order:
        self.calls.append({"method": "get_order", "order_id": order_id})
        await asyncio.sleep(self.latency)
        return self._get(order_id)

    def advance(self, order_id: str, status: OrderStatus) -> Order:
        """Move an order along as the back office would (e.g. to SHIPPED)."""
        order = self._get(order_id)
        if status not in _VALID_TRANSITIONS[order.status]:
            raise ValueError(f"Cannot transition from {order.status.value} to {status.value}")
        self.orders[order_id] = replace(order, status=status)
        return self.orders[order_id]

    def _get(self, order_id: str) -> Order:
        try:
            return self.orders[order_id]
        except KeyError:
            raise OrderNotFoundError(status_code=404) from None

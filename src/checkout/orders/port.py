"""Order service port (abstract interface).

Defines the contract for the backend order API as checkout consumes it.
Adapters:
- HttpOrderService for the real backend
- InMemoryOrderService for development and tests
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from checkout.cart.snapshot import CartSnapshot
from checkout.shipping.details import ShippingDetails, ShippingMethod


class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


# States from which a customer may cancel
CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})


@dataclass(frozen=True)
class Order:
    """Backend order as read back by checkout. The backend owns the record."""

    id: str
    status: OrderStatus
    payment_status: PaymentStatus | None = None
    order_number: str | None = None
    total: Decimal | None = None
    shipping: Decimal | None = None
    items: tuple[dict, ...] = field(default_factory=tuple)

    @property
    def is_cancellable(self) -> bool:
        return self.status in CANCELLABLE_STATUSES

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID


class OrderService(ABC):
    @abstractmethod
    async def create_order(
        self,
        cart: CartSnapshot,
        shipping_details: ShippingDetails,
        shipping_method: ShippingMethod,
        shipping_cost: Decimal,
        total: Decimal,
    ) -> str:
        """Create a PENDING order and return the backend-assigned id."""
        ...

    @abstractmethod
    async def confirm_payment(self, order_id: str) -> None:
        """Mark the order PAID. Safe to call more than once."""
        ...

    @abstractmethod
    async def cancel_order(self, order_id: str) -> None:
        """Cancel the order; only PENDING and CONFIRMED orders may be cancelled."""
        ...

    @abstractmethod
    async def get_order(self, order_id: str) -> Order:
        """Read the order back."""
        ...


def order_payload(
    cart: CartSnapshot,
    shipping_details: ShippingDetails,
    shipping_method: ShippingMethod,
    shipping_cost: Decimal,
    total: Decimal,
) -> dict:
    """Request body for ``CREATE order``."""
    return {
        "items": cart.to_order_items(),
        "shippingCost": float(shipping_cost),
        "totalAmount": float(total),
        "shippingMethod": shipping_method.value,
        "shippingDetails": shipping_details.to_wire(),
    }

"""Confirmation handler: runs when the gateway's payment UI hands control back.

Reconciles the gateway's verdict on the intent with the backend order record:

- succeeded  → confirm the order as paid, clear the cart, report success.
  If the backend confirmation fails the cart is still cleared and the
  customer is told to contact support. A payment the gateway captured is
  never reported as failed.
- processing → nothing is cleared; the customer checks back later.
- anything else → failure; the cart stays so the customer can retry.

Only a return carrying the session's current client secret, from the
customer who owns the session, moves the session. Any other return is
reported without touching it. A captured payment still completes the
session, since its order is then paid.

The intent status is read exactly once. If it cannot be read the outcome is
UNVERIFIED rather than a failure, since the payment may well have gone
through.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from checkout.cart.port import CartSource
from checkout.errors import CheckoutError, OrderServiceError, PaymentStatusError, ReconciliationError
from checkout.gateway.port import IntentStatus, PaymentGateway
from checkout.orders.port import OrderService
from checkout.session.lookup import find_by_client_secret, find_by_order_id, load_session, save_session
from checkout.session.session import CheckoutSession, SessionStatus
from checkout.utils.logging import mask_secret

logger = structlog.get_logger(__name__)

INVALID_SESSION_MESSAGE = "Invalid payment session"
SUCCESS_MESSAGE = "Payment Successful!"
PROCESSING_MESSAGE = "Your payment is being processed. Please check your order status later."
FAILED_MESSAGE = "Payment failed. Please try again."
UNVERIFIED_MESSAGE = "We could not verify your payment. Please check your orders before trying again."
MISSING_ORDER_MESSAGE = "Payment succeeded but order ID was missing. Please contact support."


class ConfirmationStatus(Enum):
    SUCCEEDED = "succeeded"
    PROCESSING = "processing"
    FAILED = "failed"
    UNVERIFIED = "unverified"


@dataclass(frozen=True)
class ReturnContext:
    """What the gateway hands back, plus who is returning."""

    client_secret: str | None = None
    order_id: str | None = None
    customer_id: str | None = None


@dataclass(frozen=True)
class ConfirmationOutcome:
    status: ConfirmationStatus
    message: str
    order_id: str | None = None
    session_id: str | None = None
    cart_cleared: bool = False
    needs_support: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in (ConfirmationStatus.SUCCEEDED, ConfirmationStatus.FAILED)


class ConfirmationHandler:
    def __init__(self, orders: OrderService, gateway: PaymentGateway, cart: CartSource) -> None:
        self.orders = orders
        self.gateway = gateway
        self.cart = cart

    async def confirm(self, context: ReturnContext) -> ConfirmationOutcome:
        client_secret = (context.client_secret or "").strip()
        if not client_secret:
            logger.warning("Payment return without client secret", order_id=context.order_id)
            return ConfirmationOutcome(ConfirmationStatus.FAILED, INVALID_SESSION_MESSAGE, order_id=context.order_id)

        session = self._attach(context, client_secret)
        if session is not None and context.customer_id and str(session.customer_id) != str(context.customer_id):
            logger.warning("Payment return for another customer's checkout", order_id=context.order_id)
            return await self._report(client_secret, context.order_id)

        order_id = context.order_id or (session.order_id if session else None)
        session_id = str(session.id) if session else None

        try:
            status = await self.gateway.retrieve_intent_status(client_secret)
        except PaymentStatusError as exc:
            logger.warning(
                "Could not retrieve payment status",
                order_id=order_id,
                client_secret=mask_secret(client_secret),
                error=exc.message,
            )
            return ConfirmationOutcome(
                ConfirmationStatus.UNVERIFIED, UNVERIFIED_MESSAGE, order_id=order_id, session_id=session_id
            )

        logger.info("Payment returned", order_id=order_id, session_id=session_id, intent_status=status.value)

        if status == IntentStatus.SUCCEEDED:
            return await self._settle(order_id, session)

        current = _is_active(session) and session.client_secret == client_secret
        if _is_active(session) and not current:
            logger.warning(
                "Payment return for a superseded intent",
                order_id=order_id,
                session_id=session_id,
                intent_status=status.value,
            )

        if status == IntentStatus.PROCESSING:
            if current:
                session.await_settlement()
                save_session(session)
            return ConfirmationOutcome(
                ConfirmationStatus.PROCESSING, PROCESSING_MESSAGE, order_id=order_id, session_id=session_id
            )

        if current:
            session.record_payment_failure(FAILED_MESSAGE)
            save_session(session)
        return ConfirmationOutcome(ConfirmationStatus.FAILED, FAILED_MESSAGE, order_id=order_id, session_id=session_id)

    async def recheck(self, session_id) -> ConfirmationOutcome:
        """Re-run confirmation for a session still waiting on the gateway."""
        session = load_session(session_id)
        if session.status != SessionStatus.AWAITING_PAYMENT.value or not session.client_secret:
            raise CheckoutError("There is no pending payment to check for this checkout.")
        return await self.confirm(
            ReturnContext(
                client_secret=session.client_secret,
                order_id=session.order_id,
                customer_id=str(session.customer_id),
            )
        )

    async def _settle(self, order_id, session: CheckoutSession | None) -> ConfirmationOutcome:
        session_id = str(session.id) if session else None

        if not order_id:
            logger.error("Payment succeeded without an order id", session_id=session_id)
            return ConfirmationOutcome(
                ConfirmationStatus.SUCCEEDED,
                MISSING_ORDER_MESSAGE,
                session_id=session_id,
                needs_support=True,
            )

        if _is_active(session):
            session.complete()
            save_session(session)

        try:
            await self.orders.confirm_payment(order_id)
        except OrderServiceError as exc:
            error = ReconciliationError(order_id)
            logger.error(
                "Payment captured but order confirmation failed",
                order_id=order_id,
                session_id=session_id,
                error=exc.message,
                status_code=exc.status_code,
            )
            return ConfirmationOutcome(
                ConfirmationStatus.SUCCEEDED,
                error.message,
                order_id=order_id,
                session_id=session_id,
                cart_cleared=await self._clear_cart(order_id),
                needs_support=True,
            )

        logger.info("Payment confirmed", order_id=order_id, session_id=session_id)
        return ConfirmationOutcome(
            ConfirmationStatus.SUCCEEDED,
            SUCCESS_MESSAGE,
            order_id=order_id,
            session_id=session_id,
            cart_cleared=await self._clear_cart(order_id),
        )

    async def _report(self, client_secret: str, order_id) -> ConfirmationOutcome:
        """Tell the caller what the gateway says, without touching any session, order or cart."""
        try:
            status = await self.gateway.retrieve_intent_status(client_secret)
        except PaymentStatusError:
            return ConfirmationOutcome(ConfirmationStatus.UNVERIFIED, UNVERIFIED_MESSAGE, order_id=order_id)

        if status == IntentStatus.SUCCEEDED:
            return ConfirmationOutcome(ConfirmationStatus.SUCCEEDED, SUCCESS_MESSAGE, order_id=order_id)
        if status == IntentStatus.PROCESSING:
            return ConfirmationOutcome(ConfirmationStatus.PROCESSING, PROCESSING_MESSAGE, order_id=order_id)
        return ConfirmationOutcome(ConfirmationStatus.FAILED, FAILED_MESSAGE, order_id=order_id)

    async def _clear_cart(self, order_id) -> bool:
        try:
            await self.cart.clear()
        except CheckoutError as exc:
            logger.warning("Failed to clear cart after payment", order_id=order_id, error=exc.message)
            return False
        return True

    def _attach(self, context: ReturnContext, client_secret: str) -> CheckoutSession | None:
        """Find the session this return belongs to, by order id first, then by client secret."""
        session = find_by_order_id(context.order_id)
        if session is not None:
            return session

        session = find_by_client_secret(client_secret)
        if session is not None and context.order_id and session.order_id != context.order_id:
            logger.warning("Return context does not match session", session_id=str(session.id))
            return None
        return session


def _is_active(session: CheckoutSession | None) -> bool:
    return session is not None and session.status in (
        SessionStatus.OPEN.value,
        SessionStatus.AWAITING_PAYMENT.value,
    )

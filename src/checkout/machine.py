"""Checkout state machine: drives a CheckoutSession from shipping to payment.

Flow:
    1. start: verified identity + non-empty cart → session at SHIPPING
    2. update_shipping / select_shipping_method while at SHIPPING
    3. proceed_to_payment: validate → create the order (first time only)
       → request a fresh payment intent → PAYMENT
    4. back_to_shipping drops the intent but keeps the order
    5. retry_payment after a failed attempt requests a new intent for the
       same order

Any failing step records ``last_error`` on the session and leaves ``step``
where it was. Only one order or intent request may be in flight per session;
a second request while one is outstanding is refused with CheckoutBusyError,
and so are shipping edits and abandoning.
"""

from collections.abc import Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import structlog
from protean.exceptions import ExpectedVersionError, ValidationError

from checkout.auth import Identity
from checkout.cart.port import CartSource
from checkout.errors import (
    CheckoutBusyError,
    CheckoutError,
    CheckoutNotAllowedError,
    OrderCreationError,
    PaymentInitError,
)
from checkout.gateway.port import PaymentGateway
from checkout.orders.port import OrderService
from checkout.pricing.calculator import CostBreakdown, compute
from checkout.pricing.settings import PricingSettings
from checkout.session.lookup import load_session, save_session
from checkout.session.session import CheckoutSession, CheckoutStep
from checkout.shipping.validation import validate

logger = structlog.get_logger(__name__)

FIX_SHIPPING_MESSAGE = "Please correct the highlighted shipping fields."
EMPTY_CART_MESSAGE = "Your cart is empty."


@dataclass
class StepResult:
    """What a user action did to the session."""

    session: CheckoutSession
    advanced: bool = False
    field_errors: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.field_errors


class CheckoutStateMachine:
    def __init__(
        self,
        orders: OrderService,
        gateway: PaymentGateway,
        cart: CartSource,
        pricing: PricingSettings,
    ) -> None:
        self.orders = orders
        self.gateway = gateway
        self.cart = cart
        self.pricing = pricing
        self._in_flight: set[str] = set()

    def is_busy(self, session_id) -> bool:
        return str(session_id) in self._in_flight

    def _refuse_if_busy(self, session_id) -> None:
        if self.is_busy(session_id):
            raise CheckoutBusyError()

    @asynccontextmanager
    async def _busy(self, session_id):
        key = str(session_id)
        if key in self._in_flight:
            raise CheckoutBusyError()
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)

    # -------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------
    async def start(self, identity: Identity | None) -> CheckoutSession:
        if identity is None:
            raise CheckoutNotAllowedError("Please sign in to check out.")
        if not identity.is_verified:
            raise CheckoutNotAllowedError("Please verify your email address before checking out.")

        cart = await self.cart.snapshot()
        if cart.is_empty:
            raise CheckoutNotAllowedError(EMPTY_CART_MESSAGE)

        session = CheckoutSession.start(identity.user_id, email=identity.email)
        save_session(session)

        logger.info(
            "Checkout started",
            session_id=str(session.id),
            customer_id=str(identity.user_id),
            item_count=cart.item_count,
            gateway_mode=self.gateway.mode,
        )
        return session

    def get(self, session_id) -> CheckoutSession:
        return load_session(session_id)

    async def abandon(self, session_id) -> CheckoutSession:
        self._refuse_if_busy(session_id)
        session = load_session(session_id)
        session.abandon()
        save_session(session)
        logger.info("Checkout abandoned", session_id=str(session.id), order_id=session.order_id)
        return session

    # -------------------------------------------------------------------
    # Shipping step
    # -------------------------------------------------------------------
    async def update_shipping(self, session_id, changes: Mapping[str, str]) -> StepResult:
        self._refuse_if_busy(session_id)
        session = load_session(session_id)
        try:
            session.update_shipping(**changes)
        except ValidationError as exc:
            # Leave the stored fields untouched and report what was refused
            return StepResult(session, field_errors=_field_errors(exc))
        save_session(session)
        return StepResult(session)

    async def select_shipping_method(self, session_id, method) -> StepResult:
        self._refuse_if_busy(session_id)
        session = load_session(session_id)
        session.select_shipping_method(method)
        save_session(session)
        return StepResult(session)

    async def summary(self, session_id) -> CostBreakdown:
        session = load_session(session_id)
        cart = await self.cart.snapshot()
        return compute(cart, session.method, self.pricing)

    # -------------------------------------------------------------------
    # Payment step
    # -------------------------------------------------------------------
    async def proceed_to_payment(self, session_id) -> StepResult:
        async with self._busy(session_id):
            session = load_session(session_id)
            if not session.is_open:
                return StepResult(session, error="This checkout is no longer active.")
            if session.step == CheckoutStep.PAYMENT.value and session.client_secret:
                return StepResult(session)

            result = validate(session.shipping_details)
            if not result.valid:
                session.record_error(FIX_SHIPPING_MESSAGE)
                save_session(session)
                return StepResult(session, field_errors=dict(result.errors), error=FIX_SHIPPING_MESSAGE)

            if not session.order_id:
                try:
                    order_id = await self._create_order(session)
                except CheckoutError as exc:
                    return self._fail(session, exc)
                session = self._attach_order(session, order_id)
            else:
                logger.info("Reusing order for checkout", session_id=str(session.id), order_id=session.order_id)

            return await self._issue_intent(session)

    async def retry_payment(self, session_id) -> StepResult:
        """Request a fresh intent for the session's order after a failed attempt."""
        async with self._busy(session_id):
            session = load_session(session_id)
            if not session.is_open or session.step != CheckoutStep.PAYMENT.value or not session.order_id:
                return StepResult(session, error="There is no payment to retry for this checkout.")
            if session.client_secret:
                return StepResult(session)
            return await self._issue_intent(session)

    async def back_to_shipping(self, session_id) -> StepResult:
        async with self._busy(session_id):
            session = load_session(session_id)
            session.back_to_shipping()
            save_session(session)
            logger.info("Returned to shipping", session_id=str(session.id), order_id=session.order_id)
            return StepResult(session)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    async def _create_order(self, session: CheckoutSession) -> str:
        cart = await self.cart.snapshot()
        if cart.is_empty:
            raise OrderCreationError(EMPTY_CART_MESSAGE)

        costs = compute(cart, session.method, self.pricing)
        order_id = await self.orders.create_order(
            cart,
            session.shipping_details,
            session.method,
            costs.shipping,
            costs.total,
        )
        logger.info(
            "Order created for checkout",
            session_id=str(session.id),
            order_id=order_id,
            total=str(costs.total),
        )
        return order_id

    def _attach_order(self, session: CheckoutSession, order_id: str) -> CheckoutSession:
        """Store the new order id on the session, even if the session changed while the order was created."""
        session.attach_order(order_id)
        try:
            save_session(session)
        except ExpectedVersionError:
            logger.warning(
                "Session changed during order creation, re-attaching order",
                session_id=str(session.id),
                order_id=order_id,
            )
            session = load_session(session.id)
            session.attach_order(order_id)
            save_session(session)
        return session

    async def _issue_intent(self, session: CheckoutSession) -> StepResult:
        try:
            client_secret = await self.gateway.create_payment_intent(session.order_id)
        except PaymentInitError as exc:
            if exc.misconfigured:
                logger.error("Payment gateway is misconfigured", session_id=str(session.id))
            return self._fail(session, exc)

        session.issue_payment_intent(client_secret)
        save_session(session)
        return StepResult(session, advanced=True)

    def _fail(self, session: CheckoutSession, exc: CheckoutError) -> StepResult:
        logger.warning(
            "Checkout step failed",
            session_id=str(session.id),
            order_id=session.order_id,
            step=session.step,
            error_type=type(exc).__name__,
            error=exc.message,
        )
        session.record_error(exc.message)
        save_session(session)
        return StepResult(session, error=exc.message)


def _field_errors(exc: ValidationError) -> dict[str, str]:
    messages = exc.messages if isinstance(exc.messages, dict) else {"shipping": [str(exc.messages)]}
    return {name: errors[0] if isinstance(errors, list) and errors else str(errors) for name, errors in messages.items()}

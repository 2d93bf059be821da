"""CheckoutSession aggregate: one user's attempt to turn a cart into a paid order.

Steps:
    SHIPPING → PAYMENT (validated shipping, order created or reused, fresh intent)
    PAYMENT  → SHIPPING (customer backs out; intent dropped, order kept)

Status:
    OPEN → AWAITING_PAYMENT (gateway still processing)
    OPEN / AWAITING_PAYMENT → COMPLETED (gateway reported success)
    OPEN → ABANDONED

``order_id`` is assigned at most once and never replaced. Every later
attempt in the same session reuses it, which is what keeps a retried
checkout from creating a second order.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, ValueObject

from checkout.domain import checkout
from checkout.session.events import (
    CheckoutAbandoned,
    CheckoutCompleted,
    CheckoutStarted,
    OrderAttached,
    PaymentAttemptFailed,
    PaymentAwaitingSettlement,
    PaymentIntentIssued,
    ReturnedToShipping,
    ShippingMethodSelected,
)
from checkout.shipping.details import ShippingDetails, ShippingMethod


class CheckoutStep(Enum):
    SHIPPING = "Shipping"
    PAYMENT = "Payment"


class SessionStatus(Enum):
    OPEN = "Open"
    AWAITING_PAYMENT = "Awaiting_Payment"
    COMPLETED = "Completed"
    ABANDONED = "Abandoned"


@checkout.aggregate
class CheckoutSession:
    customer_id = Identifier(required=True)
    step = String(choices=CheckoutStep, default=CheckoutStep.SHIPPING.value)
    status = String(choices=SessionStatus, default=SessionStatus.OPEN.value)
    shipping = ValueObject(ShippingDetails)
    shipping_method = String(choices=ShippingMethod, default=ShippingMethod.STANDARD.value)
    order_id = String(max_length=255)
    client_secret = String(max_length=255)
    last_error = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def payment_step_requires_an_order(self):
        if self.step == CheckoutStep.PAYMENT.value and not self.order_id:
            raise ValidationError({"step": ["Payment step requires an order"]})

    @invariant.post
    def completed_checkout_must_reference_an_order(self):
        if self.status == SessionStatus.COMPLETED.value and not self.order_id:
            raise ValidationError({"status": ["A completed checkout must reference an order"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def start(cls, customer_id, email=None):
        """Open a checkout, pre-filling the contact email from the identity."""
        now = datetime.now(UTC)
        session = cls(
            customer_id=customer_id,
            step=CheckoutStep.SHIPPING.value,
            status=SessionStatus.OPEN.value,
            shipping=ShippingDetails(email=(email or "").strip()),
            shipping_method=ShippingMethod.STANDARD.value,
            created_at=now,
            updated_at=now,
        )
        session.raise_(
            CheckoutStarted(
                session_id=str(session.id),
                customer_id=str(customer_id),
                started_at=now,
            )
        )
        return session

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN.value

    @property
    def method(self) -> ShippingMethod:
        return ShippingMethod(self.shipping_method)

    @property
    def shipping_details(self) -> ShippingDetails:
        return self.shipping or ShippingDetails()

    # -------------------------------------------------------------------
    # Shipping step
    # -------------------------------------------------------------------
    def update_shipping(self, **changes):
        """Merge edited shipping fields into the session. Nothing is ever cleared."""
        self._assert_shipping_step("Shipping details can only be changed during the shipping step")

        try:
            self.shipping = self.shipping_details.merged(**changes)
        except KeyError as exc:
            raise ValidationError({str(exc.args[0]): ["Unknown shipping field"]}) from None
        self.updated_at = datetime.now(UTC)

    def select_shipping_method(self, method):
        self._assert_shipping_step("Shipping method can only be changed during the shipping step")

        method = ShippingMethod(method)
        if method.value == self.shipping_method:
            return

        self.shipping_method = method.value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ShippingMethodSelected(
                session_id=str(self.id),
                shipping_method=method.value,
            )
        )

    # -------------------------------------------------------------------
    # Order and payment
    # -------------------------------------------------------------------
    def attach_order(self, order_id):
        """Record the backend order for this session. Only ever done once."""
        self._assert_open()
        order_id = str(order_id)
        if self.order_id:
            if self.order_id == order_id:
                return
            raise ValidationError({"order_id": ["An order has already been created for this checkout"]})

        self.order_id = order_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            OrderAttached(
                session_id=str(self.id),
                order_id=order_id,
            )
        )

    def issue_payment_intent(self, client_secret):
        """Hold a fresh client secret and move to the payment step."""
        self._assert_open()
        if not self.order_id:
            raise ValidationError({"order_id": ["A payment intent needs an order"]})
        if not client_secret:
            raise ValidationError({"client_secret": ["Client secret is required"]})

        self.client_secret = client_secret
        self.step = CheckoutStep.PAYMENT.value
        self.last_error = None
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentIntentIssued(
                session_id=str(self.id),
                order_id=self.order_id,
            )
        )

    def back_to_shipping(self):
        """Leave the payment step. The intent is discarded; the order is kept."""
        self._assert_open()
        if self.step != CheckoutStep.PAYMENT.value:
            raise ValidationError({"step": ["Checkout is not at the payment step"]})

        self.client_secret = None
        self.step = CheckoutStep.SHIPPING.value
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ReturnedToShipping(
                session_id=str(self.id),
                order_id=self.order_id,
            )
        )

    def record_payment_failure(self, reason):
        """The gateway rejected the payment. Stay on the payment step without an intent."""
        if self.status not in (SessionStatus.OPEN.value, SessionStatus.AWAITING_PAYMENT.value):
            raise ValidationError({"status": ["Checkout is no longer active"]})

        self.status = SessionStatus.OPEN.value
        self.client_secret = None
        self.last_error = reason
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentAttemptFailed(
                session_id=str(self.id),
                order_id=self.order_id,
                reason=reason,
            )
        )

    def await_settlement(self):
        if self.status == SessionStatus.AWAITING_PAYMENT.value:
            return
        self._assert_open()

        self.status = SessionStatus.AWAITING_PAYMENT.value
        self.last_error = None
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PaymentAwaitingSettlement(
                session_id=str(self.id),
                order_id=self.order_id,
            )
        )

    def complete(self):
        """Gateway reported success. Terminal."""
        if self.status == SessionStatus.COMPLETED.value:
            return
        if self.status not in (SessionStatus.OPEN.value, SessionStatus.AWAITING_PAYMENT.value):
            raise ValidationError({"status": ["Checkout is no longer active"]})

        now = datetime.now(UTC)
        self.status = SessionStatus.COMPLETED.value
        self.client_secret = None
        self.last_error = None
        self.updated_at = now

        self.raise_(
            CheckoutCompleted(
                session_id=str(self.id),
                order_id=self.order_id,
                completed_at=now,
            )
        )

    def abandon(self):
        """Customer navigated away. No message is sent to the gateway."""
        self._assert_open()

        now = datetime.now(UTC)
        self.status = SessionStatus.ABANDONED.value
        self.client_secret = None
        self.updated_at = now

        self.raise_(
            CheckoutAbandoned(
                session_id=str(self.id),
                order_id=self.order_id,
                abandoned_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------
    def record_error(self, message):
        self.last_error = message
        self.updated_at = datetime.now(UTC)

    def clear_error(self):
        self.last_error = None

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------
    def _assert_open(self):
        if not self.is_open:
            raise ValidationError({"status": ["Checkout is no longer active"]})

    def _assert_shipping_step(self, message):
        self._assert_open()
        if self.step != CheckoutStep.SHIPPING.value:
            raise ValidationError({"step": [message]})

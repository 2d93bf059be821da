"""Exception taxonomy for checkout orchestration.

Every error carries a user-facing ``message``. The state machine records it
as the session's ``last_error`` instead of letting it escape to the caller.
"""


class CheckoutError(Exception):
    """Base class for checkout failures that can be shown to the user."""

    default_message = "Something went wrong during checkout. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class CheckoutNotAllowedError(CheckoutError):
    """Checkout cannot start: no verified identity or an empty cart."""


class CheckoutBusyError(CheckoutError):
    default_message = "A checkout request is already in progress."


# ---------------------------------------------------------------------------
# Backend order API
# ---------------------------------------------------------------------------
class OrderServiceError(CheckoutError):
    """The backend order API rejected a request or could not be reached."""

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class OrderCreationError(OrderServiceError):
    default_message = "Failed to create your order. Please try again."


class OrderNotFoundError(OrderServiceError):
    default_message = "Order not found."


class OrderCancellationError(OrderServiceError):
    default_message = "Order cannot be cancelled at this stage."


class OrderConfirmationError(OrderServiceError):
    default_message = "Failed to confirm payment for this order."


# ---------------------------------------------------------------------------
# Payment gateway
# ---------------------------------------------------------------------------
class PaymentGatewayError(CheckoutError):
    """The payment gateway failed or returned something unusable."""


class PaymentInitError(PaymentGatewayError):
    """A payment intent could not be created.

    ``misconfigured`` separates a gateway without usable credentials from a
    transient failure that is worth retrying.
    """

    default_message = "Payment could not be initialized. Please try again."

    def __init__(self, message: str | None = None, misconfigured: bool = False) -> None:
        self.misconfigured = misconfigured
        super().__init__(message)


class PaymentStatusError(PaymentGatewayError):
    default_message = "We could not verify your payment status."


class GatewayConfigurationError(PaymentGatewayError):
    """No usable gateway credentials where real payments are mandatory."""

    default_message = "Payment gateway credentials are not configured."


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------
class ReconciliationError(CheckoutError):
    """The gateway captured the payment but the backend could not record it."""

    default_message = "Payment succeeded but failed to update order. Please contact support."

    def __init__(self, order_id: str | None, message: str | None = None) -> None:
        self.order_id = order_id
        super().__init__(message)

"""Domain events for the CheckoutSession aggregate.

Client secrets never appear in events; they authorize a payment and are only
kept on the session itself.
"""

from protean.fields import DateTime, Identifier, String

from checkout.domain import checkout


@checkout.event(part_of="CheckoutSession")
class CheckoutStarted:
    """A customer entered checkout with a non-empty cart."""

    __version__ = 1

    session_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    started_at = DateTime(required=True)


@checkout.event(part_of="CheckoutSession")
class ShippingMethodSelected:
    __version__ = 1

    session_id = Identifier(required=True)
    shipping_method = String(required=True)


@checkout.event(part_of="CheckoutSession")
class OrderAttached:
    """The backend created the order for this checkout. Happens once per session."""

    __version__ = 1

    session_id = Identifier(required=True)
    order_id = String(required=True)


@checkout.event(part_of="CheckoutSession")
class PaymentIntentIssued:
    """A fresh payment intent was issued and the session moved to the payment step."""

    __version__ = 1

    session_id = Identifier(required=True)
    order_id = String(required=True)


@checkout.event(part_of="CheckoutSession")
class ReturnedToShipping:
    """The customer left the payment step. The order is kept, the intent is dropped."""

    __version__ = 1

    session_id = Identifier(required=True)
    order_id = String()


@checkout.event(part_of="CheckoutSession")
class PaymentAttemptFailed:
    __version__ = 1

    session_id = Identifier(required=True)
    order_id = String(required=True)
    reason = String(max_length=500)


@checkout.event(part_of="CheckoutSession")
class PaymentAwaitingSettlement:
    """The gateway is still processing the payment."""

    __version__ = 1

    session_id = Identifier(required=True)
    order_id = String(required=True)


@checkout.event(part_of="CheckoutSession")
class CheckoutCompleted:
    """The gateway reported success for the session's order."""

    __version__ = 1

    session_id = Identifier(required=True)
    order_id = String(required=True)
    completed_at = DateTime(required=True)


@checkout.event(part_of="CheckoutSession")
class CheckoutAbandoned:
    __version__ = 1

    session_id = Identifier(required=True)
    order_id = String()
    abandoned_at = DateTime(required=True)

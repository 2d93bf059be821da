"""Checkout bounded context: order creation and payment reconciliation for the storefront.

Owns the CheckoutSession aggregate that carries one user's attempt to turn a
cart into a paid order, and the orchestration around it: the state machine
that drives SHIPPING → PAYMENT, and the confirmation handler that reconciles
the gateway's verdict with the backend order record.
"""

from protean.domain import Domain

from checkout.config import get_settings
from checkout.utils.logging import configure_logging, get_logger

_settings = get_settings()
configure_logging(level=_settings.log_level, json=_settings.log_json)

logger = get_logger(__name__)

checkout = Domain(name="checkout")

"""Order cost calculation: subtotal, shipping, tax and total.

Amounts are rounded half-up to the cent component by component, and the
total is the exact sum of the rounded components.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from checkout.cart.snapshot import CartSnapshot
from checkout.pricing.settings import PricingSettings
from checkout.shipping.details import ShippingMethod

CENT = Decimal("0.01")
EXPRESS_MULTIPLIER = Decimal("2.5")


def _cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CostBreakdown:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal

    def to_payload(self) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "shipping": float(self.shipping),
            "tax": float(self.tax),
            "total": float(self.total),
        }


def cart_subtotal(cart: CartSnapshot) -> Decimal:
    """The cart's stored total, recomputed from the lines when it is stale at zero."""
    if cart.total_amount > 0 or cart.is_empty:
        return max(cart.total_amount, Decimal("0"))
    return sum((item.subtotal for item in cart.items), Decimal("0"))


def shipping_cost(subtotal: Decimal, method: ShippingMethod, settings: PricingSettings) -> Decimal:
    qualifies_for_free = subtotal >= settings.free_threshold
    if method == ShippingMethod.EXPRESS:
        # Express drops to the flat rate once the free-shipping threshold is met
        return settings.flat_rate if qualifies_for_free else settings.flat_rate * EXPRESS_MULTIPLIER
    return Decimal("0") if qualifies_for_free else settings.flat_rate


def compute(cart: CartSnapshot, method: ShippingMethod, settings: PricingSettings) -> CostBreakdown:
    subtotal = _cents(cart_subtotal(cart))
    shipping = _cents(shipping_cost(subtotal, method, settings))
    tax = _cents(subtotal * settings.tax_rate / Decimal("100"))
    return CostBreakdown(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=subtotal + shipping + tax,
    )

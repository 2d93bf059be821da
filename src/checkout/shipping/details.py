"""Shipping details captured during the SHIPPING step, and the shipping methods on offer."""

from enum import Enum

from protean.fields import String

from checkout.domain import checkout

SHIPPING_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "address",
    "city",
    "state",
    "zip_code",
    "phone",
)


class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"


@checkout.value_object(part_of="CheckoutSession")
class ShippingDetails:
    """Where the order ships and who to contact about it.

    Fields are free text while the user is typing; nothing here is required.
    Structural rules live in ``checkout.shipping.validation`` so that every
    violated field can be reported at once. The value object is replaced
    wholesale on every edit.
    """

    first_name = String(max_length=100, default="")
    last_name = String(max_length=100, default="")
    email = String(max_length=254, default="")
    address = String(max_length=255, default="")
    city = String(max_length=100, default="")
    state = String(max_length=50, default="")
    zip_code = String(max_length=20, default="")
    phone = String(max_length=50, default="")

    def merged(self, **changes) -> "ShippingDetails":
        """Return a copy with the given fields replaced (values trimmed)."""
        values = self.to_payload()
        for name, value in changes.items():
            if name not in SHIPPING_FIELDS:
                raise KeyError(name)
            values[name] = (value or "").strip()
        return ShippingDetails(**values)

    def to_payload(self) -> dict:
        return {name: getattr(self, name) or "" for name in SHIPPING_FIELDS}

    def to_wire(self) -> dict:
        """Camel-cased shape the backend order API expects."""
        return {
            "firstName": self.first_name or "",
            "lastName": self.last_name or "",
            "email": self.email or "",
            "address": self.address or "",
            "city": self.city or "",
            "state": self.state or "",
            "zipCode": self.zip_code or "",
            "phone": self.phone or "",
        }

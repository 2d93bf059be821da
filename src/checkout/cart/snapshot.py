"""Read-only cart snapshot handed to checkout by the cart collaborator.

A snapshot is immutable for the duration of one checkout attempt. Amounts
are ``Decimal`` so that cost arithmetic never drifts.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


def to_decimal(value, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or value == "":
        return default
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    return amount if amount.is_finite() else default


@dataclass(frozen=True)
class LineItem:
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    size: str | None = None
    color: str | None = None
    line_subtotal: Decimal | None = None

    @property
    def subtotal(self) -> Decimal:
        """Stored line subtotal, or price × quantity when the cart left it blank."""
        if self.line_subtotal:
            return self.line_subtotal
        return self.unit_price * self.quantity

    def to_order_item(self) -> dict:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "price": float(self.unit_price),
            "size": self.size,
            "color": self.color,
        }


@dataclass(frozen=True)
class CartSnapshot:
    items: tuple[LineItem, ...] = ()
    total_amount: Decimal = Decimal("0")

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @classmethod
    def from_payload(cls, payload: dict) -> "CartSnapshot":
        """Build a snapshot from the backend cart response.

        Shape: ``{"items": [{"productId", "name", "price", "quantity", "size",
        "color", "subtotal"}], "total": number}``.
        Raises ``ValueError`` when the payload cannot be read as a cart.
        """
        if not isinstance(payload, dict):
            raise ValueError("Cart response is not an object")
        raw_items = payload.get("items") or []
        if not isinstance(raw_items, list) or not all(isinstance(raw, dict) for raw in raw_items):
            raise ValueError("Cart items are not a list of lines")
        items = tuple(
            LineItem(
                product_id=str(raw.get("productId") or raw.get("product_id") or ""),
                name=raw.get("name") or "",
                unit_price=to_decimal(raw.get("price")),
                quantity=_quantity(raw.get("quantity")),
                size=raw.get("size"),
                color=raw.get("color"),
                line_subtotal=to_decimal(raw.get("subtotal"), default=None),
            )
            for raw in raw_items
        )
        total = payload.get("total", payload.get("totalAmount"))
        return cls(items=items, total_amount=to_decimal(total))

    def to_order_items(self) -> list[dict]:
        return [item.to_order_item() for item in self.items]


def _quantity(value) -> int:
    if value is None or value == "":
        return 0
    try:
        quantity = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid cart quantity: {value!r}") from None
    if not quantity.is_finite() or quantity != quantity.to_integral_value():
        raise ValueError(f"Invalid cart quantity: {value!r}")
    return int(quantity)

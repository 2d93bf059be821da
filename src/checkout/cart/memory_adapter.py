"""In-memory cart used in development and tests."""

from decimal import Decimal

from checkout.cart.port import CartSource
from checkout.cart.snapshot import CartSnapshot, LineItem


class InMemoryCart(CartSource):
    def __init__(self, items: list[LineItem] | None = None, total_amount: Decimal | None = None) -> None:
        self.items: list[LineItem] = list(items or [])
        self.total_amount = total_amount
        self.clear_count = 0

    def add(self, product_id: str, name: str, unit_price, quantity: int = 1, size=None, color=None) -> LineItem:
        price = Decimal(str(unit_price))
        item = LineItem(
            product_id=product_id,
            name=name,
            unit_price=price,
            quantity=quantity,
            size=size,
            color=color,
            line_subtotal=price * quantity,
        )
        self.items.append(item)
        return item

    async def snapshot(self) -> CartSnapshot:
        if self.total_amount is not None:
            total = self.total_amount
        else:
            total = sum((item.subtotal for item in self.items), Decimal("0"))
        return CartSnapshot(items=tuple(self.items), total_amount=total)

    async def clear(self) -> None:
        self.items = []
        self.total_amount = None
        self.clear_count += 1

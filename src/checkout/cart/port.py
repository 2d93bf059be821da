"""Cart collaborator port.

Checkout only reads a snapshot of the cart and, once a payment has been
captured, asks for it to be cleared. Adapters:
- InMemoryCart for development and testing
- HttpCart for the backend cart API
"""

from abc import ABC, abstractmethod

from checkout.cart.snapshot import CartSnapshot


class CartSource(ABC):
    @abstractmethod
    async def snapshot(self) -> CartSnapshot:
        """Return the current cart contents."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Empty the cart after a successful payment."""
        ...

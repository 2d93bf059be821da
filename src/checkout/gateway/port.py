"""Payment gateway port (abstract interface).

Defines the contract checkout needs from a payment gateway. This enables
swapping between StripeGateway (real credentials) and SimulatedGateway
(development without credentials) at composition time, without changing
the state machine or the confirmation handler.
"""

from abc import ABC, abstractmethod
from enum import Enum


class IntentStatus(Enum):
    SUCCEEDED = "succeeded"
    PROCESSING = "processing"
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: str | None) -> "IntentStatus":
        """Map a gateway status string onto the statuses checkout acts on.

        Anything that is neither a success nor still processing is a failure
        from checkout's point of view (``canceled``, ``requires_action`` left
        incomplete, unknown values).
        """
        try:
            return cls(value)
        except ValueError:
            return cls.FAILED


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    mode: str = "live"

    @property
    def is_simulated(self) -> bool:
        return self.mode == "simulated"

    @abstractmethod
    async def create_payment_intent(self, order_id: str) -> str:
        """Create an intent for the order's current total and return its client secret."""
        ...

    @abstractmethod
    async def retrieve_intent_status(self, client_secret: str) -> IntentStatus:
        """Read the intent's status once. No polling."""
        ...

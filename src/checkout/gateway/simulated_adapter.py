"""Simulated payment gateway for development without gateway credentials.

No external calls are made. Intents are issued locally and report
``succeeded`` by default, so a checkout completes through the normal
confirmation path, which marks the order paid. Status can be configured at
runtime to exercise the processing and failure paths.

Only selected by ``build_gateway`` when no usable key is configured outside
production.
"""

from uuid import uuid4

from checkout.errors import PaymentInitError, PaymentStatusError
from checkout.gateway.port import IntentStatus, PaymentGateway


class SimulatedGateway(PaymentGateway):
    mode = "simulated"

    def __init__(self) -> None:
        self.status: IntentStatus = IntentStatus.SUCCEEDED
        self.fail_create: str | None = None
        self.fail_status: str | None = None
        self.issued: dict[str, str] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        status: IntentStatus = IntentStatus.SUCCEEDED,
        fail_create: str | None = None,
        fail_status: str | None = None,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.status = status
        self.fail_create = fail_create
        self.fail_status = fail_status

    async def create_payment_intent(self, order_id: str) -> str:
        self.calls.append({"method": "create_payment_intent", "order_id": order_id})
        if self.fail_create:
            raise PaymentInitError(self.fail_create)

        client_secret = f"sim_{uuid4().hex[:16]}_secret_dev"
        self.issued[client_secret] = order_id
        return client_secret

    async def retrieve_intent_status(self, client_secret: str) -> IntentStatus:
        self.calls.append({"method": "retrieve_intent_status", "client_secret": client_secret})
        if self.fail_status:
            raise PaymentStatusError(self.fail_status)
        if client_secret not in self.issued:
            return IntentStatus.FAILED
        return self.status

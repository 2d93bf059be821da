from decimal import Decimal

import pytest
from checkout.auth import Identity
from checkout.cart.memory_adapter import InMemoryCart
from checkout.confirmation import ConfirmationHandler
from checkout.gateway.simulated_adapter import SimulatedGateway
from checkout.machine import CheckoutStateMachine
from checkout.orders.memory_adapter import InMemoryOrderService
from checkout.pricing.settings import PricingSettings
from protean.integrations.pytest import DomainFixture

VALID_SHIPPING = {
    "first_name": "Jane",
    "last_name": "O'Brien",
    "email": "jane@example.com",
    "address": "12 Market Street",
    "city": "Portland",
    "state": "OR",
    "zip_code": "97201",
    "phone": "(503) 555-0100",
}


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()


@pytest.fixture()
def valid_shipping():
    return dict(VALID_SHIPPING)


@pytest.fixture()
def identity():
    return Identity(user_id="cust-001", email="jane@example.com")


@pytest.fixture()
def cart():
    """Two lines totalling $45.00."""
    cart = InMemoryCart()
    cart.add("prod-001", "Linen Shirt", "30.00", size="M", color="White")
    cart.add("prod-002", "Canvas Tote", "7.50", quantity=2)
    return cart


@pytest.fixture()
def pricing():
    return PricingSettings(flat_rate=Decimal("4.99"), free_threshold=Decimal("50"), tax_rate=Decimal("8"))


@pytest.fixture()
def orders():
    return InMemoryOrderService()


@pytest.fixture()
def gateway():
    return SimulatedGateway()


@pytest.fixture()
def machine(orders, gateway, cart, pricing):
    return CheckoutStateMachine(orders, gateway, cart, pricing)


@pytest.fixture()
def handler(orders, gateway, cart):
    return ConfirmationHandler(orders, gateway, cart)

"""Request-scoped dependencies for the Checkout API.

Authentication is a black box upstream of this service: the gateway in front
of it forwards the caller's identity as ``X-User-*`` headers together with
the caller's bearer token. The token is kept in a context variable so the
shared backend client can forward it on every call made for this request.

All collaborators are built once per process by ``get_services``; tests
replace it through ``app.dependency_overrides``.
"""

from dataclasses import dataclass
from functools import lru_cache

import httpx
from fastapi import Header, HTTPException

from checkout.auth import BearerTokenAuth, Identity, request_token
from checkout.cart.http_adapter import HttpCart
from checkout.cart.port import CartSource
from checkout.config import get_settings
from checkout.confirmation import ConfirmationHandler
from checkout.gateway import build_gateway
from checkout.machine import CheckoutStateMachine
from checkout.orders.http_adapter import HttpOrderService
from checkout.orders.port import OrderService
from checkout.pricing.settings import PricingSettings


@dataclass
class CheckoutServices:
    machine: CheckoutStateMachine
    confirmation: ConfirmationHandler
    orders: OrderService
    cart: CartSource
    backend: httpx.AsyncClient | None = None


@lru_cache
def get_services() -> CheckoutServices:
    settings = get_settings()
    backend = httpx.AsyncClient(
        base_url=settings.backend_url,
        timeout=settings.request_timeout,
        auth=BearerTokenAuth(request_token.get),
    )
    orders = HttpOrderService(backend)
    cart = HttpCart(backend)
    gateway = build_gateway(settings, backend)
    return CheckoutServices(
        machine=CheckoutStateMachine(orders, gateway, cart, PricingSettings.from_config(settings)),
        confirmation=ConfirmationHandler(orders, gateway, cart),
        orders=orders,
        cart=cart,
        backend=backend,
    )


async def get_identity(
    authorization: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_user_verified: str | None = Header(default=None),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Please sign in to check out.")

    if authorization and authorization.lower().startswith("bearer "):
        request_token.set(authorization[7:].strip())
    else:
        request_token.set(None)

    return Identity(
        user_id=x_user_id,
        email=x_user_email,
        is_verified=(x_user_verified or "true").lower() not in ("false", "0", "no"),
    )

"""FastAPI routes for the Checkout domain: sessions, payment return and orders."""

from fastapi import APIRouter, Depends, HTTPException

from checkout.api.dependencies import CheckoutServices, get_identity, get_services
from checkout.api.schemas import (
    ConfirmationResponse,
    CostsSchema,
    OrderResponse,
    PaymentReturnRequest,
    SelectShippingMethodRequest,
    SessionResponse,
    SessionViewResponse,
    ShippingDetailsSchema,
    StatusResponse,
    StepResponse,
    UpdateShippingRequest,
)
from checkout.auth import Identity
from checkout.confirmation import ConfirmationOutcome, ReturnContext
from checkout.errors import (
    CheckoutBusyError,
    CheckoutError,
    CheckoutNotAllowedError,
    OrderNotFoundError,
    OrderServiceError,
    PaymentGatewayError,
)
from checkout.machine import StepResult
from checkout.orders.port import Order
from checkout.session.session import CheckoutSession

checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _http_error(exc: CheckoutError) -> HTTPException:
    if isinstance(exc, CheckoutNotAllowedError):
        status_code = 403
    elif isinstance(exc, CheckoutBusyError):
        status_code = 409
    elif isinstance(exc, OrderNotFoundError):
        status_code = 404
    elif isinstance(exc, OrderServiceError):
        status_code = exc.status_code if exc.status_code and exc.status_code < 500 else 502
    elif isinstance(exc, PaymentGatewayError):
        status_code = 502
    else:
        status_code = 400
    return HTTPException(status_code=status_code, detail=exc.message)


def _owned_session(services: CheckoutServices, session_id: str, identity: Identity) -> CheckoutSession:
    session = services.machine.get(session_id)
    if str(session.customer_id) != str(identity.user_id):
        raise HTTPException(status_code=404, detail="Checkout session not found")
    return session


def _session_response(services: CheckoutServices, session: CheckoutSession) -> SessionResponse:
    return SessionResponse(
        session_id=str(session.id),
        customer_id=str(session.customer_id),
        step=session.step,
        status=session.status,
        shipping_method=session.shipping_method,
        shipping=ShippingDetailsSchema(**session.shipping_details.to_payload()),
        order_id=session.order_id,
        client_secret=session.client_secret,
        last_error=session.last_error,
        busy=services.machine.is_busy(session.id),
        gateway_mode=services.machine.gateway.mode,
    )


def _step_response(services: CheckoutServices, result: StepResult) -> StepResponse:
    return StepResponse(
        session=_session_response(services, result.session),
        advanced=result.advanced,
        field_errors=result.field_errors,
        error=result.error,
    )


def _confirmation_response(outcome: ConfirmationOutcome) -> ConfirmationResponse:
    return ConfirmationResponse(
        status=outcome.status.value,
        message=outcome.message,
        order_id=outcome.order_id,
        session_id=outcome.session_id,
        cart_cleared=outcome.cart_cleared,
        needs_support=outcome.needs_support,
    )


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=order.id,
        status=order.status.value,
        payment_status=order.payment_status.value if order.payment_status else None,
        order_number=order.order_number,
        total=float(order.total) if order.total is not None else None,
        shipping=float(order.shipping) if order.shipping is not None else None,
        cancellable=order.is_cancellable,
    )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------
@checkout_router.post("/sessions", status_code=201, response_model=SessionResponse)
async def start_checkout(
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> SessionResponse:
    """Open a checkout for the caller's current cart."""
    try:
        session = await services.machine.start(identity)
    except CheckoutError as exc:
        raise _http_error(exc) from exc
    return _session_response(services, session)


@checkout_router.get("/sessions/{session_id}", response_model=SessionViewResponse)
async def view_checkout(
    session_id: str,
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> SessionViewResponse:
    """Session state together with the current cost summary."""
    session = _owned_session(services, session_id, identity)
    try:
        costs = await services.machine.summary(session_id)
    except CheckoutError as exc:
        raise _http_error(exc) from exc
    return SessionViewResponse(
        session=_session_response(services, session),
        costs=CostsSchema(**costs.to_payload()),
    )


@checkout_router.put("/sessions/{session_id}/shipping", response_model=StepResponse)
async def update_shipping(
    session_id: str,
    body: UpdateShippingRequest,
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> StepResponse:
    _owned_session(services, session_id, identity)
    try:
        result = await services.machine.update_shipping(session_id, body.model_dump(exclude_unset=True))
    except CheckoutBusyError as exc:
        raise _http_error(exc) from exc
    return _step_response(services, result)


@checkout_router.put("/sessions/{session_id}/shipping-method", response_model=StepResponse)
async def select_shipping_method(
    session_id: str,
    body: SelectShippingMethodRequest,
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> StepResponse:
    _owned_session(services, session_id, identity)
    try:
        result = await services.machine.select_shipping_method(session_id, body.shipping_method)
    except CheckoutBusyError as exc:
        raise _http_error(exc) from exc
    return _step_response(services, result)


@checkout_router.post("/sessions/{session_id}/payment", response_model=StepResponse)
async def proceed_to_payment(
    session_id: str,
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> StepResponse:
    """Validate shipping, create the order on first use and issue a payment intent."""
    _owned_session(services, session_id, identity)
    try:
        result = await services.machine.proceed_to_payment(session_id)
    except CheckoutBusyError as exc:
        raise _http_error(exc) from exc
    return _step_response(services, result)


@checkout_router.post("/sessions/{session_id}/payment/retry", response_model=StepResponse)
async def retry_payment(
    session_id: str,
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> StepResponse:
    _owned_session(services, session_id, identity)
    try:
        result = await services.machine.retry_payment(session_id)
    except CheckoutBusyError as exc:
        raise _http_error(exc) from exc
    return _step_response(services, result)


@checkout_router.post("/sessions/{session_id}/payment/check", response_model=ConfirmationResponse)
async def check_payment(
    session_id: str,
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> ConfirmationResponse:
    """Ask the gateway again about a payment that was still processing."""
    _owned_session(services, session_id, identity)
    try:
        outcome = await services.confirmation.recheck(session_id)
    except CheckoutError as exc:
        raise _http_error(exc) from exc
    return _confirmation_response(outcome)


@checkout_router.post("/sessions/{session_id}/back", response_model=StepResponse)
async def back_to_shipping(
    session_id: str,
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> StepResponse:
    _owned_session(services, session_id, identity)
    try:
        result = await services.machine.back_to_shipping(session_id)
    except CheckoutBusyError as exc:
        raise _http_error(exc) from exc
    return _step_response(services, result)


@checkout_router.delete("/sessions/{session_id}", response_model=StatusResponse)
async def abandon_checkout(
    session_id: str,
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> StatusResponse:
    _owned_session(services, session_id, identity)
    try:
        await services.machine.abandon(session_id)
    except CheckoutBusyError as exc:
        raise _http_error(exc) from exc
    return StatusResponse(status="abandoned")


# ---------------------------------------------------------------------------
# Payment return
# ---------------------------------------------------------------------------
@checkout_router.post("/return", response_model=ConfirmationResponse)
async def payment_return(
    body: PaymentReturnRequest,
    identity: Identity = Depends(get_identity),
    services: CheckoutServices = Depends(get_services),
) -> ConfirmationResponse:
    """Reconcile the gateway's verdict with the order after the payment UI returns."""
    outcome = await services.confirmation.confirm(
        ReturnContext(
            client_secret=body.client_secret,
            order_id=body.order_id,
            customer_id=str(identity.user_id),
        )
    )
    return _confirmation_response(outcome)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@checkout_router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    identity: Identity = Depends(get_identity),  # noqa: ARG001
    services: CheckoutServices = Depends(get_services),
) -> OrderResponse:
    try:
        order = await services.orders.get_order(order_id)
    except CheckoutError as exc:
        raise _http_error(exc) from exc
    return _order_response(order)


@checkout_router.patch("/orders/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(
    order_id: str,
    identity: Identity = Depends(get_identity),  # noqa: ARG001
    services: CheckoutServices = Depends(get_services),
) -> StatusResponse:
    try:
        await services.orders.cancel_order(order_id)
    except CheckoutError as exc:
        raise _http_error(exc) from exc
    return StatusResponse(status="cancelled")

"""Pydantic request/response schemas for the Checkout API.

These are external contracts (anti-corruption layer), separate from the
CheckoutSession aggregate and the orchestration results.
"""

from pydantic import BaseModel, Field

from checkout.shipping.details import ShippingMethod


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingDetailsSchema(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    phone: str = ""


class CostsSchema(BaseModel):
    subtotal: float
    shipping: float
    tax: float
    total: float


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class UpdateShippingRequest(BaseModel):
    """Only the fields present in the body are changed."""

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=254)
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=50)
    zip_code: str | None = Field(default=None, max_length=20)
    phone: str | None = Field(default=None, max_length=50)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "first_name": "Jane",
                    "last_name": "O'Brien",
                    "address": "12 Market Street",
                    "city": "Portland",
                    "state": "OR",
                    "zip_code": "97201",
                    "phone": "(503) 555-0100",
                }
            ]
        }
    }


class SelectShippingMethodRequest(BaseModel):
    shipping_method: ShippingMethod


class PaymentReturnRequest(BaseModel):
    """What the gateway's payment UI hands back on redirect or completion."""

    client_secret: str | None = None
    order_id: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class SessionResponse(BaseModel):
    session_id: str
    customer_id: str
    step: str
    status: str
    shipping_method: str
    shipping: ShippingDetailsSchema
    order_id: str | None = None
    client_secret: str | None = None
    last_error: str | None = None
    busy: bool = False
    gateway_mode: str


class SessionViewResponse(BaseModel):
    session: SessionResponse
    costs: CostsSchema


class StepResponse(BaseModel):
    session: SessionResponse
    advanced: bool
    field_errors: dict[str, str] = {}
    error: str | None = None


class ConfirmationResponse(BaseModel):
    status: str
    message: str
    order_id: str | None = None
    session_id: str | None = None
    cart_cleared: bool
    needs_support: bool


class OrderResponse(BaseModel):
    order_id: str
    status: str
    payment_status: str | None = None
    order_number: str | None = None
    total: float | None = None
    shipping: float | None = None
    cancellable: bool


class StatusResponse(BaseModel):
    status: str

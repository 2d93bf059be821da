"""Integration tests for Checkout API endpoints via TestClient."""

import pytest
from checkout.api.dependencies import CheckoutServices, get_services
from checkout.api.routes import checkout_router
from checkout.gateway.port import IntentStatus
from checkout.orders.port import OrderStatus
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.integrations.fastapi import register_exception_handlers

HEADERS = {"X-User-Id": "cust-api-001", "X-User-Email": "jane@example.com", "Authorization": "Bearer token-abc"}


@pytest.fixture()
def services(machine, handler, orders, cart):
    return CheckoutServices(machine=machine, confirmation=handler, orders=orders, cart=cart)


@pytest.fixture()
def client(services):
    app = FastAPI()
    app.include_router(checkout_router)
    register_exception_handlers(app)
    app.dependency_overrides[get_services] = lambda: services
    return TestClient(app)


def _start(client):
    response = client.post("/checkout/sessions", headers=HEADERS)
    assert response.status_code == 201
    return response.json()["session_id"]


def _ready(client, valid_shipping):
    session_id = _start(client)
    response = client.put(f"/checkout/sessions/{session_id}/shipping", json=valid_shipping, headers=HEADERS)
    assert response.status_code == 200
    return session_id


class TestStartCheckoutAPI:
    def test_start_returns_201(self, client):
        response = client.post("/checkout/sessions", headers=HEADERS)
        assert response.status_code == 201
        body = response.json()
        assert body["step"] == "Shipping"
        assert body["status"] == "Open"
        assert body["shipping"]["email"] == "jane@example.com"
        assert body["gateway_mode"] == "simulated"

    def test_anonymous_caller_is_rejected(self, client):
        response = client.post("/checkout/sessions")
        assert response.status_code == 401

    def test_unverified_caller_is_forbidden(self, client):
        response = client.post("/checkout/sessions", headers={**HEADERS, "X-User-Verified": "false"})
        assert response.status_code == 403

    def test_empty_cart_is_forbidden(self, client, cart):
        cart.items = []
        response = client.post("/checkout/sessions", headers=HEADERS)
        assert response.status_code == 403
        assert response.json()["detail"] == "Your cart is empty."


class TestSessionAPI:
    def test_view_includes_costs(self, client):
        session_id = _start(client)
        response = client.get(f"/checkout/sessions/{session_id}", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["costs"] == {"subtotal": 45.0, "shipping": 4.99, "tax": 3.6, "total": 53.59}

    def test_other_customers_cannot_see_session(self, client):
        session_id = _start(client)
        response = client.get(f"/checkout/sessions/{session_id}", headers={"X-User-Id": "cust-other"})
        assert response.status_code == 404

    def test_unknown_session_returns_404(self, client):
        response = client.get("/checkout/sessions/no-such-session", headers=HEADERS)
        assert response.status_code == 404

    def test_partial_shipping_update(self, client):
        session_id = _start(client)
        response = client.put(f"/checkout/sessions/{session_id}/shipping", json={"city": "Portland"}, headers=HEADERS)
        assert response.status_code == 200
        shipping = response.json()["session"]["shipping"]
        assert shipping["city"] == "Portland"
        assert shipping["email"] == "jane@example.com"

    def test_select_express_shipping(self, client):
        session_id = _start(client)
        response = client.put(
            f"/checkout/sessions/{session_id}/shipping-method",
            json={"shipping_method": "express"},
            headers=HEADERS,
        )
        assert response.status_code == 200
        assert response.json()["session"]["shipping_method"] == "express"

    def test_unknown_shipping_method_is_422(self, client):
        session_id = _start(client)
        response = client.put(
            f"/checkout/sessions/{session_id}/shipping-method",
            json={"shipping_method": "teleport"},
            headers=HEADERS,
        )
        assert response.status_code == 422

    def test_edits_while_busy_are_409(self, client, machine, monkeypatch):
        session_id = _start(client)
        monkeypatch.setattr(machine, "is_busy", lambda _session_id: True)

        method = client.put(
            f"/checkout/sessions/{session_id}/shipping-method",
            json={"shipping_method": "express"},
            headers=HEADERS,
        )
        fields = client.put(f"/checkout/sessions/{session_id}/shipping", json={"city": "Salem"}, headers=HEADERS)
        abandon = client.delete(f"/checkout/sessions/{session_id}", headers=HEADERS)

        assert method.status_code == fields.status_code == abandon.status_code == 409
        monkeypatch.undo()
        view = client.get(f"/checkout/sessions/{session_id}", headers=HEADERS).json()["session"]
        assert view["shipping_method"] == "standard"
        assert view["status"] == "Open"


class TestPaymentAPI:
    def test_invalid_shipping_reports_every_field(self, client):
        session_id = _start(client)
        response = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS)
        assert response.status_code == 200
        body = response.json()
        assert body["advanced"] is False
        assert {"first_name", "city", "state", "zip_code"} <= set(body["field_errors"])
        assert body["session"]["last_error"] == body["error"]

    def test_proceed_twice_creates_one_order(self, client, valid_shipping, orders):
        session_id = _ready(client, valid_shipping)
        first = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS).json()
        second = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS).json()

        assert first["advanced"] is True
        assert first["session"]["step"] == "Payment"
        assert second["session"]["order_id"] == first["session"]["order_id"]
        assert len(orders.calls_to("create_order")) == 1

    def test_back_keeps_order(self, client, valid_shipping):
        session_id = _ready(client, valid_shipping)
        paying = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS).json()
        response = client.post(f"/checkout/sessions/{session_id}/back", headers=HEADERS)
        assert response.status_code == 200
        session = response.json()["session"]
        assert session["step"] == "Shipping"
        assert session["order_id"] == paying["session"]["order_id"]
        assert session["client_secret"] is None

    def test_back_from_shipping_is_400(self, client):
        session_id = _start(client)
        response = client.post(f"/checkout/sessions/{session_id}/back", headers=HEADERS)
        assert response.status_code == 400

    def test_abandon(self, client):
        session_id = _start(client)
        response = client.delete(f"/checkout/sessions/{session_id}", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["status"] == "abandoned"


class TestReturnAPI:
    def test_successful_return(self, client, valid_shipping, cart):
        session_id = _ready(client, valid_shipping)
        session = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS).json()["session"]

        response = client.post(
            "/checkout/return",
            json={"client_secret": session["client_secret"], "order_id": session["order_id"]},
            headers=HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "succeeded"
        assert body["message"] == "Payment Successful!"
        assert body["cart_cleared"] is True
        assert cart.clear_count == 1

    def test_return_by_another_customer_leaves_session_alone(self, client, valid_shipping, cart, orders):
        session_id = _ready(client, valid_shipping)
        session = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS).json()["session"]

        response = client.post(
            "/checkout/return",
            json={"client_secret": session["client_secret"], "order_id": session["order_id"]},
            headers={"X-User-Id": "cust-intruder"},
        )

        assert response.status_code == 200
        assert response.json()["session_id"] is None
        assert cart.clear_count == 0
        assert orders.calls_to("confirm_payment") == []
        view = client.get(f"/checkout/sessions/{session_id}", headers=HEADERS).json()["session"]
        assert view["status"] == "Open"
        assert view["client_secret"] == session["client_secret"]

    def test_return_without_secret(self, client):
        response = client.post("/checkout/return", json={"order_id": "ord-001"}, headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert response.json()["message"] == "Invalid payment session"

    def test_check_processing_payment(self, client, valid_shipping, gateway):
        session_id = _ready(client, valid_shipping)
        session = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS).json()["session"]
        gateway.configure(status=IntentStatus.PROCESSING)
        client.post(
            "/checkout/return",
            json={"client_secret": session["client_secret"], "order_id": session["order_id"]},
            headers=HEADERS,
        )

        gateway.configure(status=IntentStatus.SUCCEEDED)
        response = client.post(f"/checkout/sessions/{session_id}/payment/check", headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["status"] == "succeeded"


class TestOrderAPI:
    def test_get_order(self, client, valid_shipping):
        session_id = _ready(client, valid_shipping)
        order_id = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS).json()["session"]["order_id"]

        response = client.get(f"/checkout/orders/{order_id}", headers=HEADERS)
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["cancellable"] is True
        assert body["total"] == 53.59

    def test_cancel_pending_order(self, client, valid_shipping):
        session_id = _ready(client, valid_shipping)
        order_id = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS).json()["session"]["order_id"]
        response = client.patch(f"/checkout/orders/{order_id}/cancel", headers=HEADERS)
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_cancel_shipped_order_is_400(self, client, valid_shipping, orders):
        session_id = _ready(client, valid_shipping)
        order_id = client.post(f"/checkout/sessions/{session_id}/payment", headers=HEADERS).json()["session"]["order_id"]
        orders.advance(order_id, OrderStatus.CONFIRMED)
        orders.advance(order_id, OrderStatus.PROCESSING)
        orders.advance(order_id, OrderStatus.SHIPPED)

        response = client.patch(f"/checkout/orders/{order_id}/cancel", headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["detail"] == "Order cannot be cancelled at this stage."

    def test_unknown_order_is_404(self, client):
        response = client.get("/checkout/orders/ord-missing", headers=HEADERS)
        assert response.status_code == 404

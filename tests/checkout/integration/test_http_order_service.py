"""Tests for the backend order API adapter over a mocked transport."""

import json
from decimal import Decimal

import httpx
import pytest
from checkout.cart.snapshot import CartSnapshot, LineItem
from checkout.errors import (
    OrderCancellationError,
    OrderConfirmationError,
    OrderCreationError,
    OrderNotFoundError,
    OrderServiceError,
)
from checkout.orders.http_adapter import HttpOrderService
from checkout.orders.port import OrderStatus, PaymentStatus
from checkout.shipping.details import ShippingDetails, ShippingMethod


def _service(handler):
    client = httpx.AsyncClient(base_url="http://backend.test/api", transport=httpx.MockTransport(handler))
    return HttpOrderService(client)


async def _create(service):
    item = LineItem(product_id="prod-001", name="Shirt", unit_price=Decimal("45.00"), quantity=1, size="M")
    return await service.create_order(
        CartSnapshot(items=(item,), total_amount=Decimal("45.00")),
        ShippingDetails(first_name="Jane", last_name="Doe", zip_code="97201"),
        ShippingMethod.STANDARD,
        Decimal("4.99"),
        Decimal("53.59"),
    )


class TestCreateOrder:
    @pytest.mark.asyncio
    async def test_posts_payload_and_returns_id(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": "ord-123", "orderNumber": "ORD-1"})

        order_id = await _create(_service(handler))

        assert order_id == "ord-123"
        assert seen["method"] == "POST"
        assert seen["path"] == "/api/orders"
        assert seen["body"] == {
            "items": [{"productId": "prod-001", "quantity": 1, "price": 45.0, "size": "M", "color": None}],
            "shippingCost": 4.99,
            "totalAmount": 53.59,
            "shippingMethod": "standard",
            "shippingDetails": {
                "firstName": "Jane",
                "lastName": "Doe",
                "email": "",
                "address": "",
                "city": "",
                "state": "",
                "zipCode": "97201",
                "phone": "",
            },
        }

    @pytest.mark.asyncio
    async def test_backend_rejection_carries_message(self):
        service = _service(lambda request: httpx.Response(400, json={"message": "Insufficient stock for Shirt"}))
        with pytest.raises(OrderCreationError) as exc:
            await _create(service)
        assert exc.value.message == "Insufficient stock for Shirt"
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_id_is_a_creation_error(self):
        service = _service(lambda request: httpx.Response(201, json={"orderNumber": "ORD-1"}))
        with pytest.raises(OrderCreationError) as exc:
            await _create(service)
        assert "no order ID" in exc.value.message

    @pytest.mark.asyncio
    async def test_unreachable_backend(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(OrderCreationError) as exc:
            await _create(_service(handler))
        assert exc.value.message.startswith("Unable to reach the order service")


class TestConfirmAndCancel:
    @pytest.mark.asyncio
    async def test_confirm_payment_patches(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json={"message": "Payment confirmed"})

        await _service(handler).confirm_payment("ord-123")
        assert seen == [("PATCH", "/api/orders/ord-123/confirm-payment")]

    @pytest.mark.asyncio
    async def test_confirm_payment_failure(self):
        service = _service(lambda request: httpx.Response(500, json={"message": "Database unavailable"}))
        with pytest.raises(OrderConfirmationError) as exc:
            await service.confirm_payment("ord-123")
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    async def test_cancel_rejected_for_shipped_order(self):
        service = _service(
            lambda request: httpx.Response(400, json={"message": "Order cannot be cancelled at this stage"})
        )
        with pytest.raises(OrderCancellationError) as exc:
            await service.cancel_order("ord-123")
        assert exc.value.message == "Order cannot be cancelled at this stage"

    @pytest.mark.asyncio
    async def test_unknown_order(self):
        service = _service(lambda request: httpx.Response(404, json={"message": "Order not found"}))
        with pytest.raises(OrderNotFoundError):
            await service.cancel_order("ord-missing")


class TestGetOrder:
    @pytest.mark.asyncio
    async def test_reads_order(self):
        body = {
            "id": "ord-123",
            "orderNumber": "ORD-1",
            "status": "SHIPPED",
            "paymentStatus": "PAID",
            "total": 53.59,
            "shipping": 4.99,
            "items": [{"productId": "prod-001", "quantity": 1}],
        }
        order = await _service(lambda request: httpx.Response(200, json=body)).get_order("ord-123")

        assert order.status == OrderStatus.SHIPPED
        assert order.payment_status == PaymentStatus.PAID
        assert order.total == Decimal("53.59")
        assert order.is_cancellable is False

    @pytest.mark.asyncio
    async def test_unknown_status_is_reported(self):
        body = {"id": "ord-123", "status": "LOST_IN_SPACE"}
        with pytest.raises(OrderServiceError):
            await _service(lambda request: httpx.Response(200, json=body)).get_order("ord-123")

"""
API tests for /api/v1/orders
"""
from decimal import Decimal

import pytest

from marketplace.domain.order import OrderStatus
from marketplace.domain.product import BuyerClass


ADDRESS = {
    "street": "742 Evergreen Terrace",
    "city": "Springfield",
    "state": "OR",
    "postal_code": "97403",
    "country": "US",
}


@pytest.fixture
def cart(store):
    store.add_supplier("sup-1", commission_rate=Decimal("10"))
    store.add_product("p-1", retail="100.00", wholesale="80.00", stock=5)
    store.add_to_cart("buyer-1", "p-1", 2)
    return store


def as_operator(caller):
    caller.id = "admin-1"
    caller.buyer_class = BuyerClass.OPERATOR


class TestCheckout:

    def test_checkout_creates_order(self, client, cart):
        # Act
        response = client.post("/api/v1/orders/checkout", json={
            "items": [{"product_id": "p-1", "quantity": 2}],
            "shipping_address": ADDRESS,
        })

        # Assert
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["subtotal"] == 200.0
        assert body["data"]["platform_commission"] == 20.0
        assert body["data"]["items"][0]["supplier_amount"] == 180.0
        assert body["data"]["payment"]["payment_method"] == "card"
        assert cart.cart_for("buyer-1") == []

    def test_wholesale_caller_pays_wholesale(self, client, cart, caller):
        caller.buyer_class = BuyerClass.WHOLESALE

        response = client.post("/api/v1/orders/checkout", json={
            "items": [{"product_id": "p-1", "quantity": 2}],
            "shipping_address": ADDRESS,
        })

        assert response.json()["data"]["subtotal"] == 160.0

    def test_incomplete_address_is_422_with_field(self, client, cart):
        response = client.post("/api/v1/orders/checkout", json={
            "items": [{"product_id": "p-1", "quantity": 2}],
            "shipping_address": {**ADDRESS, "city": ""},
        })

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["field"] == "shipping_address.city"

    def test_stale_cart_is_409(self, client, cart):
        response = client.post("/api/v1/orders/checkout", json={
            "items": [{"product_id": "p-1", "quantity": 1}],
            "shipping_address": ADDRESS,
        })

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        assert cart.orders == {}


class TestOrderReads:

    def test_buyer_lists_only_own_orders(self, client, store):
        store.add_order(buyer_id="buyer-1")
        store.add_order(buyer_id="buyer-2")

        response = client.get("/api/v1/orders/", params={"buyer_id": "buyer-2"})

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["data"][0]["buyer_id"] == "buyer-1"

    def test_operator_lists_everything(self, client, store, caller):
        as_operator(caller)
        store.add_order(buyer_id="buyer-1")
        store.add_order(buyer_id="buyer-2", status=OrderStatus.SHIPPED)

        response = client.get("/api/v1/orders/", params={"status": "shipped"})

        body = response.json()
        assert body["total"] == 1
        assert body["data"][0]["status"] == "shipped"

    def test_other_buyers_order_is_404(self, client, store):
        order = store.add_order(buyer_id="buyer-2")

        response = client.get(f"/api/v1/orders/{order.id}")

        assert response.status_code == 404

    def test_unknown_order_is_404(self, client):
        response = client.get("/api/v1/orders/missing")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestTransitions:

    def test_buyer_cannot_advance(self, client, store):
        order = store.add_order()

        response = client.post(f"/api/v1/orders/{order.id}/advance")

        assert response.status_code == 403

    def test_operator_advances(self, client, store, caller):
        as_operator(caller)
        order = store.add_order()

        response = client.post(f"/api/v1/orders/{order.id}/advance")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "processing"

    def test_stale_expected_status_is_409(self, client, store, caller):
        as_operator(caller)
        order = store.add_order(status=OrderStatus.CONFIRMED)

        response = client.post(f"/api/v1/orders/{order.id}/advance", json={"expected_status": "pending"})

        assert response.status_code == 409

    def test_cancel_delivered_is_409_invalid_transition(self, client, store, caller):
        as_operator(caller)
        order = store.add_order(status=OrderStatus.DELIVERED)

        response = client.post(f"/api/v1/orders/{order.id}/cancel")

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_refund_cancelled(self, client, store, caller):
        as_operator(caller)
        order = store.add_order(status=OrderStatus.CANCELLED)

        response = client.post(f"/api/v1/orders/{order.id}/refund")

        assert response.json()["data"]["status"] == "refunded"

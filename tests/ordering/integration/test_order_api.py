"""Integration tests for the order and catalog endpoints."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean.utils.globals import current_domain
from storefront.api import catalog_router, order_router, register_error_handlers
from storefront.product.product import Product

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
BUYER = {"X-User-Id": "user-001"}
ADDRESS = {
    "first_name": "Awa",
    "last_name": "Ndiaye",
    "street": "12 Rue Carnot",
    "city": "Dakar",
    "country": "Senegal",
}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(catalog_router)
    app.include_router(order_router)
    register_error_handlers(app)
    return TestClient(app)


def _create_product(client, **overrides):
    body = {"name": "Wax Print Dress", "price": 10000.0, "stock": 5}
    body.update(overrides)
    response = client.post("/products", json=body, headers=ADMIN)
    assert response.status_code == 201
    return response.json()["id"]


def _order_body(product_id, quantity=1, **overrides):
    body = {
        "items": [{"product_id": product_id, "quantity": quantity}],
        "shipping_address": ADDRESS,
        "shipping_method": "standard_48h",
    }
    body.update(overrides)
    return body


class TestCatalogEndpoints:
    def test_add_product_requires_admin(self, client):
        response = client.post("/products", json={"name": "Boubou", "price": 1000.0}, headers=BUYER)
        assert response.status_code == 403

    def test_add_product_requires_identity(self, client):
        response = client.post("/products", json={"name": "Boubou", "price": 1000.0})
        assert response.status_code == 401

    def test_add_and_fetch_product(self, client):
        product_id = _create_product(client, variants=[{"name": "M", "size": "M", "price": 11000.0}])
        response = client.get(f"/products/{product_id}")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Wax Print Dress"
        assert data["rating"] == 0.0
        assert data["variants"][0]["price"] == 11000.0

    def test_missing_product_is_404(self, client):
        response = client.get("/products/ghost")
        assert response.status_code == 404
        assert response.json() == {"error": {"product_id": ["Product ghost not found"]}}

    def test_restock(self, client):
        product_id = _create_product(client, stock=0)
        response = client.post(f"/products/{product_id}/restock", json={"quantity": 4}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["stock"] == 4
        assert response.json()["status"] == "active"

    def test_create_coupon(self, client):
        now = datetime.now(UTC)
        response = client.post(
            "/coupons",
            json={
                "code": "tabaski",
                "discount_type": "fixed",
                "value": 500.0,
                "valid_from": (now - timedelta(days=1)).isoformat(),
                "valid_until": (now + timedelta(days=1)).isoformat(),
            },
            headers=ADMIN,
        )
        assert response.status_code == 201
        assert response.json()["id"]


class TestPlaceOrderEndpoint:
    def test_place_order(self, client):
        product_id = _create_product(client)

        response = client.post("/orders", json=_order_body(product_id, quantity=2), headers=BUYER)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["user_id"] == "user-001"
        assert data["pricing"]["subtotal"] == 20000.0
        assert data["pricing"]["total"] == 24600.0
        assert data["billing_address"]["city"] == "Dakar"
        assert current_domain.repository_for(Product).stock_level(product_id) == 3

    def test_guest_order(self, client):
        product_id = _create_product(client)
        response = client.post("/orders", json=_order_body(product_id, guest_email="guest@example.com"))
        assert response.status_code == 201
        assert response.json()["guest_email"] == "guest@example.com"
        assert response.json()["user_id"] is None

    def test_guest_order_without_email_is_400(self, client):
        product_id = _create_product(client)
        response = client.post("/orders", json=_order_body(product_id))
        assert response.status_code == 400

    def test_insufficient_stock_is_400(self, client):
        product_id = _create_product(client, stock=1)
        response = client.post("/orders", json=_order_body(product_id, quantity=3), headers=BUYER)
        assert response.status_code == 400
        assert "stock" in str(response.json())

    def test_unknown_product_is_404(self, client):
        response = client.post("/orders", json=_order_body("ghost"), headers=BUYER)
        assert response.status_code == 404
        assert response.json()["error"]["product_id"] == ["Product ghost not found"]

    def test_unknown_coupon_is_400(self, client):
        product_id = _create_product(client)
        response = client.post("/orders", json=_order_body(product_id, coupon_code="NOPE"), headers=BUYER)
        assert response.status_code == 400
        assert "coupon_code" in str(response.json())

    def test_lost_stock_races_are_409(self, client, monkeypatch):
        product_id = _create_product(client, stock=5)
        repo_cls = type(current_domain.repository_for(Product))
        monkeypatch.setattr(repo_cls, "_swap_stock", lambda self, product, new_stock: False)

        response = client.post("/orders", json=_order_body(product_id), headers=BUYER)

        assert response.status_code == 409
        assert "retry" in response.json()["error"]


class TestReadOrderEndpoints:
    def _place(self, client, headers=BUYER):
        product_id = _create_product(client)
        return client.post("/orders", json=_order_body(product_id), headers=headers).json()["id"]

    def test_owner_reads_order(self, client):
        order_id = self._place(client)
        response = client.get(f"/orders/{order_id}", headers=BUYER)
        assert response.status_code == 200
        assert response.json()["id"] == order_id

    def test_other_user_is_403(self, client):
        order_id = self._place(client)
        response = client.get(f"/orders/{order_id}", headers={"X-User-Id": "user-002"})
        assert response.status_code == 403

    def test_admin_reads_any_order(self, client):
        order_id = self._place(client)
        assert client.get(f"/orders/{order_id}", headers=ADMIN).status_code == 200

    def test_anonymous_read_is_401(self, client):
        order_id = self._place(client)
        assert client.get(f"/orders/{order_id}").status_code == 401

    def test_my_orders(self, client):
        order_id = self._place(client)
        response = client.get("/orders/mine", headers=BUYER)
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [order_id]

    def test_admin_list(self, client):
        self._place(client)
        response = client.get("/orders", params={"page": 1, "limit": 10}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert response.json()["pagination"]["pages"] == 1

    def test_list_requires_admin(self, client):
        assert client.get("/orders", headers=BUYER).status_code == 403

    def test_missing_order_is_404(self, client):
        response = client.get("/orders/ghost", headers=ADMIN)
        assert response.status_code == 404
        assert response.json() == {"error": {"order_id": ["Order ghost not found"]}}


class TestUpdateOrderStatusEndpoint:
    def test_admin_updates_status(self, client):
        product_id = _create_product(client)
        order_id = client.post("/orders", json=_order_body(product_id), headers=BUYER).json()["id"]

        response = client.put(
            f"/orders/{order_id}/status",
            json={"status": "confirmed", "payment_status": "paid"},
            headers=ADMIN,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["payment_status"] == "paid"

    def test_invalid_transition_is_400(self, client):
        product_id = _create_product(client)
        order_id = client.post("/orders", json=_order_body(product_id), headers=BUYER).json()["id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "delivered"}, headers=ADMIN)
        assert response.status_code == 400

    def test_buyer_cannot_update_status(self, client):
        product_id = _create_product(client)
        order_id = client.post("/orders", json=_order_body(product_id), headers=BUYER).json()["id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "confirmed"}, headers=BUYER)
        assert response.status_code == 403

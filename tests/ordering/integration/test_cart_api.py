"""Integration tests for the cart endpoints via TestClient."""

import os
import subprocess
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api.cart import router
from storefront.api.errors import register_error_handlers

CUSTOMER = {"X-Customer-Id": "cust-001"}
SRC = Path(__file__).resolve().parents[3] / "src"


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    register_error_handlers(app)
    return TestClient(app)


class TestCartEndpoints:
    def test_empty_cart(self, client):
        data = client.get("/api/v1/cart", headers=CUSTOMER).json()["data"]
        assert data["items"] == []
        assert data["totals"]["grandTotal"] == 0.0

    def test_cart_requires_a_customer(self, client):
        assert client.get("/api/v1/cart").status_code == 401

    def test_add_update_remove(self, client, create_product):
        product_id = create_product(base_price=20.0)

        added = client.post("/api/v1/cart/items", json={"productId": product_id, "quantity": 2}, headers=CUSTOMER)
        assert added.status_code == 201
        item = added.json()["data"]["items"][0]
        assert item["lineTotal"] == 40.0

        updated = client.put(f"/api/v1/cart/items/{item['id']}", json={"quantity": 3}, headers=CUSTOMER)
        totals = updated.json()["data"]["totals"]
        assert totals["subtotal"] == 60.0
        assert totals["shipping"] == 0.0
        assert totals["tax"] == 4.8

        removed = client.delete(f"/api/v1/cart/items/{item['id']}", headers=CUSTOMER)
        assert removed.json()["data"]["items"] == []

    def test_insufficient_stock_is_400(self, client, create_product):
        product_id = create_product(quantity=1)
        response = client.post("/api/v1/cart/items", json={"productId": product_id, "quantity": 2}, headers=CUSTOMER)
        assert response.status_code == 400

    def test_unknown_product_is_404(self, client):
        response = client.post("/api/v1/cart/items", json={"productId": "nope", "quantity": 1}, headers=CUSTOMER)
        assert response.status_code == 404

    def test_coupon_round_trip(self, client, create_product, create_coupon):
        create_coupon(code="TENOFF", value=10)
        product_id = create_product(base_price=30.0)
        client.post("/api/v1/cart/items", json={"productId": product_id, "quantity": 2}, headers=CUSTOMER)

        applied = client.post("/api/v1/cart/coupon", json={"couponCode": "tenoff"}, headers=CUSTOMER)
        assert applied.json()["data"]["couponCode"] == "TENOFF"
        assert applied.json()["data"]["totals"]["discount"] == 10.0

        removed = client.delete("/api/v1/cart/coupon", headers=CUSTOMER)
        assert removed.json()["data"]["couponCode"] is None

    def test_clear_cart(self, client, create_product):
        client.post("/api/v1/cart/items", json={"productId": create_product(), "quantity": 1}, headers=CUSTOMER)

        response = client.delete("/api/v1/cart", headers=CUSTOMER)
        assert response.json() == {"success": True, "message": "Cart cleared"}
        assert client.get("/api/v1/cart", headers=CUSTOMER).json()["data"]["items"] == []


class TestRouterModuleLoading:
    def test_router_module_loads_before_its_package(self):
        """Domain traversal may load a router file by path ahead of ``storefront.api``."""
        script = (
            "import importlib.util, sys\n"
            f"spec = importlib.util.spec_from_file_location('storefront.api.cart', {str(SRC / 'storefront/api/cart.py')!r})\n"
            "module = importlib.util.module_from_spec(spec)\n"
            "sys.modules[spec.name] = module\n"
            "spec.loader.exec_module(module)\n"
            "assert module.router.prefix == '/cart'\n"
        )
        env = {**os.environ, "PYTHONPATH": str(SRC)}

        result = subprocess.run([sys.executable, "-c", script], env=env, capture_output=True, text=True)

        assert result.returncode == 0, result.stderr

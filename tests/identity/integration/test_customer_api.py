"""Integration tests for the customer endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain

from storefront.api.customers import router
from storefront.api.errors import register_error_handlers
from storefront.identity.customer.customer import Customer

CUSTOMER = {"X-Customer-Id": "cust-001"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    register_error_handlers(app)
    return TestClient(app)


def _register(client, headers=CUSTOMER, email="jane@example.com"):
    return client.post(
        "/api/v1/customers", json={"email": email, "firstName": "Jane", "lastName": "Doe"}, headers=headers
    )


class TestCustomerEndpoints:
    def test_register_uses_the_caller_id(self, client):
        response = _register(client)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["id"] == "cust-001"
        assert data["firstName"] == "Jane"
        assert data["loyalty"] == {"points": 0, "tier": "bronze", "history": []}

    def test_duplicate_email_is_400(self, client):
        _register(client)
        assert _register(client, headers={"X-Customer-Id": "cust-002"}).status_code == 400

    def test_profile_of_unregistered_caller_is_404(self, client):
        assert client.get("/api/v1/customers/me", headers=CUSTOMER).status_code == 404

    def test_redeem_points(self, client):
        _register(client)
        repo = current_domain.repository_for(Customer)
        customer = repo.get("cust-001")
        customer.award_points(250)
        repo.add(customer)

        response = client.post("/api/v1/customers/me/loyalty/redeem", json={"points": 50}, headers=CUSTOMER)
        assert response.json()["data"] == {"loyaltyPoints": 200}

        profile = client.get("/api/v1/customers/me", headers=CUSTOMER).json()["data"]
        assert profile["loyalty"]["history"][0]["points"] == -50

    def test_redeeming_too_many_points_is_400(self, client):
        _register(client)
        response = client.post("/api/v1/customers/me/loyalty/redeem", json={"points": 10}, headers=CUSTOMER)
        assert response.status_code == 400

import json
import os
from pathlib import Path
from uuid import uuid4

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Fetch and activate the domain by pushing the associated domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from storefront.domain import storefront

    storefront.init()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    from storefront.notifications.channel import reset_email_sender
    from storefront.payments.gateway import reset_gateways

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()

    reset_gateways()
    reset_email_sender()


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
@pytest.fixture()
def stripe_gateway():
    from storefront.payments.gateway import GatewayName, get_gateway

    return get_gateway(GatewayName.STRIPE)


@pytest.fixture()
def paypal_gateway():
    from storefront.payments.gateway import GatewayName, get_gateway

    return get_gateway(GatewayName.PAYPAL)


@pytest.fixture()
def outbox():
    from storefront.notifications.channel import get_email_sender

    return get_email_sender()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
SHIPPING_ADDRESS = {
    "name": "Jane Doe",
    "street": "123 Elm Street",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "US",
}


@pytest.fixture()
def create_product():
    """Create an active product through the command and return its id."""
    from protean import current_domain

    from storefront.catalogue.product.creation import CreateProduct

    def _create(**overrides):
        suffix = uuid4().hex[:8]
        defaults = {
            "sku": f"SKU-{suffix}",
            "name": f"Product {suffix}",
            "base_price": 100.0,
            "quantity": 10,
            "activate": True,
        }
        defaults.update(overrides)
        return current_domain.process(CreateProduct(**defaults), asynchronous=False)

    return _create


@pytest.fixture()
def register_customer():
    from protean import current_domain

    from storefront.identity.customer.registration import RegisterCustomer

    def _register(customer_id="cust-001", email=None, first_name="Jane", last_name="Doe"):
        command = RegisterCustomer(
            customer_id=customer_id,
            email=email or f"{customer_id}@example.com",
            first_name=first_name,
            last_name=last_name,
        )
        return current_domain.process(command, asynchronous=False)

    return _register


@pytest.fixture()
def create_coupon():
    from protean import current_domain

    from storefront.coupons.management import CreateCoupon

    def _create(code="SAVE20", discount_type="fixed", value=20.0, **overrides):
        command = CreateCoupon(code=code, discount_type=discount_type, value=value, **overrides)
        return current_domain.process(command, asynchronous=False)

    return _create


@pytest.fixture()
def place_order():
    """Place an order for explicit lines; returns the handler's result dict."""
    from protean import current_domain

    from storefront.ordering.order.creation import PlaceOrder

    def _place(lines, customer_id="cust-001", payment_method="credit_card", coupon_code=None, **overrides):
        command = PlaceOrder(
            customer_id=customer_id,
            items=json.dumps(lines) if lines is not None else None,
            shipping_address=json.dumps(SHIPPING_ADDRESS),
            payment_method=payment_method,
            coupon_code=coupon_code,
            **overrides,
        )
        return current_domain.process(command, asynchronous=False)

    return _place

"""Cancelling and refunding orders."""

import json

import pytest
from protean import current_domain

from storefront.catalogue.product.product import Product
from storefront.exceptions import InvalidTransition, PaymentError, PermissionDenied
from storefront.ordering.order.cancellation import CancelOrder, RefundOrder
from storefront.ordering.order.fulfillment import (
    DeliverOrder,
    MarkOutForDelivery,
    MarkReadyForShipment,
    ShipOrder,
    StartProcessing,
)
from storefront.ordering.order.order import Order
from storefront.payments.webhook import receive_webhook


def _run(command):
    return current_domain.process(command, asynchronous=False)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _inventory(product_id):
    return current_domain.repository_for(Product).get(product_id).inventory


def _capture(gateway, order_id):
    order = _order(order_id)
    payload = json.dumps(
        {
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": order.payment_reference, "amount": round(order.pricing.grand_total * 100)}},
        }
    )
    return receive_webhook("stripe", payload, gateway.sign(payload))


@pytest.fixture()
def product_id(create_product):
    return create_product(base_price=40.0, quantity=5)


class TestCancelBeforePayment:
    def test_cancel_releases_reservation(self, product_id, place_order):
        order_id = place_order([{"product_id": product_id, "quantity": 2}])["order_id"]
        assert _inventory(product_id).reserved == 2

        _run(CancelOrder(order_id=order_id, requested_by="cust-001", reason="Changed my mind"))

        order = _order(order_id)
        assert order.status == "cancelled"
        assert order.cancellation_reason == "Changed my mind"
        assert order.cancelled_by == "customer"
        assert order.payment.status == "cancelled"
        assert _inventory(product_id).reserved == 0
        assert _inventory(product_id).quantity == 5

    def test_only_the_owner_can_cancel(self, product_id, place_order):
        order_id = place_order([{"product_id": product_id, "quantity": 1}])["order_id"]

        with pytest.raises(PermissionDenied):
            _run(CancelOrder(order_id=order_id, requested_by="cust-999"))
        assert _order(order_id).status == "pending"

    def test_admin_can_cancel_any_order(self, product_id, place_order):
        order_id = place_order([{"product_id": product_id, "quantity": 1}])["order_id"]

        _run(CancelOrder(order_id=order_id, requested_by="admin-1", is_admin=True))
        assert _order(order_id).cancelled_by == "admin"

    def test_cannot_cancel_twice(self, product_id, place_order):
        order_id = place_order([{"product_id": product_id, "quantity": 1}])["order_id"]
        _run(CancelOrder(order_id=order_id, requested_by="cust-001"))

        with pytest.raises(InvalidTransition):
            _run(CancelOrder(order_id=order_id, requested_by="cust-001"))
        assert _inventory(product_id).reserved == 0

    def test_cannot_cancel_after_shipping(self, product_id, place_order, stripe_gateway):
        order_id = place_order([{"product_id": product_id, "quantity": 1}])["order_id"]
        _capture(stripe_gateway, order_id)
        _run(StartProcessing(order_id=order_id))
        _run(MarkReadyForShipment(order_id=order_id))
        _run(ShipOrder(order_id=order_id))

        with pytest.raises(InvalidTransition):
            _run(CancelOrder(order_id=order_id, requested_by="cust-001"))

    def test_cancellation_notifies_customer(self, product_id, place_order, register_customer, outbox):
        register_customer("cust-001")
        order_id = place_order([{"product_id": product_id, "quantity": 1}])["order_id"]

        _run(CancelOrder(order_id=order_id, requested_by="cust-001"))
        assert "cancelled" in outbox.sent_emails[-1]["subject"]


class TestCancelAfterPayment:
    def test_captured_payment_is_refunded_and_stock_restocked(self, product_id, place_order, stripe_gateway):
        order_id = place_order([{"product_id": product_id, "quantity": 2}])["order_id"]
        _capture(stripe_gateway, order_id)
        assert _inventory(product_id).sold == 2

        _run(CancelOrder(order_id=order_id, requested_by="cust-001"))

        order = _order(order_id)
        assert order.payment.status == "refunded"
        assert order.payment.refund_id.startswith("re_fake_")
        assert stripe_gateway.calls[-1]["method"] == "refund"
        assert stripe_gateway.calls[-1]["amount"] == order.pricing.grand_total

        inventory = _inventory(product_id)
        assert inventory.quantity == 5
        assert inventory.sold == 0
        assert inventory.reserved == 0

    def test_failed_refund_keeps_order_open(self, product_id, place_order, stripe_gateway):
        order_id = place_order([{"product_id": product_id, "quantity": 1}])["order_id"]
        _capture(stripe_gateway, order_id)
        stripe_gateway.configure(should_succeed=False, failure_reason="Refund window closed")

        with pytest.raises(PaymentError):
            _run(CancelOrder(order_id=order_id, requested_by="cust-001"))
        assert _order(order_id).status == "confirmed"


class TestRefundOrder:
    def _delivered(self, place_order, stripe_gateway, product_id):
        order_id = place_order([{"product_id": product_id, "quantity": 1}])["order_id"]
        _capture(stripe_gateway, order_id)
        _run(StartProcessing(order_id=order_id))
        _run(MarkReadyForShipment(order_id=order_id))
        _run(ShipOrder(order_id=order_id))
        _run(MarkOutForDelivery(order_id=order_id))
        _run(DeliverOrder(order_id=order_id))
        return order_id

    def test_refund_delivered_order(self, product_id, place_order, stripe_gateway):
        order_id = self._delivered(place_order, stripe_gateway, product_id)

        _run(RefundOrder(order_id=order_id, reason="Damaged"))

        order = _order(order_id)
        assert order.status == "refunded"
        assert order.refunded_at is not None
        assert order.payment.status == "refunded"

    def test_cannot_refund_undelivered_order(self, product_id, place_order):
        order_id = place_order([{"product_id": product_id, "quantity": 1}])["order_id"]
        with pytest.raises(InvalidTransition):
            _run(RefundOrder(order_id=order_id))

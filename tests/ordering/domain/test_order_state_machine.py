"""Order lifecycle transitions and payment sub-record updates."""

import pytest
from protean.exceptions import ValidationError

from storefront.exceptions import InvalidTransition
from storefront.ordering.order.events import OrderCancelled, OrderShipped
from storefront.ordering.order.order import (
    Address,
    Order,
    OrderItem,
    OrderPricing,
    OrderStatus,
    PaymentStatus,
)


def _order(payment_method="credit_card"):
    return Order.place(
        customer_id="cust-001",
        items=[
            OrderItem(
                product_id="prod-001",
                sku="SKU-001",
                name="Widget",
                quantity=2,
                unit_price=80.0,
                original_price=100.0,
                line_total=160.0,
                tax=12.8,
            )
        ],
        shipping_address=Address(street="1 Main St", city="Springfield", postal_code="62701", country="US"),
        pricing=OrderPricing(subtotal=160.0, shipping=0.0, tax=12.8, discount=0.0, grand_total=172.8),
        payment_method=payment_method,
    )


def _advance(order, *steps):
    for step in steps:
        getattr(order, step)()
    return order


TO_SHIPPED = ("confirm", "start_processing", "mark_ready_for_shipment", "ship")


class TestPlacement:
    def test_new_order_is_pending(self):
        order = _order()
        assert order.status == OrderStatus.PENDING.value
        assert order.payment.status == PaymentStatus.PENDING.value
        assert order.payment.amount == 172.8

    def test_order_number_format(self):
        number = _order().order_number
        prefix, millis, suffix = number.split("-")
        assert prefix == "ORD"
        assert len(millis) == 6 and millis.isdigit()
        assert len(suffix) == 3 and suffix.isdigit()

    def test_billing_defaults_to_shipping(self):
        order = _order()
        assert order.billing_address == order.shipping_address

    def test_unbalanced_pricing_rejected(self):
        with pytest.raises(ValidationError):
            OrderPricing(subtotal=100.0, shipping=0.0, tax=8.0, discount=0.0, grand_total=99.0)

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError):
            _order(payment_method="barter")


class TestTransitions:
    def test_happy_path(self):
        order = _advance(_order(), *TO_SHIPPED, "mark_out_for_delivery", "deliver", "refund")
        assert order.status == OrderStatus.REFUNDED.value
        assert order.delivered_at is not None
        assert order.refunded_at is not None

    def test_shipped_cannot_go_back_to_processing(self):
        order = _advance(_order(), *TO_SHIPPED)
        with pytest.raises(InvalidTransition):
            order.start_processing()

    def test_cannot_skip_states(self):
        with pytest.raises(InvalidTransition):
            _order().ship()

    @pytest.mark.parametrize("steps", [(), ("confirm",), ("confirm", "start_processing")])
    def test_cancellable_states(self, steps):
        order = _advance(_order(), *steps)
        order.cancel(reason="Changed my mind", cancelled_by="customer")
        assert order.status == OrderStatus.CANCELLED.value
        assert any(isinstance(e, OrderCancelled) for e in order._events)

    def test_cannot_cancel_after_ready_for_shipment(self):
        order = _advance(_order(), "confirm", "start_processing", "mark_ready_for_shipment")
        with pytest.raises(InvalidTransition):
            order.cancel()

    def test_cancelled_is_terminal(self):
        order = _order()
        order.cancel()
        with pytest.raises(InvalidTransition):
            order.confirm()

    def test_refund_only_from_delivered(self):
        with pytest.raises(InvalidTransition):
            _advance(_order(), "confirm").refund()

    def test_can_transition_to(self):
        order = _order()
        assert order.can_transition_to("confirmed")
        assert not order.can_transition_to("delivered")


class TestShipping:
    def test_ship_generates_tracking_number(self):
        order = _advance(_order(), *TO_SHIPPED)
        assert order.tracking_number.startswith("TRK")
        assert order.shipped_at is not None
        assert any(isinstance(e, OrderShipped) for e in order._events)

    def test_ship_keeps_supplied_tracking(self):
        order = _advance(_order(), "confirm", "start_processing", "mark_ready_for_shipment")
        order.ship(carrier="UPS", tracking_number="1Z999")
        assert (order.carrier, order.tracking_number) == ("UPS", "1Z999")


class TestPaymentRecord:
    def test_attach_intent(self):
        order = _order()
        order.attach_payment_intent("stripe", "pi_123", "secret")
        assert order.payment_reference == "pi_123"
        assert order.payment.status == PaymentStatus.PROCESSING.value
        assert order.payment.gateway == "stripe"

    def test_complete_then_refund(self):
        order = _order()
        order.mark_payment_completed()
        assert order.payment_captured()
        assert order.payment.paid_at is not None

        order.mark_payment_refunded("re_1")
        assert order.payment.status == PaymentStatus.REFUNDED.value
        assert order.payment.refund_id == "re_1"

    def test_failure_reason_is_kept(self):
        order = _order()
        order.mark_payment_failed("Card declined")
        assert order.payment.status == PaymentStatus.FAILED.value
        assert order.payment.failure_reason == "Card declined"


class TestOneTimeSideEffects:
    def test_stock_finalized_only_once(self):
        order = _order()
        order.mark_stock_finalized()
        with pytest.raises(ValidationError):
            order.mark_stock_finalized()

    def test_loyalty_awarded_only_once(self):
        order = _order()
        order.mark_loyalty_awarded(172)
        with pytest.raises(ValidationError):
            order.mark_loyalty_awarded(172)

    def test_stock_lines(self):
        lines = _order().stock_lines()
        assert [(line.product_id, line.quantity, line.variant_sku) for line in lines] == [("prod-001", 2, None)]

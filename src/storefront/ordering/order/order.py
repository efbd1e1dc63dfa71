"""Order aggregate (CQRS): a placed order and its fulfillment lifecycle.

State Machine:
    PENDING → CONFIRMED → PROCESSING → READY_FOR_SHIPMENT → SHIPPED →
    OUT_FOR_DELIVERY → DELIVERED → REFUNDED
    CANCELLED (from PENDING, CONFIRMED, PROCESSING)

Line items are snapshots taken at checkout: later catalogue changes never
alter a placed order. ``stock_finalized`` and ``loyalty_awarded`` record
the one-time side effects that either a captured payment or a delivery may
trigger first.
"""

import json
import random
import time
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.exceptions import InvalidTransition
from storefront.inventory.ledger import StockLine
from storefront.ordering.order.events import (
    OrderCancelled,
    OrderLoyaltyAwarded,
    OrderPlaced,
    OrderShipped,
    OrderStatusChanged,
    OrderStockFinalized,
    PaymentStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    READY_FOR_SHIPMENT = "ready_for_shipment"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    WALLET = "wallet"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    COD = "cod"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.READY_FOR_SHIPMENT, OrderStatus.CANCELLED},
    OrderStatus.READY_FOR_SHIPMENT: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.OUT_FOR_DELIVERY},
    OrderStatus.OUT_FOR_DELIVERY: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.REFUNDED: set(),  # Terminal
}


def generate_order_number():
    """ORD-<last six digits of the millisecond clock>-<three random digits>."""
    millis = str(int(time.time() * 1000))[-6:]
    return f"ORD-{millis}-{random.randint(0, 999):03d}"


def generate_tracking_number():
    return f"TRK{int(time.time() * 1000)}{random.randint(0, 9999):04d}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class Address:
    """A delivery or billing address captured at checkout time."""

    name = String(max_length=100)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=30)


@storefront.value_object(part_of="Order")
class PaymentDetails:
    method = String(required=True, choices=PaymentMethod)
    status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    gateway = String(max_length=20)
    transaction_id = String(max_length=255)
    client_secret = String(max_length=255)
    amount = Float(default=0.0)
    paid_at = DateTime()
    refund_id = String(max_length=255)
    failure_reason = String(max_length=500)


@storefront.value_object(part_of="Order")
class OrderPricing:
    """Totals locked at checkout.

    ``shipping`` is net of any shipping discount, so
    grand_total == subtotal + shipping + tax - discount.
    """

    subtotal = Float(default=0.0, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    grand_total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="USD")

    @invariant.post
    def grand_total_must_balance(self):
        expected = self.subtotal + self.shipping + self.tax - self.discount
        if abs(expected - self.grand_total) > 0.005:
            raise ValidationError({"grand_total": ["Grand total does not match its components"]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    variant_sku = String(max_length=50)
    sku = String(required=True, max_length=50)
    name = String(required=True, max_length=200)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    original_price = Float(min_value=0.0)
    line_total = Float(default=0.0)
    discount = Float(default=0.0)
    tax = Float(default=0.0)


@storefront.entity(part_of="Order")
class AppliedDiscount:
    code = String(required=True, max_length=50)
    discount_type = String(max_length=20)
    applies_to = String(max_length=20)
    amount = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=30)
    customer_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    discounts = HasMany(AppliedDiscount)
    shipping_address = ValueObject(Address, required=True)
    billing_address = ValueObject(Address)
    shipping_method = String(max_length=50, default="standard")
    payment = ValueObject(PaymentDetails, required=True)
    payment_reference = String(max_length=255)  # gateway intent id, for webhook lookup
    pricing = ValueObject(OrderPricing, required=True)
    carrier = String(max_length=100)
    tracking_number = String(max_length=100)
    stock_finalized = Boolean(default=False)
    loyalty_awarded = Boolean(default=False)
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    notes = Text()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    refunded_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order needs at least one item"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        items,
        shipping_address,
        pricing,
        payment_method,
        billing_address=None,
        shipping_method=None,
        discounts=None,
        notes=None,
    ):
        """Create a pending order from priced line snapshots.

        Args:
            items: OrderItem entities built at checkout.
            pricing: OrderPricing with the checkout totals.
            discounts: AppliedDiscount entities for redeemed coupons.
        """
        now = datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(),
            customer_id=customer_id,
            items=items,
            discounts=discounts or [],
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            shipping_method=shipping_method or "standard",
            payment=PaymentDetails(method=payment_method, amount=pricing.grand_total),
            pricing=pricing,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(customer_id),
                items=json.dumps(
                    [
                        {
                            "product_id": str(i.product_id),
                            "variant_sku": i.variant_sku,
                            "sku": i.sku,
                            "quantity": i.quantity,
                            "unit_price": i.unit_price,
                        }
                        for i in order.items
                    ]
                ),
                subtotal=pricing.subtotal,
                shipping=pricing.shipping,
                tax=pricing.tax,
                discount=pricing.discount,
                grand_total=pricing.grand_total,
                currency=pricing.currency,
                payment_method=payment_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def can_transition_to(self, target):
        return OrderStatus(target) in _VALID_TRANSITIONS[OrderStatus(self.status)]

    def _transition(self, target):
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidTransition({"status": [f"Cannot transition from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )
        return now

    def confirm(self):
        self._transition(OrderStatus.CONFIRMED)

    def start_processing(self):
        self._transition(OrderStatus.PROCESSING)

    def mark_ready_for_shipment(self):
        self._transition(OrderStatus.READY_FOR_SHIPMENT)

    def ship(self, carrier=None, tracking_number=None):
        now = self._transition(OrderStatus.SHIPPED)
        self.carrier = carrier or self.carrier
        self.tracking_number = tracking_number or self.tracking_number or generate_tracking_number()
        self.shipped_at = now

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                carrier=self.carrier,
                tracking_number=self.tracking_number,
                shipped_at=now,
            )
        )

    def mark_out_for_delivery(self):
        self._transition(OrderStatus.OUT_FOR_DELIVERY)

    def deliver(self):
        self.delivered_at = self._transition(OrderStatus.DELIVERED)

    def cancel(self, reason=None, cancelled_by=None):
        previous = self.status
        now = self._transition(OrderStatus.CANCELLED)
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.cancelled_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=previous,
                reason=reason,
                cancelled_by=cancelled_by,
                cancelled_at=now,
            )
        )

    def refund(self):
        self.refunded_at = self._transition(OrderStatus.REFUNDED)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def _update_payment(self, status, reason=None, **changes):
        previous = self.payment.status
        now = datetime.now(UTC)
        self.payment = PaymentDetails(**{**self.payment.to_dict(), **changes, "status": status.value})
        self.updated_at = now

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=status.value,
                gateway=self.payment.gateway,
                reference=self.payment.transaction_id,
                reason=reason,
                changed_at=now,
            )
        )

    def payment_captured(self):
        return self.payment.status == PaymentStatus.COMPLETED.value

    def attach_payment_intent(self, gateway, intent_id, client_secret=None):
        self.payment_reference = intent_id
        self._update_payment(
            PaymentStatus.PROCESSING,
            gateway=gateway,
            transaction_id=intent_id,
            client_secret=client_secret,
        )

    def mark_payment_completed(self, amount=None):
        self._update_payment(
            PaymentStatus.COMPLETED,
            paid_at=datetime.now(UTC),
            amount=amount if amount is not None else self.payment.amount,
        )

    def mark_payment_failed(self, reason):
        self._update_payment(PaymentStatus.FAILED, reason=reason, failure_reason=reason)

    def mark_payment_refunded(self, refund_id=None):
        self._update_payment(PaymentStatus.REFUNDED, refund_id=refund_id or self.payment.refund_id)

    def mark_payment_cancelled(self):
        self._update_payment(PaymentStatus.CANCELLED)

    # -------------------------------------------------------------------
    # One-time side effects
    # -------------------------------------------------------------------
    def stock_lines(self):
        return [
            StockLine(product_id=str(item.product_id), quantity=item.quantity, variant_sku=item.variant_sku)
            for item in self.items
        ]

    def mark_stock_finalized(self):
        if self.stock_finalized:
            raise ValidationError({"stock_finalized": ["Stock for this order is already finalized"]})
        now = datetime.now(UTC)
        self.stock_finalized = True
        self.updated_at = now
        self.raise_(OrderStockFinalized(order_id=str(self.id), finalized_at=now))

    def mark_loyalty_awarded(self, points):
        if self.loyalty_awarded:
            raise ValidationError({"loyalty_awarded": ["Loyalty points for this order were already awarded"]})
        self.loyalty_awarded = True
        self.updated_at = datetime.now(UTC)
        self.raise_(
            OrderLoyaltyAwarded(
                order_id=str(self.id),
                customer_id=str(self.customer_id),
                points=points,
            )
        )

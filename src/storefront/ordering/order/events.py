"""Domain events for the Order aggregate.

Orders are CQRS aggregates; these events form the audit trail of every
status and payment change.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer placed an order; its stock is reserved."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line snapshots
    subtotal = Float(required=True)
    shipping = Float()
    tax = Float()
    discount = Float()
    grand_total = Float(required=True)
    currency = String(default="USD")
    payment_method = String(required=True)
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderShipped:
    __version__ = 1

    order_id = Identifier(required=True)
    carrier = String()
    tracking_number = String(required=True)
    shipped_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_by = String()
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStockFinalized:
    """Reserved units of every line were recorded as sold."""

    __version__ = 1

    order_id = Identifier(required=True)
    finalized_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderLoyaltyAwarded:
    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    points = Integer(required=True)


@storefront.event(part_of="Order")
class PaymentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String()
    new_status = String(required=True)
    gateway = String()
    reference = String()
    reason = String()
    changed_at = DateTime(required=True)

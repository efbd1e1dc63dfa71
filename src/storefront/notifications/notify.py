"""Customer-facing order notifications.

Sending is best effort: the order workflow has already committed by the
time a message goes out, so failures are logged and never raised.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.identity.customer.customer import Customer
from storefront.notifications.channel import get_email_sender
from storefront.notifications.channel.email_port import SENT

logger = structlog.get_logger(__name__)

ORDER_CONFIRMATION = "order_confirmation"
SHIPPING_UPDATE = "shipping_update"
PAYMENT_RECEIPT = "payment_receipt"
PAYMENT_FAILURE = "payment_failure"
ORDER_CANCELLED = "order_cancelled"


def _render(kind, order):
    total = f"{order.pricing.grand_total:.2f} {order.pricing.currency}"
    number = order.order_number

    if kind == ORDER_CONFIRMATION:
        return (
            f"Order {number} received",
            f"Thank you for your order {number}. Total: {total}. We'll let you know when it ships.",
        )
    if kind == SHIPPING_UPDATE:
        carrier = f" via {order.carrier}" if order.carrier else ""
        return (
            f"Order {number} has shipped",
            f"Your order {number} is on its way{carrier}. Tracking number: {order.tracking_number}.",
        )
    if kind == PAYMENT_RECEIPT:
        return (f"Payment received for order {number}", f"We received your payment of {total} for order {number}.")
    if kind == PAYMENT_FAILURE:
        reason = order.payment.failure_reason or "the payment was declined"
        return (
            f"Payment failed for order {number}",
            f"We could not process the payment for order {number}: {reason}. Please try again.",
        )
    if kind == ORDER_CANCELLED:
        return (f"Order {number} cancelled", f"Your order {number} has been cancelled.")
    raise ValueError(f"Unknown notification kind: {kind}")


def notify(kind, order):
    """Email the order's customer. Returns True when the message was sent."""
    try:
        customer = current_domain.repository_for(Customer).get(order.customer_id)
    except ObjectNotFoundError:
        logger.warning("Notification skipped, customer not found", kind=kind, order_id=str(order.id))
        return False

    subject, body = _render(kind, order)
    try:
        result = get_email_sender().send(to=customer.email, subject=subject, body=body)
    except Exception:
        logger.exception("Notification send raised", kind=kind, order_id=str(order.id))
        return False

    if result.get("status") != SENT:
        logger.warning("Notification not delivered", kind=kind, order_id=str(order.id), error=result.get("error"))
        return False

    logger.info("Notification sent", kind=kind, order_id=str(order.id), message_id=result.get("message_id"))
    return True

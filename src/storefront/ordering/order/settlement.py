"""One-time order side effects: stock finalization, loyalty and refunds.

Payment capture and delivery can each trigger stock finalization and the
loyalty award; whichever comes first performs them, and the flags on the
order keep the second caller from repeating them.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.config import LoyaltyPolicy
from storefront.exceptions import PaymentError
from storefront.identity.customer.customer import Customer
from storefront.inventory.ledger import StockLedger
from storefront.payments.gateway import get_gateway

logger = structlog.get_logger(__name__)


def stock_ledger():
    return StockLedger(current_domain.repository_for(Product))


def finalize_stock(order):
    """Turn the order's reservations into sales. Returns False if already done."""
    if order.stock_finalized:
        return False

    stock_ledger().sell_all(order.stock_lines())
    order.mark_stock_finalized()
    logger.info("Order stock finalized", order_id=str(order.id))
    return True


def return_stock(order):
    """Give back an order's stock: restock sold units or release reservations."""
    ledger = stock_ledger()
    if order.stock_finalized:
        ledger.restock_all(order.stock_lines())
    else:
        ledger.release_all(order.stock_lines())


def award_loyalty(order, policy=None):
    """Credit loyalty points for the order once. Returns the points awarded."""
    if order.loyalty_awarded:
        return 0

    policy = policy or LoyaltyPolicy.from_env()
    points = policy.points_for(order.pricing.grand_total)

    repo = current_domain.repository_for(Customer)
    try:
        customer = repo.get(order.customer_id)
    except ObjectNotFoundError:
        logger.warning(
            "Loyalty award skipped, customer not found",
            order_id=str(order.id),
            customer_id=str(order.customer_id),
        )
        return 0

    customer.award_points(points, reason=f"Order {order.order_number}", order_id=str(order.id))
    repo.add(customer)
    order.mark_loyalty_awarded(points)

    logger.info("Loyalty points awarded", order_id=str(order.id), customer_id=str(customer.id), points=points)
    return points


def refund_payment(order, reason=None):
    """Refund a captured payment through its gateway and record it on the order.

    Payments collected offline are marked refunded without a gateway call.
    Raises PaymentError when the gateway declines the refund.
    """
    refund_id = None
    if order.payment.gateway and order.payment_reference:
        gateway = get_gateway(order.payment.gateway)
        result = gateway.refund(order.payment_reference, order.payment.amount, reason)
        if not result.success:
            logger.error(
                "Refund failed",
                order_id=str(order.id),
                gateway=order.payment.gateway,
                reason=result.failure_reason,
            )
            raise PaymentError(f"Refund failed: {result.failure_reason}", gateway=order.payment.gateway)
        refund_id = result.refund_id

    order.mark_payment_refunded(refund_id)
    logger.info("Payment refunded", order_id=str(order.id), refund_id=refund_id)

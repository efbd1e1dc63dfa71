"""Order cancellation and refund: commands and handler."""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.exceptions import InvalidTransition, PermissionDenied
from storefront.notifications.notify import ORDER_CANCELLED, notify
from storefront.ordering.order.order import Order, OrderStatus
from storefront.ordering.order.settlement import refund_payment, return_stock

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)
    reason = String(max_length=500)


@storefront.command(part_of="Order")
class RefundOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class OrderCancellationHandler:
    @handle(CancelOrder)
    def cancel(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if not command.is_admin and str(order.customer_id) != str(command.requested_by):
            raise PermissionDenied({"order_id": ["You can only cancel your own orders"]})

        order.cancel(
            reason=command.reason,
            cancelled_by="admin" if command.is_admin else "customer",
        )
        return_stock(order)

        if order.payment_captured():
            refund_payment(order, reason=command.reason or "Order cancelled")
        else:
            order.mark_payment_cancelled()

        repo.add(order)
        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            cancelled_by=order.cancelled_by,
            payment_status=order.payment.status,
        )
        notify(ORDER_CANCELLED, order)

    @handle(RefundOrder)
    def refund(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if not order.can_transition_to(OrderStatus.REFUNDED.value):
            raise InvalidTransition({"status": [f"Cannot transition from {order.status} to refunded"]})

        refund_payment(order, reason=command.reason or "Refund requested")
        order.refund()
        repo.add(order)
        logger.info("Order refunded", order_id=str(order.id))

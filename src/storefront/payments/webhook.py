"""Payment webhook processing: command and handler.

The HTTP layer authenticates the payload with the gateway's signature
check and hands the normalized event to ``ProcessPaymentWebhook``. Every
event is acknowledged; events for unknown payments or of unknown types are
logged and ignored so the gateway does not retry them.
"""

import structlog
from protean import handle
from protean.fields import Float, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.notifications.notify import PAYMENT_FAILURE, PAYMENT_RECEIPT, notify
from storefront.ordering.order.order import Order, OrderStatus, PaymentStatus
from storefront.ordering.order.queries import find_by_payment_reference
from storefront.ordering.order.settlement import award_loyalty, finalize_stock
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.port import CHARGE_REFUNDED, PAYMENT_FAILED, PAYMENT_SUCCEEDED

logger = structlog.get_logger(__name__)

PROCESSED = "processed"
IGNORED = "ignored"


@storefront.command(part_of="Order")
class ProcessPaymentWebhook:
    gateway = String(required=True, max_length=20)
    event_type = String(required=True, max_length=100)
    payment_reference = String(max_length=255)
    amount = Float()
    failure_reason = String(max_length=500)


@storefront.command_handler(part_of=Order)
class PaymentWebhookHandler:
    @handle(ProcessPaymentWebhook)
    def process(self, command):
        handlers = {
            PAYMENT_SUCCEEDED: self._payment_succeeded,
            PAYMENT_FAILED: self._payment_failed,
            CHARGE_REFUNDED: self._charge_refunded,
        }
        handler = handlers.get(command.event_type)
        if handler is None:
            logger.info("Unhandled webhook event type", gateway=command.gateway, event_type=command.event_type)
            return IGNORED

        order = find_by_payment_reference(command.payment_reference)
        if order is None:
            logger.warning(
                "Webhook for unknown payment",
                gateway=command.gateway,
                event_type=command.event_type,
                payment_reference=command.payment_reference,
            )
            return IGNORED

        handler(order, command)
        current_domain.repository_for(Order).add(order)
        return PROCESSED

    def _payment_succeeded(self, order, command):
        if order.payment.status == PaymentStatus.COMPLETED.value:
            return
        if order.status in (OrderStatus.CANCELLED.value, OrderStatus.REFUNDED.value):
            logger.warning("Payment succeeded for a closed order", order_id=str(order.id), status=order.status)
            return

        order.mark_payment_completed(amount=command.amount)
        if order.status == OrderStatus.PENDING.value:
            order.confirm()
        finalize_stock(order)
        award_loyalty(order)

        logger.info("Payment completed", order_id=str(order.id), amount=order.payment.amount)
        notify(PAYMENT_RECEIPT, order)

    def _payment_failed(self, order, command):
        settled = (PaymentStatus.COMPLETED.value, PaymentStatus.REFUNDED.value)
        if order.payment.status in settled or order.status in (
            OrderStatus.CANCELLED.value,
            OrderStatus.REFUNDED.value,
        ):
            logger.warning(
                "Ignoring late payment failure",
                order_id=str(order.id),
                status=order.status,
                payment_status=order.payment.status,
            )
            return

        order.mark_payment_failed(command.failure_reason or "Payment failed")
        logger.info("Payment failed", order_id=str(order.id), reason=order.payment.failure_reason)
        notify(PAYMENT_FAILURE, order)

    def _charge_refunded(self, order, command):
        if order.payment.status != PaymentStatus.REFUNDED.value:
            order.mark_payment_refunded()
        if order.can_transition_to(OrderStatus.REFUNDED.value):
            order.refund()
        logger.info("Charge refunded", order_id=str(order.id), status=order.status)


def receive_webhook(gateway_name, payload, signature, headers=None):
    """Verify a raw webhook and process it. Raises WebhookSignatureError."""
    gateway = get_gateway(gateway_name)
    event = gateway.verify_webhook_signature(payload, signature, headers)
    return current_domain.process(
        ProcessPaymentWebhook(
            gateway=gateway.name,
            event_type=event.type,
            payment_reference=event.payment_reference,
            amount=event.amount,
            failure_reason=event.failure_reason,
        ),
        asynchronous=False,
    )

"""Order fulfillment: commands and handler for the forward lifecycle."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.notifications.notify import SHIPPING_UPDATE, notify
from storefront.ordering.order.order import Order, PaymentMethod, PaymentStatus
from storefront.ordering.order.settlement import award_loyalty, finalize_stock

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class StartProcessing:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class MarkReadyForShipment:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class ShipOrder:
    order_id = Identifier(required=True)
    carrier = String(max_length=100)
    tracking_number = String(max_length=100)


@storefront.command(part_of="Order")
class MarkOutForDelivery:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class DeliverOrder:
    order_id = Identifier(required=True)


@storefront.command_handler(part_of=Order)
class OrderFulfillmentHandler:
    @handle(ConfirmOrder)
    def confirm(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm()
        repo.add(order)

    @handle(StartProcessing)
    def start_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.start_processing()
        repo.add(order)

    @handle(MarkReadyForShipment)
    def ready_for_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_ready_for_shipment()
        repo.add(order)

    @handle(ShipOrder)
    def ship(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.ship(carrier=command.carrier, tracking_number=command.tracking_number)
        repo.add(order)

        logger.info("Order shipped", order_id=str(order.id), tracking_number=order.tracking_number)
        notify(SHIPPING_UPDATE, order)
        return order.tracking_number

    @handle(MarkOutForDelivery)
    def out_for_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_out_for_delivery()
        repo.add(order)

    @handle(DeliverOrder)
    def deliver(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.deliver()

        # Cash on delivery is collected by the carrier
        if order.payment.method == PaymentMethod.COD.value and order.payment.status == PaymentStatus.PENDING.value:
            order.mark_payment_completed()

        finalize_stock(order)
        award_loyalty(order)
        repo.add(order)
        logger.info("Order delivered", order_id=str(order.id))

"""Back-office order endpoints: fulfilment transitions and refunds."""

from fastapi import APIRouter, Depends, HTTPException
from protean.utils.globals import current_domain

from storefront.api.dependencies import Principal, require_admin
from storefront.api.schemas import RefundOrderRequest, ShipOrderRequest, ok
from storefront.ordering.order.cancellation import RefundOrder
from storefront.ordering.order.fulfillment import (
    ConfirmOrder,
    DeliverOrder,
    MarkOutForDelivery,
    MarkReadyForShipment,
    ShipOrder,
    StartProcessing,
)
from storefront.ordering.order.order import Order
from storefront.ordering.order.queries import order_view

router = APIRouter(prefix="/admin/orders", tags=["admin"])

_TRANSITIONS = {
    "confirm": ConfirmOrder,
    "process": StartProcessing,
    "ready": MarkReadyForShipment,
    "out-for-delivery": MarkOutForDelivery,
    "deliver": DeliverOrder,
}


def _order(order_id):
    return order_view(current_domain.repository_for(Order).get(order_id))


@router.get("/{order_id}")
async def order_detail(order_id: str, admin: Principal = Depends(require_admin)):
    return ok(_order(order_id))


@router.post("/{order_id}/ship")
async def ship_order(order_id: str, body: ShipOrderRequest | None = None, admin: Principal = Depends(require_admin)):
    command = ShipOrder(
        order_id=order_id,
        carrier=body.carrier if body else None,
        tracking_number=body.tracking_number if body else None,
    )
    current_domain.process(command, asynchronous=False)
    return ok(_order(order_id), "Order shipped")


@router.post("/{order_id}/refund")
async def refund_order(order_id: str, body: RefundOrderRequest | None = None, admin: Principal = Depends(require_admin)):
    command = RefundOrder(order_id=order_id, reason=body.reason if body else None)
    current_domain.process(command, asynchronous=False)
    return ok(_order(order_id), "Order refunded")


@router.post("/{order_id}/{transition}")
async def transition_order(order_id: str, transition: str, admin: Principal = Depends(require_admin)):
    command_cls = _TRANSITIONS.get(transition)
    if command_cls is None:
        raise HTTPException(status_code=404, detail=f"Unknown order transition `{transition}`")
    current_domain.process(command_cls(order_id=order_id), asynchronous=False)
    return ok(_order(order_id))

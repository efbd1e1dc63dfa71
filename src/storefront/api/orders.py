"""Customer-facing order endpoints."""

import json

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from storefront.api.dependencies import Principal, current_principal
from storefront.api.schemas import CancelOrderRequest, PlaceOrderRequest, ok
from storefront.ordering.order.cancellation import CancelOrder
from storefront.ordering.order.creation import PlaceOrder
from storefront.ordering.order.queries import get_order_for, list_customer_orders, order_view, tracking_view

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=201)
async def place_order(body: PlaceOrderRequest, principal: Principal = Depends(current_principal)):
    command = PlaceOrder(
        customer_id=principal.customer_id,
        items=json.dumps([line.model_dump() for line in body.items]) if body.items else None,
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        billing_address=json.dumps(body.billing_address.model_dump()) if body.billing_address else None,
        shipping_method=body.shipping_method,
        payment_method=body.payment_method,
        coupon_code=body.coupon_code,
        notes=body.notes,
    )
    result = current_domain.process(command, asynchronous=False)
    return ok(result, "Order placed")


@router.get("")
async def my_orders(
    status: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(current_principal),
):
    return ok(list_customer_orders(principal.customer_id, status=status, page=page, limit=limit))


@router.get("/{order_id}")
async def order_detail(order_id: str, principal: Principal = Depends(current_principal)):
    order = get_order_for(order_id, principal.customer_id, is_admin=principal.is_admin)
    return ok(order_view(order))


@router.get("/{order_id}/tracking")
async def order_tracking(order_id: str, principal: Principal = Depends(current_principal)):
    order = get_order_for(order_id, principal.customer_id, is_admin=principal.is_admin)
    return ok(tracking_view(order))


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    principal: Principal = Depends(current_principal),
):
    command = CancelOrder(
        order_id=order_id,
        requested_by=principal.customer_id,
        is_admin=principal.is_admin,
        reason=body.reason if body else None,
    )
    current_domain.process(command, asynchronous=False)
    order = get_order_for(order_id, principal.customer_id, is_admin=principal.is_admin)
    return ok(order_view(order), "Order cancelled")

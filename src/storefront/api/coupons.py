"""Coupon endpoints: previews for shoppers, management for admins."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.dependencies import Principal, current_principal, require_admin
from storefront.api.schemas import CreateCouponRequest, ValidateCouponRequest, ok
from storefront.coupons.management import CreateCoupon, DeactivateCoupon, preview_coupon

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.post("/validate")
async def validate_coupon(body: ValidateCouponRequest, principal: Principal = Depends(current_principal)):
    return ok(preview_coupon(body.code, body.subtotal, customer_id=principal.customer_id))


@router.post("", status_code=201)
async def create_coupon(body: CreateCouponRequest, admin: Principal = Depends(require_admin)):
    coupon_id = current_domain.process(CreateCoupon(**body.model_dump(exclude_none=True)), asynchronous=False)
    return ok({"coupon_id": coupon_id}, "Coupon created")


@router.post("/{coupon_id}/deactivate")
async def deactivate_coupon(coupon_id: str, admin: Principal = Depends(require_admin)):
    current_domain.process(DeactivateCoupon(coupon_id=coupon_id), asynchronous=False)
    return ok(message="Coupon deactivated")

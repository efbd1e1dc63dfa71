"""Customer profile and loyalty endpoints."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.dependencies import Principal, current_principal
from storefront.api.schemas import RedeemPointsRequest, RegisterCustomerRequest, ok
from storefront.identity.customer.registration import RedeemLoyaltyPoints, RegisterCustomer, customer_profile

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", status_code=201)
async def register_customer(body: RegisterCustomerRequest, principal: Principal = Depends(current_principal)):
    command = RegisterCustomer(
        customer_id=principal.customer_id,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    customer_id = current_domain.process(command, asynchronous=False)
    return ok(customer_profile(customer_id), "Customer registered")


@router.get("/me")
async def my_profile(principal: Principal = Depends(current_principal)):
    return ok(customer_profile(principal.customer_id))


@router.post("/me/loyalty/redeem")
async def redeem_points(body: RedeemPointsRequest, principal: Principal = Depends(current_principal)):
    command = RedeemLoyaltyPoints(customer_id=principal.customer_id, points=body.points, reason=body.reason)
    balance = current_domain.process(command, asynchronous=False)
    return ok({"loyalty_points": balance})

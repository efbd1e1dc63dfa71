"""Shopping cart endpoints for the calling customer."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.dependencies import Principal, current_principal
from storefront.api.schemas import AddToCartRequest, CouponCodeRequest, UpdateCartItemRequest, ok
from storefront.ordering.cart.items import (
    AddToCart,
    ApplyCouponToCart,
    ClearCart,
    RemoveCouponFromCart,
    RemoveFromCart,
    UpdateCartItem,
    cart_view,
)

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("")
async def view_cart(principal: Principal = Depends(current_principal)):
    return ok(cart_view(principal.customer_id))


@router.post("/items", status_code=201)
async def add_item(body: AddToCartRequest, principal: Principal = Depends(current_principal)):
    command = AddToCart(
        customer_id=principal.customer_id,
        product_id=body.product_id,
        variant_sku=body.variant_sku,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return ok(cart_view(principal.customer_id), "Item added to cart")


@router.put("/items/{item_id}")
async def update_item(item_id: str, body: UpdateCartItemRequest, principal: Principal = Depends(current_principal)):
    command = UpdateCartItem(customer_id=principal.customer_id, item_id=item_id, quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return ok(cart_view(principal.customer_id))


@router.delete("/items/{item_id}")
async def remove_item(item_id: str, principal: Principal = Depends(current_principal)):
    current_domain.process(RemoveFromCart(customer_id=principal.customer_id, item_id=item_id), asynchronous=False)
    return ok(cart_view(principal.customer_id))


@router.post("/coupon")
async def apply_coupon(body: CouponCodeRequest, principal: Principal = Depends(current_principal)):
    command = ApplyCouponToCart(customer_id=principal.customer_id, coupon_code=body.coupon_code)
    current_domain.process(command, asynchronous=False)
    return ok(cart_view(principal.customer_id), "Coupon applied")


@router.delete("/coupon")
async def remove_coupon(principal: Principal = Depends(current_principal)):
    current_domain.process(RemoveCouponFromCart(customer_id=principal.customer_id), asynchronous=False)
    return ok(cart_view(principal.customer_id))


@router.delete("")
async def clear_cart(principal: Principal = Depends(current_principal)):
    current_domain.process(ClearCart(customer_id=principal.customer_id), asynchronous=False)
    return ok(message="Cart cleared")

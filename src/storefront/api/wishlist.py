"""Wishlist endpoints for the calling customer."""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.dependencies import Principal, current_principal
from storefront.api.schemas import MoveToCartRequest, WishlistItemRequest, ok
from storefront.wishlist.management import (
    AddToWishlist,
    MoveWishlistItemToCart,
    RemoveFromWishlist,
    wishlist_view,
)

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


@router.get("")
async def view_wishlist(principal: Principal = Depends(current_principal)):
    return ok(wishlist_view(principal.customer_id))


@router.post("/items", status_code=201)
async def add_item(body: WishlistItemRequest, principal: Principal = Depends(current_principal)):
    command = AddToWishlist(
        customer_id=principal.customer_id,
        product_id=body.product_id,
        variant_sku=body.variant_sku,
    )
    current_domain.process(command, asynchronous=False)
    return ok(wishlist_view(principal.customer_id), "Added to wishlist")


@router.delete("/items/{product_id}")
async def remove_item(
    product_id: str,
    variant_sku: str | None = None,
    principal: Principal = Depends(current_principal),
):
    command = RemoveFromWishlist(customer_id=principal.customer_id, product_id=product_id, variant_sku=variant_sku)
    current_domain.process(command, asynchronous=False)
    return ok(wishlist_view(principal.customer_id))


@router.post("/move-to-cart")
async def move_to_cart(body: MoveToCartRequest, principal: Principal = Depends(current_principal)):
    command = MoveWishlistItemToCart(
        customer_id=principal.customer_id,
        product_id=body.product_id,
        variant_sku=body.variant_sku,
        quantity=body.quantity,
    )
    item_id = current_domain.process(command, asynchronous=False)
    return ok({"cart_item_id": item_id, "wishlist": wishlist_view(principal.customer_id)}, "Moved to cart")

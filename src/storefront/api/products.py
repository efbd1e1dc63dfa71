"""Catalogue endpoints: browsing for everyone, management for admins."""

import json

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from storefront.api.dependencies import Principal, require_admin
from storefront.api.schemas import (
    AddVariantRequest,
    CreateProductRequest,
    ProductSaleRequest,
    ProductStatusRequest,
    ReceiveStockRequest,
    ok,
)
from storefront.catalogue.product.creation import AddVariant, CreateProduct
from storefront.catalogue.product.lifecycle import ChangeProductStatus, ReceiveStock
from storefront.catalogue.product.pricing import ClearProductSale, SetProductSale
from storefront.catalogue.product.queries import get_product, list_products, product_view
from storefront.reviews.review.queries import product_reviews

router = APIRouter(prefix="/products", tags=["products"])


@router.get("")
async def browse_products(
    category: str | None = None,
    status: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    return ok(list_products(category=category, status=status, page=page, limit=limit))


@router.get("/{id_or_slug}")
async def product_detail(id_or_slug: str):
    return ok(product_view(get_product(id_or_slug)))


@router.get("/{id_or_slug}/reviews")
async def reviews_for_product(
    id_or_slug: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    return ok(product_reviews(id_or_slug, page=page, limit=limit))


@router.post("", status_code=201)
async def create_product(body: CreateProductRequest, admin: Principal = Depends(require_admin)):
    command = CreateProduct(**body.model_dump(exclude_none=True))
    product_id = current_domain.process(command, asynchronous=False)
    return ok({"product_id": product_id}, "Product created")


@router.post("/{product_id}/variants", status_code=201)
async def add_variant(product_id: str, body: AddVariantRequest, admin: Principal = Depends(require_admin)):
    command = AddVariant(
        product_id=product_id,
        variant_sku=body.sku,
        name=body.name,
        attributes=json.dumps(body.attributes) if body.attributes is not None else None,
        price_adjustment=body.price_adjustment,
        quantity=body.quantity,
        allow_backorders=body.allow_backorders,
    )
    current_domain.process(command, asynchronous=False)
    return ok(product_view(get_product(product_id)), "Variant added")


@router.put("/{product_id}/sale")
async def set_sale(product_id: str, body: ProductSaleRequest, admin: Principal = Depends(require_admin)):
    command = SetProductSale(product_id=product_id, **body.model_dump(exclude_none=True))
    current_domain.process(command, asynchronous=False)
    return ok(product_view(get_product(product_id)), "Sale scheduled")


@router.delete("/{product_id}/sale")
async def clear_sale(product_id: str, admin: Principal = Depends(require_admin)):
    current_domain.process(ClearProductSale(product_id=product_id), asynchronous=False)
    return ok(product_view(get_product(product_id)), "Sale cleared")


@router.put("/{product_id}/status")
async def change_status(product_id: str, body: ProductStatusRequest, admin: Principal = Depends(require_admin)):
    current_domain.process(ChangeProductStatus(product_id=product_id, status=body.status), asynchronous=False)
    return ok(product_view(get_product(product_id)), "Status updated")


@router.post("/{product_id}/stock")
async def receive_stock(product_id: str, body: ReceiveStockRequest, admin: Principal = Depends(require_admin)):
    command = ReceiveStock(product_id=product_id, variant_sku=body.variant_sku, quantity=body.quantity)
    available = current_domain.process(command, asynchronous=False)
    return ok({"product_id": product_id, "variant_sku": body.variant_sku, "available": available})

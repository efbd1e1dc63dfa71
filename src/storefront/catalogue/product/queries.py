"""Read-side helpers for products: listing, lookup and views."""

import json

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.ordering.pricing import to_money


def _money(amount):
    return float(to_money(amount))


def product_view(product):
    variants = []
    for variant in product.variants:
        if not variant.is_active:
            continue
        variants.append(
            {
                "sku": variant.sku,
                "name": variant.name,
                "attributes": json.loads(variant.attributes) if variant.attributes else {},
                "price": _money(product.unit_price(variant.sku)),
                "original_price": _money(product.original_price(variant.sku)),
                "available": variant.inventory.available(),
            }
        )

    rating = product.rating
    return {
        "id": str(product.id),
        "sku": product.sku,
        "slug": product.slug,
        "name": product.name,
        "description": product.description,
        "category": product.category,
        "status": product.status,
        "currency": product.price.currency,
        "price": _money(product.unit_price()),
        "original_price": _money(product.original_price()),
        "on_sale": product.price.sale_active(),
        "available": product.available_stock(),
        "variants": variants,
        "rating": {
            "average": rating.average if rating else 0.0,
            "count": rating.count if rating else 0,
            "distribution": json.loads(rating.distribution) if rating and rating.distribution else {},
        },
    }


def get_product(id_or_slug):
    """Load a product by id, falling back to its slug."""
    repo = current_domain.repository_for(Product)
    try:
        return repo.get(id_or_slug)
    except ObjectNotFoundError:
        matches = repo._dao.query.filter(slug=id_or_slug).all().items
        if not matches:
            raise ObjectNotFoundError(f"Product `{id_or_slug}` does not exist") from None
        return matches[0]


def list_products(category=None, status=None, page=1, limit=20):
    filters = {}
    if category:
        filters["category"] = category
    if status:
        filters["status"] = status

    query = current_domain.repository_for(Product)._dao.query
    if filters:
        query = query.filter(**filters)
    result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
    return {
        "items": [product_view(p) for p in result.items],
        "total": result.total,
        "page": page,
        "limit": limit,
    }

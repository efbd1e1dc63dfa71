"""Read-side helpers for reviews."""

from protean.utils.globals import current_domain

from storefront.catalogue.product.queries import get_product
from storefront.reviews.review.rating import summarize
from storefront.reviews.review.review import Review, ReviewStatus


def review_view(review):
    return {
        "id": str(review.id),
        "product_id": str(review.product_id),
        "customer_id": str(review.customer_id),
        "rating": review.rating,
        "title": review.title,
        "text": review.text,
        "images": [i.url for i in sorted(review.images, key=lambda i: i.display_order)],
        "status": review.status,
        "helpful_count": review.helpful_count,
        "unhelpful_count": review.unhelpful_count,
        "created_at": review.created_at.isoformat() if review.created_at else None,
    }


def product_reviews(product_id, page=1, limit=10):
    """Approved reviews of a product, newest first, with the rating summary."""
    product = get_product(product_id)
    approved = current_domain.repository_for(Review)._dao.query.filter(
        product_id=str(product.id), status=ReviewStatus.APPROVED.value
    )
    average, count, distribution = summarize([r.rating for r in approved.limit(None).all().items])

    result = approved.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
    return {
        "items": [review_view(r) for r in result.items],
        "summary": {"average": average, "count": count, "distribution": distribution},
        "page": page,
        "limit": limit,
    }

"""Product rating aggregation from approved reviews.

The rating is always recomputed from scratch so that approvals, removals
and de-approvals can never leave a stale running average behind.
"""

from decimal import ROUND_HALF_UP, Decimal

import structlog
from protean.utils.globals import current_domain

from storefront.catalogue.product.product import Product
from storefront.reviews.review.review import Review, ReviewStatus

logger = structlog.get_logger(__name__)


def summarize(ratings):
    """Average (half-up to one decimal), count and 1-5 distribution."""
    distribution = {str(star): 0 for star in range(1, 6)}
    for rating in ratings:
        distribution[str(rating)] += 1

    if not ratings:
        return 0.0, 0, distribution

    average = (Decimal(sum(ratings)) / len(ratings)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return float(average), len(ratings), distribution


def recalculate_product_rating(product_id):
    approved = (
        current_domain.repository_for(Review)
        ._dao.query.filter(product_id=str(product_id), status=ReviewStatus.APPROVED.value)
        .limit(None)
        .all()
        .items
    )
    average, count, distribution = summarize([r.rating for r in approved])

    repo = current_domain.repository_for(Product)
    product = repo.get(product_id)
    product.update_rating(average, count, distribution)
    repo.add(product)

    logger.info("Product rating recalculated", product_id=str(product_id), average=average, count=count)
    return average, count, distribution

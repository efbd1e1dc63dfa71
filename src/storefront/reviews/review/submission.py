"""SubmitReview: submit a new product review.

One review per customer per product, enforced at handler level since it
needs a repository query across Review instances.
"""

import json

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.product.product import Product
from storefront.domain import storefront
from storefront.reviews.review.review import Review


@storefront.command(part_of="Review")
class SubmitReview:
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    title = String(required=True, max_length=200)
    text = Text(required=True)
    images = Text()  # JSON array of image URLs


@storefront.command_handler(part_of=Review)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        try:
            current_domain.repository_for(Product).get(command.product_id)
        except ObjectNotFoundError:
            raise ValidationError({"product_id": [f"Product {command.product_id} not found"]}) from None

        repo = current_domain.repository_for(Review)
        existing = repo._dao.query.filter(
            customer_id=str(command.customer_id),
            product_id=str(command.product_id),
        ).all()
        if existing.items:
            raise ValidationError({"review": ["You have already reviewed this product"]})

        try:
            images = json.loads(command.images) if command.images else []
        except json.JSONDecodeError:
            raise ValidationError({"images": ["Images must be a JSON array of URLs"]}) from None
        review = Review.submit(
            product_id=command.product_id,
            customer_id=command.customer_id,
            rating=command.rating,
            title=command.title,
            text=command.text,
            images=images,
        )
        repo.add(review)
        return str(review.id)

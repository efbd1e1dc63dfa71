"""Review moderation and removal: commands and handler.

Any change that adds or removes an approved review refreshes the product's
rating summary.
"""

import structlog
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.exceptions import PermissionDenied
from storefront.reviews.review.rating import recalculate_product_rating
from storefront.reviews.review.review import Review, ReviewStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Review")
class ModerateReview:
    review_id = Identifier(required=True)
    action = String(required=True, max_length=10)  # approve | reject | flag
    moderator_id = Identifier()
    notes = Text()


@storefront.command(part_of="Review")
class DeleteReview:
    review_id = Identifier(required=True)
    requested_by = Identifier(required=True)
    is_admin = Boolean(default=False)


@storefront.command_handler(part_of=Review)
class ReviewModerationHandler:
    @handle(ModerateReview)
    def moderate(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        previous = review.moderate(command.action, moderator_id=command.moderator_id, notes=command.notes)
        repo.add(review)

        if ReviewStatus.APPROVED.value in (previous, review.status):
            recalculate_product_rating(review.product_id)
        return review.status

    @handle(DeleteReview)
    def delete(self, command):
        repo = current_domain.repository_for(Review)
        review = repo.get(command.review_id)

        if not command.is_admin and str(review.customer_id) != str(command.requested_by):
            raise PermissionDenied({"review_id": ["You can only delete your own reviews"]})

        was_approved = review.is_approved()
        repo._dao.delete(review)
        logger.info("Review deleted", review_id=str(review.id), product_id=str(review.product_id))

        if was_approved:
            recalculate_product_rating(review.product_id)

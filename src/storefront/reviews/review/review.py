"""Review aggregate (CQRS): a customer's rating and write-up of a product.

Moderation moves a review between statuses:
    PENDING → APPROVED | REJECTED | FLAGGED
    APPROVED, REJECTED, FLAGGED → any other moderated status

Only approved reviews count towards the product rating.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.reviews.review.events import ReviewModerated, ReviewSubmitted, ReviewVoteRecorded

MAX_IMAGES = 5


class ReviewStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FLAGGED = "flagged"


class VoteType(Enum):
    HELPFUL = "helpful"
    UNHELPFUL = "unhelpful"


class ModerationAction(Enum):
    APPROVE = "approve"
    REJECT = "reject"
    FLAG = "flag"


_ACTION_STATUS = {
    ModerationAction.APPROVE: ReviewStatus.APPROVED,
    ModerationAction.REJECT: ReviewStatus.REJECTED,
    ModerationAction.FLAG: ReviewStatus.FLAGGED,
}


@storefront.entity(part_of="Review")
class ReviewImage:
    url = String(required=True, max_length=500)
    display_order = Integer(default=0)


@storefront.entity(part_of="Review")
class ReviewVote:
    customer_id = Identifier(required=True)
    vote_type = String(choices=VoteType, required=True)
    voted_at = DateTime(required=True)


@storefront.aggregate
class Review:
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    title = String(required=True, max_length=200)
    text = Text(required=True)
    images = HasMany(ReviewImage)
    status = String(choices=ReviewStatus, default=ReviewStatus.PENDING.value)
    moderation_notes = Text()
    votes = HasMany(ReviewVote)
    helpful_count = Integer(default=0, min_value=0)
    unhelpful_count = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def images_cannot_exceed_maximum(self):
        if len(self.images) > MAX_IMAGES:
            raise ValidationError({"images": [f"Cannot attach more than {MAX_IMAGES} images to a review"]})

    @invariant.post
    def title_must_not_be_empty(self):
        if self.title is not None and not self.title.strip():
            raise ValidationError({"title": ["Review title cannot be empty"]})

    @classmethod
    def submit(cls, product_id, customer_id, rating, title, text, images=None):
        now = datetime.now(UTC)
        review = cls(
            product_id=product_id,
            customer_id=customer_id,
            rating=rating,
            title=title,
            text=text,
            images=[ReviewImage(url=url, display_order=i) for i, url in enumerate(images or [])],
            created_at=now,
            updated_at=now,
        )
        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                product_id=str(product_id),
                customer_id=str(customer_id),
                rating=rating,
                title=title,
                text=text,
                image_count=len(images or []),
                submitted_at=now,
            )
        )
        return review

    def is_approved(self):
        return self.status == ReviewStatus.APPROVED.value

    def moderate(self, action, moderator_id=None, notes=None):
        """Apply a moderation action. Returns the previous status."""
        try:
            target = _ACTION_STATUS[ModerationAction(action)]
        except ValueError:
            raise ValidationError({"action": [f"Unknown moderation action: {action}"]}) from None

        previous = self.status
        if previous == target.value:
            raise ValidationError({"status": [f"Review is already {target.value}"]})

        now = datetime.now(UTC)
        self.status = target.value
        self.moderation_notes = notes
        self.updated_at = now

        self.raise_(
            ReviewModerated(
                review_id=str(self.id),
                product_id=str(self.product_id),
                previous_status=previous,
                new_status=target.value,
                moderator_id=moderator_id,
                notes=notes,
                moderated_at=now,
            )
        )
        return previous

    def vote(self, customer_id, vote_type):
        """Record a helpful/unhelpful vote, or switch the customer's earlier vote."""
        if str(customer_id) == str(self.customer_id):
            raise ValidationError({"vote": ["Cannot vote on your own review"]})
        try:
            vote_type = VoteType(vote_type).value
        except ValueError:
            raise ValidationError({"vote_type": [f"Unknown vote type: {vote_type}"]}) from None

        now = datetime.now(UTC)
        existing = next((v for v in self.votes if str(v.customer_id) == str(customer_id)), None)
        if existing and existing.vote_type == vote_type:
            raise ValidationError({"vote": ["You have already voted on this review"]})

        with atomic_change(self):
            if existing:
                if existing.vote_type == VoteType.HELPFUL.value:
                    self.helpful_count -= 1
                else:
                    self.unhelpful_count -= 1
                existing.vote_type = vote_type
                existing.voted_at = now
            else:
                self.add_votes(ReviewVote(customer_id=customer_id, vote_type=vote_type, voted_at=now))

            if vote_type == VoteType.HELPFUL.value:
                self.helpful_count += 1
            else:
                self.unhelpful_count += 1
            self.updated_at = now

        self.raise_(
            ReviewVoteRecorded(
                review_id=str(self.id),
                customer_id=str(customer_id),
                vote_type=vote_type,
                helpful_count=self.helpful_count,
                unhelpful_count=self.unhelpful_count,
            )
        )

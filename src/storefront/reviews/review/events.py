"""Domain events for the Review aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Review")
class ReviewSubmitted:
    """A customer submitted a review, awaiting moderation."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    rating = Integer(required=True)
    title = String(required=True)
    text = Text()
    image_count = Integer(default=0)
    submitted_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewModerated:
    """A moderator approved, rejected or flagged a review."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    moderator_id = Identifier()
    notes = Text()
    moderated_at = DateTime(required=True)


@storefront.event(part_of="Review")
class ReviewVoteRecorded:
    __version__ = 1

    review_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    vote_type = String(required=True)
    helpful_count = Integer(required=True)
    unhelpful_count = Integer(required=True)

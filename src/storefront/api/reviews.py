"""Review endpoints: submission, voting, deletion and moderation."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.api.dependencies import Principal, current_principal, require_admin
from storefront.api.schemas import ModerateReviewRequest, SubmitReviewRequest, VoteRequest, ok
from storefront.reviews.review.moderation import DeleteReview, ModerateReview
from storefront.reviews.review.queries import review_view
from storefront.reviews.review.review import Review
from storefront.reviews.review.submission import SubmitReview
from storefront.reviews.review.voting import VoteOnReview

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", status_code=201)
async def submit_review(body: SubmitReviewRequest, principal: Principal = Depends(current_principal)):
    command = SubmitReview(
        product_id=body.product_id,
        customer_id=principal.customer_id,
        rating=body.rating,
        title=body.title,
        text=body.text,
        images=json.dumps(body.images) if body.images else None,
    )
    review_id = current_domain.process(command, asynchronous=False)
    return ok({"review_id": review_id, "status": "pending"}, "Review submitted for moderation")


@router.post("/{review_id}/vote")
async def vote(review_id: str, body: VoteRequest, principal: Principal = Depends(current_principal)):
    command = VoteOnReview(review_id=review_id, customer_id=principal.customer_id, vote_type=body.vote_type)
    counts = current_domain.process(command, asynchronous=False)
    return ok(counts)


@router.delete("/{review_id}")
async def delete_review(review_id: str, principal: Principal = Depends(current_principal)):
    command = DeleteReview(review_id=review_id, requested_by=principal.customer_id, is_admin=principal.is_admin)
    current_domain.process(command, asynchronous=False)
    return ok(message="Review deleted")


@router.put("/{review_id}/moderate")
async def moderate_review(review_id: str, body: ModerateReviewRequest, admin: Principal = Depends(require_admin)):
    command = ModerateReview(
        review_id=review_id,
        action=body.action,
        moderator_id=admin.customer_id,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return ok(review_view(current_domain.repository_for(Review).get(review_id)))

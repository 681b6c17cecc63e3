"""UpdateReview: the author rewrites their review, which sends it back to moderation."""

import json

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.review.lookup import load_review
from storefront.review.rating import recompute_product_rating
from storefront.review.review import Review, touches_approved


@storefront.command(part_of="Review")
class UpdateReview:
    review_id = Identifier(required=True)
    user_id = Identifier(required=True)  # Must match the author
    rating = Integer(min_value=1, max_value=5)
    title = String(max_length=200)
    comment = Text()
    images = Text()  # JSON array of image URLs


@storefront.command_handler(part_of=Review)
class UpdateReviewHandler:
    @handle(UpdateReview)
    def update_review(self, command):
        repo = current_domain.repository_for(Review)
        review = load_review(command.review_id)

        # Only pass what the caller actually sent
        kwargs = {}
        if command.rating is not None:
            kwargs["rating"] = command.rating
        if command.title is not None:
            kwargs["title"] = command.title
        if command.comment is not None:
            kwargs["comment"] = command.comment
        if command.images is not None:
            kwargs["images"] = json.loads(command.images)

        previous = review.edit(command.user_id, **kwargs)
        repo.add(review)

        if touches_approved(previous, review.status):
            recompute_product_rating(review.product_id)
        return str(review.id)

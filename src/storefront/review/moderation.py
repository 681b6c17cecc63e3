"""SetReviewStatus: admin moderation decision."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.review.lookup import load_review
from storefront.review.rating import recompute_product_rating
from storefront.review.review import Review, touches_approved

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Review")
class SetReviewStatus:
    review_id = Identifier(required=True)
    status = String(required=True, max_length=20)


@storefront.command_handler(part_of=Review)
class SetReviewStatusHandler:
    @handle(SetReviewStatus)
    def set_review_status(self, command):
        review = load_review(command.review_id)
        previous = review.set_status(command.status)
        current_domain.repository_for(Review).add(review)

        logger.info("review_moderated", review_id=str(review.id), previous_status=previous, status=review.status)
        if touches_approved(previous, review.status):
            recompute_product_rating(review.product_id)
        return review.status

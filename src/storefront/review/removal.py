"""DeleteReview: hard delete by the author or an admin."""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.review.lookup import load_review
from storefront.review.rating import recompute_product_rating
from storefront.review.review import Review, ReviewStatus
from storefront.shared.errors import Forbidden

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Review")
class DeleteReview:
    review_id = Identifier(required=True)
    user_id = Identifier()
    is_admin = Boolean(default=False)


@storefront.command_handler(part_of=Review)
class DeleteReviewHandler:
    @handle(DeleteReview)
    def delete_review(self, command):
        review = load_review(command.review_id)
        if not command.is_admin and not review.reviewer.is_user(command.user_id):
            raise Forbidden("Only the author or an admin can delete this review")

        was_approved = review.status == ReviewStatus.APPROVED.value
        product_id = review.product_id

        current_domain.repository_for(Review).remove(review)
        logger.info("review_deleted", review_id=str(command.review_id), by_admin=command.is_admin)

        if was_approved:
            recompute_product_rating(product_id)
        return str(command.review_id)

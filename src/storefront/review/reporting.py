"""ReportReview: flag a review for moderation."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.review.lookup import load_review
from storefront.review.rating import recompute_product_rating
from storefront.review.review import Review, touches_approved
from storefront.utils.config import setting

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Review")
class ReportReview:
    review_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(max_length=500)


@storefront.command_handler(part_of=Review)
class ReportReviewHandler:
    @handle(ReportReview)
    def report_review(self, command):
        review = load_review(command.review_id)
        previous = review.status

        reports_count = review.report(
            reporter_id=command.user_id,
            reason=command.reason,
            threshold=setting("review_report_threshold"),
            dedupe=setting("dedupe_review_reports"),
        )
        current_domain.repository_for(Review).add(review)

        if touches_approved(previous, review.status):
            logger.warning("review_forced_to_pending", review_id=str(review.id), reports_count=reports_count)
            recompute_product_rating(review.product_id)
        return {"reports_count": reports_count}

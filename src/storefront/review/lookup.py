from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.review.review import Review
from storefront.shared.errors import ReviewNotFound


def load_review(review_id) -> Review:
    try:
        return current_domain.repository_for(Review).get(review_id)
    except ObjectNotFoundError:
        raise ReviewNotFound(review_id) from None

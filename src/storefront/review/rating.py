"""Product rating aggregation.

A product's ``rating`` and ``review_count`` are never maintained
incrementally. Each time the approved set may have changed, they are
recomputed from scratch, so any earlier miss heals on the next trigger.
"""

import structlog
from protean.utils.globals import current_domain

from storefront.product.product import Product
from storefront.review.review import Review, ReviewStatus
from storefront.shared.money import round1
from storefront.shared.paging import fetch_all

logger = structlog.get_logger(__name__)

STARS = (1, 2, 3, 4, 5)


def summarize_ratings(ratings):
    """Average (one decimal), count and per-star histogram for a list of ratings."""
    ratings = list(ratings)
    distribution = {str(star): 0 for star in STARS}
    for rating in ratings:
        distribution[str(rating)] += 1

    return {
        "average_rating": round1(sum(ratings) / len(ratings)) if ratings else 0,
        "total_reviews": len(ratings),
        "distribution": distribution,
    }


def approved_reviews(product_id):
    query = current_domain.repository_for(Review)._dao.query.filter(
        product_id=str(product_id),
        status=ReviewStatus.APPROVED.value,
    )
    return fetch_all(query)


def recompute_product_rating(product_id):
    """Write the mean and count of approved ratings onto the product.

    Failures are logged and swallowed: a stale rating is acceptable, failing
    the review action that triggered the recompute is not. Returns the
    ``(rating, review_count)`` written, or None on failure.
    """
    try:
        summary = summarize_ratings(review.rating for review in approved_reviews(product_id))
        rating, count = summary["average_rating"], summary["total_reviews"]
        current_domain.repository_for(Product).update_rating(product_id, rating, count)
    except Exception as exc:
        logger.error("product_rating_recompute_failed", product_id=str(product_id), error=str(exc))
        return None

    logger.info("product_rating_recomputed", product_id=str(product_id), rating=rating, review_count=count)
    return rating, count

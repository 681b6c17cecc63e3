"""Review listings.

The public listing shows approved reviews only. Its statistics are computed
from the same approved set rather than read from the product's cached
rating, so the numbers shown always agree with the reviews shown.
"""

from datetime import UTC, datetime

from protean.utils.globals import current_domain

from storefront.review.rating import approved_reviews, summarize_ratings
from storefront.review.review import ReactionKind, Review
from storefront.shared.paging import clamp_page, fetch_all, pagination

DEFAULT_PAGE_SIZE = 10
ADMIN_PAGE_SIZE = 20
DEFAULT_SORT = "newest"

_EPOCH = datetime.min.replace(tzinfo=UTC)


def _created(review):
    created = review.created_at or _EPOCH
    return created if created.tzinfo else created.replace(tzinfo=UTC)


# sort key -> (key function, descending). Applied on top of a newest-first
# ordering, so ties keep the most recent review first.
SORTS = {
    "newest": None,
    "oldest": (_created, False),
    "highest": (lambda review: review.rating, True),
    "lowest": (lambda review: review.rating, False),
    "most_helpful": (lambda review: review.helpful, True),
    "most_liked": (lambda review: review.likes, True),
}


def sort_reviews(reviews, sort=DEFAULT_SORT):
    ordered = sorted(reviews, key=_created, reverse=True)
    ordering = SORTS.get(sort) or SORTS.get(DEFAULT_SORT)
    if ordering is None:
        return ordered
    key, descending = ordering
    # list.sort is stable, also with reverse=True
    ordered.sort(key=key, reverse=descending)
    return ordered


def list_reviews(product_id, sort=DEFAULT_SORT, page=1, limit=DEFAULT_PAGE_SIZE):
    """One page of a product's approved reviews plus rating statistics."""
    page, limit = clamp_page(page, limit, DEFAULT_PAGE_SIZE)
    reviews = approved_reviews(product_id)
    ordered = sort_reviews(reviews, sort)

    start = (page - 1) * limit
    items = ordered[start : start + limit]
    return {
        "items": items,
        "count": len(items),
        "total": len(ordered),
        "pagination": pagination(page, limit, len(ordered)),
        "statistics": summarize_ratings(review.rating for review in reviews),
    }


def list_all_reviews(status=None, page=1, limit=ADMIN_PAGE_SIZE):
    """Admin listing across all products, newest first, optionally by status."""
    page, limit = clamp_page(page, limit, ADMIN_PAGE_SIZE)
    query = current_domain.repository_for(Review)._dao.query
    if status:
        query = query.filter(status=status)

    result = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
    return {
        "items": result.items,
        "count": len(result.items),
        "total": result.total,
        "pagination": pagination(page, limit, result.total),
    }


def review_interactions(user_id):
    """Ids of the reviews a user has marked helpful and liked."""
    helpful, liked = [], []
    for review in fetch_all(current_domain.repository_for(Review)._dao.query):
        if str(user_id) in review.reactors(ReactionKind.HELPFUL.value):
            helpful.append(str(review.id))
        if str(user_id) in review.reactors(ReactionKind.LIKE.value):
            liked.append(str(review.id))
    return {"helpful_reviews": helpful, "liked_reviews": liked}

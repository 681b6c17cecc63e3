"""CreateReview: post a review as a signed-in user or as a guest.

One review per product per user. Guests are held to one review per product
per email when they give one; guests without an email are not limited.
A signed-in user's review is flagged as a verified purchase when one of
their delivered orders contains the product.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order, OrderStatus
from storefront.product.product import Product
from storefront.review.rating import recompute_product_rating
from storefront.review.review import Review, Reviewer, ReviewStatus
from storefront.shared.errors import DuplicateReview
from storefront.shared.paging import fetch_all
from storefront.utils.config import setting

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Review")
class CreateReview:
    product_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    title = String(required=True, max_length=200)
    comment = Text(required=True)
    images = Text()  # JSON array of image URLs
    user_id = Identifier()
    guest_name = String(max_length=100)
    guest_email = String(max_length=254)


def _delivered_order_with(user_id, product_id):
    query = current_domain.repository_for(Order)._dao.query.filter(
        user_id=str(user_id),
        status=OrderStatus.DELIVERED.value,
    )
    return next((order for order in fetch_all(query) if order.contains_product(product_id)), None)


@storefront.command_handler(part_of=Review)
class CreateReviewHandler:
    @handle(CreateReview)
    def create_review(self, command):
        if command.user_id:
            reviewer = Reviewer.authenticated(command.user_id)
        else:
            reviewer = Reviewer.guest(command.guest_name, command.guest_email)

        current_domain.repository_for(Product).find_by_id(command.product_id)

        repo = current_domain.repository_for(Review)
        criteria = reviewer.duplicate_criteria()
        if criteria is not None:
            existing = repo._dao.query.filter(product_id=str(command.product_id), **criteria).all()
            if existing.items:
                raise DuplicateReview()

        verified, order_id = False, None
        if not reviewer.is_guest:
            order = _delivered_order_with(command.user_id, command.product_id)
            if order is not None:
                verified, order_id = True, str(order.id)

        review = Review.submit(
            product_id=command.product_id,
            reviewer=reviewer,
            rating=command.rating,
            title=command.title,
            comment=command.comment,
            images=json.loads(command.images) if command.images else None,
            order_id=order_id,
            verified=verified,
            auto_approve=setting("auto_approve_reviews"),
        )
        repo.add(review)

        logger.info(
            "review_created",
            review_id=str(review.id),
            product_id=str(command.product_id),
            guest=reviewer.is_guest,
            verified=verified,
            status=review.status,
        )

        if review.status == ReviewStatus.APPROVED.value:
            recompute_product_rating(command.product_id)
        return str(review.id)

"""Storefront domain: order placement, pricing, reviews and ratings.

A single bounded context that owns Orders and Reviews and keeps the
Product and Coupon records that both of them consult.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

storefront = Domain(name="storefront")

"""Storefront API package."""

from storefront.api.errors import register_error_handlers
from storefront.api.routes import catalog_router, order_router, review_router

__all__ = ["catalog_router", "order_router", "review_router", "register_error_handlers"]

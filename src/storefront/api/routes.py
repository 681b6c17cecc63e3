"""FastAPI routes for the storefront.

Each route translates between Pydantic schemas (external contract) and
Protean commands (internal domain concepts). The caller's identity is
resolved upstream and arrives in the ``X-User-Id`` and ``X-User-Role``
headers; no header means an anonymous guest.
"""

import json

from fastapi import APIRouter, Header, HTTPException
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddProductRequest,
    CreateCouponRequest,
    CreateReviewRequest,
    HelpfulResponse,
    IdResponse,
    InteractionsResponse,
    LikeResponse,
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
    ProductResponse,
    ProductReviewsResponse,
    ReportResponse,
    ReportReviewRequest,
    RestockRequest,
    ReviewListResponse,
    ReviewResponse,
    SetReviewStatusRequest,
    StatusResponse,
    UpdateOrderStatusRequest,
    UpdateReviewRequest,
)
from storefront.coupon.creation import CreateCoupon
from storefront.order.order import Order
from storefront.order.placement import PlaceOrder
from storefront.order.queries import get_order, list_orders, orders_for_user
from storefront.order.status import UpdateOrderStatus
from storefront.product.creation import AddProduct
from storefront.product.product import Product
from storefront.product.stock import RestockProduct
from storefront.review.editing import UpdateReview
from storefront.review.listing import list_all_reviews, list_reviews, review_interactions
from storefront.review.lookup import load_review
from storefront.review.moderation import SetReviewStatus
from storefront.review.removal import DeleteReview
from storefront.review.reporting import ReportReview
from storefront.review.submission import CreateReview
from storefront.review.voting import ToggleHelpful, ToggleLike

ADMIN_ROLE = "admin"

order_router = APIRouter(prefix="/orders", tags=["orders"])
review_router = APIRouter(prefix="/reviews", tags=["reviews"])
catalog_router = APIRouter(tags=["catalog"])


def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user_id


def _require_admin(user_id: str | None, role: str | None) -> str:
    _require_user(user_id)
    if role != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user_id


# --- Catalog endpoints ---


@catalog_router.post("/products", status_code=201, response_model=ProductResponse)
async def add_product(
    body: AddProductRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> ProductResponse:
    """Add a product to the catalog (admin)."""
    _require_admin(x_user_id, x_user_role)
    command = AddProduct(
        name=body.name,
        price=body.price,
        stock=body.stock,
        track_quantity=body.track_quantity,
        description=body.description,
        sku=body.sku,
        compare_price=body.compare_price,
        status=body.status,
        variants=json.dumps([v.model_dump() for v in body.variants]) if body.variants else None,
    )
    product_id = current_domain.process(command, asynchronous=False)
    return ProductResponse.from_product(current_domain.repository_for(Product).get(product_id))


@catalog_router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    return ProductResponse.from_product(current_domain.repository_for(Product).find_by_id(product_id))


@catalog_router.post("/products/{product_id}/restock", response_model=ProductResponse)
async def restock_product(
    product_id: str,
    body: RestockRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> ProductResponse:
    _require_admin(x_user_id, x_user_role)
    current_domain.process(RestockProduct(product_id=product_id, quantity=body.quantity), asynchronous=False)
    return ProductResponse.from_product(current_domain.repository_for(Product).find_by_id(product_id))


@catalog_router.post("/coupons", status_code=201, response_model=IdResponse)
async def create_coupon(
    body: CreateCouponRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> IdResponse:
    _require_admin(x_user_id, x_user_role)
    coupon_id = current_domain.process(CreateCoupon(**body.model_dump()), asynchronous=False)
    return IdResponse(id=coupon_id)


# --- Order endpoints ---


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(
    body: PlaceOrderRequest,
    x_user_id: str | None = Header(default=None),
) -> OrderResponse:
    """Place an order as the signed-in user, or as a guest when no user is given."""
    command = PlaceOrder(
        user_id=x_user_id,
        guest_email=body.guest_email,
        items=json.dumps([item.model_dump() for item in body.items]),
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        billing_address=json.dumps(body.billing_address.model_dump()) if body.billing_address else None,
        shipping_method=body.shipping_method,
        coupon_code=body.coupon_code,
        notes=body.notes,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return OrderResponse.from_order(current_domain.repository_for(Order).get(order_id))


@order_router.get("/mine", response_model=list[OrderResponse])
async def my_orders(x_user_id: str | None = Header(default=None)) -> list[OrderResponse]:
    user_id = _require_user(x_user_id)
    return [OrderResponse.from_order(order) for order in orders_for_user(user_id)]


@order_router.get("", response_model=OrderListResponse)
async def all_orders(
    page: int = 1,
    limit: int = 20,
    status: str | None = None,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderListResponse:
    _require_admin(x_user_id, x_user_role)
    result = list_orders(page=page, limit=limit, status=status)
    return OrderListResponse(
        items=[OrderResponse.from_order(order) for order in result["items"]],
        count=result["count"],
        total=result["total"],
        pagination=result["pagination"],
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def order_detail(
    order_id: str,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderResponse:
    user_id = _require_user(x_user_id)
    order = get_order(order_id, user_id=user_id, is_admin=x_user_role == ADMIN_ROLE)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> OrderResponse:
    """Update fulfilment status, payment status and tracking (admin)."""
    _require_admin(x_user_id, x_user_role)
    current_domain.process(UpdateOrderStatus(order_id=order_id, **body.model_dump()), asynchronous=False)
    return OrderResponse.from_order(current_domain.repository_for(Order).get(order_id))


# --- Review endpoints ---


@review_router.post("", status_code=201, response_model=ReviewResponse)
async def create_review(
    body: CreateReviewRequest,
    x_user_id: str | None = Header(default=None),
) -> ReviewResponse:
    """Post a review as the signed-in user, or as a guest with a name."""
    command = CreateReview(
        product_id=body.product_id,
        rating=body.rating,
        title=body.title,
        comment=body.comment,
        images=json.dumps(body.images) if body.images else None,
        user_id=x_user_id,
        guest_name=None if x_user_id else body.guest_name,
        guest_email=None if x_user_id else body.guest_email,
    )
    review_id = current_domain.process(command, asynchronous=False)
    return ReviewResponse.from_review(load_review(review_id))


@review_router.get("/product/{product_id}", response_model=ProductReviewsResponse)
async def product_reviews(
    product_id: str,
    sort: str = "newest",
    page: int = 1,
    limit: int = 10,
) -> ProductReviewsResponse:
    """Approved reviews for a product with rating statistics."""
    current_domain.repository_for(Product).find_by_id(product_id)
    result = list_reviews(product_id, sort=sort, page=page, limit=limit)
    return ProductReviewsResponse(
        items=[ReviewResponse.from_review(review) for review in result["items"]],
        count=result["count"],
        total=result["total"],
        pagination=result["pagination"],
        statistics=result["statistics"],
    )


@review_router.get("", response_model=ReviewListResponse)
async def all_reviews(
    status: str | None = None,
    page: int = 1,
    limit: int = 20,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> ReviewListResponse:
    _require_admin(x_user_id, x_user_role)
    result = list_all_reviews(status=status, page=page, limit=limit)
    return ReviewListResponse(
        items=[ReviewResponse.from_review(review) for review in result["items"]],
        count=result["count"],
        total=result["total"],
        pagination=result["pagination"],
    )


@review_router.get("/interactions", response_model=InteractionsResponse)
async def my_interactions(x_user_id: str | None = Header(default=None)) -> InteractionsResponse:
    user_id = _require_user(x_user_id)
    return InteractionsResponse(**review_interactions(user_id))


@review_router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    body: UpdateReviewRequest,
    x_user_id: str | None = Header(default=None),
) -> ReviewResponse:
    """Edit your own review. It goes back to moderation."""
    user_id = _require_user(x_user_id)
    command = UpdateReview(
        review_id=review_id,
        user_id=user_id,
        rating=body.rating,
        title=body.title,
        comment=body.comment,
        images=json.dumps(body.images) if body.images is not None else None,
    )
    current_domain.process(command, asynchronous=False)
    return ReviewResponse.from_review(load_review(review_id))


@review_router.put("/{review_id}/status", response_model=ReviewResponse)
async def set_review_status(
    review_id: str,
    body: SetReviewStatusRequest,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> ReviewResponse:
    _require_admin(x_user_id, x_user_role)
    current_domain.process(SetReviewStatus(review_id=review_id, status=body.status), asynchronous=False)
    return ReviewResponse.from_review(load_review(review_id))


@review_router.post("/{review_id}/helpful", response_model=HelpfulResponse)
async def toggle_helpful(review_id: str, x_user_id: str | None = Header(default=None)) -> HelpfulResponse:
    user_id = _require_user(x_user_id)
    result = current_domain.process(ToggleHelpful(review_id=review_id, user_id=user_id), asynchronous=False)
    return HelpfulResponse(**result)


@review_router.post("/{review_id}/like", response_model=LikeResponse)
async def toggle_like(review_id: str, x_user_id: str | None = Header(default=None)) -> LikeResponse:
    user_id = _require_user(x_user_id)
    result = current_domain.process(ToggleLike(review_id=review_id, user_id=user_id), asynchronous=False)
    return LikeResponse(**result)


@review_router.post("/{review_id}/report", response_model=ReportResponse)
async def report_review(
    review_id: str,
    body: ReportReviewRequest,
    x_user_id: str | None = Header(default=None),
) -> ReportResponse:
    user_id = _require_user(x_user_id)
    result = current_domain.process(
        ReportReview(review_id=review_id, user_id=user_id, reason=body.reason),
        asynchronous=False,
    )
    return ReportResponse(**result)


@review_router.delete("/{review_id}", response_model=StatusResponse)
async def delete_review(
    review_id: str,
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> StatusResponse:
    user_id = _require_user(x_user_id)
    command = DeleteReview(review_id=review_id, user_id=user_id, is_admin=x_user_role == ADMIN_ROLE)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="deleted")

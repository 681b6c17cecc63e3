"""Pydantic request/response schemas for the storefront API.

These are separate from Protean commands (anti-corruption pattern).
The API layer is the external contract; commands are internal domain concepts.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    email: str | None = None
    street: str
    district: str | None = None
    city: str
    postal_code: str | None = None
    country: str | None = None

    @classmethod
    def from_value_object(cls, address) -> AddressSchema | None:
        if address is None:
            return None
        return cls(**{name: getattr(address, name) for name in cls.model_fields})


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
class VariantSchema(BaseModel):
    name: str | None = None
    size: str | None = None
    color: str | None = None
    sku: str | None = None
    price: float | None = Field(default=None, ge=0)
    stock: int = 0


class AddProductRequest(BaseModel):
    name: str
    price: float = Field(ge=0)
    stock: int = 0
    track_quantity: bool = True
    description: str | None = None
    sku: str | None = None
    compare_price: float | None = Field(default=None, ge=0)
    status: str = "active"
    variants: list[VariantSchema] | None = None


class RestockRequest(BaseModel):
    quantity: int


class VariantResponse(VariantSchema):
    id: str


class ProductResponse(BaseModel):
    id: str
    name: str
    price: float
    compare_price: float | None = None
    sku: str | None = None
    stock: int
    track_quantity: bool
    status: str
    rating: float
    review_count: int
    variants: list[VariantResponse] = []

    @classmethod
    def from_product(cls, product) -> ProductResponse:
        return cls(
            id=str(product.id),
            name=product.name,
            price=product.price,
            compare_price=product.compare_price,
            sku=product.sku,
            stock=product.stock,
            track_quantity=product.track_quantity,
            status=product.status,
            rating=product.rating or 0.0,
            review_count=product.review_count or 0,
            variants=[
                VariantResponse(
                    id=str(v.id),
                    name=v.name,
                    size=v.size,
                    color=v.color,
                    sku=v.sku,
                    price=v.price,
                    stock=v.stock or 0,
                )
                for v in product.variants
            ],
        )


class CreateCouponRequest(BaseModel):
    code: str
    discount_type: str
    value: float = Field(ge=0)
    valid_from: datetime
    valid_until: datetime
    minimum_amount: float = 0.0
    maximum_discount: float | None = None
    usage_limit: int = 1
    description: str | None = None
    is_active: bool = True


class IdResponse(BaseModel):
    id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemSchema(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int


class PlaceOrderRequest(BaseModel):
    items: list[OrderItemSchema]
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    shipping_method: str | None = None
    coupon_code: str | None = None
    guest_email: str | None = None
    notes: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: str | None = None
    payment_status: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None


class OrderLineResponse(BaseModel):
    product_id: str
    product_name: str
    variant_id: str | None = None
    variant_name: str | None = None
    size: str | None = None
    color: str | None = None
    sku: str | None = None
    quantity: int
    unit_price: float
    line_total: float


class PricingResponse(BaseModel):
    subtotal: float
    shipping: float
    tax: float
    discount: float
    total: float
    currency: str


class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str | None = None
    guest_email: str | None = None
    status: str
    payment_status: str
    payment_method: str
    shipping_method: str | None = None
    coupon_code: str | None = None
    lines: list[OrderLineResponse]
    pricing: PricingResponse
    shipping_address: AddressSchema
    billing_address: AddressSchema
    tracking_number: str | None = None
    carrier: str | None = None
    notes: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> OrderResponse:
        pricing = order.pricing
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id) if order.user_id else None,
            guest_email=order.guest.email if order.guest else None,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            shipping_method=order.shipping_method,
            coupon_code=order.coupon_code,
            lines=[
                OrderLineResponse(
                    product_id=str(line.product_id),
                    product_name=line.product_name,
                    variant_id=str(line.variant_id) if line.variant_id else None,
                    variant_name=line.variant_name,
                    size=line.size,
                    color=line.color,
                    sku=line.sku,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    line_total=line.line_total,
                )
                for line in order.lines
            ],
            pricing=PricingResponse(
                subtotal=pricing.subtotal,
                shipping=pricing.shipping,
                tax=pricing.tax,
                discount=pricing.discount,
                total=pricing.total,
                currency=pricing.currency,
            ),
            shipping_address=AddressSchema.from_value_object(order.shipping_address),
            billing_address=AddressSchema.from_value_object(order.billing_address),
            tracking_number=order.tracking_number,
            carrier=order.carrier,
            notes=order.notes,
            created_at=order.created_at,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    count: int
    total: int
    pagination: PaginationSchema


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class CreateReviewRequest(BaseModel):
    product_id: str
    rating: int
    title: str
    comment: str
    images: list[str] | None = None
    guest_name: str | None = None
    guest_email: str | None = None


class UpdateReviewRequest(BaseModel):
    rating: int | None = None
    title: str | None = None
    comment: str | None = None
    images: list[str] | None = None


class SetReviewStatusRequest(BaseModel):
    status: str


class ReportReviewRequest(BaseModel):
    reason: str = ""


class ReviewResponse(BaseModel):
    id: str
    product_id: str
    user_id: str | None = None
    guest_name: str | None = None
    rating: int
    title: str
    comment: str
    images: list[str] = []
    status: str
    verified: bool
    helpful: int
    likes: int
    reports_count: int
    is_edited: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_review(cls, review) -> ReviewResponse:
        return cls(
            id=str(review.id),
            product_id=str(review.product_id),
            user_id=str(review.user_id) if review.user_id else None,
            guest_name=review.guest_name,
            rating=review.rating,
            title=review.title,
            comment=review.comment,
            images=review.image_urls,
            status=review.status,
            verified=bool(review.verified),
            helpful=review.helpful or 0,
            likes=review.likes or 0,
            reports_count=review.reports_count or 0,
            is_edited=bool(review.is_edited),
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


class RatingStatistics(BaseModel):
    average_rating: float
    total_reviews: int
    distribution: dict[str, int]


class ProductReviewsResponse(BaseModel):
    items: list[ReviewResponse]
    count: int
    total: int
    pagination: PaginationSchema
    statistics: RatingStatistics


class ReviewListResponse(BaseModel):
    items: list[ReviewResponse]
    count: int
    total: int
    pagination: PaginationSchema


class HelpfulResponse(BaseModel):
    helpful: int
    action: str


class LikeResponse(BaseModel):
    likes: int
    action: str


class ReportResponse(BaseModel):
    reports_count: int


class InteractionsResponse(BaseModel):
    helpful_reviews: list[str]
    liked_reviews: list[str]

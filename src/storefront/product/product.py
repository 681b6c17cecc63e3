"""Product aggregate root with Variant entity.

Stock and status move together: a tracked product with no stock is
out_of_stock, and an out_of_stock product that gets stock back is active
again. ``rating`` and ``review_count`` are derived from approved reviews and
are only written by the rating recomputation.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Integer, String, Text

from storefront.domain import storefront
from storefront.product.events import ProductAdded


class ProductStatus(Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"
    OUT_OF_STOCK = "out_of_stock"


def stock_status(track_quantity, stock, status):
    """Return the status a product must carry for the given stock level."""
    if track_quantity and stock <= 0:
        return ProductStatus.OUT_OF_STOCK.value
    if status == ProductStatus.OUT_OF_STOCK.value and stock > 0:
        return ProductStatus.ACTIVE.value
    return status


@storefront.entity(part_of="Product")
class Variant:
    """A purchasable variation of a product with its own price."""

    name: String(max_length=100)
    size: String(max_length=50)
    color: String(max_length=50)
    sku: String(max_length=100)
    price: Float(min_value=0.0)
    stock: Integer(default=0)


@storefront.aggregate
class Product:
    """Product aggregate root."""

    name: String(required=True, max_length=255)
    description: Text()
    sku: String(max_length=100)
    price: Float(required=True, min_value=0.0)
    compare_price: Float(min_value=0.0)
    track_quantity: Boolean(default=True)
    stock: Integer(default=0)
    status: String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    rating: Float(default=0.0, min_value=0.0, max_value=5.0)
    review_count: Integer(default=0, min_value=0)
    variants: HasMany(Variant)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def status_must_follow_stock(self):
        expected = stock_status(self.track_quantity, self.stock or 0, self.status)
        if self.status != expected:
            raise ValidationError({"status": [f"Product with stock {self.stock} must be {expected}"]})

    @classmethod
    def add(
        cls,
        name,
        price,
        stock=0,
        track_quantity=True,
        description=None,
        sku=None,
        compare_price=None,
        status=ProductStatus.ACTIVE.value,
        variants=None,
    ):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            description=description,
            sku=sku,
            price=price,
            compare_price=compare_price,
            track_quantity=track_quantity,
            stock=stock,
            status=stock_status(track_quantity, stock, status),
            rating=0.0,
            review_count=0,
            created_at=now,
            updated_at=now,
        )

        for variant in variants or []:
            product.add_variants(Variant(**variant))

        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=name,
                price=price,
                stock=stock,
                track_quantity=track_quantity,
                status=product.status,
                added_at=now,
            )
        )
        return product

    def variant(self, variant_id):
        """Return the variant with the given id, or None."""
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def can_supply(self, quantity):
        return not self.track_quantity or self.stock >= quantity


"""Coupon aggregate.

A coupon is usable only while it is active, inside its validity window and
below its usage limit. A ``usage_limit`` of 0 means unlimited.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from storefront.domain import storefront


class CouponType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code):
    return (code or "").strip().upper()


def _aware(value):
    """Treat naive datetimes read back from storage as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@storefront.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    description = String(max_length=255)
    discount_type = String(choices=CouponType, required=True)
    value = Float(required=True, min_value=0.0)
    minimum_amount = Float(default=0.0, min_value=0.0)
    maximum_discount = Float(min_value=0.0)
    usage_limit = Integer(default=1, min_value=0)
    used_count = Integer(default=0, min_value=0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def usage_cannot_exceed_limit(self):
        if self.usage_limit and self.used_count > self.usage_limit:
            raise ValidationError({"used_count": ["Coupon usage cannot exceed its usage limit"]})

    @invariant.post
    def window_must_be_ordered(self):
        if self.valid_from and self.valid_until and _aware(self.valid_until) < _aware(self.valid_from):
            raise ValidationError({"valid_until": ["Coupon must not expire before it starts"]})

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == CouponType.PERCENTAGE.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["Percentage discount cannot exceed 100"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        value,
        valid_from,
        valid_until,
        minimum_amount=0.0,
        maximum_discount=None,
        usage_limit=1,
        description=None,
        is_active=True,
    ):
        return cls(
            code=normalize_code(code),
            description=description,
            discount_type=discount_type,
            value=value,
            minimum_amount=minimum_amount or 0.0,
            maximum_discount=maximum_discount,
            usage_limit=usage_limit,
            used_count=0,
            valid_from=valid_from,
            valid_until=valid_until,
            is_active=is_active,
            created_at=datetime.now(UTC),
        )

    def is_within_window(self, now=None):
        now = now or datetime.now(UTC)
        return _aware(self.valid_from) <= now <= _aware(self.valid_until)

    @property
    def is_exhausted(self):
        return bool(self.usage_limit) and self.used_count >= self.usage_limit

    def is_valid_for_use(self, now=None):
        return bool(self.is_active) and self.is_within_window(now) and not self.is_exhausted

    def discount_for(self, subtotal):
        """Discount this coupon grants on ``subtotal``, before any clamping."""
        if self.discount_type == CouponType.PERCENTAGE.value:
            discount = subtotal * self.value / 100
            if self.maximum_discount is not None:
                discount = min(discount, self.maximum_discount)
            return discount
        return self.value

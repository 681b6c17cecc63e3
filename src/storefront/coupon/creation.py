"""CreateCoupon: register a discount code."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String
from protean.utils.globals import current_domain

from storefront.coupon.coupon import Coupon, CouponType, normalize_code
from storefront.domain import storefront


@storefront.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    discount_type = String(choices=CouponType, required=True)
    value = Float(required=True, min_value=0.0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    minimum_amount = Float(default=0.0)
    maximum_discount = Float()
    usage_limit = Integer(default=1, min_value=0)
    description = String(max_length=255)
    is_active = Boolean(default=True)


@storefront.command_handler(part_of=Coupon)
class CreateCouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": [f"Coupon {normalize_code(command.code)} already exists"]})

        coupon = Coupon.create(
            code=command.code,
            discount_type=command.discount_type,
            value=command.value,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            minimum_amount=command.minimum_amount,
            maximum_discount=command.maximum_discount,
            usage_limit=command.usage_limit,
            description=command.description,
            is_active=command.is_active,
        )
        repo.add(coupon)
        return str(coupon.id)

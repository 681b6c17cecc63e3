"""Storefront exceptions.

Everything here extends a Protean exception so the FastAPI integration
already knows how to render it:

* ``ValidationError`` subclasses describe business-rule conflicts and
  surface as 400 with field-level messages.
* ``ObjectNotFoundError`` subclasses surface as 404.
* ``Forbidden`` is an ownership or role failure and surfaces as 403.
* ``ConcurrentUpdateConflict`` means a conditional write kept losing races
  and surfaces as 409. The request can be retried as is.
"""

from protean.exceptions import InvalidOperationError, InvalidStateError, ObjectNotFoundError, ValidationError


class InsufficientStock(ValidationError):
    """Requested quantity exceeds what the product has on hand."""

    def __init__(self, product_id, name, available, requested):
        self.product_id = str(product_id)
        self.available = available
        self.requested = requested
        super().__init__(
            {"stock": [f"Insufficient stock for {name}: {available} available, {requested} requested"]}
        )


class InvalidCoupon(ValidationError):
    def __init__(self, code):
        self.code = code
        super().__init__({"coupon_code": [f"Coupon {code} is invalid or expired"]})


class CouponExhausted(ValidationError):
    def __init__(self, code):
        self.code = code
        super().__init__({"coupon_code": [f"Coupon {code} has reached its usage limit"]})


class CouponMinimumNotMet(ValidationError):
    def __init__(self, code, minimum_amount, subtotal):
        self.code = code
        self.minimum_amount = minimum_amount
        self.subtotal = subtotal
        super().__init__(
            {"coupon_code": [f"Coupon {code} requires a minimum order of {minimum_amount}, subtotal is {subtotal}"]}
        )


class DuplicateReview(ValidationError):
    def __init__(self):
        super().__init__({"review": ["You have already reviewed this product"]})


class DuplicateReport(ValidationError):
    def __init__(self):
        super().__init__({"report": ["You have already reported this review"]})


class NotFound(ObjectNotFoundError):
    """A missing resource, carrying field-level messages like ``ValidationError``."""

    def __init__(self, messages):
        self.messages = messages
        super().__init__(messages)


class ProductNotFound(NotFound):
    def __init__(self, product_id):
        self.product_id = str(product_id)
        super().__init__({"product_id": [f"Product {product_id} not found"]})


class OrderNotFound(NotFound):
    def __init__(self, order_id):
        super().__init__({"order_id": [f"Order {order_id} not found"]})


class ReviewNotFound(NotFound):
    def __init__(self, review_id):
        super().__init__({"review_id": [f"Review {review_id} not found"]})


class Forbidden(InvalidOperationError):
    """The caller is authenticated but not allowed to act on this resource."""

    def __init__(self, message="Not authorized to perform this action"):
        self.messages = {"_entity": [message]}
        super().__init__(message)


class ConcurrentUpdateConflict(InvalidStateError):
    """Every attempt at a conditional write lost to a concurrent writer."""

    def __init__(self, kind, identifier):
        self.kind = kind
        self.identifier = str(identifier)
        super().__init__(f"Too many concurrent updates to {kind} {identifier}, please retry")

"""Order aggregate (CQRS).

An order is a financial record. It is created once by the placement
pipeline with frozen line prices and an order number that is never
reassigned, and it is never deleted. Afterwards only fulfilment fields
move: status, payment status and shipment tracking.

State Machine:
    PENDING → CONFIRMED → PREPARING → SHIPPED → DELIVERED
    CANCELLED and RETURNED are terminal and reachable from every
    non-terminal state.

Payment:
    PENDING → PAID | FAILED | CANCELLED
"""

import re
import secrets
import string
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ConfigurationError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from storefront.domain import storefront
from storefront.order.events import OrderPlaced, OrderStatusChanged, PaymentStatusChanged, ShipmentTracked
from storefront.shared.email import is_valid_email
from storefront.shared.money import round2


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    PAY_ON_DELIVERY = "pay_on_delivery"


# ---------------------------------------------------------------------------
# State Machines
# ---------------------------------------------------------------------------
_SIDE_BRANCHES = {OrderStatus.CANCELLED, OrderStatus.RETURNED}

_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED} | _SIDE_BRANCHES,
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING} | _SIDE_BRANCHES,
    OrderStatus.PREPARING: {OrderStatus.SHIPPED} | _SIDE_BRANCHES,
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED} | _SIDE_BRANCHES,
    OrderStatus.DELIVERED: set(_SIDE_BRANCHES),
    OrderStatus.RETURNED: set(),
    OrderStatus.CANCELLED: set(),
}

_VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED, PaymentStatus.CANCELLED},
    PaymentStatus.PAID: set(),
    PaymentStatus.FAILED: set(),
    PaymentStatus.CANCELLED: set(),
}

ORDER_NUMBER_PATTERN = re.compile(r"^[A-Z0-9]+-\d{8}-[A-Z0-9]{9}$")
_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def _parse(enum_cls, value, field):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError({field: [f"Invalid {field} {value!r}, expected one of: {allowed}"]}) from None


def normalize_order_prefix(prefix):
    """Upper-case ``prefix`` and drop characters an order number cannot carry."""
    cleaned = re.sub(r"[^A-Z0-9]", "", str(prefix or "").upper())
    if not cleaned:
        raise ConfigurationError(f"order_number_prefix {prefix!r} has no letters or digits")
    return cleaned


def generate_order_number(prefix, now=None):
    """Build ``PREFIX-YYYYMMDD-RAND9`` from the UTC creation date."""
    prefix = normalize_order_prefix(prefix)
    now = now or datetime.now(UTC)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(9))
    return f"{prefix}-{now:%Y%m%d}-{suffix}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class Address:
    """A delivery or billing address copied onto the order at placement."""

    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=30)
    email = String(max_length=254)
    street = String(required=True, max_length=255)
    district = String(max_length=100)
    city = String(required=True, max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=100)


@storefront.value_object(part_of="Order")
class GuestContact:
    """Who to reach for an order placed without an account."""

    email = String(required=True, max_length=254)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=30)

    @invariant.post
    def email_must_be_well_formed(self):
        if self.email and not is_valid_email(self.email):
            raise ValidationError({"guest_email": [f"Invalid email address: {self.email}"]})


@storefront.value_object(part_of="Order")
class OrderPricing:
    """Amounts locked at placement. Later catalog or coupon edits never change them."""

    subtotal = Float(default=0.0, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)
    currency = String(max_length=3, default="XOF")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderLine:
    """A product, an optional variant snapshot and the price paid per unit."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    variant_id = Identifier()
    variant_name = String(max_length=100)
    size = String(max_length=50)
    color = String(max_length=50)
    sku = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    line_total = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=40, unique=True)
    user_id = Identifier()
    guest = ValueObject(GuestContact)
    lines = HasMany(OrderLine)
    pricing = ValueObject(OrderPricing, required=True)
    coupon_id = Identifier()
    coupon_code = String(max_length=50)
    shipping_address = ValueObject(Address, required=True)
    billing_address = ValueObject(Address, required=True)
    shipping_method = String(max_length=50)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.PAY_ON_DELIVERY.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    tracking_number = String(max_length=100)
    carrier = String(max_length=100)
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def must_have_at_least_one_line(self):
        if not self.lines:
            raise ValidationError({"lines": ["An order must contain at least one item"]})

    @invariant.post
    def order_number_must_be_well_formed(self):
        if self.order_number and not ORDER_NUMBER_PATTERN.match(self.order_number):
            raise ValidationError({"order_number": [f"Malformed order number {self.order_number}"]})

    @invariant.post
    def must_belong_to_user_or_guest(self):
        if not self.user_id and not self.guest:
            raise ValidationError({"user_id": ["An order needs either a user or guest contact details"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        lines,
        pricing,
        shipping_address,
        prefix,
        user_id=None,
        guest=None,
        billing_address=None,
        shipping_method=None,
        coupon_id=None,
        coupon_code=None,
        notes=None,
    ):
        """Create a pending, pay-on-delivery order.

        Args:
            lines: dicts with product_id, product_name, quantity, unit_price and
                optional variant fields.
            pricing: the OrderPricing computed for these lines.
            shipping_address / billing_address: Address value objects. Billing
                falls back to shipping.
            prefix: order number prefix.
        """
        now = datetime.now(UTC)

        order = cls(
            order_number=generate_order_number(prefix, now),
            user_id=user_id,
            guest=guest,
            lines=[OrderLine(line_total=round2(line["unit_price"] * line["quantity"]), **line) for line in lines],
            pricing=pricing,
            coupon_id=coupon_id,
            coupon_code=coupon_code,
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            shipping_method=shipping_method,
            payment_method=PaymentMethod.PAY_ON_DELIVERY.value,
            payment_status=PaymentStatus.PENDING.value,
            status=OrderStatus.PENDING.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id) if user_id else None,
                guest_email=guest.email if guest else None,
                item_count=sum(line["quantity"] for line in lines),
                subtotal=pricing.subtotal,
                discount=pricing.discount,
                shipping=pricing.shipping,
                tax=pricing.tax,
                total=pricing.total,
                currency=pricing.currency,
                coupon_code=coupon_code,
                shipping_method=shipping_method,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def contains_product(self, product_id):
        return any(str(line.product_id) == str(product_id) for line in self.lines)

    def is_owned_by(self, user_id):
        return bool(user_id) and str(self.user_id) == str(user_id)

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def change_status(self, status):
        """Move the order along its state machine. Setting the current status is a no-op."""
        target = _parse(OrderStatus, status, "status")
        previous = self.status
        if target.value == previous:
            return

        self._assert_can_transition(target)

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = target.value
            self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                status=target.value,
                changed_at=now,
            )
        )

    def change_payment_status(self, payment_status):
        target = _parse(PaymentStatus, payment_status, "payment_status")
        previous = self.payment_status
        if target.value == previous:
            return

        current = PaymentStatus(previous)
        if target not in _VALID_PAYMENT_TRANSITIONS[current]:
            raise ValidationError(
                {"payment_status": [f"Cannot transition payment from {current.value} to {target.value}"]}
            )

        now = datetime.now(UTC)
        with atomic_change(self):
            self.payment_status = target.value
            self.updated_at = now

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                payment_status=target.value,
                changed_at=now,
            )
        )

    def record_tracking(self, tracking_number=None, carrier=None):
        now = datetime.now(UTC)
        with atomic_change(self):
            if tracking_number is not None:
                self.tracking_number = tracking_number
            if carrier is not None:
                self.carrier = carrier
            self.updated_at = now

        self.raise_(
            ShipmentTracked(
                order_id=str(self.id),
                order_number=self.order_number,
                tracking_number=self.tracking_number,
                carrier=self.carrier,
                tracked_at=now,
            )
        )
